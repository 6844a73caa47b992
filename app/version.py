"""
Información de versión de Intranet Pedidos Sync.

La versión sale de pyproject.toml (metadata del paquete instalado).
"""

import os
from functools import lru_cache
from typing import Any, Dict, Optional

PACKAGE_NAME = "intranet-pedidos-sync"

# Versión usada si el paquete no está instalado
_FALLBACK_VERSION = "0.1.0"


def get_version() -> str:
    from importlib.metadata import PackageNotFoundError, version

    try:
        return version(PACKAGE_NAME)
    except PackageNotFoundError:
        return _FALLBACK_VERSION


VERSION = get_version()


@lru_cache(maxsize=1)
def get_build_info() -> Dict[str, Optional[str]]:
    """
    Commit y rama del build, tomados de los build args del contenedor.
    """
    commit = os.environ.get("GIT_COMMIT")
    return {
        "commit": commit[:8] if commit else None,
        "branch": os.environ.get("GIT_BRANCH"),
        "build_date": os.environ.get("BUILD_DATE"),
    }


def version_info() -> Dict[str, Any]:
    return {"name": PACKAGE_NAME, "version": VERSION, **get_build_info()}
