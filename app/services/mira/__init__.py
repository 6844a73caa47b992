"""Recursos multimedia MIRA (videos en Bunny Stream referenciados desde Strapi)."""
