"""Infraestructura: persistencia SQL y conexión a Redis."""
