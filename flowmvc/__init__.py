"""Routing, code generators, SQL migrations and a SQLite adapter for WSGI MVC applications."""

__version__ = "0.1.0"