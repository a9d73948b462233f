# crudui/__init__.py
"""Generic CRUD administration UI over a relational database."""

__version__ = "1.0.0"
