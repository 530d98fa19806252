"""Schema-driven SQLite access: declare tables and relationships, build queries, read results."""

__version__ = "0.1.0"