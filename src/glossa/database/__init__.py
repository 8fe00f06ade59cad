"""Database package for Glossa.

Database components should be imported directly from their modules:
    from glossa.database.core import DatabaseService
"""
