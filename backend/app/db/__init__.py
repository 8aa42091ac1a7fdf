"""Database Metadata: declarative Base shared by models, alembic and test fixtures.

Design Decisions:
    - asyncpg driver for PostgreSQL in production, aiosqlite in tests
"""
