"""Database Infrastructure — SQLAlchemy Base shared by models, bootstrap, and migrations.

Invariants:
    - Single async engine per process (initialized via init_db)
    - All sessions are async (AsyncSession)

Design Decisions:
    - aiosqlite by default (single-file deployments), asyncpg when DATABASE_URL is PostgreSQL
"""
