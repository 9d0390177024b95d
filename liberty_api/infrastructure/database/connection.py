"""
Database connection and utilities
"""
import asyncpg
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional

from liberty_api.config import settings

logger = logging.getLogger(__name__)


SCHEMA_STATEMENTS = (
    """
    CREATE TABLE IF NOT EXISTS users (
        id BIGSERIAL PRIMARY KEY,
        email VARCHAR(255) NOT NULL UNIQUE,
        password_hash VARCHAR(255) NOT NULL,
        username VARCHAR(32) UNIQUE,
        first_name VARCHAR(50),
        last_name VARCHAR(50),
        date_of_birth DATE,
        gender VARCHAR(10),
        is_private BOOLEAN NOT NULL DEFAULT FALSE,
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS groups (
        id BIGSERIAL PRIMARY KEY,
        name VARCHAR(100) NOT NULL,
        description TEXT,
        group_type VARCHAR(16) NOT NULL,
        admin_id BIGINT NOT NULL REFERENCES users (id) ON DELETE CASCADE,
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS group_members (
        user_id BIGINT NOT NULL REFERENCES users (id) ON DELETE CASCADE,
        group_id BIGINT NOT NULL REFERENCES groups (id) ON DELETE CASCADE,
        joined_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        PRIMARY KEY (user_id, group_id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS posts (
        id BIGSERIAL PRIMARY KEY,
        user_id BIGINT NOT NULL REFERENCES users (id) ON DELETE CASCADE,
        group_id BIGINT REFERENCES groups (id) ON DELETE CASCADE,
        content VARCHAR(1000) NOT NULL,
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    )
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_posts_public_order
    ON posts (created_at DESC, id DESC) WHERE group_id IS NULL
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_posts_user_order
    ON posts (user_id, created_at DESC, id DESC)
    """,
    """
    CREATE TABLE IF NOT EXISTS connections (
        id BIGSERIAL PRIMARY KEY,
        requester_id BIGINT NOT NULL REFERENCES users (id) ON DELETE CASCADE,
        requested_id BIGINT NOT NULL REFERENCES users (id) ON DELETE CASCADE,
        type VARCHAR(16) NOT NULL,
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        UNIQUE (requester_id, requested_id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS connection_requests (
        id BIGSERIAL PRIMARY KEY,
        requester_id BIGINT NOT NULL REFERENCES users (id) ON DELETE CASCADE,
        requested_id BIGINT NOT NULL REFERENCES users (id) ON DELETE CASCADE,
        type VARCHAR(16) NOT NULL,
        status VARCHAR(16) NOT NULL DEFAULT 'PENDING',
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        decided_at TIMESTAMPTZ,
        UNIQUE (requester_id, requested_id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS blocks (
        blocker_id BIGINT NOT NULL REFERENCES users (id) ON DELETE CASCADE,
        blocked_id BIGINT NOT NULL REFERENCES users (id) ON DELETE CASCADE,
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        PRIMARY KEY (blocker_id, blocked_id)
    )
    """,
)


class DatabaseConnection:
    """PostgreSQL connection manager using asyncpg"""

    def __init__(self):
        self.pool: Optional[asyncpg.Pool] = None

    async def connect(self):
        """Create database connection pool and ensure the schema exists"""
        try:
            self.pool = await asyncpg.create_pool(
                settings.DATABASE_URL,
                min_size=1,
                max_size=settings.DB_POOL_SIZE,
                command_timeout=settings.DB_COMMAND_TIMEOUT,
            )
            logger.info(f"Database pool created with size {settings.DB_POOL_SIZE}")
        except Exception as e:
            logger.error(f"Failed to connect to database: {e}")
            raise

        await self._init_schema()

    async def disconnect(self):
        """Close database connection pool"""
        if self.pool:
            await self.pool.close()
            self.pool = None
            logger.info("Database pool closed")

    async def _init_schema(self):
        """Create tables and indexes if they are missing"""
        async with self.pool.acquire() as conn:
            async with conn.transaction():
                for statement in SCHEMA_STATEMENTS:
                    await conn.execute(statement)
        logger.info("Database schema initialized")

    async def fetch_one(self, query: str, *args) -> Optional[Dict[str, Any]]:
        """Fetch a single row"""
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(query, *args)
            return dict(row) if row else None

    async def fetch_all(self, query: str, *args) -> List[Dict[str, Any]]:
        """Fetch all rows"""
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(query, *args)
            return [dict(row) for row in rows]

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[asyncpg.Connection]:
        """Yield a connection whose statements commit or roll back together"""
        async with self.pool.acquire() as conn:
            async with conn.transaction():
                yield conn


# Global database instance
db_connection = DatabaseConnection()
