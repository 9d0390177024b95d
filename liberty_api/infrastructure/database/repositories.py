"""
Repository implementations - Data access layer
"""
import logging
from datetime import date
from typing import Any, Dict, Iterable, List, Optional

import asyncpg

from liberty_api.domain.exceptions import ConflictError
from liberty_api.domain.models import (
    PERSONAL_GROUP_DESCRIPTION,
    PERSONAL_GROUP_NAME,
    Account,
    Connection,
    ConnectionRequest,
    ConnectionType,
    FeedPosition,
    Gender,
    Group,
    GroupType,
    Post,
    RequestStatus,
    RequestType,
)
from liberty_api.domain.repositories import (
    IAccountRepository,
    IConnectionRepository,
    IGroupRepository,
    IPostRepository,
)
from .connection import DatabaseConnection

logger = logging.getLogger(__name__)


ACCOUNT_COLUMNS = """
    id, email, password_hash, username, first_name, last_name,
    date_of_birth, gender, is_private, created_at, updated_at
"""

POST_COLUMNS = """
    p.id, p.user_id, p.group_id, p.content, p.created_at,
    u.username AS author_username,
    u.first_name AS author_first_name,
    u.last_name AS author_last_name
"""

GROUP_COLUMNS = "g.id, g.name, g.description, g.group_type, g.admin_id, g.created_at"

REQUEST_COLUMNS = "id, requester_id, requested_id, type, status, created_at, decided_at"


class AccountRepository(IAccountRepository):
    """Account repository implementation using PostgreSQL"""

    def __init__(self, db: DatabaseConnection):
        self.db = db

    def _row_to_account(self, row: Optional[Dict[str, Any]]) -> Optional[Account]:
        """Convert database row to Account model"""
        if not row:
            return None
        data = dict(row)
        if data.get("gender"):
            data["gender"] = Gender(data["gender"])
        return Account(**data)

    async def create_with_personal_group(
        self,
        email: str,
        password_hash: str,
        username: Optional[str] = None,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        date_of_birth: Optional[date] = None,
        gender: Optional[Gender] = None,
        is_private: bool = False,
    ) -> Account:
        """Create the account, its Social Circle group and the membership"""
        try:
            async with self.db.transaction() as conn:
                row = await conn.fetchrow(
                    f"""
                    INSERT INTO users (email, password_hash, username, first_name,
                                       last_name, date_of_birth, gender, is_private)
                    VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
                    RETURNING {ACCOUNT_COLUMNS}
                    """,
                    email.lower(),
                    password_hash,
                    username.lower() if username else None,
                    first_name,
                    last_name,
                    date_of_birth,
                    gender.value if gender else None,
                    is_private,
                )
                group_id = await conn.fetchval(
                    """
                    INSERT INTO groups (name, description, group_type, admin_id)
                    VALUES ($1, $2, $3, $4)
                    RETURNING id
                    """,
                    PERSONAL_GROUP_NAME,
                    PERSONAL_GROUP_DESCRIPTION,
                    GroupType.PERSONAL.value,
                    row["id"],
                )
                await conn.execute(
                    "INSERT INTO group_members (user_id, group_id) VALUES ($1, $2)",
                    row["id"],
                    group_id,
                )
        except asyncpg.UniqueViolationError as e:
            constraint = e.constraint_name or ""
            if "username" in constraint:
                raise ConflictError("Username is already taken") from e
            raise ConflictError("Email is already registered") from e

        return self._row_to_account(dict(row))

    async def find_by_id(self, account_id: int) -> Optional[Account]:
        """Find account by ID"""
        row = await self.db.fetch_one(
            f"SELECT {ACCOUNT_COLUMNS} FROM users WHERE id = $1",
            account_id
        )
        return self._row_to_account(row)

    async def find_by_email(self, email: str) -> Optional[Account]:
        """Find account by email"""
        row = await self.db.fetch_one(
            f"SELECT {ACCOUNT_COLUMNS} FROM users WHERE email = $1",
            email.lower()
        )
        return self._row_to_account(row)

    async def exists_by_email(self, email: str) -> bool:
        row = await self.db.fetch_one("SELECT id FROM users WHERE email = $1", email.lower())
        return row is not None

    async def exists_by_username(self, username: str) -> bool:
        row = await self.db.fetch_one("SELECT id FROM users WHERE username = $1", username.lower())
        return row is not None


class PostRepository(IPostRepository):
    """Post repository implementation using PostgreSQL"""

    def __init__(self, db: DatabaseConnection):
        self.db = db

    def _row_to_post(self, row: Dict[str, Any]) -> Post:
        return Post(**row)

    async def create(self, user_id: int, content: str, group_id: Optional[int] = None) -> Post:
        """Create a new post"""
        row = await self.db.fetch_one(
            f"""
            WITH inserted AS (
                INSERT INTO posts (user_id, group_id, content)
                VALUES ($1, $2, $3)
                RETURNING id, user_id, group_id, content, created_at
            )
            SELECT {POST_COLUMNS}
            FROM inserted p
            JOIN users u ON u.id = p.user_id
            """,
            user_id,
            group_id,
            content
        )
        return self._row_to_post(row)

    async def list_public(self, limit: int, after: Optional[FeedPosition] = None) -> List[Post]:
        """List public-square posts newest first"""
        if after is None:
            rows = await self.db.fetch_all(
                f"""
                SELECT {POST_COLUMNS}
                FROM posts p
                JOIN users u ON u.id = p.user_id
                WHERE p.group_id IS NULL
                ORDER BY p.created_at DESC, p.id DESC
                LIMIT $1
                """,
                limit
            )
        else:
            rows = await self.db.fetch_all(
                f"""
                SELECT {POST_COLUMNS}
                FROM posts p
                JOIN users u ON u.id = p.user_id
                WHERE p.group_id IS NULL
                  AND (p.created_at, p.id) < ($2, $3)
                ORDER BY p.created_at DESC, p.id DESC
                LIMIT $1
                """,
                limit,
                after.created_at,
                after.id
            )
        return [self._row_to_post(row) for row in rows]

    async def list_by_authors(
        self,
        author_ids: Iterable[int],
        limit: int,
        after: Optional[FeedPosition] = None,
    ) -> List[Post]:
        """List public-square posts by the given authors newest first"""
        ids = list(author_ids)
        if not ids:
            return []

        if after is None:
            rows = await self.db.fetch_all(
                f"""
                SELECT {POST_COLUMNS}
                FROM posts p
                JOIN users u ON u.id = p.user_id
                WHERE p.group_id IS NULL
                  AND p.user_id = ANY($2::bigint[])
                ORDER BY p.created_at DESC, p.id DESC
                LIMIT $1
                """,
                limit,
                ids
            )
        else:
            rows = await self.db.fetch_all(
                f"""
                SELECT {POST_COLUMNS}
                FROM posts p
                JOIN users u ON u.id = p.user_id
                WHERE p.group_id IS NULL
                  AND p.user_id = ANY($2::bigint[])
                  AND (p.created_at, p.id) < ($3, $4)
                ORDER BY p.created_at DESC, p.id DESC
                LIMIT $1
                """,
                limit,
                ids,
                after.created_at,
                after.id
            )
        return [self._row_to_post(row) for row in rows]


class GroupRepository(IGroupRepository):
    """Group repository implementation using PostgreSQL"""

    def __init__(self, db: DatabaseConnection):
        self.db = db

    def _row_to_group(self, row: Optional[Dict[str, Any]]) -> Optional[Group]:
        if not row:
            return None
        data = dict(row)
        data["group_type"] = GroupType(data["group_type"])
        return Group(**data)

    async def create(
        self,
        name: str,
        group_type: GroupType,
        admin_id: int,
        description: Optional[str] = None,
    ) -> Group:
        """Create a group and enroll its admin"""
        async with self.db.transaction() as conn:
            row = await conn.fetchrow(
                """
                INSERT INTO groups (name, description, group_type, admin_id)
                VALUES ($1, $2, $3, $4)
                RETURNING id, name, description, group_type, admin_id, created_at
                """,
                name,
                description,
                group_type.value,
                admin_id,
            )
            await conn.execute(
                """
                INSERT INTO group_members (user_id, group_id)
                VALUES ($1, $2)
                ON CONFLICT (user_id, group_id) DO NOTHING
                """,
                admin_id,
                row["id"],
            )
        return self._row_to_group(dict(row))

    async def find_by_id(self, group_id: int) -> Optional[Group]:
        """Find group by ID"""
        row = await self.db.fetch_one(
            f"SELECT {GROUP_COLUMNS} FROM groups g WHERE g.id = $1",
            group_id
        )
        return self._row_to_group(row)

    async def list_for_user(self, user_id: int) -> List[Group]:
        """List administered or joined groups newest first"""
        rows = await self.db.fetch_all(
            f"""
            SELECT {GROUP_COLUMNS}
            FROM groups g
            WHERE g.admin_id = $1
               OR EXISTS (
                   SELECT 1 FROM group_members m
                   WHERE m.group_id = g.id AND m.user_id = $1
               )
            ORDER BY g.created_at DESC, g.id DESC
            """,
            user_id
        )
        return [self._row_to_group(row) for row in rows]

    async def is_member(self, group_id: int, user_id: int) -> bool:
        row = await self.db.fetch_one(
            "SELECT 1 FROM group_members WHERE group_id = $1 AND user_id = $2",
            group_id,
            user_id
        )
        return row is not None


class ConnectionRepository(IConnectionRepository):
    """Connection repository implementation using PostgreSQL"""

    def __init__(self, db: DatabaseConnection):
        self.db = db

    def _row_to_connection(self, row: Optional[Dict[str, Any]]) -> Optional[Connection]:
        if not row:
            return None
        data = dict(row)
        data["type"] = ConnectionType(data["type"])
        return Connection(**data)

    def _row_to_request(self, row: Optional[Dict[str, Any]]) -> Optional[ConnectionRequest]:
        if not row:
            return None
        data = dict(row)
        data["type"] = RequestType(data["type"])
        data["status"] = RequestStatus(data["status"])
        return ConnectionRequest(**data)

    async def find_between(self, user_id: int, other_id: int) -> Optional[Connection]:
        """Find the connection between two accounts in either direction"""
        row = await self.db.fetch_one(
            """
            SELECT id, requester_id, requested_id, type, created_at
            FROM connections
            WHERE (requester_id = $1 AND requested_id = $2)
               OR (requester_id = $2 AND requested_id = $1)
            ORDER BY created_at DESC
            LIMIT 1
            """,
            user_id,
            other_id
        )
        return self._row_to_connection(row)

    async def list_for_user(self, user_id: int) -> List[Connection]:
        rows = await self.db.fetch_all(
            """
            SELECT id, requester_id, requested_id, type, created_at
            FROM connections
            WHERE requester_id = $1 OR requested_id = $1
            ORDER BY created_at DESC, id DESC
            """,
            user_id
        )
        return [self._row_to_connection(row) for row in rows]

    async def upsert_request(
        self, requester_id: int, requested_id: int, request_type: RequestType
    ) -> ConnectionRequest:
        """Create the request, or reopen an earlier one for the same pair"""
        row = await self.db.fetch_one(
            f"""
            INSERT INTO connection_requests (requester_id, requested_id, type, status)
            VALUES ($1, $2, $3, 'PENDING')
            ON CONFLICT (requester_id, requested_id) DO UPDATE
            SET type = EXCLUDED.type,
                status = 'PENDING',
                created_at = NOW(),
                decided_at = NULL
            RETURNING {REQUEST_COLUMNS}
            """,
            requester_id,
            requested_id,
            request_type.value
        )
        return self._row_to_request(row)

    async def find_request(self, request_id: int) -> Optional[ConnectionRequest]:
        row = await self.db.fetch_one(
            f"SELECT {REQUEST_COLUMNS} FROM connection_requests WHERE id = $1",
            request_id
        )
        return self._row_to_request(row)

    async def list_incoming(self, user_id: int) -> List[ConnectionRequest]:
        rows = await self.db.fetch_all(
            f"""
            SELECT {REQUEST_COLUMNS}
            FROM connection_requests
            WHERE requested_id = $1 AND status = 'PENDING'
            ORDER BY created_at DESC, id DESC
            """,
            user_id
        )
        return [self._row_to_request(row) for row in rows]

    async def accept_request(self, request: ConnectionRequest) -> Connection:
        """Accept the request and create or upgrade the connection"""
        connection_type = request.type.to_connection_type()

        async with self.db.transaction() as conn:
            updated = await conn.fetchval(
                """
                UPDATE connection_requests
                SET status = 'ACCEPTED', decided_at = NOW()
                WHERE id = $1 AND status = 'PENDING'
                RETURNING id
                """,
                request.id,
            )
            if updated is None:
                raise ConflictError("Connection request is no longer pending")

            existing = await conn.fetchrow(
                """
                SELECT id FROM connections
                WHERE (requester_id = $1 AND requested_id = $2)
                   OR (requester_id = $2 AND requested_id = $1)
                FOR UPDATE
                """,
                request.requester_id,
                request.requested_id,
            )
            if existing:
                row = await conn.fetchrow(
                    """
                    UPDATE connections SET type = $2
                    WHERE id = $1
                    RETURNING id, requester_id, requested_id, type, created_at
                    """,
                    existing["id"],
                    connection_type.value,
                )
            else:
                row = await conn.fetchrow(
                    """
                    INSERT INTO connections (requester_id, requested_id, type)
                    VALUES ($1, $2, $3)
                    RETURNING id, requester_id, requested_id, type, created_at
                    """,
                    request.requester_id,
                    request.requested_id,
                    connection_type.value,
                )

        logger.info(f"Connection {row['id']} is now {connection_type.value}")
        return self._row_to_connection(dict(row))

    async def decline_request(self, request_id: int) -> ConnectionRequest:
        row = await self.db.fetch_one(
            f"""
            UPDATE connection_requests
            SET status = 'DECLINED', decided_at = NOW()
            WHERE id = $1 AND status = 'PENDING'
            RETURNING {REQUEST_COLUMNS}
            """,
            request_id
        )
        if row is None:
            raise ConflictError("Connection request is no longer pending")
        return self._row_to_request(row)

    async def list_outgoing(self, user_id: int) -> List[ConnectionRequest]:
        rows = await self.db.fetch_all(
            f"""
            SELECT {REQUEST_COLUMNS}
            FROM connection_requests
            WHERE requester_id = $1 AND status = 'PENDING'
            ORDER BY created_at DESC, id DESC
            """,
            user_id
        )
        return [self._row_to_request(row) for row in rows]

    async def cancel_request(self, request_id: int) -> ConnectionRequest:
        row = await self.db.fetch_one(
            f"""
            UPDATE connection_requests
            SET status = 'CANCELED', decided_at = NOW()
            WHERE id = $1 AND status = 'PENDING'
            RETURNING {REQUEST_COLUMNS}
            """,
            request_id
        )
        if row is None:
            raise ConflictError("Connection request is no longer pending")
        return self._row_to_request(row)

    async def delete_connection(self, connection_id: int) -> bool:
        row = await self.db.fetch_one(
            "DELETE FROM connections WHERE id = $1 RETURNING id",
            connection_id
        )
        return row is not None

    async def block(self, blocker_id: int, blocked_id: int) -> None:
        await self.db.fetch_one(
            """
            INSERT INTO blocks (blocker_id, blocked_id)
            VALUES ($1, $2)
            ON CONFLICT (blocker_id, blocked_id) DO NOTHING
            RETURNING blocker_id
            """,
            blocker_id,
            blocked_id
        )

    async def unblock(self, blocker_id: int, blocked_id: int) -> None:
        await self.db.fetch_one(
            """
            DELETE FROM blocks
            WHERE blocker_id = $1 AND blocked_id = $2
            RETURNING blocker_id
            """,
            blocker_id,
            blocked_id
        )

    async def is_blocked(self, user_id: int, other_id: int) -> bool:
        row = await self.db.fetch_one(
            """
            SELECT 1 FROM blocks
            WHERE (blocker_id = $1 AND blocked_id = $2)
               OR (blocker_id = $2 AND blocked_id = $1)
            """,
            user_id,
            other_id
        )
        return row is not None
