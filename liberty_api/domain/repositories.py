"""
Repository interfaces - Define contracts for data access
"""
from abc import ABC, abstractmethod
from datetime import date
from typing import Iterable, List, Optional

from .models import (
    Account,
    Connection,
    ConnectionRequest,
    FeedPosition,
    Gender,
    Group,
    GroupType,
    Post,
    RequestType,
)


class IAccountRepository(ABC):
    """Account repository interface"""

    @abstractmethod
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
        """
        Create an account together with its personal group and membership

        Raises:
            ConflictError: If the email or username is already taken
        """
        pass

    @abstractmethod
    async def find_by_id(self, account_id: int) -> Optional[Account]:
        """Find account by ID"""
        pass

    @abstractmethod
    async def find_by_email(self, email: str) -> Optional[Account]:
        """Find account by (lower-cased) email"""
        pass

    @abstractmethod
    async def exists_by_email(self, email: str) -> bool:
        """Check if an account uses the email"""
        pass

    @abstractmethod
    async def exists_by_username(self, username: str) -> bool:
        """Check if an account uses the username"""
        pass


class IPostRepository(ABC):
    """Post repository interface"""

    @abstractmethod
    async def create(self, user_id: int, content: str, group_id: Optional[int] = None) -> Post:
        """Create a new post"""
        pass

    @abstractmethod
    async def list_public(self, limit: int, after: Optional[FeedPosition] = None) -> List[Post]:
        """List posts outside any group, newest first, strictly after the position"""
        pass

    @abstractmethod
    async def list_by_authors(
        self,
        author_ids: Iterable[int],
        limit: int,
        after: Optional[FeedPosition] = None,
    ) -> List[Post]:
        """List posts written by any of the authors, newest first, strictly after the position"""
        pass


class IGroupRepository(ABC):
    """Group repository interface"""

    @abstractmethod
    async def create(
        self,
        name: str,
        group_type: GroupType,
        admin_id: int,
        description: Optional[str] = None,
    ) -> Group:
        """Create a group and enroll its admin as a member"""
        pass

    @abstractmethod
    async def find_by_id(self, group_id: int) -> Optional[Group]:
        """Find group by ID"""
        pass

    @abstractmethod
    async def list_for_user(self, user_id: int) -> List[Group]:
        """List groups the user administers or belongs to"""
        pass

    @abstractmethod
    async def is_member(self, group_id: int, user_id: int) -> bool:
        """Check group membership"""
        pass


class IConnectionRepository(ABC):
    """Connection and connection request repository interface"""

    @abstractmethod
    async def find_between(self, user_id: int, other_id: int) -> Optional[Connection]:
        """Find the connection between two accounts in either direction"""
        pass

    @abstractmethod
    async def list_for_user(self, user_id: int) -> List[Connection]:
        """List every connection the user takes part in"""
        pass

    @abstractmethod
    async def upsert_request(
        self, requester_id: int, requested_id: int, request_type: RequestType
    ) -> ConnectionRequest:
        """Create or reset to PENDING the request for this ordered pair"""
        pass

    @abstractmethod
    async def find_request(self, request_id: int) -> Optional[ConnectionRequest]:
        """Find connection request by ID"""
        pass

    @abstractmethod
    async def list_incoming(self, user_id: int) -> List[ConnectionRequest]:
        """List PENDING requests addressed to the user"""
        pass

    @abstractmethod
    async def accept_request(self, request: ConnectionRequest) -> Connection:
        """Mark the request ACCEPTED and create or update the connection atomically"""
        pass

    @abstractmethod
    async def decline_request(self, request_id: int) -> ConnectionRequest:
        """Mark the request DECLINED"""
        pass

    @abstractmethod
    async def list_outgoing(self, user_id: int) -> List[ConnectionRequest]:
        """List PENDING requests the user has sent"""
        pass

    @abstractmethod
    async def cancel_request(self, request_id: int) -> ConnectionRequest:
        """Mark the request CANCELED"""
        pass

    @abstractmethod
    async def delete_connection(self, connection_id: int) -> bool:
        """Delete a connection; False when it was already gone"""
        pass

    @abstractmethod
    async def block(self, blocker_id: int, blocked_id: int) -> None:
        """Record a block; blocking twice is a no-op"""
        pass

    @abstractmethod
    async def unblock(self, blocker_id: int, blocked_id: int) -> None:
        """Remove a block the blocker placed"""
        pass

    @abstractmethod
    async def is_blocked(self, user_id: int, other_id: int) -> bool:
        """Check for a block between two accounts in either direction"""
        pass
