"""
Domain models - Core business entities
"""
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Optional


class Gender(str, Enum):
    """Self-reported gender"""
    MALE = "MALE"
    FEMALE = "FEMALE"
    OTHER = "OTHER"


class GroupType(str, Enum):
    """Group visibility variants"""
    PUBLIC = "PUBLIC"
    PRIVATE = "PRIVATE"
    PERSONAL = "PERSONAL"


class ConnectionType(str, Enum):
    """Established relationship between two accounts"""
    ACQUAINTANCE = "ACQUAINTANCE"
    STRANGER = "STRANGER"
    IS_FOLLOWING = "IS_FOLLOWING"


class RequestType(str, Enum):
    """Kind of relationship asked for in a connection request"""
    ACQUAINTANCE = "ACQUAINTANCE"
    STRANGER = "STRANGER"
    FOLLOW = "FOLLOW"

    def to_connection_type(self) -> ConnectionType:
        if self is RequestType.FOLLOW:
            return ConnectionType.IS_FOLLOWING
        return ConnectionType(self.value)


class RequestStatus(str, Enum):
    """Lifecycle of a connection request"""
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    DECLINED = "DECLINED"
    CANCELED = "CANCELED"


class Relation(str, Enum):
    """Viewer-relative classification of a post's author"""
    SELF = "SELF"
    ACQUAINTANCE = "ACQUAINTANCE"
    STRANGER = "STRANGER"
    FOLLOWING = "FOLLOWING"
    NONE = "NONE"


# Largest value a BIGINT id column can hold
MAX_ID = 2 ** 63 - 1

PERSONAL_GROUP_NAME = "Social Circle"
PERSONAL_GROUP_DESCRIPTION = "Your personal group"


@dataclass
class Account:
    """Account domain model"""
    id: int
    email: str
    password_hash: Optional[str] = None
    username: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    date_of_birth: Optional[date] = None
    gender: Optional[Gender] = None
    is_private: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class Post:
    """Post domain model, joined with its author's public profile"""
    id: int
    user_id: int
    content: str
    created_at: datetime
    group_id: Optional[int] = None
    author_username: Optional[str] = None
    author_first_name: Optional[str] = None
    author_last_name: Optional[str] = None


@dataclass(frozen=True)
class FeedPosition:
    """Keyset position in the (created_at DESC, id DESC) post ordering"""
    created_at: datetime
    id: int


@dataclass
class Group:
    """Group domain model"""
    id: int
    name: str
    group_type: GroupType
    admin_id: int
    description: Optional[str] = None
    created_at: Optional[datetime] = None

    def is_admin(self, user_id: int) -> bool:
        """Check if the given user created this group"""
        return self.admin_id == user_id

    @property
    def display_label(self) -> str:
        if self.group_type == GroupType.PUBLIC:
            return f"{self.name} public assembly room"
        if self.group_type == GroupType.PRIVATE:
            return f"{self.name} private assembly room"
        return PERSONAL_GROUP_NAME


@dataclass
class Connection:
    """Established connection between two accounts"""
    id: int
    requester_id: int
    requested_id: int
    type: ConnectionType
    created_at: Optional[datetime] = None

    def other_party(self, user_id: int) -> int:
        """Return the id on the opposite end of the connection"""
        return self.requested_id if self.requester_id == user_id else self.requester_id


@dataclass
class ConnectionRequest:
    """Pending or decided connection request"""
    id: int
    requester_id: int
    requested_id: int
    type: RequestType
    status: RequestStatus = RequestStatus.PENDING
    created_at: Optional[datetime] = None
    decided_at: Optional[datetime] = None

    def is_pending(self) -> bool:
        return self.status == RequestStatus.PENDING


@dataclass
class RelationGraph:
    """A viewer's connections, bucketed for relation tagging"""
    viewer_id: int
    acquaintances: frozenset = frozenset()
    strangers: frozenset = frozenset()
    following: frozenset = frozenset()

    def author_ids(self) -> set:
        """Every author whose posts belong in the viewer's feed"""
        return {self.viewer_id} | self.acquaintances | self.strangers | self.following

    def classify(self, author_id: int) -> Relation:
        """Classify an author relative to the viewer"""
        if author_id == self.viewer_id:
            return Relation.SELF
        if author_id in self.acquaintances:
            return Relation.ACQUAINTANCE
        if author_id in self.strangers:
            return Relation.STRANGER
        if author_id in self.following:
            return Relation.FOLLOWING
        return Relation.NONE
