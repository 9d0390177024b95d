"""
Pydantic schemas for request/response validation

Field names are snake_case in Python and camelCase on the wire. Request
bodies accept either spelling.
"""
import re
from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from liberty_api.domain.models import (
    MAX_ID,
    Gender,
    GroupType,
    Relation,
    RequestStatus,
    RequestType,
    ConnectionType,
)


USERNAME_PATTERN = re.compile(r"^[a-z0-9_.]{3,32}$")
MINIMUM_AGE_YEARS = 13


def normalize_username(value: str) -> str:
    value = value.strip().lower()
    if not USERNAME_PATTERN.match(value):
        raise ValueError(
            "Username must be 3-32 characters of letters, numbers, underscores and dots"
        )
    return value


def years_before(day: date, years: int) -> date:
    try:
        return day.replace(year=day.year - years)
    except ValueError:
        # Feb 29 in a non-leap target year
        return day.replace(year=day.year - years, day=28)


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class SignupRequest(CamelModel):
    """Account registration request"""
    email: EmailStr
    password: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    username: Optional[str] = None
    date_of_birth: Optional[date] = None
    gender: Optional[Gender] = None
    is_private: bool = False

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v):
        return v.lower()

    @field_validator("username")
    @classmethod
    def validate_username(cls, v):
        if v is None:
            return v
        return normalize_username(v)

    @field_validator("first_name", "last_name")
    @classmethod
    def validate_name(cls, v):
        """Names are trimmed and must keep between 1 and 50 characters"""
        if v is None:
            return v
        v = v.strip()
        if not v or len(v) > 50:
            raise ValueError("Names must be between 1 and 50 characters")
        return v

    @field_validator("date_of_birth")
    @classmethod
    def validate_date_of_birth(cls, v):
        if v is None:
            return v
        if v > years_before(date.today(), MINIMUM_AGE_YEARS):
            raise ValueError(f"You must be at least {MINIMUM_AGE_YEARS} years old")
        return v


class AvailabilityRequest(CamelModel):
    """Email or username availability check"""
    email: Optional[EmailStr] = None
    username: Optional[str] = None

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v):
        if v is None:
            return v
        return v.lower()

    @field_validator("username")
    @classmethod
    def validate_username(cls, v):
        if v is None:
            return v
        return normalize_username(v)

    @model_validator(mode="after")
    def check_exactly_one(self):
        if (self.email is None) == (self.username is None):
            raise ValueError("Provide exactly one of email or username")
        return self


class AvailabilityResponse(CamelModel):
    available: bool


class LoginRequest(CamelModel):
    """Login request"""
    email: str
    password: str


class TokenResponse(CamelModel):
    """Token response"""
    access_token: str
    token_type: str = "bearer"
    expires_in: int


class AccountResponse(CamelModel):
    """Account representation; the password hash is never part of it"""
    id: int
    email: str
    username: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    date_of_birth: Optional[date] = None
    gender: Optional[Gender] = None
    is_private: bool = False
    created_at: Optional[datetime] = None


class PostCreate(CamelModel):
    """Post creation request; content rules are applied by the feed service"""
    content: str
    group_id: Optional[int] = Field(None, ge=1, le=MAX_ID)


class PostResponse(CamelModel):
    id: int
    user_id: int
    group_id: Optional[int] = None
    content: str
    created_at: datetime


class AuthorSummary(CamelModel):
    id: int
    username: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class FeedItem(CamelModel):
    """Feed entry; relation is only present for authenticated viewers"""
    id: int
    user_id: int
    content: str
    created_at: datetime
    author: AuthorSummary
    relation: Optional[Relation] = None


class FeedResponse(CamelModel):
    items: List[FeedItem]
    next_cursor: Optional[str] = None


class GroupCreate(CamelModel):
    """Group creation request"""
    name: str
    group_type: GroupType
    description: Optional[str] = Field(None, max_length=500)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Group name must not be empty")
        if len(v) > 100:
            raise ValueError("Group name must be at most 100 characters")
        return v

    @field_validator("group_type", mode="before")
    @classmethod
    def validate_group_type(cls, v):
        """Accept PUBLIC or PRIVATE in any letter case"""
        if isinstance(v, str):
            v = v.strip().upper()
        if v not in (GroupType.PUBLIC.value, GroupType.PRIVATE.value):
            raise ValueError("groupType must be PUBLIC or PRIVATE")
        return v


class GroupResponse(CamelModel):
    id: int
    name: str
    description: Optional[str] = None
    group_type: GroupType
    admin_id: int
    created_at: Optional[datetime] = None
    display_label: str


class ConnectionRequestCreate(CamelModel):
    """Connection request"""
    requested_id: int = Field(ge=1, le=MAX_ID)
    request_type: RequestType

    @field_validator("request_type", mode="before")
    @classmethod
    def normalize_request_type(cls, v):
        if isinstance(v, str):
            return v.strip().upper()
        return v


class ConnectionRequestResponse(CamelModel):
    id: int
    requester_id: int
    requested_id: int
    request_type: RequestType
    status: RequestStatus
    created_at: Optional[datetime] = None


class PendingRequestsResponse(CamelModel):
    requests: List[ConnectionRequestResponse]


class ConnectionResponse(CamelModel):
    """A connection seen from one side"""
    id: int
    user_id: int
    type: ConnectionType
    created_at: Optional[datetime] = None


class ConnectionsResponse(CamelModel):
    connections: List[ConnectionResponse]


class ConnectionRemovedResponse(CamelModel):
    deleted_connection_id: int
    other_user_id: int


class BlockRequest(CamelModel):
    """Block or unblock another account"""
    user_id: int = Field(ge=1, le=MAX_ID)


class ErrorResponse(BaseModel):
    """Error response"""
    error: str
    detail: Optional[str] = None
    success: bool = False
