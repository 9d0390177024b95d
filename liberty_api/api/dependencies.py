"""
FastAPI dependencies
"""
from typing import Optional, Type, TypeVar

from fastapi import Depends, Request
from fastapi.exceptions import RequestValidationError
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from liberty_api.application.services import (
    AuthService,
    ConnectionService,
    FeedService,
    GroupService,
)
from liberty_api.domain.exceptions import AuthenticationError, ValidationError
from liberty_api.domain.models import Account
from liberty_api.domain.repositories import (
    IAccountRepository,
    IConnectionRepository,
    IGroupRepository,
    IPostRepository,
)
from liberty_api.infrastructure.database.connection import DatabaseConnection, db_connection
from liberty_api.infrastructure.database.repositories import (
    AccountRepository,
    ConnectionRepository,
    GroupRepository,
    PostRepository,
)
from liberty_api.schemas import BlockRequest, ConnectionRequestCreate, GroupCreate, PostCreate


# Security scheme
security = HTTPBearer(auto_error=False)


async def get_db_connection_dep() -> DatabaseConnection:
    """Get database connection dependency"""
    return db_connection


async def get_account_repository(
    db: DatabaseConnection = Depends(get_db_connection_dep)
) -> IAccountRepository:
    return AccountRepository(db)


async def get_post_repository(
    db: DatabaseConnection = Depends(get_db_connection_dep)
) -> IPostRepository:
    return PostRepository(db)


async def get_group_repository(
    db: DatabaseConnection = Depends(get_db_connection_dep)
) -> IGroupRepository:
    return GroupRepository(db)


async def get_connection_repository(
    db: DatabaseConnection = Depends(get_db_connection_dep)
) -> IConnectionRepository:
    return ConnectionRepository(db)


async def get_auth_service(
    account_repo: IAccountRepository = Depends(get_account_repository)
) -> AuthService:
    """Get auth service dependency"""
    return AuthService(account_repo)


async def get_feed_service(
    post_repo: IPostRepository = Depends(get_post_repository),
    group_repo: IGroupRepository = Depends(get_group_repository),
    connection_repo: IConnectionRepository = Depends(get_connection_repository)
) -> FeedService:
    """Get feed service dependency"""
    return FeedService(post_repo, group_repo, connection_repo)


async def get_group_service(
    group_repo: IGroupRepository = Depends(get_group_repository)
) -> GroupService:
    """Get group service dependency"""
    return GroupService(group_repo)


async def get_connection_service(
    connection_repo: IConnectionRepository = Depends(get_connection_repository),
    account_repo: IAccountRepository = Depends(get_account_repository)
) -> ConnectionService:
    """Get connection service dependency"""
    return ConnectionService(connection_repo, account_repo)


async def get_current_account(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> Account:
    """
    Get current authenticated account from the bearer token

    Raises:
        AuthenticationError: For a missing, malformed, expired or orphaned token
    """
    if not credentials:
        raise AuthenticationError()
    return await auth_service.authenticate(credentials.credentials)


async def get_current_account_optional(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> Optional[Account]:
    """
    Get current authenticated account (optional)

    Returns None if not authenticated instead of raising exception
    """
    if not credentials:
        return None

    try:
        return await auth_service.authenticate(credentials.credentials)
    except AuthenticationError:
        return None


ModelT = TypeVar("ModelT", bound=BaseModel)


async def read_json_body(request: Request, model: Type[ModelT]) -> ModelT:
    """
    Parse and validate a JSON request body

    Raises:
        ValidationError: If the body is not JSON at all
        RequestValidationError: If the JSON does not fit the model
    """
    try:
        data = await request.json()
    except ValueError:
        raise ValidationError("Request body must be valid JSON")

    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        raise RequestValidationError(
            [{**err, "loc": ("body", *err["loc"])} for err in e.errors(include_url=False)]
        )


# The body parsers below depend on get_current_account so that a missing
# token is reported before anything about the body.

async def parse_post_create(
    request: Request,
    current_account: Account = Depends(get_current_account)
) -> PostCreate:
    return await read_json_body(request, PostCreate)


async def parse_group_create(
    request: Request,
    current_account: Account = Depends(get_current_account)
) -> GroupCreate:
    return await read_json_body(request, GroupCreate)


async def parse_connection_request(
    request: Request,
    current_account: Account = Depends(get_current_account)
) -> ConnectionRequestCreate:
    return await read_json_body(request, ConnectionRequestCreate)


async def parse_block_request(
    request: Request,
    current_account: Account = Depends(get_current_account)
) -> BlockRequest:
    return await read_json_body(request, BlockRequest)
