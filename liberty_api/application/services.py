"""
Application services - Business logic layer
"""
import logging
from dataclasses import dataclass
from datetime import date
from typing import List, Optional, Tuple

from liberty_api.application.cursors import clamp_page_size, decode_cursor, encode_cursor
from liberty_api.config import settings
from liberty_api.domain.exceptions import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from liberty_api.domain.models import (
    Account,
    Connection,
    ConnectionRequest,
    ConnectionType,
    FeedPosition,
    Gender,
    Group,
    GroupType,
    Post,
    Relation,
    RelationGraph,
    RequestType,
)
from liberty_api.domain.repositories import (
    IAccountRepository,
    IConnectionRepository,
    IGroupRepository,
    IPostRepository,
)
from liberty_api.infrastructure.auth import (
    burn_password_check,
    create_access_token,
    decode_token,
    hash_password,
    validate_password_strength,
    verify_password,
)

logger = logging.getLogger(__name__)


class AuthService:
    """Authentication service - account creation and credential checks"""

    def __init__(self, account_repository: IAccountRepository):
        self.account_repo = account_repository

    async def signup(
        self,
        email: str,
        password: str,
        username: Optional[str] = None,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        date_of_birth: Optional[date] = None,
        gender: Optional[Gender] = None,
        is_private: bool = False,
    ) -> Account:
        """
        Register a new account

        Raises:
            ValidationError: If the password violates the length policy
            ConflictError: If the email or username is already taken
        """
        is_valid, error_msg = validate_password_strength(password)
        if not is_valid:
            raise ValidationError(error_msg)

        email = email.strip().lower()
        if await self.account_repo.exists_by_email(email):
            raise ConflictError("Email is already registered")
        if username and await self.account_repo.exists_by_username(username):
            raise ConflictError("Username is already taken")

        # Unique constraints settle signups racing past the checks above
        account = await self.account_repo.create_with_personal_group(
            email=email,
            password_hash=hash_password(password),
            username=username,
            first_name=first_name,
            last_name=last_name,
            date_of_birth=date_of_birth,
            gender=gender,
            is_private=is_private,
        )
        logger.info(f"Account {account.id} created")
        return account

    async def check_availability(
        self, email: Optional[str] = None, username: Optional[str] = None
    ) -> bool:
        """Report whether an email or username is still free"""
        if email is not None:
            return not await self.account_repo.exists_by_email(email.strip().lower())
        return not await self.account_repo.exists_by_username(username)

    async def login(self, email: str, password: str) -> Tuple[str, int]:
        """
        Exchange credentials for an access token

        Returns:
            Tuple of (access_token, expires_in)
        """
        account = await self.account_repo.find_by_email(email.strip().lower())

        if account is None:
            burn_password_check(password)
            raise AuthenticationError("Invalid credentials")

        if not verify_password(password, account.password_hash):
            raise AuthenticationError("Invalid credentials")

        access_token = create_access_token(
            data={"sub": str(account.id), "email": account.email}
        )
        logger.info(f"Account {account.id} logged in")

        expires_in = settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60
        return access_token, expires_in

    async def authenticate(self, token: str) -> Account:
        """
        Resolve a bearer token to its account

        Every failure raises the same AuthenticationError so callers cannot
        tell an expired token from a forged one.
        """
        payload = decode_token(token)
        if not payload or payload.get("type") != "access":
            raise AuthenticationError()

        subject = payload.get("sub")
        try:
            account_id = int(subject)
        except (TypeError, ValueError):
            raise AuthenticationError()

        account = await self.account_repo.find_by_id(account_id)
        if account is None:
            raise AuthenticationError()
        return account


@dataclass
class FeedPage:
    """One page of feed entries and the cursor for the next page"""
    entries: List[Tuple[Post, Optional[Relation]]]
    next_cursor: Optional[str] = None


class FeedService:
    """Feed service - post creation and paginated reads"""

    def __init__(
        self,
        post_repository: IPostRepository,
        group_repository: IGroupRepository,
        connection_repository: IConnectionRepository,
    ):
        self.post_repo = post_repository
        self.group_repo = group_repository
        self.connection_repo = connection_repository

    async def create_post(
        self, account: Account, content: str, group_id: Optional[int] = None
    ) -> Post:
        """
        Publish a post to the public square or to a group

        Raises:
            ValidationError: If the content is empty or too long
            NotFoundError: If the group does not exist
            PermissionDeniedError: If the author is not a group member
        """
        content = (content or "").strip()
        if not content:
            raise ValidationError("Post content must not be empty")
        if len(content) > settings.POST_MAX_LENGTH:
            raise ValidationError(
                f"Post content must be at most {settings.POST_MAX_LENGTH} characters"
            )

        if group_id is not None:
            group = await self.group_repo.find_by_id(group_id)
            if group is None:
                raise NotFoundError("Group not found")
            if not await self.group_repo.is_member(group_id, account.id):
                raise PermissionDeniedError("You are not a member of this group")

        post = await self.post_repo.create(account.id, content, group_id)
        logger.info(f"Post {post.id} created by account {account.id}")
        return post

    async def build_relation_graph(self, viewer_id: int) -> RelationGraph:
        """Bucket the viewer's connections by relationship"""
        acquaintances = set()
        strangers = set()
        following = set()

        for connection in await self.connection_repo.list_for_user(viewer_id):
            other_id = connection.other_party(viewer_id)
            if connection.type == ConnectionType.ACQUAINTANCE:
                acquaintances.add(other_id)
            elif connection.type == ConnectionType.STRANGER:
                strangers.add(other_id)
            elif connection.type == ConnectionType.IS_FOLLOWING:
                if connection.requester_id == viewer_id:
                    following.add(other_id)

        return RelationGraph(
            viewer_id=viewer_id,
            acquaintances=frozenset(acquaintances),
            strangers=frozenset(strangers),
            following=frozenset(following),
        )

    def _paginate(
        self,
        posts: List[Post],
        take: int,
        graph: Optional[RelationGraph],
    ) -> FeedPage:
        has_more = len(posts) > take
        posts = posts[:take]

        entries = [
            (post, graph.classify(post.user_id) if graph else None)
            for post in posts
        ]
        next_cursor = None
        if has_more:
            last = posts[-1]
            next_cursor = encode_cursor(FeedPosition(created_at=last.created_at, id=last.id))
        return FeedPage(entries=entries, next_cursor=next_cursor)

    async def get_public_feed(
        self,
        viewer: Optional[Account] = None,
        cursor: Optional[str] = None,
        take: Optional[int] = None,
    ) -> FeedPage:
        """
        Read the public square newest first

        Entries are relation-tagged only when a viewer is known.
        """
        after = decode_cursor(cursor)
        take = clamp_page_size(take)

        posts = await self.post_repo.list_public(take + 1, after)
        graph = await self.build_relation_graph(viewer.id) if viewer else None
        return self._paginate(posts, take, graph)

    async def get_relation_feed(
        self,
        viewer: Account,
        cursor: Optional[str] = None,
        take: Optional[int] = None,
    ) -> FeedPage:
        """Read posts by the viewer and their connections, relation-tagged"""
        after = decode_cursor(cursor)
        take = clamp_page_size(take)

        graph = await self.build_relation_graph(viewer.id)
        posts = await self.post_repo.list_by_authors(sorted(graph.author_ids()), take + 1, after)
        return self._paginate(posts, take, graph)


class GroupService:
    """Group service - creation, listing and visibility checks"""

    def __init__(self, group_repository: IGroupRepository):
        self.group_repo = group_repository

    async def create_group(
        self,
        account: Account,
        name: str,
        group_type: GroupType,
        description: Optional[str] = None,
    ) -> Group:
        if group_type == GroupType.PERSONAL:
            raise ValidationError("groupType must be PUBLIC or PRIVATE")

        group = await self.group_repo.create(
            name=name,
            group_type=group_type,
            admin_id=account.id,
            description=description,
        )
        logger.info(f"Group {group.id} created by account {account.id}")
        return group

    async def list_groups(self, account: Account) -> List[Group]:
        return await self.group_repo.list_for_user(account.id)

    async def get_group(self, account: Account, group_id: int) -> Group:
        """
        Fetch a group the account may see

        Raises:
            NotFoundError: If the group does not exist or is someone else's personal group
            PermissionDeniedError: If the group is private and the account is not a member
        """
        group = await self.group_repo.find_by_id(group_id)
        if group is None:
            raise NotFoundError("Group not found")

        if group.group_type == GroupType.PERSONAL and not group.is_admin(account.id):
            raise NotFoundError("Group not found")

        if group.group_type == GroupType.PRIVATE and not group.is_admin(account.id):
            if not await self.group_repo.is_member(group_id, account.id):
                raise PermissionDeniedError("This group is private")

        return group


class ConnectionService:
    """Connection service - requests and the resulting graph"""

    # Request types still allowed on top of an existing connection
    ALLOWED_UPGRADES = {
        ConnectionType.ACQUAINTANCE: frozenset(),
        ConnectionType.STRANGER: frozenset({RequestType.ACQUAINTANCE}),
        ConnectionType.IS_FOLLOWING: frozenset({RequestType.STRANGER, RequestType.ACQUAINTANCE}),
    }

    def __init__(
        self,
        connection_repository: IConnectionRepository,
        account_repository: IAccountRepository,
    ):
        self.connection_repo = connection_repository
        self.account_repo = account_repository

    async def request_connection(
        self, account: Account, requested_id: int, request_type: RequestType
    ) -> ConnectionRequest:
        """
        Ask another account for a connection

        Raises:
            ValidationError: If the account targets itself
            NotFoundError: If the target account does not exist or a block stands between the two
            ConflictError: If the existing connection already covers the request
        """
        if requested_id == account.id:
            raise ValidationError("You cannot connect with yourself")

        if await self.account_repo.find_by_id(requested_id) is None:
            raise NotFoundError("User not found")
        if await self.connection_repo.is_blocked(account.id, requested_id):
            raise NotFoundError("User not found")

        existing = await self.connection_repo.find_between(account.id, requested_id)
        if existing and request_type not in self.ALLOWED_UPGRADES[existing.type]:
            raise ConflictError(f"Already connected as {existing.type.value}")

        request = await self.connection_repo.upsert_request(account.id, requested_id, request_type)
        logger.info(
            f"Connection request {request.id} ({request_type.value}) "
            f"from {account.id} to {requested_id}"
        )
        return request

    async def list_incoming(self, account: Account) -> List[ConnectionRequest]:
        return await self.connection_repo.list_incoming(account.id)

    async def list_outgoing(self, account: Account) -> List[ConnectionRequest]:
        return await self.connection_repo.list_outgoing(account.id)

    async def _get_actionable_request(
        self, account: Account, request_id: int, as_requester: bool = False
    ) -> ConnectionRequest:
        """
        Load a pending request the account may act on

        The recipient accepts or declines; the requester cancels.
        """
        request = await self.connection_repo.find_request(request_id)
        if request is None:
            raise NotFoundError("Connection request not found")

        if as_requester and request.requester_id != account.id:
            raise PermissionDeniedError("You can only cancel requests you sent")
        if not as_requester and request.requested_id != account.id:
            raise PermissionDeniedError("This request is not addressed to you")

        if not request.is_pending():
            raise ConflictError("Connection request is no longer pending")
        if await self.connection_repo.is_blocked(request.requester_id, request.requested_id):
            raise NotFoundError("User not found")
        return request

    async def accept(self, account: Account, request_id: int) -> Connection:
        request = await self._get_actionable_request(account, request_id)
        return await self.connection_repo.accept_request(request)

    async def decline(self, account: Account, request_id: int) -> ConnectionRequest:
        request = await self._get_actionable_request(account, request_id)
        declined = await self.connection_repo.decline_request(request.id)
        logger.info(f"Connection request {request.id} declined")
        return declined

    async def cancel(self, account: Account, request_id: int) -> ConnectionRequest:
        request = await self._get_actionable_request(account, request_id, as_requester=True)
        canceled = await self.connection_repo.cancel_request(request.id)
        logger.info(f"Connection request {request.id} canceled")
        return canceled

    async def list_connections(self, account: Account) -> List[Connection]:
        return await self.connection_repo.list_for_user(account.id)

    async def remove_connection(self, account: Account, other_user_id: int) -> Connection:
        """
        Delete the connection with another account, whoever requested it

        Raises:
            ValidationError: If the account targets itself
            NotFoundError: If the other account or the connection does not exist
        """
        if other_user_id == account.id:
            raise ValidationError("You cannot remove a connection with yourself")
        if await self.account_repo.find_by_id(other_user_id) is None:
            raise NotFoundError("User not found")

        connection = await self.connection_repo.find_between(account.id, other_user_id)
        if connection is None or not await self.connection_repo.delete_connection(connection.id):
            raise NotFoundError("Connection not found")

        logger.info(f"Connection {connection.id} between {account.id} and {other_user_id} removed")
        return connection

    async def _get_block_target(self, account: Account, user_id: int) -> Account:
        if user_id == account.id:
            raise ValidationError("You cannot block yourself")
        target = await self.account_repo.find_by_id(user_id)
        if target is None:
            raise NotFoundError("User not found")
        return target

    async def block(self, account: Account, user_id: int) -> None:
        """Block another account; existing connections are left in place"""
        target = await self._get_block_target(account, user_id)
        await self.connection_repo.block(account.id, target.id)
        logger.info(f"Account {account.id} blocked {target.id}")

    async def unblock(self, account: Account, user_id: int) -> None:
        target = await self._get_block_target(account, user_id)
        await self.connection_repo.unblock(account.id, target.id)
        logger.info(f"Account {account.id} unblocked {target.id}")
