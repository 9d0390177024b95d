"""
Connection routes
"""
from fastapi import APIRouter, Depends, Path, status

from liberty_api.application.services import ConnectionService
from liberty_api.api.dependencies import (
    get_connection_service,
    get_current_account,
    parse_connection_request,
)
from liberty_api.domain.models import MAX_ID, Account, Connection, ConnectionRequest
from liberty_api.schemas import (
    ConnectionRemovedResponse,
    ConnectionRequestCreate,
    ConnectionRequestResponse,
    ConnectionResponse,
    ConnectionsResponse,
    PendingRequestsResponse,
)


router = APIRouter(prefix="/connections", tags=["Connections"])


def to_request_response(request: ConnectionRequest) -> ConnectionRequestResponse:
    return ConnectionRequestResponse(
        id=request.id,
        requester_id=request.requester_id,
        requested_id=request.requested_id,
        request_type=request.type,
        status=request.status,
        created_at=request.created_at,
    )


def to_connection_response(connection: Connection, viewer_id: int) -> ConnectionResponse:
    return ConnectionResponse(
        id=connection.id,
        user_id=connection.other_party(viewer_id),
        type=connection.type,
        created_at=connection.created_at,
    )


@router.post(
    "/request",
    response_model=ConnectionRequestResponse,
    status_code=status.HTTP_201_CREATED,
)
async def request_connection(
    request_data: ConnectionRequestCreate = Depends(parse_connection_request),
    current_account: Account = Depends(get_current_account),
    connection_service: ConnectionService = Depends(get_connection_service)
):
    """
    Ask another account for a connection

    - **requestedId**: Target account
    - **requestType**: ACQUAINTANCE, STRANGER or FOLLOW
    """
    request = await connection_service.request_connection(
        current_account,
        requested_id=request_data.requested_id,
        request_type=request_data.request_type
    )
    return to_request_response(request)


@router.get("/pending/incoming", response_model=PendingRequestsResponse)
async def list_incoming_requests(
    current_account: Account = Depends(get_current_account),
    connection_service: ConnectionService = Depends(get_connection_service)
):
    requests = await connection_service.list_incoming(current_account)
    return PendingRequestsResponse(requests=[to_request_response(r) for r in requests])


@router.get("/pending/outgoing", response_model=PendingRequestsResponse)
async def list_outgoing_requests(
    current_account: Account = Depends(get_current_account),
    connection_service: ConnectionService = Depends(get_connection_service)
):
    requests = await connection_service.list_outgoing(current_account)
    return PendingRequestsResponse(requests=[to_request_response(r) for r in requests])


@router.post("/{request_id}/accept", response_model=ConnectionResponse)
async def accept_request(
    request_id: int = Path(..., ge=1, le=MAX_ID),
    current_account: Account = Depends(get_current_account),
    connection_service: ConnectionService = Depends(get_connection_service)
):
    """Accept a pending request addressed to the caller"""
    connection = await connection_service.accept(current_account, request_id)
    return to_connection_response(connection, current_account.id)


@router.delete("/{request_id}/decline", response_model=ConnectionRequestResponse)
@router.post("/{request_id}/decline", response_model=ConnectionRequestResponse)
async def decline_request(
    request_id: int = Path(..., ge=1, le=MAX_ID),
    current_account: Account = Depends(get_current_account),
    connection_service: ConnectionService = Depends(get_connection_service)
):
    """Decline a pending request addressed to the caller"""
    request = await connection_service.decline(current_account, request_id)
    return to_request_response(request)


@router.delete("/{request_id}/cancel", response_model=ConnectionRequestResponse)
async def cancel_request(
    request_id: int = Path(..., ge=1, le=MAX_ID),
    current_account: Account = Depends(get_current_account),
    connection_service: ConnectionService = Depends(get_connection_service)
):
    """Withdraw a pending request the caller sent"""
    request = await connection_service.cancel(current_account, request_id)
    return to_request_response(request)


@router.get("", response_model=ConnectionsResponse)
async def list_connections(
    current_account: Account = Depends(get_current_account),
    connection_service: ConnectionService = Depends(get_connection_service)
):
    connections = await connection_service.list_connections(current_account)
    return ConnectionsResponse(
        connections=[to_connection_response(c, current_account.id) for c in connections]
    )


@router.delete("/{user_id}", response_model=ConnectionRemovedResponse)
async def remove_connection(
    user_id: int = Path(..., ge=1, le=MAX_ID, description="The other account"),
    current_account: Account = Depends(get_current_account),
    connection_service: ConnectionService = Depends(get_connection_service)
):
    """
    Remove the connection with another account

    Either side may remove it, whichever of them sent the original request.
    """
    connection = await connection_service.remove_connection(current_account, user_id)
    return ConnectionRemovedResponse(deleted_connection_id=connection.id, other_user_id=user_id)
