"""
Block routes
"""
from fastapi import APIRouter, Depends, Response, status

from liberty_api.application.services import ConnectionService
from liberty_api.api.dependencies import (
    get_connection_service,
    get_current_account,
    parse_block_request,
)
from liberty_api.domain.models import Account
from liberty_api.schemas import BlockRequest


router = APIRouter(tags=["Blocks"])


@router.post("/block", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
async def block_account(
    block_data: BlockRequest = Depends(parse_block_request),
    current_account: Account = Depends(get_current_account),
    connection_service: ConnectionService = Depends(get_connection_service)
):
    """
    Block another account

    While a block stands in either direction, connection requests between
    the two accounts and decisions on them answer 404.
    """
    await connection_service.block(current_account, block_data.user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/unblock", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
async def unblock_account(
    block_data: BlockRequest = Depends(parse_block_request),
    current_account: Account = Depends(get_current_account),
    connection_service: ConnectionService = Depends(get_connection_service)
):
    await connection_service.unblock(current_account, block_data.user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
