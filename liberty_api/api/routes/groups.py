"""
Group routes
"""
from typing import List

from fastapi import APIRouter, Depends, Path

from liberty_api.application.services import GroupService
from liberty_api.api.dependencies import get_current_account, get_group_service, parse_group_create
from liberty_api.domain.models import MAX_ID, Account
from liberty_api.schemas import GroupCreate, GroupResponse


router = APIRouter(prefix="/groups", tags=["Groups"])


@router.post("", response_model=GroupResponse)
async def create_group(
    group_data: GroupCreate = Depends(parse_group_create),
    current_account: Account = Depends(get_current_account),
    group_service: GroupService = Depends(get_group_service)
):
    """
    Create a group administered by the caller

    - **name**: 1 to 100 characters after trimming
    - **groupType**: PUBLIC or PRIVATE, any letter case
    - **description**: Optional
    """
    group = await group_service.create_group(
        current_account,
        name=group_data.name,
        group_type=group_data.group_type,
        description=group_data.description
    )
    return GroupResponse.model_validate(group)


@router.get("", response_model=List[GroupResponse])
async def list_groups(
    current_account: Account = Depends(get_current_account),
    group_service: GroupService = Depends(get_group_service)
):
    """Groups the caller administers or belongs to, newest first"""
    groups = await group_service.list_groups(current_account)
    return [GroupResponse.model_validate(group) for group in groups]


@router.get("/{group_id}", response_model=GroupResponse)
async def get_group(
    group_id: int = Path(..., ge=1, le=MAX_ID),
    current_account: Account = Depends(get_current_account),
    group_service: GroupService = Depends(get_group_service)
):
    group = await group_service.get_group(current_account, group_id)
    return GroupResponse.model_validate(group)
