"""
User routes
"""
from fastapi import APIRouter, Depends

from liberty_api.api.dependencies import get_current_account
from liberty_api.domain.models import Account
from liberty_api.schemas import AccountResponse


router = APIRouter(tags=["Users"])


@router.get("/user", response_model=AccountResponse)
@router.get("/user/me", response_model=AccountResponse)
async def get_my_account(current_account: Account = Depends(get_current_account)):
    """
    Get the authenticated account

    Requires authentication.
    """
    return AccountResponse.model_validate(current_account)
