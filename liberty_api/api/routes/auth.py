"""
Authentication routes
"""
from fastapi import APIRouter, Depends, status

from liberty_api.application.services import AuthService
from liberty_api.api.dependencies import get_auth_service
from liberty_api.schemas import (
    AccountResponse,
    AvailabilityRequest,
    AvailabilityResponse,
    LoginRequest,
    SignupRequest,
    TokenResponse,
)


router = APIRouter(tags=["Authentication"])


@router.post("/signup", response_model=AccountResponse, status_code=status.HTTP_201_CREATED)
async def signup(
    user_data: SignupRequest,
    auth_service: AuthService = Depends(get_auth_service)
):
    """
    Register a new account

    - **email**: Valid email address, stored lower-cased
    - **password**: 8 to 72 bytes
    - **username**: Optional, 3-32 characters of a-z, 0-9, _ and .
    - **firstName** / **lastName**: Optional, 1-50 characters
    - **dateOfBirth**: Optional ISO date, at least 13 years ago
    """
    account = await auth_service.signup(
        email=user_data.email,
        password=user_data.password,
        username=user_data.username,
        first_name=user_data.first_name,
        last_name=user_data.last_name,
        date_of_birth=user_data.date_of_birth,
        gender=user_data.gender,
        is_private=user_data.is_private
    )
    return AccountResponse.model_validate(account)


@router.post("/availability", response_model=AvailabilityResponse)
async def check_availability(
    request: AvailabilityRequest,
    auth_service: AuthService = Depends(get_auth_service)
):
    """Check whether an email or a username can still be registered"""
    available = await auth_service.check_availability(
        email=request.email,
        username=request.username
    )
    return AvailabilityResponse(available=available)


@router.post("/login", response_model=TokenResponse)
async def login(
    credentials: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service)
):
    """
    Login with email and password

    Unknown emails and wrong passwords get the same 401 response.
    """
    access_token, expires_in = await auth_service.login(
        email=credentials.email,
        password=credentials.password
    )
    return TokenResponse(access_token=access_token, expires_in=expires_in)
