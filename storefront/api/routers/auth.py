# storefront/api/routers/auth.py
from fastapi import APIRouter, Depends, Response, status

from storefront.api.deps import get_auth_service, get_current_user, get_session_token
from storefront.data.models.user import UserModel
from storefront.domain.errors import InvalidTokenError
from storefront.domain.schemas import (
    MessageOut,
    ProfileOut,
    SessionOut,
    UserCreate,
    UserLogin,
    UserRead,
)
from storefront.services.auth_service import AuthService
from storefront.services.token_service import IssuedToken
from storefront.utils.settings import COOKIE_SECURE, SESSION_COOKIE_NAME, SESSION_TTL_SECONDS

router = APIRouter(prefix="/user", tags=["auth"])


def _session_response(response: Response, user: UserModel, issued: IssuedToken, message: str) -> SessionOut:
    # cookie lives exactly as long as the token
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=issued.token,
        max_age=SESSION_TTL_SECONDS,
        httponly=True,
        secure=COOKIE_SECURE,
        samesite="lax",
    )
    return SessionOut(
        message=message,
        user=UserRead.model_validate(user),
        access_token=issued.token,
        expires_at=issued.expires_at,
    )


@router.post("/register", response_model=SessionOut, status_code=status.HTTP_201_CREATED)
def register(payload: UserCreate, response: Response, auth: AuthService = Depends(get_auth_service)):
    user, issued = auth.register(payload)
    return _session_response(response, user, issued, "Registered successfully")


@router.post("/login", response_model=SessionOut)
def login(payload: UserLogin, response: Response, auth: AuthService = Depends(get_auth_service)):
    user, issued = auth.login(payload.email, payload.password)
    return _session_response(response, user, issued, "Login successful")


@router.post("/logout", response_model=MessageOut)
def logout(
    response: Response,
    token: str | None = Depends(get_session_token),
    auth: AuthService = Depends(get_auth_service),
):
    if not token:
        raise InvalidTokenError("Not authenticated")

    auth.authenticate(token)
    auth.logout(token)

    response.delete_cookie(SESSION_COOKIE_NAME)
    return MessageOut(message="Logged out successfully")


@router.get("/profile", response_model=ProfileOut)
def profile(current_user: UserModel = Depends(get_current_user)):
    return ProfileOut(user=UserRead.model_validate(current_user))
