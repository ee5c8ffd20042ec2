"""Session-cookie authentication and the /auth router.

Sign-in uses a demo credentials provider: any well-formed email signs in and
the user record is created on first use. The session cookie holds a signed
``{"user_id", "email"}`` payload; every other router resolves it into a
``RequestIdentity`` through ``require_identity``.
"""

import logging

from fastapi import APIRouter, Depends, Request, Response
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from src.core.config import constants, settings
from src.core.errors import UnauthorizedError
from src.domain.create_models import SignInRequest
from src.domain.update_models import ProfileUpdate
from src.domain.user import RequestIdentity, User
from src.services import user_service


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

serializer = URLSafeTimedSerializer(str(settings.secret_key), salt="user-session")


def create_session_token(identity: RequestIdentity) -> str:
    """Sign an identity into a session cookie value."""
    return serializer.dumps(identity.model_dump())


def read_session_token(token: str) -> RequestIdentity:
    """Verify a session cookie value.

    Raises:
        UnauthorizedError: If the token is tampered with or expired
    """
    try:
        data = serializer.loads(token, max_age=settings.session_max_age_seconds)
        return RequestIdentity(**data)
    except (BadSignature, SignatureExpired) as e:
        raise UnauthorizedError("Invalid or expired session") from e
    except (TypeError, ValueError) as e:
        raise UnauthorizedError("Malformed session payload") from e


async def require_identity(request: Request) -> RequestIdentity:
    """Resolve the caller's identity from the session cookie."""
    token = request.cookies.get(constants.SESSION_COOKIE_NAME)
    if not token:
        logger.warning("auth_missing_cookie", extra={"path": request.url.path})
        raise UnauthorizedError("Missing session cookie")

    try:
        return read_session_token(token)
    except UnauthorizedError:
        logger.warning("auth_tampered_or_expired", extra={"path": request.url.path})
        raise


def _set_session_cookie(response: Response, identity: RequestIdentity) -> None:
    response.set_cookie(
        key=constants.SESSION_COOKIE_NAME,
        value=create_session_token(identity),
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
        max_age=settings.session_max_age_seconds,
    )


@router.post("/signin")
async def sign_in(payload: SignInRequest, response: Response) -> User:
    """Sign in with an email, creating the user on first sign-in."""
    user = await user_service.get_or_create_user(payload=payload)
    _set_session_cookie(response, RequestIdentity(user_id=user.id, email=user.email))
    logger.info("auth_signin", extra={"user_id": user.id})
    return user


@router.post("/signout")
async def sign_out(response: Response) -> dict[str, str]:
    """Clear the session cookie."""
    response.delete_cookie(key=constants.SESSION_COOKIE_NAME)
    return {"message": "Signed out"}


@router.get("/me")
async def get_me(identity: RequestIdentity = Depends(require_identity)) -> User:
    """Return the signed-in user."""
    return await user_service.get_user(user_id=identity.user_id)


@router.patch("/me")
async def update_me(payload: ProfileUpdate, identity: RequestIdentity = Depends(require_identity)) -> User:
    """Update the signed-in user's profile."""
    return await user_service.update_profile(user_id=identity.user_id, payload=payload)
