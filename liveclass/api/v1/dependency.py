from typing import Annotated

import jwt
from fastapi import Depends, Request
from loguru import logger
from pydantic import BaseModel

from liveclass.app_config import get_app_environ_config
from liveclass.utils.app_errors import AppError, AppErrorCode, HttpStatusCode


class User(BaseModel):
    user_id: str
    role: str | None = None


def _bad_token(errmesg: str = "Invalid token") -> AppError:
    return AppError(
        errcode=AppErrorCode.E_BAD_TOKEN,
        errmesg=errmesg,
        status_code=HttpStatusCode.UNAUTHORIZED,
    )


def _decode_bearer(request: Request) -> User | None:
    """Resolve `Authorization: Bearer <jwt>` into a User; None when the header is absent."""
    # Do not log request headers here (may include secrets like Authorization).
    auth_header = request.headers.get("authorization")
    if not auth_header:
        return None

    scheme, _, token = auth_header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise _bad_token("Authorization header must be 'Bearer <token>'")

    cfg = get_app_environ_config()
    try:
        payload = jwt.decode(
            token.strip(),
            cfg.AUTH_JWT_SECRET,
            algorithms=[cfg.AUTH_JWT_ALGORITHM],
        )
    except jwt.PyJWTError as e:
        logger.debug("invalid bearer token: {}", e)
        raise _bad_token() from e

    user_id = payload.get("sub") or payload.get("user_id")
    if not user_id:
        raise _bad_token()

    logger.debug("Authenticated user_id: {}", user_id)
    return User(user_id=str(user_id), role=payload.get("role"))


async def get_current_user(request: Request) -> User:
    user = _decode_bearer(request)
    if user is None:
        raise _bad_token("Missing bearer token")
    return user


async def get_optional_user(request: Request) -> User | None:
    return _decode_bearer(request)


CurrentUser = Annotated[User, Depends(get_current_user)]
OptionalUser = Annotated[User | None, Depends(get_optional_user)]
