"""API dependencies."""

import logging
import secrets
from typing import AsyncGenerator

from fastapi import Depends, Header, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from cloudgate.config import Environment, settings
from cloudgate.db import base as db_base
from cloudgate.models import UserAuditInfo

logger = logging.getLogger("cloudgate.api")


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Get database session."""
    async with db_base.async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def _insecure_dev() -> bool:
    return settings.allow_insecure_dev and settings.env == Environment.DEVELOPMENT


async def verify_api_key(
    authorization: str | None = Header(None),
    x_api_key: str | None = Header(None, alias="X-API-Key"),
) -> None:
    """
    Verify the shared API key.

    Accepts ``Authorization: Bearer <key>`` or ``X-API-Key``. Fails closed:
    with no key configured every request is rejected unless insecure dev
    mode is explicitly enabled in development.
    """
    if _insecure_dev():
        return

    api_key = None
    if authorization and authorization.startswith("Bearer "):
        api_key = authorization[7:]
    elif x_api_key:
        api_key = x_api_key

    if not api_key:
        raise HTTPException(
            status_code=401,
            detail="Missing authorization. Use Authorization: Bearer <key> or X-API-Key header",
        )

    if settings.api_key:
        if secrets.compare_digest(api_key, settings.api_key):
            return
        raise HTTPException(status_code=401, detail="Invalid API key")

    logger.error("SECURITY VIOLATION: No API key configured. Set CLOUDGATE_API_KEY.")
    raise HTTPException(
        status_code=503,
        detail="Server misconfigured: authentication not properly initialized",
    )


async def get_user_audit_info(
    x_user_id: str | None = Header(None, alias="X-User-ID"),
    x_user_email: str | None = Header(None, alias="X-User-Email"),
    x_user_name: str | None = Header(None, alias="X-User-Name"),
) -> UserAuditInfo:
    """
    Identity of the requesting user, forwarded by the authenticating gateway.
    """
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Missing X-User-ID header")
    return UserAuditInfo(user_guid=x_user_id, user_email=x_user_email, user_name=x_user_name)


def validate_auth_config() -> None:
    """
    Validate authentication configuration at startup.

    Raises:
        RuntimeError: If configuration is insecure for the current environment
    """
    if settings.allow_insecure_dev and settings.env != Environment.DEVELOPMENT:
        raise RuntimeError(
            f"SECURITY ERROR: allow_insecure_dev=true is only permitted in development. "
            f"Current environment: {settings.env.value}. "
            f"Set CLOUDGATE_ALLOW_INSECURE_DEV=false for {settings.env.value}."
        )

    if settings.allow_insecure_dev:
        logger.warning(
            "=" * 80 + "\n"
            "WARNING: Running in INSECURE DEV MODE\n"
            "  - API key authentication is DISABLED\n"
            "  - This mode is ONLY for local development\n"
            + "=" * 80
        )
    elif not settings.api_key:
        raise RuntimeError("CLOUDGATE_API_KEY must be set when insecure dev mode is off")
    else:
        logger.info(f"Authentication enabled: shared API key for {settings.env.value}")
