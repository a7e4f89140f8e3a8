"""Authentication router.

Password logins go through a federation provider: the provider resolves
(and if needed imports) the user from the external directory, then the
external authenticator checks the password. No password is stored locally.

Consumers:
    GET  /api/v1/auth/providers — login page provider list
    POST /api/v1/auth/login     — password login

Every failed login answers the same 401 so callers can't tell an unknown
user from a wrong password or an unreachable directory.
"""

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from fedstore.api.models.auth import LoginRequest, LoginResponse, ProviderInfo, ProvidersResponse
from fedstore.api.models.users import UserResponse
from fedstore.db.session import get_db
from fedstore.federation import (
    get_default_provider_factory,
    get_provider_factory,
    list_providers,
)
from fedstore.federation.credentials import CredentialInput
from fedstore.logging_config import get_logger
from fedstore.services.audit_service import log_audit_event

router = APIRouter(prefix="/auth", tags=["auth"])
logger = get_logger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"


@router.get("/providers", response_model=ProvidersResponse)
async def providers() -> ProvidersResponse:
    """List configured federation providers."""
    default = get_default_provider_factory()
    return ProvidersResponse(
        providers=[ProviderInfo(**p) for p in list_providers()],
        default_provider=default.id if default else None,
    )


@router.post("/login", response_model=LoginResponse)
async def login(
    body: LoginRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> LoginResponse:
    """Authenticate a username/password through a federation provider."""
    if body.provider:
        factory = get_provider_factory(body.provider)
    else:
        factory = get_default_provider_factory()
    if factory is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Unknown federation provider",
        )

    provider = factory.create(db)
    user = await provider.get_user_by_username(body.realm, body.username)

    failure: str | None = None
    if user is None:
        failure = "user_not_resolved"
    elif not await provider.is_valid(body.realm, user, CredentialInput.password(body.password)):
        failure = "invalid_credentials"
    elif not user.enabled:
        failure = "user_disabled"

    actor_ip = request.client.host if request.client else None

    if failure is not None:
        logger.info(
            "Login failed",
            realm=body.realm,
            username=body.username,
            provider=factory.name,
            reason=failure,
        )
        await log_audit_event(
            db,
            event_type="auth",
            action="login_failed",
            actor_type="user",
            actor_id=body.username,
            actor_ip=actor_ip,
            realm_id=body.realm,
            provider_id=factory.id,
            success=False,
            error_message=failure,
        )
        # Commit the audit entry; get_db rolls back when the request raises
        await db.commit()
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=INVALID_CREDENTIALS,
        )

    await log_audit_event(
        db,
        event_type="auth",
        action="login",
        actor_type="user",
        actor_id=user.username,
        actor_ip=actor_ip,
        realm_id=body.realm,
        provider_id=factory.id,
        success=True,
        details={"groups": user.groups},
    )

    logger.info("Login succeeded", realm=body.realm, username=user.username, provider=factory.name)
    return LoginResponse(user=UserResponse.model_validate(user), provider=factory.id)
