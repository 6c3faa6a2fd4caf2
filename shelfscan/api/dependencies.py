import hmac

from fastapi import Depends, Header, HTTPException, Request

from shelfscan.api.container import ServiceContainer


def get_container(request: Request) -> ServiceContainer:
    return request.app.state.container


def _bearer_token(authorization: str | None) -> str:
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Missing or invalid authorization header")
    token = authorization[len("Bearer "):].strip()
    if not token:
        raise HTTPException(status_code=401, detail="Missing or invalid authorization header")
    return token


def get_current_owner(
    authorization: str | None = Header(default=None),
    container: ServiceContainer = Depends(get_container),
) -> str:
    """User id of the caller, resolved from the bearer token."""
    token = _bearer_token(authorization)
    owner_id = container.identity.resolve_user_id(token)
    if owner_id is None:
        raise HTTPException(status_code=401, detail="User not authenticated")
    return owner_id


def require_cron_secret(
    authorization: str | None = Header(default=None),
    container: ServiceContainer = Depends(get_container),
) -> None:
    """Reject maintenance calls that do not carry the shared cron secret."""
    secret = container.settings.cron_secret
    token = _bearer_token(authorization)
    if not secret or not hmac.compare_digest(token.encode(), secret.encode()):
        raise HTTPException(status_code=401, detail="Unauthorized")
