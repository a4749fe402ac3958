"""Admin API endpoints with simple token auth."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

from pantry_chef.api.models import CredentialUpdate  # noqa: TC001

if TYPE_CHECKING:
    from pantry_chef.containers import AppContainer

router = APIRouter(prefix="/admin", tags=["admin"])


def _get_admin_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.admin_token


async def require_admin(
    x_admin_token: str | None = Header(default=None),
    admin_token: str = Depends(_get_admin_token),
) -> None:
    """Ensure requests include a valid admin token."""
    if not x_admin_token or x_admin_token != admin_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


@router.get("/credential", dependencies=[Depends(require_admin)])
async def credential_status(request: Request) -> dict[str, bool]:
    """Report whether an API key is available."""
    container: AppContainer = request.app.state.container
    return {"configured": container.credential_provider.is_configured()}


@router.put("/credential", dependencies=[Depends(require_admin)])
async def update_credential(
    body: CredentialUpdate, request: Request
) -> dict[str, str]:
    """Store a new API key."""
    container: AppContainer = request.app.state.container
    try:
        container.credential_provider.update(body.api_key)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
        ) from exc
    return {"status": "ok"}


@router.delete("/credential", dependencies=[Depends(require_admin)])
async def delete_credential(request: Request) -> dict[str, str]:
    """Remove the stored API key."""
    container: AppContainer = request.app.state.container
    container.credential_provider.clear()
    return {"status": "ok"}


@router.get("/cache", dependencies=[Depends(require_admin)])
async def cache_status(request: Request) -> dict[str, int]:
    """Return the number of cached recommendation payloads."""
    container: AppContainer = request.app.state.container
    return {"entries": container.cache.size()}


@router.delete("/cache", dependencies=[Depends(require_admin)])
async def clear_cache(request: Request) -> dict[str, str]:
    """Drop all cached recommendation payloads."""
    container: AppContainer = request.app.state.container
    container.cache.clear()
    return {"status": "ok"}
