"""Admin API endpoints with simple token auth."""

from __future__ import annotations

from dataclasses import asdict
from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

from studio_scheduling.api.schemas import (
    PolicyResponse,
    PolicySettingsRequest,
    policy_response,
)

if TYPE_CHECKING:
    from studio_scheduling.containers import AppContainer

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


@router.put(
    "/policies/cancellation",
    dependencies=[Depends(require_admin)],
    response_model=PolicyResponse,
)
async def publish_cancellation_policy(
    payload: PolicySettingsRequest,
    request: Request,
    x_user_id: str | None = Header(default=None),
) -> PolicyResponse:
    """Publish a new cancellation policy version."""
    container: AppContainer = request.app.state.container
    policy = container.policy_service.publish_cancellation_policy(
        actor_id=x_user_id,
        settings=payload.model_dump(exclude_none=True),
    )
    return policy_response(policy)


@router.post("/reminders/run", dependencies=[Depends(require_admin)])
async def run_reminders(request: Request) -> dict[str, object]:
    """Run one reminder sweep now unless one is already in progress."""
    container: AppContainer = request.app.state.container
    report = await container.reminder_scheduler.run_once()
    if report is None:
        return {"success": False, "skipped": True}
    return {"success": True, "skipped": False, "report": asdict(report)}
