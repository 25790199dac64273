"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import Depends, FastAPI, Header, HTTPException, Query, Request, status
from fastapi.responses import JSONResponse

from studio_scheduling.api.admin import router as admin_router
from studio_scheduling.api.schemas import (
    AvailabilityRequest,
    AvailabilityResponse,
    CancelSessionRequest,
    CreateSessionRequest,
    PolicyResponse,
    SessionDetailResponse,
    SessionListResponse,
    SessionOutcomeResponse,
    UpdateSessionRequest,
    availability_response,
    outcome_response,
    policy_response,
    session_response,
)
from studio_scheduling.app_logging import configure_logging
from studio_scheduling.containers import AppContainer
from studio_scheduling.domain.errors import SchedulingError
from studio_scheduling.domain.sessions import SessionFilter


def require_user(x_user_id: str | None = Header(default=None)) -> str:
    """Return the acting user id forwarded by the upstream auth layer."""
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
    return x_user_id.strip()


def _container(request: Request) -> AppContainer:
    return request.app.state.container


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        state_container: AppContainer = app.state.container
        if state_container.settings.reminders_enabled:
            state_container.reminder_scheduler.start()
            logger.info(
                "Reminder scheduler started (every %ss)",
                state_container.settings.reminder_interval_seconds,
            )
        yield
        await state_container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.exception_handler(SchedulingError)
    async def scheduling_error_handler(
        request: Request, exc: SchedulingError
    ) -> JSONResponse:
        logger.info(
            "Request rejected: %s",
            exc.message,
            extra={"path": request.url.path, "error": type(exc).__name__},
        )
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "error": exc.message},
        )

    app.include_router(admin_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post(
        "/sessions",
        response_model=SessionOutcomeResponse,
        status_code=status.HTTP_201_CREATED,
    )
    async def create_session(
        payload: CreateSessionRequest,
        user_id: str = Depends(require_user),
        state_container: AppContainer = Depends(_container),
    ) -> SessionOutcomeResponse:
        """Book a session for the acting photographer."""
        outcome = await state_container.scheduling_service.create_session(
            photographer_id=user_id,
            client_id=payload.client_id,
            start=payload.start,
            end=payload.end,
            location=payload.location,
            session_type_name=payload.session_type,
            session_type_id=payload.session_type_id,
            notes=payload.notes,
        )
        return outcome_response(outcome)

    @app.get("/sessions", response_model=SessionListResponse)
    async def list_sessions(  # noqa: PLR0913
        user_id: str = Depends(require_user),
        state_container: AppContainer = Depends(_container),
        photographer_id: str | None = Query(default=None, alias="photographerId"),
        client_id: str | None = Query(default=None, alias="clientId"),
        session_status: str | None = Query(default=None, alias="status"),
        start_from: datetime | None = Query(default=None, alias="from"),
        start_to: datetime | None = Query(default=None, alias="to"),
    ) -> SessionListResponse:
        """List sessions; defaults to the acting photographer's bookings."""
        if photographer_id is None and client_id is None:
            photographer_id = user_id
        sessions = state_container.scheduling_service.list_sessions(
            SessionFilter(
                photographer_id=photographer_id,
                client_id=client_id,
                status=session_status,
                start_from=start_from,
                start_to=start_to,
            )
        )
        return SessionListResponse(
            sessions=[session_response(session) for session in sessions]
        )

    @app.get("/sessions/{session_id}", response_model=SessionDetailResponse)
    async def get_session(
        session_id: str,
        _user_id: str = Depends(require_user),
        state_container: AppContainer = Depends(_container),
    ) -> SessionDetailResponse:
        """Return one session."""
        session = state_container.scheduling_service.get_session(session_id)
        return SessionDetailResponse(session=session_response(session))

    @app.patch("/sessions/{session_id}", response_model=SessionOutcomeResponse)
    async def update_session(
        session_id: str,
        payload: UpdateSessionRequest,
        user_id: str = Depends(require_user),
        state_container: AppContainer = Depends(_container),
    ) -> SessionOutcomeResponse:
        """Edit or reschedule a session."""
        outcome = await state_container.scheduling_service.update_session(
            session_id,
            start=payload.start,
            end=payload.end,
            location=payload.location,
            notes=payload.notes,
            session_type_name=payload.session_type,
            session_type_id=payload.session_type_id,
            actor_id=user_id,
        )
        return outcome_response(outcome)

    @app.post("/sessions/{session_id}/confirm", response_model=SessionOutcomeResponse)
    async def confirm_session(
        session_id: str,
        user_id: str = Depends(require_user),
        state_container: AppContainer = Depends(_container),
    ) -> SessionOutcomeResponse:
        """Photographer confirmation."""
        outcome = await state_container.scheduling_service.confirm_session(
            session_id, actor_id=user_id
        )
        return outcome_response(outcome)

    @app.post(
        "/sessions/{session_id}/client-confirm",
        response_model=SessionOutcomeResponse,
    )
    async def client_confirm_session(
        session_id: str,
        user_id: str = Depends(require_user),
        state_container: AppContainer = Depends(_container),
    ) -> SessionOutcomeResponse:
        """Client attendance confirmation."""
        outcome = await state_container.scheduling_service.client_confirm_session(
            session_id, client_id=user_id
        )
        return outcome_response(outcome)

    @app.post("/sessions/{session_id}/cancel", response_model=SessionOutcomeResponse)
    async def cancel_session(
        session_id: str,
        payload: CancelSessionRequest | None = None,
        user_id: str = Depends(require_user),
        state_container: AppContainer = Depends(_container),
    ) -> SessionOutcomeResponse:
        """Cancel a session within the policy window."""
        outcome = await state_container.scheduling_service.cancel_session(
            session_id,
            reason=payload.reason if payload else None,
            actor_id=user_id,
        )
        return outcome_response(outcome)

    @app.get("/availability", response_model=AvailabilityResponse)
    async def get_availability(
        user_id: str = Depends(require_user),
        state_container: AppContainer = Depends(_container),
    ) -> AvailabilityResponse:
        """Return the acting user's weekly availability."""
        slots = state_container.availability_service.get_availability(user_id)
        return availability_response(slots)

    @app.put("/availability", response_model=AvailabilityResponse)
    async def replace_availability(
        payload: AvailabilityRequest,
        user_id: str = Depends(require_user),
        state_container: AppContainer = Depends(_container),
    ) -> AvailabilityResponse:
        """Replace the acting user's weekly availability."""
        slots = state_container.availability_service.replace_availability(
            user_id, [slot.model_dump() for slot in payload.availability]
        )
        return availability_response(slots)

    @app.get("/policies/cancellation", response_model=PolicyResponse)
    async def get_cancellation_policy(
        state_container: AppContainer = Depends(_container),
    ) -> PolicyResponse:
        """Return the active cancellation policy."""
        return policy_response(state_container.policy_service.get_active_policy())

    return app
