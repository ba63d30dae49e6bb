"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Annotated

from fastapi import FastAPI, Path, Request
from fastapi.responses import HTMLResponse

from nine_grid.api.debug import router as debug_router
from nine_grid.api.models import CredentialsRequest, DescriptionRequest
from nine_grid.api.page import PAGE_HTML
from nine_grid.app_logging import configure_logging
from nine_grid.containers import AppContainer
from nine_grid.domain.auth import AuthResult
from nine_grid.domain.grid import SLOT_COUNT
from nine_grid.services.grid import GridState, OperationResult

SlotPath = Annotated[int, Path(ge=0, lt=SLOT_COUNT)]


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        try:
            await app.state.container.start()
        except Exception:
            logger.exception("Failed to initialize session and grid state")
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(debug_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/", response_class=HTMLResponse)
    async def page() -> HTMLResponse:
        """Single page with the grid, account and debug views."""
        return HTMLResponse(PAGE_HTML)

    @app.get("/grid")
    async def grid_state(request: Request) -> dict[str, object]:
        """Return the current grid state."""
        state_container: AppContainer = request.app.state.container
        return _serialize_grid(state_container)

    @app.post("/grid/refresh")
    async def refresh_grid(request: Request) -> dict[str, object]:
        """Reload slot images from storage (the "Try Again" action)."""
        state_container: AppContainer = request.app.state.container
        result = await state_container.grid_view_model.retry()
        return _operation_response(state_container, result)

    @app.put("/grid/slots/{slot}")
    async def upload_slot(slot: SlotPath, request: Request) -> dict[str, object]:
        """Store the raw image body in a slot."""
        state_container: AppContainer = request.app.state.container
        data = await request.body()
        result = await state_container.grid_view_model.upload(slot, data)
        return _operation_response(state_container, result)

    @app.delete("/grid/slots/{slot}")
    async def remove_slot(slot: SlotPath, request: Request) -> dict[str, object]:
        """Remove the image stored in a slot."""
        state_container: AppContainer = request.app.state.container
        result = await state_container.grid_view_model.remove(slot)
        return _operation_response(state_container, result)

    @app.post("/grid/reset")
    async def reset_grid(request: Request) -> dict[str, object]:
        """Remove every image and clear the description."""
        state_container: AppContainer = request.app.state.container
        result = await state_container.grid_view_model.reset()
        return _operation_response(state_container, result)

    @app.post("/grid/save")
    async def save_grid(request: Request) -> dict[str, object]:
        """Capture the grid contents."""
        state_container: AppContainer = request.app.state.container
        result = await state_container.grid_view_model.save()
        response = _operation_response(state_container, result)
        if result.snapshot is not None:
            response["snapshot"] = {
                "slots": list(result.snapshot.slots),
                "description": result.snapshot.description,
                "saved_at": result.snapshot.saved_at.isoformat(),
            }
        return response

    @app.put("/grid/description")
    async def update_description(
        payload: DescriptionRequest, request: Request
    ) -> dict[str, object]:
        """Update the free-text description."""
        state_container: AppContainer = request.app.state.container
        state_container.grid_view_model.set_description(payload.description)
        return _serialize_grid(state_container)

    @app.get("/auth/session")
    async def auth_session(request: Request) -> dict[str, object]:
        """Return the current session, if any."""
        state_container: AppContainer = request.app.state.container
        return _serialize_session(state_container)

    @app.post("/auth/sign-up")
    async def sign_up(
        payload: CredentialsRequest, request: Request
    ) -> dict[str, object]:
        """Register a new account."""
        state_container: AppContainer = request.app.state.container
        result = await state_container.identity_service.sign_up(
            payload.email, payload.password
        )
        return _auth_response(state_container, result)

    @app.post("/auth/sign-in")
    async def sign_in(
        payload: CredentialsRequest, request: Request
    ) -> dict[str, object]:
        """Sign in with email and password."""
        state_container: AppContainer = request.app.state.container
        result = await state_container.identity_service.sign_in(
            payload.email, payload.password
        )
        return _auth_response(state_container, result)

    @app.post("/auth/sign-out")
    async def sign_out(request: Request) -> dict[str, object]:
        """Sign out; failures are only logged."""
        state_container: AppContainer = request.app.state.container
        await state_container.identity_service.sign_out()
        return _serialize_session(state_container)

    return app


def _serialize_grid(state_container: AppContainer) -> dict[str, object]:
    state: GridState = state_container.grid_view_model.state
    return {
        "status": state.status.value,
        "slots": list(state.slots),
        "description": state.description,
        "error": state.error,
        "retryable": state.retryable,
        "authenticated": state_container.identity_service.session is not None,
    }


def _serialize_session(state_container: AppContainer) -> dict[str, object]:
    identity = state_container.identity_service
    principal = identity.principal
    return {
        "authenticated": principal is not None,
        "loading": identity.loading,
        "user_id": principal.id if principal else None,
        "email": principal.email if principal else None,
    }


def _operation_response(
    state_container: AppContainer, result: OperationResult
) -> dict[str, object]:
    return {
        "success": result.success,
        "error": _format_error(state_container, result.error, result.detail),
        "code": result.code,
        "grid": _serialize_grid(state_container),
    }


def _auth_response(
    state_container: AppContainer, result: AuthResult
) -> dict[str, object]:
    return {
        "success": result.success,
        "error": result.error,
        "session": _serialize_session(state_container),
    }


def _format_error(
    state_container: AppContainer, message: str | None, detail: str | None
) -> str | None:
    """Return a user-facing error with provider detail in local runs only."""
    if message is None:
        return None
    if state_container.settings.environment == "local" and detail:
        return f"{message} (debug: {detail})"
    return message
