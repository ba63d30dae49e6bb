"""Grid view-model: nine slots kept in sync with the image bucket."""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime

from nine_grid.domain.auth import SessionChange
from nine_grid.domain.grid import (
    SLOT_COUNT,
    GridSnapshot,
    GridStatus,
    empty_slots,
    reconcile_slots,
    validate_slot,
)
from nine_grid.errors import AuthRequired, GridError, UnknownError
from nine_grid.services.grid_store import GridStore
from nine_grid.services.identity import IdentityService, SessionSubscription
from nine_grid.services.images import ImageTransform
from nine_grid.services.log_sink import LogSink, error_details

logger = logging.getLogger(__name__)

LOAD_FAILED_MESSAGE = "Failed to load images. Check the Debug tab for details."


@dataclass(frozen=True)
class GridState:
    """Read-only view of the grid for rendering."""

    status: GridStatus
    slots: tuple[str | None, ...]
    description: str
    error: str | None
    retryable: bool


@dataclass(frozen=True)
class OperationResult:
    """Outcome of a grid operation, safe to show to the user."""

    success: bool
    error: str | None = None
    code: str | None = None
    detail: str | None = None
    snapshot: GridSnapshot | None = None


@dataclass
class GridViewModel:
    """Orchestrates uploads, removals and reloads of the nine slots.

    Every operation runs under one lock and reads the slots at the moment
    it applies its result, so a slow load cannot overwrite an upload that
    finished in the meantime.
    """

    store: GridStore
    image_transform: ImageTransform
    identity: IdentityService
    log_sink: LogSink
    _status: GridStatus = field(default=GridStatus.LOADING, init=False)
    _slots: list[str | None] = field(default_factory=empty_slots, init=False)
    _description: str = field(default="", init=False)
    _error: str | None = field(default=None, init=False)
    _retryable: bool = field(default=False, init=False)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False)

    @property
    def state(self) -> GridState:
        return GridState(
            status=self._status,
            slots=tuple(self._slots),
            description=self._description,
            error=self._error,
            retryable=self._retryable,
        )

    async def load(self) -> OperationResult:
        """Fetch the slot images from storage into the grid."""
        async with self._lock:
            self._status = GridStatus.LOADING
            self._error = None
            self._retryable = False
            self.log_sink.info("Loading images from storage")
            try:
                await asyncio.to_thread(self.store.ensure_container_exists)
                remote = await asyncio.to_thread(self.store.list_slot_images)
            except GridError as exc:
                return self._fail_load(exc)
            except Exception as exc:
                logger.exception("Unexpected error loading grid")
                return self._fail_load(UnknownError(str(exc)))
            self._slots = reconcile_slots(self._slots, remote)
            self._status = GridStatus.READY
            self.log_sink.success(
                "Images loaded successfully from storage",
                {"image_count": len(remote)},
            )
            return OperationResult(success=True)

    async def retry(self) -> OperationResult:
        """Re-run the load after a failure."""
        return await self.load()

    async def upload(self, slot: int, data: bytes) -> OperationResult:
        """Square-crop an image and store it in a slot."""
        validate_slot(slot)
        if self.identity.session is None:
            return self._reject("Upload")
        async with self._lock:
            self.log_sink.info(
                f"Uploading image to slot {slot + 1}", {"bytes": len(data)}
            )
            try:
                image = await asyncio.to_thread(self.image_transform.square_crop, data)
                if image.processed:
                    self.log_sink.success(
                        "Image processed successfully",
                        {"new_size": f"{image.width}x{image.height}"},
                    )
                else:
                    self.log_sink.warning(
                        "Square crop unavailable, uploading original image",
                        {"size": f"{image.width}x{image.height}"},
                    )
                url = await asyncio.to_thread(self.store.put_image, slot, image)
            except GridError as exc:
                return self._fail(f"Error uploading image to slot {slot + 1}", exc)
            except Exception as exc:
                logger.exception("Unexpected upload failure", extra={"slot": slot})
                return self._fail(
                    f"Error uploading image to slot {slot + 1}", UnknownError(str(exc))
                )
            self._slots[slot] = url
            self._mark_ready()
            self.log_sink.success(
                f"Image uploaded to slot {slot + 1} successfully", {"image_url": url}
            )
            return OperationResult(success=True)

    async def remove(self, slot: int) -> OperationResult:
        """Delete a slot's objects and clear it."""
        validate_slot(slot)
        if self.identity.session is None:
            return self._reject("Image removal")
        async with self._lock:
            self.log_sink.info(f"Removing image from slot {slot + 1}")
            try:
                await asyncio.to_thread(self.store.delete_slot, slot)
            except GridError as exc:
                return self._fail(f"Error removing image from slot {slot + 1}", exc)
            except Exception as exc:
                logger.exception("Unexpected removal failure", extra={"slot": slot})
                return self._fail(
                    f"Error removing image from slot {slot + 1}",
                    UnknownError(str(exc)),
                )
            self._slots[slot] = None
            self._mark_ready()
            self.log_sink.success(f"Image removed from slot {slot + 1} successfully")
            return OperationResult(success=True)

    async def reset(self) -> OperationResult:
        """Delete every populated slot and clear the description."""
        if self.identity.session is None:
            return self._reject("Reset")
        async with self._lock:
            self.log_sink.info("Resetting grid")
            for slot in range(SLOT_COUNT):
                if self._slots[slot] is None:
                    continue
                try:
                    await asyncio.to_thread(self.store.delete_slot, slot)
                except GridError as exc:
                    return self._fail("Error resetting grid", exc)
                except Exception as exc:
                    logger.exception("Unexpected reset failure", extra={"slot": slot})
                    return self._fail("Error resetting grid", UnknownError(str(exc)))
                self._slots[slot] = None
            self._description = ""
            self._mark_ready()
            self.log_sink.success("Grid reset successfully")
            return OperationResult(success=True)

    async def save(self) -> OperationResult:
        """Capture the current grid contents."""
        if self.identity.session is None:
            return self._reject("Save")
        async with self._lock:
            self.log_sink.info("Saving grid data")
            snapshot = GridSnapshot(
                slots=tuple(self._slots),
                description=self._description,
                saved_at=datetime.now(tz=UTC),
            )
            self.log_sink.success(
                "Grid data saved successfully",
                {"populated_slots": sum(1 for url in snapshot.slots if url)},
            )
            return OperationResult(success=True, snapshot=snapshot)

    def set_description(self, text: str) -> None:
        self._description = text

    async def on_session_change(self, change: SessionChange) -> None:
        """Reload after sign-in; sign-out leaves the displayed images alone."""
        if not change.signed_in or change.current is None:
            return
        self.log_sink.info(
            "User authenticated, loading images",
            {"user_id": change.current.principal.id},
        )
        await self.load()

    def _mark_ready(self) -> None:
        """Clear any error state after a successful mutation."""
        self._status = GridStatus.READY
        self._error = None
        self._retryable = False

    def _reject(self, action: str) -> OperationResult:
        error = AuthRequired(f"{action} attempted without authentication")
        self.log_sink.error(str(error))
        self._error = error.user_message
        self._retryable = False
        return OperationResult(success=False, error=error.user_message, code=error.code)

    def _fail(self, message: str, error: GridError) -> OperationResult:
        self.log_sink.error(message, error_details(error, code=error.code))
        self._error = error.user_message
        self._retryable = False
        return OperationResult(
            success=False,
            error=error.user_message,
            code=error.code,
            detail=str(error),
        )

    def _fail_load(self, error: GridError) -> OperationResult:
        self.log_sink.error(
            "Error loading images from storage", error_details(error, code=error.code)
        )
        self._status = GridStatus.ERROR
        self._error = LOAD_FAILED_MESSAGE
        self._retryable = True
        return OperationResult(
            success=False,
            error=LOAD_FAILED_MESSAGE,
            code=error.code,
            detail=str(error),
        )


@dataclass
class SessionCoordinator:
    """Feeds identity changes into the grid view-model."""

    identity: IdentityService
    grid: GridViewModel
    _subscription: SessionSubscription | None = field(default=None, init=False)
    _task: asyncio.Task[None] | None = field(default=None, init=False)

    def start(self) -> None:
        """Subscribe and start consuming changes on the running loop."""
        if self._task is not None:
            return
        self._subscription = self.identity.subscribe()
        self._task = asyncio.create_task(self._run(self._subscription))

    async def stop(self) -> None:
        """Unsubscribe and wait for the consumer to finish."""
        if self._subscription is not None:
            self._subscription.close()
        if self._task is not None:
            await self._task
        self._subscription = None
        self._task = None

    async def _run(self, subscription: SessionSubscription) -> None:
        async for change in subscription:
            try:
                await self.grid.on_session_change(change)
            except Exception:
                logger.exception(
                    "Failed to apply session change", extra={"event": change.event}
                )
