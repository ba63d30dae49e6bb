"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from nine_grid.adapters.supabase_identity_provider import SupabaseIdentityProvider
from nine_grid.adapters.supabase_object_storage import SupabaseObjectStorage
from nine_grid.config import Settings
from nine_grid.services.grid import GridViewModel, SessionCoordinator
from nine_grid.services.grid_store import GridStore
from nine_grid.services.identity import IdentityService
from nine_grid.services.images import ImageTransform
from nine_grid.services.log_sink import LogSink


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    log_sink: LogSink
    identity_service: IdentityService
    image_transform: ImageTransform
    grid_store: GridStore
    grid_view_model: GridViewModel
    session_coordinator: SessionCoordinator
    close_resources: Callable[[], Awaitable[None]]

    async def start(self) -> None:
        """Restore the session, start listening for changes and load the grid."""
        self.session_coordinator.start()
        await self.identity_service.start()
        await self.grid_view_model.load()


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_anon_key
    )
    log_sink = LogSink()
    identity_service = IdentityService(
        provider=SupabaseIdentityProvider(supabase_client),
        log_sink=log_sink,
    )
    image_transform = ImageTransform(quality=resolved_settings.jpeg_quality)
    grid_store = GridStore(
        storage=SupabaseObjectStorage(supabase_client),
        identity=identity_service,
        log_sink=log_sink,
        bucket_name=resolved_settings.bucket_name,
        supabase_url=resolved_settings.supabase_url,
        file_size_limit=resolved_settings.bucket_file_size_limit,
    )
    grid_view_model = GridViewModel(
        store=grid_store,
        image_transform=image_transform,
        identity=identity_service,
        log_sink=log_sink,
    )
    session_coordinator = SessionCoordinator(
        identity=identity_service, grid=grid_view_model
    )

    async def close_resources() -> None:
        await session_coordinator.stop()
        await identity_service.stop()

    return AppContainer(
        settings=resolved_settings,
        log_sink=log_sink,
        identity_service=identity_service,
        image_transform=image_transform,
        grid_store=grid_store,
        grid_view_model=grid_view_model,
        session_coordinator=session_coordinator,
        close_resources=close_resources,
    )
