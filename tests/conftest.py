"""Shared test fixtures."""

import asyncio
import io
from collections.abc import Callable
from dataclasses import dataclass, field
from uuid import uuid4

import pytest
from PIL import Image

from nine_grid.config import Settings
from nine_grid.containers import AppContainer
from nine_grid.domain.auth import AuthSession, Principal
from nine_grid.services.grid import GridViewModel, SessionCoordinator
from nine_grid.services.grid_store import GridStore, ObjectStorage
from nine_grid.services.identity import AuthCallback, IdentityProvider, IdentityService
from nine_grid.services.images import ImageTransform
from nine_grid.services.log_sink import LogSink

TEST_EMAIL = "user@example.com"
TEST_PASSWORD = "secret123"


@dataclass
class StoredBlob:
    data: bytes
    content_type: str


@dataclass
class InMemoryObjectStorage(ObjectStorage):
    """In-memory bucket storage for tests."""

    buckets: dict[str, dict[str, StoredBlob]] = field(default_factory=dict)
    created: list[tuple[str, bool, int]] = field(default_factory=list)
    list_bucket_calls: int = 0
    fail_list_buckets: bool = False
    fail_create_bucket: bool = False
    fail_list_objects: bool = False
    fail_upload: bool = False
    fail_remove: bool = False

    def list_buckets(self) -> list[str]:
        self.list_bucket_calls += 1
        if self.fail_list_buckets:
            raise RuntimeError("connection refused")
        return list(self.buckets)

    def create_bucket(self, name: str, public: bool, file_size_limit: int) -> None:
        if self.fail_create_bucket:
            raise RuntimeError("new row violates row-level security policy")
        self.created.append((name, public, file_size_limit))
        self.buckets[name] = {}

    def list_objects(self, bucket: str) -> list[str]:
        if self.fail_list_objects:
            raise RuntimeError("list failed")
        return list(self.buckets[bucket])

    def upload(  # noqa: PLR0913
        self,
        bucket: str,
        name: str,
        data: bytes,
        content_type: str,
        upsert: bool,
    ) -> None:
        if self.fail_upload:
            raise RuntimeError("payload too large")
        self.buckets[bucket][name] = StoredBlob(data=data, content_type=content_type)

    def remove(self, bucket: str, names: list[str]) -> None:
        if self.fail_remove:
            raise RuntimeError("remove failed")
        for name in names:
            self.buckets[bucket].pop(name, None)

    def get_public_url(self, bucket: str, name: str) -> str:
        return f"https://example.supabase.co/storage/v1/object/public/{bucket}/{name}"

    def names(self, bucket: str) -> list[str]:
        return sorted(self.buckets.get(bucket, {}))


@dataclass
class FakeIdentityProvider(IdentityProvider):
    """Fake auth provider with registered users and pushed events."""

    users: dict[str, tuple[str, Principal]] = field(default_factory=dict)
    session: AuthSession | None = None
    callbacks: list[AuthCallback] = field(default_factory=list)
    fail_get_session: bool = False
    fail_sign_out: bool = False

    def register(self, email: str, password: str) -> Principal:
        principal = Principal(id=str(uuid4()), email=email)
        self.users[email] = (password, principal)
        return principal

    def get_session(self) -> AuthSession | None:
        if self.fail_get_session:
            raise RuntimeError("session storage unavailable")
        return self.session

    def sign_up(self, email: str, password: str) -> Principal | None:
        if email in self.users:
            raise RuntimeError("User already registered")
        return self.register(email, password)

    def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        stored = self.users.get(email)
        if stored is None or stored[0] != password:
            raise RuntimeError("Invalid login credentials")
        self.session = AuthSession(principal=stored[1], access_token=uuid4().hex)
        self.emit("SIGNED_IN", self.session)
        return self.session

    def sign_out(self) -> None:
        if self.fail_sign_out:
            raise RuntimeError("network down")
        self.session = None
        self.emit("SIGNED_OUT", None)

    def on_auth_state_change(self, callback: AuthCallback) -> Callable[[], None]:
        self.callbacks.append(callback)
        return lambda: self.callbacks.remove(callback)

    def emit(self, event: str, session: AuthSession | None) -> None:
        for callback in list(self.callbacks):
            callback(event, session)


def make_image(width: int, height: int, image_format: str = "PNG") -> bytes:
    """Return encoded image bytes with a distinct centre pixel."""
    mode = "RGBA" if image_format == "PNG" else "RGB"
    image = Image.new(mode, (width, height), color=(200, 30, 30, 255)[: len(mode)])
    buffer = io.BytesIO()
    image.save(buffer, format=image_format)
    return buffer.getvalue()


def image_size(data: bytes) -> tuple[int, int]:
    with Image.open(io.BytesIO(data)) as image:
        return image.size


def sign_in(identity_service: IdentityService) -> AuthSession:
    """Register the test user and sign in."""
    provider = identity_service.provider
    assert isinstance(provider, FakeIdentityProvider)
    if TEST_EMAIL not in provider.users:
        provider.register(TEST_EMAIL, TEST_PASSWORD)
    result = asyncio.run(identity_service.sign_in(TEST_EMAIL, TEST_PASSWORD))
    assert result.success
    session = identity_service.session
    assert session is not None
    return session


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_anon_key=(
            "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9."
            "eyJyb2xlIjoiYW5vbiJ9.c2lnbmF0dXJlLWZvci10ZXN0cw"
        ),
        environment="test",
    )


@pytest.fixture
def log_sink() -> LogSink:
    return LogSink()


@pytest.fixture
def identity_provider() -> FakeIdentityProvider:
    return FakeIdentityProvider()


@pytest.fixture
def identity_service(
    identity_provider: FakeIdentityProvider, log_sink: LogSink
) -> IdentityService:
    return IdentityService(provider=identity_provider, log_sink=log_sink)


@pytest.fixture
def object_storage() -> InMemoryObjectStorage:
    return InMemoryObjectStorage()


@pytest.fixture
def grid_store(
    settings: Settings,
    object_storage: InMemoryObjectStorage,
    identity_service: IdentityService,
    log_sink: LogSink,
) -> GridStore:
    return GridStore(
        storage=object_storage,
        identity=identity_service,
        log_sink=log_sink,
        bucket_name=settings.bucket_name,
        supabase_url=settings.supabase_url,
        file_size_limit=settings.bucket_file_size_limit,
    )


@pytest.fixture
def grid_view_model(
    grid_store: GridStore,
    identity_service: IdentityService,
    log_sink: LogSink,
) -> GridViewModel:
    return GridViewModel(
        store=grid_store,
        image_transform=ImageTransform(),
        identity=identity_service,
        log_sink=log_sink,
    )


@pytest.fixture
def container(
    settings: Settings,
    log_sink: LogSink,
    identity_service: IdentityService,
    grid_store: GridStore,
    grid_view_model: GridViewModel,
) -> AppContainer:
    session_coordinator = SessionCoordinator(
        identity=identity_service, grid=grid_view_model
    )

    async def close_resources() -> None:
        await session_coordinator.stop()
        await identity_service.stop()

    return AppContainer(
        settings=settings,
        log_sink=log_sink,
        identity_service=identity_service,
        image_transform=grid_view_model.image_transform,
        grid_store=grid_store,
        grid_view_model=grid_view_model,
        session_coordinator=session_coordinator,
        close_resources=close_resources,
    )
