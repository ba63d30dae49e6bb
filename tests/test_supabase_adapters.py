"""Tests for Supabase adapter implementations."""

from __future__ import annotations

from dataclasses import dataclass, field

import pytest

from nine_grid.adapters.supabase_identity_provider import SupabaseIdentityProvider
from nine_grid.adapters.supabase_object_storage import SupabaseObjectStorage
from nine_grid.domain.auth import AuthSession


@dataclass
class FakeBucket:
    name: str


@dataclass
class FakeFileApi:
    objects: list[str] = field(default_factory=list)
    list_calls: list[dict[str, object]] = field(default_factory=list)
    uploads: list[tuple[str, bytes, dict[str, str]]] = field(default_factory=list)
    removed: list[list[str]] = field(default_factory=list)

    def list(self, path, options):  # type: ignore[no-untyped-def]
        self.list_calls.append(options)
        start = options["offset"]
        names = sorted(self.objects)[start : start + options["limit"]]
        return [{"name": name, "id": name} for name in names]

    def upload(self, path: str, file: bytes, file_options: dict[str, str]) -> None:
        self.uploads.append((path, file, file_options))

    def remove(self, paths: list[str]) -> None:
        self.removed.append(paths)

    def get_public_url(self, path: str) -> str:
        return f"https://example.supabase.co/storage/v1/object/public/grid/{path}"


@dataclass
class FakeStorage:
    buckets: list[FakeBucket] = field(default_factory=list)
    files: FakeFileApi = field(default_factory=FakeFileApi)
    created: list[tuple[str, dict[str, object]]] = field(default_factory=list)
    used_buckets: list[str] = field(default_factory=list)

    def list_buckets(self) -> list[FakeBucket]:
        return self.buckets

    def create_bucket(self, name: str, options: dict[str, object]) -> None:
        self.created.append((name, options))

    def from_(self, bucket: str) -> FakeFileApi:
        self.used_buckets.append(bucket)
        return self.files


@dataclass
class FakeUser:
    id: str
    email: str


@dataclass
class FakeSession:
    user: FakeUser | None
    access_token: str


@dataclass
class FakeAuthResponse:
    user: FakeUser | None = None
    session: FakeSession | None = None


@dataclass
class FakeSubscription:
    active: bool = True

    def unsubscribe(self) -> None:
        self.active = False


@dataclass
class FakeAuth:
    session: FakeSession | None = None
    sign_in_response: FakeAuthResponse = field(default_factory=FakeAuthResponse)
    credentials: list[dict[str, str]] = field(default_factory=list)
    callbacks: list = field(default_factory=list)  # type: ignore[type-arg]
    subscription: FakeSubscription = field(default_factory=FakeSubscription)
    signed_out: bool = False

    def get_session(self) -> FakeSession | None:
        return self.session

    def sign_up(self, credentials: dict[str, str]) -> FakeAuthResponse:
        self.credentials.append(credentials)
        return FakeAuthResponse(user=FakeUser(id="user-1", email=credentials["email"]))

    def sign_in_with_password(self, credentials: dict[str, str]) -> FakeAuthResponse:
        self.credentials.append(credentials)
        return self.sign_in_response

    def sign_out(self) -> None:
        self.signed_out = True

    def on_auth_state_change(self, callback) -> FakeSubscription:  # type: ignore[no-untyped-def]
        self.callbacks.append(callback)
        return self.subscription


@dataclass
class FakeSupabaseClient:
    storage: FakeStorage = field(default_factory=FakeStorage)
    auth: FakeAuth = field(default_factory=FakeAuth)


def test_object_storage_lists_bucket_names() -> None:
    client = FakeSupabaseClient()
    client.storage.buckets = [FakeBucket("avatars"), FakeBucket("grid")]

    assert SupabaseObjectStorage(client).list_buckets() == ["avatars", "grid"]


def test_object_storage_creates_public_bucket() -> None:
    client = FakeSupabaseClient()

    SupabaseObjectStorage(client).create_bucket("grid", True, 1024)

    assert client.storage.created == [
        ("grid", {"public": True, "file_size_limit": 1024})
    ]


def test_object_storage_lists_every_page() -> None:
    client = FakeSupabaseClient()
    client.storage.files.objects = [f"slot-0-{index:05d}.jpg" for index in range(2500)]

    names = SupabaseObjectStorage(client).list_objects("grid")

    assert len(names) == 2500
    assert [call["offset"] for call in client.storage.files.list_calls] == [
        0,
        1000,
        2000,
    ]
    assert client.storage.used_buckets[0] == "grid"


def test_object_storage_upload_passes_file_options() -> None:
    client = FakeSupabaseClient()

    SupabaseObjectStorage(client).upload(
        "grid", "slot-1-5.jpg", b"data", "image/jpeg", True
    )

    assert client.storage.files.uploads == [
        ("slot-1-5.jpg", b"data", {"content-type": "image/jpeg", "upsert": "true"})
    ]


def test_object_storage_remove_and_public_url() -> None:
    client = FakeSupabaseClient()
    storage = SupabaseObjectStorage(client)

    storage.remove("grid", ["slot-1-5.jpg"])
    url = storage.get_public_url("grid", "slot-1-5.jpg")

    assert client.storage.files.removed == [["slot-1-5.jpg"]]
    assert url.endswith("/grid/slot-1-5.jpg")


def test_identity_provider_restores_session() -> None:
    client = FakeSupabaseClient()
    client.auth.session = FakeSession(
        user=FakeUser(id="user-1", email="user@example.com"), access_token="token"
    )

    session = SupabaseIdentityProvider(client).get_session()

    assert session is not None
    assert session.principal.id == "user-1"
    assert session.access_token == "token"


def test_identity_provider_without_session() -> None:
    assert SupabaseIdentityProvider(FakeSupabaseClient()).get_session() is None


def test_identity_provider_sign_up_returns_principal() -> None:
    client = FakeSupabaseClient()

    principal = SupabaseIdentityProvider(client).sign_up("a@example.com", "secret1")

    assert principal is not None
    assert principal.email == "a@example.com"
    assert client.auth.credentials == [
        {"email": "a@example.com", "password": "secret1"}
    ]


def test_identity_provider_sign_in_requires_session() -> None:
    client = FakeSupabaseClient()

    with pytest.raises(RuntimeError):
        SupabaseIdentityProvider(client).sign_in_with_password(
            "a@example.com", "secret1"
        )


def test_identity_provider_sign_in_returns_session() -> None:
    client = FakeSupabaseClient()
    user = FakeUser(id="user-2", email="a@example.com")
    client.auth.sign_in_response = FakeAuthResponse(
        user=user, session=FakeSession(user=user, access_token="fresh")
    )

    session = SupabaseIdentityProvider(client).sign_in_with_password(
        "a@example.com", "secret1"
    )

    assert session.principal.id == "user-2"
    assert session.access_token == "fresh"


def test_identity_provider_forwards_auth_events() -> None:
    client = FakeSupabaseClient()
    received: list[tuple[str, AuthSession | None]] = []

    unsubscribe = SupabaseIdentityProvider(client).on_auth_state_change(
        lambda event, session: received.append((event, session))
    )
    [forward] = client.auth.callbacks
    forward("SIGNED_OUT", None)
    unsubscribe()

    assert received == [("SIGNED_OUT", None)]
    assert not client.auth.subscription.active
