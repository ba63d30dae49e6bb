"""Slot-aware access to the shared image bucket."""

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from threading import Lock
from typing import Protocol

from nine_grid.config import public_bucket_url
from nine_grid.domain.grid import (
    StoredObject,
    latest_per_slot,
    slot_prefix,
    validate_slot,
)
from nine_grid.errors import AuthRequired, StorageUnavailable
from nine_grid.services.identity import IdentityService
from nine_grid.services.images import SquareImage
from nine_grid.services.log_sink import LogSink, error_details


class ObjectStorage(Protocol):
    """Interface for bucket-based blob storage."""

    def list_buckets(self) -> list[str]:
        """Return the names of all buckets."""

    def create_bucket(self, name: str, public: bool, file_size_limit: int) -> None:
        """Create a bucket."""

    def list_objects(self, bucket: str) -> list[str]:
        """Return every object name in a bucket."""

    def upload(  # noqa: PLR0913
        self,
        bucket: str,
        name: str,
        data: bytes,
        content_type: str,
        upsert: bool,
    ) -> None:
        """Write an object."""

    def remove(self, bucket: str, names: list[str]) -> None:
        """Delete objects by name."""

    def get_public_url(self, bucket: str, name: str) -> str:
        """Return the unauthenticated URL of an object."""


@dataclass(frozen=True)
class ConnectionStatus:
    """Outcome of a storage connectivity check."""

    connected: bool
    bucket_names: list[str] = field(default_factory=list)
    error: str | None = None


@dataclass(frozen=True)
class BucketStatus:
    """Outcome of a bucket availability check."""

    name: str
    url: str
    exists: bool
    error: str | None = None


def _epoch_ms() -> int:
    return time.time_ns() // 1_000_000


@dataclass
class GridStore:
    """Maps the nine grid slots onto objects in one bucket."""

    storage: ObjectStorage
    identity: IdentityService
    log_sink: LogSink
    bucket_name: str
    supabase_url: str
    file_size_limit: int = 5 * 1024 * 1024
    clock: Callable[[], int] = _epoch_ms
    _bucket_ready: bool = field(default=False, init=False)
    _last_timestamp: int = field(default=0, init=False)
    _lock: Lock = field(default_factory=Lock, init=False)

    def ensure_container_exists(self) -> None:
        """Create the bucket if needed; later calls return immediately."""
        if self._bucket_ready:
            return
        with self._lock:
            if self._bucket_ready:
                return
            self.log_sink.info(f"Checking if bucket exists: '{self.bucket_name}'")
            try:
                buckets = self.storage.list_buckets()
            except Exception as exc:
                self.log_sink.error("Error listing buckets", error_details(exc))
                raise StorageUnavailable(f"Unable to list buckets: {exc}") from exc

            if self.bucket_name in buckets:
                self.log_sink.success(f"Bucket '{self.bucket_name}' already exists")
                self._bucket_ready = True
                return

            self.log_sink.info(
                f"Bucket '{self.bucket_name}' not found, initiating bucket creation"
            )
            try:
                self.storage.create_bucket(
                    self.bucket_name,
                    public=True,
                    file_size_limit=self.file_size_limit,
                )
            except Exception as exc:
                self.log_sink.error(
                    f"Failed to create bucket '{self.bucket_name}'",
                    error_details(exc),
                )
                raise StorageUnavailable(
                    f"Unable to create bucket {self.bucket_name}: {exc}"
                ) from exc
            self.log_sink.success(
                f"Successfully created storage bucket: '{self.bucket_name}'",
                {"public": True, "file_size_limit": self.file_size_limit},
            )
            self._bucket_ready = True

    def list_slot_images(self) -> dict[int, str]:
        """Return the public URL of the newest object for each slot.

        Failures are logged and reported as an empty mapping.
        """
        try:
            self.ensure_container_exists()
            self.log_sink.info(f"Listing files in bucket '{self.bucket_name}'")
            names = self.storage.list_objects(self.bucket_name)
            if not names:
                self.log_sink.info(f"No files found in bucket '{self.bucket_name}'")
                return {}
            self.log_sink.success(
                f"Found {len(names)} files in bucket '{self.bucket_name}'"
            )
            latest = latest_per_slot(names)
            slot_images = {
                slot: self.storage.get_public_url(self.bucket_name, stored.name)
                for slot, stored in latest.items()
            }
        except Exception as exc:
            self.log_sink.error(
                f"Error retrieving grid images from bucket '{self.bucket_name}'",
                error_details(exc),
            )
            return {}
        self.log_sink.success(
            f"Processed image URLs for {len(slot_images)} slots",
            {"slots": sorted(slot_images)},
        )
        return slot_images

    def put_image(self, slot: int, image: SquareImage) -> str:
        """Upload an image for a slot and return its public URL."""
        validate_slot(slot)
        self._require_session("upload images")
        self.ensure_container_exists()
        name = StoredObject.build_name(slot, self._next_timestamp(), image.extension)
        self.log_sink.info(
            f"Attempting to upload image to bucket '{self.bucket_name}', "
            f"file: '{name}'",
            {"content_type": image.content_type, "bytes": len(image.data)},
        )
        try:
            self.storage.upload(
                self.bucket_name,
                name,
                image.data,
                content_type=image.content_type,
                upsert=True,
            )
            public_url = self.storage.get_public_url(self.bucket_name, name)
        except Exception as exc:
            self.log_sink.error(
                f"Failed to upload image to bucket '{self.bucket_name}'",
                error_details(exc, file_name=name),
            )
            raise StorageUnavailable(f"Upload of {name} failed: {exc}") from exc
        self.log_sink.success(
            f"Successfully uploaded image to bucket '{self.bucket_name}'",
            {"file_name": name, "public_url": public_url},
        )
        return public_url

    def delete_slot(self, slot: int) -> None:
        """Remove every object that belongs to a slot."""
        validate_slot(slot)
        self._require_session("delete images")
        self.ensure_container_exists()
        prefix = slot_prefix(slot)
        try:
            names = self.storage.list_objects(self.bucket_name)
            to_delete = [name for name in names if name.startswith(prefix)]
            if not to_delete:
                self.log_sink.info(
                    f"No files found for slot {slot} in bucket '{self.bucket_name}'"
                )
                return
            self.log_sink.info(
                f"Attempting to delete {len(to_delete)} files for slot {slot}",
                {"files": to_delete},
            )
            self.storage.remove(self.bucket_name, to_delete)
        except Exception as exc:
            self.log_sink.error(
                f"Error deleting files for slot {slot}", error_details(exc)
            )
            raise StorageUnavailable(
                f"Delete for slot {slot} failed: {exc}"
            ) from exc
        self.log_sink.success(f"Successfully deleted files for slot {slot}")

    def test_connection(self) -> ConnectionStatus:
        """Check that the storage service answers a bucket listing."""
        self.log_sink.info("Testing storage connection")
        try:
            buckets = self.storage.list_buckets()
        except Exception as exc:
            self.log_sink.error("Storage connection test failed", error_details(exc))
            return ConnectionStatus(connected=False, error=str(exc))
        self.log_sink.success(
            "Storage connection test successful",
            {"buckets_count": len(buckets), "buckets": buckets},
        )
        return ConnectionStatus(connected=True, bucket_names=buckets)

    def bucket_status(self) -> BucketStatus:
        """Ensure the bucket and describe where its objects are served."""
        url = public_bucket_url(self.supabase_url, self.bucket_name)
        try:
            self.ensure_container_exists()
        except StorageUnavailable as exc:
            return BucketStatus(
                name=self.bucket_name, url=url, exists=False, error=str(exc)
            )
        return BucketStatus(name=self.bucket_name, url=url, exists=True)

    def _require_session(self, action: str) -> None:
        try:
            self.identity.require_session()
        except AuthRequired:
            self.log_sink.error(f"Authentication required to {action}")
            raise

    def _next_timestamp(self) -> int:
        with self._lock:
            timestamp = max(self.clock(), self._last_timestamp + 1)
            self._last_timestamp = timestamp
        return timestamp
