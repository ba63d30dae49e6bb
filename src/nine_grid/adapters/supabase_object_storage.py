"""Supabase Storage implementation of the object storage interface."""

from dataclasses import dataclass

from supabase import Client

from nine_grid.services.grid_store import ObjectStorage

_LIST_PAGE_SIZE = 1000


@dataclass
class SupabaseObjectStorage(ObjectStorage):
    """Bucket operations backed by Supabase Storage."""

    client: Client

    def list_buckets(self) -> list[str]:
        """Return the names of all buckets."""
        return [bucket.name for bucket in self.client.storage.list_buckets()]

    def create_bucket(self, name: str, public: bool, file_size_limit: int) -> None:
        """Create a bucket with the given visibility and size limit."""
        self.client.storage.create_bucket(
            name,
            options={"public": public, "file_size_limit": file_size_limit},
        )

    def list_objects(self, bucket: str) -> list[str]:
        """Return every object name in the bucket root, across pages."""
        names: list[str] = []
        offset = 0
        while True:
            page = self.client.storage.from_(bucket).list(
                None,
                {
                    "limit": _LIST_PAGE_SIZE,
                    "offset": offset,
                    "sortBy": {"column": "name", "order": "asc"},
                },
            )
            names.extend(item["name"] for item in page if item.get("name"))
            if len(page) < _LIST_PAGE_SIZE:
                return names
            offset += _LIST_PAGE_SIZE

    def upload(  # noqa: PLR0913
        self,
        bucket: str,
        name: str,
        data: bytes,
        content_type: str,
        upsert: bool,
    ) -> None:
        """Write an object to the bucket."""
        self.client.storage.from_(bucket).upload(
            name,
            data,
            {"content-type": content_type, "upsert": "true" if upsert else "false"},
        )

    def remove(self, bucket: str, names: list[str]) -> None:
        """Delete objects by name."""
        self.client.storage.from_(bucket).remove(names)

    def get_public_url(self, bucket: str, name: str) -> str:
        """Return the public URL of an object."""
        return self.client.storage.from_(bucket).get_public_url(name)
