"""Domain models for the nine-slot image grid."""

import re
from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum

SLOT_COUNT = 9

_OBJECT_NAME = re.compile(r"^slot-(\d+)-(\d+)(?:\.([A-Za-z0-9]+))?$")


class GridStatus(StrEnum):
    """Lifecycle of the grid view."""

    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


def validate_slot(slot: int) -> int:
    """Return the slot if it is one of the nine grid positions."""
    if not 0 <= slot < SLOT_COUNT:
        raise ValueError(f"Slot must be between 0 and {SLOT_COUNT - 1}, got {slot}")
    return slot


def empty_slots() -> list[str | None]:
    return [None] * SLOT_COUNT


def slot_prefix(slot: int) -> str:
    """Return the object name prefix shared by every object of a slot."""
    return f"slot-{slot}-"


@dataclass(frozen=True)
class StoredObject:
    """A blob whose name encodes its owning slot and write time."""

    name: str
    slot: int
    timestamp: int
    extension: str | None

    @classmethod
    def parse(cls, name: str) -> "StoredObject | None":
        """Parse ``slot-{n}-{epoch-ms}.{ext}``; foreign names return None."""
        match = _OBJECT_NAME.match(name)
        if match is None:
            return None
        slot = int(match.group(1))
        if not 0 <= slot < SLOT_COUNT:
            return None
        return cls(
            name=name,
            slot=slot,
            timestamp=int(match.group(2)),
            extension=match.group(3),
        )

    @staticmethod
    def build_name(slot: int, timestamp: int, extension: str) -> str:
        return f"{slot_prefix(slot)}{timestamp}.{extension}"


def latest_per_slot(names: list[str]) -> dict[int, StoredObject]:
    """Pick the most recently written object for each slot.

    Listing order from the provider is unspecified, so the winner is the
    highest timestamp, then the highest name when timestamps tie.
    """
    latest: dict[int, StoredObject] = {}
    for name in names:
        stored = StoredObject.parse(name)
        if stored is None:
            continue
        current = latest.get(stored.slot)
        if current is None or (stored.timestamp, stored.name) > (
            current.timestamp,
            current.name,
        ):
            latest[stored.slot] = stored
    return latest


def reconcile_slots(
    local: list[str | None], remote: dict[int, str]
) -> list[str | None]:
    """Merge a remote slot listing into the latest local slots.

    Slots present remotely take the remote URL; every other slot keeps its
    local value.
    """
    merged = list(local)
    for slot, url in remote.items():
        if 0 <= slot < SLOT_COUNT:
            merged[slot] = url
    return merged


@dataclass(frozen=True)
class GridSnapshot:
    """A saved copy of the grid contents."""

    slots: tuple[str | None, ...]
    description: str
    saved_at: datetime
