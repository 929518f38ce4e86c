"""Keyed storage for the per-page values pages read and write."""

from __future__ import annotations

from typing import Dict, Iterator, Mapping, Tuple

from .page import PageId

PageKey = int
"""Author chosen key scoped to a single page."""

StateKey = Tuple[PageId, PageKey]
"""Fully qualified key: owning page id plus the page-local key."""

PageMap = Dict[PageKey, int]

U64_MAX = (1 << 64) - 1
MASK_BITS = 64


def validate_u64(value: int, *, field_name: str = "value") -> int:
    """Check that ``value`` fits an unsigned 64-bit slot."""

    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{field_name} must be an integer, got {type(value)!r}")
    if value < 0 or value > U64_MAX:
        raise ValueError(f"{field_name} must fit in an unsigned 64-bit integer")
    return value


def validate_bit(position: int) -> int:
    """Check that ``position`` addresses one of the 64 mask bits."""

    if isinstance(position, bool) or not isinstance(position, int):
        raise TypeError(f"bit position must be an integer, got {type(position)!r}")
    if not 0 <= position < MASK_BITS:
        raise ValueError(f"bit position must be between 0 and {MASK_BITS - 1}")
    return position


def mask_indices(value: int) -> list[int]:
    """Return the ascending positions of the bits set in ``value``."""

    return [index for index in range(MASK_BITS) if value & (1 << index)]


def lowest_bit(value: int) -> int | None:
    """Return the position of the lowest set bit, or ``None`` for zero."""

    if not value:
        return None
    return (value & -value).bit_length() - 1


class GameState:
    """Two level mapping of page id to page key to an unsigned 64-bit value.

    Values double as counters, plain values and bitmasks. Entries are created
    on first write; removing the last entry of a page also drops the page.
    A missing key reads as ``0``.
    """

    def __init__(self, entries: Mapping[PageId, Mapping[PageKey, int]] | None = None) -> None:
        self._inner: Dict[PageId, PageMap] = {}
        if entries:
            for page_id, page_map in entries.items():
                for key, value in page_map.items():
                    self.insert((PageId(page_id), key), value)

    # -- writes

    def inc(self, key: StateKey) -> int:
        """Increment the value at ``key`` by one and return the new value."""

        page_id, entry_key = key
        page_map = self._page_map(page_id)
        updated = page_map.get(entry_key, 0) + 1
        page_map[entry_key] = validate_u64(updated)
        return updated

    def insert(self, key: StateKey, value: int) -> None:
        """Store ``value`` at ``key``."""

        page_id, entry_key = key
        self._page_map(page_id)[entry_key] = validate_u64(value)

    def set_bit(self, key: StateKey, position: int) -> int:
        """Treat the value at ``key`` as a bitmask and set ``position``."""

        page_id, entry_key = key
        validate_bit(position)
        page_map = self._page_map(page_id)
        updated = page_map.get(entry_key, 0) | (1 << position)
        page_map[entry_key] = updated
        return updated

    def remove(self, key: StateKey) -> int | None:
        """Delete the entry at ``key`` and return the removed value."""

        page_id, entry_key = key
        page_map = self._inner.get(PageId(page_id))
        if page_map is None:
            return None
        removed = page_map.pop(entry_key, None)
        if not page_map:
            del self._inner[PageId(page_id)]
        return removed

    # -- reads

    def get(self, key: StateKey, default: int | None = None) -> int | None:
        page_id, entry_key = key
        page_map = self._inner.get(PageId(page_id))
        if page_map is None:
            return default
        return page_map.get(entry_key, default)

    def value(self, key: StateKey) -> int:
        """Return the stored value, reading a missing entry as ``0``."""

        stored = self.get(key)
        return 0 if stored is None else stored

    def page(self, page_id: str) -> Mapping[PageKey, int]:
        """Return a read-only copy of one page's entries."""

        return dict(self._inner.get(PageId(page_id), {}))

    def pages(self) -> Iterator[PageId]:
        return iter(self._inner)

    def copy(self) -> "GameState":
        clone = GameState()
        clone._inner = {page_id: dict(entries) for page_id, entries in self._inner.items()}
        return clone

    def to_dict(self) -> Dict[str, Dict[int, int]]:
        return {
            str(page_id): dict(entries)
            for page_id, entries in self._inner.items()
            if entries
        }

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, tuple) or len(key) != 2:
            return False
        return self.get(key) is not None  # type: ignore[arg-type]

    def __len__(self) -> int:
        return sum(len(entries) for entries in self._inner.values())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GameState):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        return f"GameState({self.to_dict()!r})"

    def _page_map(self, page_id: PageId) -> PageMap:
        return self._inner.setdefault(PageId(page_id), {})


__all__ = [
    "GameState",
    "PageKey",
    "StateKey",
    "U64_MAX",
    "MASK_BITS",
    "validate_u64",
    "validate_bit",
    "mask_indices",
    "lowest_bit",
]
