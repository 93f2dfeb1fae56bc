"""Tag registry - get-or-create tags with name-derived colors."""

from typing import Iterable, Optional
from ulid import ULID

from clawban.models.tag import Tag
from clawban.services.store import TAGS_TABLE, DurableStore, get_store
from clawban.utils.errors import ConflictError, StorageError
from clawban.utils.timestamps import utc_now_iso


TAG_PALETTE = (
    "#3b82f6",  # blue
    "#8b5cf6",  # purple
    "#ec4899",  # pink
    "#f59e0b",  # amber
    "#10b981",  # green
    "#06b6d4",  # cyan
    "#6366f1",  # indigo
    "#f97316",  # orange
    "#ef4444",  # red
    "#14b8a6",  # teal
    "#a855f7",  # violet
    "#84cc16",  # lime
)


def normalize_tag_name(name: str) -> str:
    """Trim and lowercase a tag name."""
    return name.strip().lower()


def _name_hash(name: str) -> int:
    """32-bit signed ``h = h * 31 + c`` over UTF-16 code units."""
    encoded = name.encode("utf-16-le", "surrogatepass")
    h = 0
    for i in range(0, len(encoded), 2):
        unit = encoded[i] | (encoded[i + 1] << 8)
        h = (h * 31 + unit) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return h


def tag_color(name: str) -> str:
    """Palette color for a (normalized) tag name. Stable across restarts."""
    return TAG_PALETTE[abs(_name_hash(name)) % len(TAG_PALETTE)]


class TagRegistry:
    """Tag registry over the ``tags`` table.

    The unique constraint on ``tags.name`` is the only arbiter of which
    concurrent creator wins; losers re-read the winner's row.
    """

    def __init__(self, store: Optional[DurableStore] = None):
        self.store = store or get_store()

    async def get(self, name: str) -> Optional[Tag]:
        rows = await self.store.select(TAGS_TABLE, eq={"name": normalize_tag_name(name)})
        return Tag(**rows[0]) if rows else None

    async def get_or_create(self, name: str) -> Tag:
        """Return the tag for ``name``, creating it if it does not exist."""
        normalized = normalize_tag_name(name)
        existing = await self.get(normalized)
        if existing:
            return existing

        row = {
            "id": str(ULID()),
            "name": normalized,
            "color": tag_color(normalized),
            "created_at": utc_now_iso(),
        }
        try:
            return Tag(**await self.store.insert(TAGS_TABLE, row))
        except ConflictError:
            # Lost the race to a concurrent creator
            winner = await self.get(normalized)
            if winner is None:
                raise StorageError(f"Tag {normalized!r} conflicted on insert but cannot be read back")
            return winner

    async def resolve(self, names: Iterable[str]) -> list[str]:
        """Ensure every name exists; return the normalized names, deduplicated and sorted."""
        normalized = sorted({normalize_tag_name(name) for name in names} - {""})
        for name in normalized:
            await self.get_or_create(name)
        return normalized

    async def list_all(self) -> list[Tag]:
        rows = await self.store.select(TAGS_TABLE, order_by="name")
        return [Tag(**row) for row in rows]
