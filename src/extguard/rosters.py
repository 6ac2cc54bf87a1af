"""Publisher and extension reputation rosters."""

from __future__ import annotations

import enum
import functools
import importlib.resources
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

import yaml

MEGA_DOWNLOADS = 10_000_000
POPULAR_DOWNLOADS = 1_000_000

# Extension ids of ExtGuard itself; never scanned unless explicitly requested.
SELF_EXTENSION_IDS: tuple[str, ...] = ("extguard.extguard-vscode",)


class PopularityTier(enum.Enum):
    MEGA = "mega"
    POPULAR = "popular"


def is_self_extension(extension_id: str) -> bool:
    normalized = extension_id.lower()
    return any(normalized == sid.lower() for sid in SELF_EXTENSION_IDS)


@dataclass(frozen=True)
class Roster:
    """Read-only reputation data consulted by the finding adjuster.

    All names are stored lower-cased; lookups are case-insensitive.
    """

    trusted_publishers: frozenset[str] = frozenset()
    trusted_extension_ids: frozenset[str] = frozenset()
    verified_publishers: frozenset[str] = frozenset()
    downloads: Mapping[str, int] = field(default_factory=dict)

    @classmethod
    def build(
        cls,
        trusted_publishers: Iterable[str] = (),
        trusted_extension_ids: Iterable[str] = (),
        verified_publishers: Iterable[str] = (),
        downloads: Mapping[str, int] | None = None,
    ) -> Roster:
        return cls(
            trusted_publishers=frozenset(p.lower() for p in trusted_publishers),
            trusted_extension_ids=frozenset(i.lower() for i in trusted_extension_ids),
            verified_publishers=frozenset(p.lower() for p in verified_publishers),
            downloads={k.lower(): int(v) for k, v in (downloads or {}).items()},
        )

    def is_trusted_publisher(self, publisher: str) -> bool:
        return bool(publisher) and publisher.lower() in self.trusted_publishers

    def is_trusted_extension(self, extension_id: str) -> bool:
        return bool(extension_id) and extension_id.lower() in self.trusted_extension_ids

    def is_verified_publisher(self, publisher: str) -> bool:
        return bool(publisher) and publisher.lower() in self.verified_publishers

    def popularity_tier(self, extension_id: str) -> PopularityTier | None:
        count = self.downloads.get(extension_id.lower(), 0)
        if count >= MEGA_DOWNLOADS:
            return PopularityTier.MEGA
        if count >= POPULAR_DOWNLOADS:
            return PopularityTier.POPULAR
        return None


@functools.lru_cache(maxsize=1)
def default_roster() -> Roster:
    """Load the packaged roster. Parsed once per process."""
    pkg = importlib.resources.files("extguard.data")
    publishers = yaml.safe_load(
        pkg.joinpath("publishers.yaml").read_text(encoding="utf-8")
    )
    popular = yaml.safe_load(pkg.joinpath("popular.yaml").read_text(encoding="utf-8"))

    return Roster.build(
        trusted_publishers=publishers.get("trusted_publishers", []),
        trusted_extension_ids=publishers.get("trusted_extension_ids", []),
        verified_publishers=publishers.get("verified_publishers", []),
        downloads={e["id"]: e["downloads"] for e in popular.get("extensions", [])},
    )
