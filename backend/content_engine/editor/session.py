from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from bs4 import BeautifulSoup, Tag

from .selector import resolves_to

Record = Dict[str, Any]


class ResolverPhase(enum.Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    APPLIED = "applied"
    FETCH_FAILED = "fetch_failed"


class OverrideCache:
    """
    Override records of one page session, keyed by locator.

    Owned by an EditorSession and rebuilt on every load; never shared
    between pages.
    """

    def __init__(self) -> None:
        self._records: Dict[str, Record] = {}

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, locator: str) -> bool:
        return locator in self._records

    def get(self, locator: str) -> Optional[Record]:
        return self._records.get(locator)

    def put(self, record: Record) -> None:
        self._records[record["targetSelector"]] = record

    def pop(self, locator: str) -> Optional[Record]:
        return self._records.pop(locator, None)

    def clear(self) -> None:
        self._records.clear()

    def replace_all(self, records: Iterable[Record]) -> None:
        self._records = {record["targetSelector"]: record for record in records}

    def records(self) -> List[Record]:
        return list(self._records.values())

    def find_for_node(self, document: BeautifulSoup, node: Tag) -> Optional[Record]:
        """The cached override whose locator resolves to exactly this node."""
        for locator, record in self._records.items():
            if resolves_to(document, locator, node):
                return record
        return None


@dataclass
class EditorSession:
    """Editor state for one page load: the live document and its overrides."""

    page_key: str
    document: BeautifulSoup
    cache: OverrideCache = field(default_factory=OverrideCache)
    phase: ResolverPhase = ResolverPhase.IDLE

    @classmethod
    def from_html(cls, page_key: str, html: str) -> "EditorSession":
        return cls(
            page_key=(page_key or "").strip().lower(),
            document=BeautifulSoup(html, "html.parser"),
        )

    def reload(self, html: str) -> None:
        """Start over on a freshly rendered document (the page navigated)."""
        self.document = BeautifulSoup(html, "html.parser")
        self.cache.clear()
        self.phase = ResolverPhase.IDLE

    def render(self) -> str:
        return str(self.document)
