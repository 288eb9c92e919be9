from typing import List, Optional

from content_engine.domain.invariants.exceptions import NotFoundError
from content_engine.domain.positions import CANONICAL_POSITIONS, normalize_position
from content_engine.models.section import Section
from content_engine.store.section_store import SectionStore

# Read-only queries used by the page renderer and navigation menus.


def _slot_rank(section: Section) -> int:
    return CANONICAL_POSITIONS.index(normalize_position(section.position_slot))


def _visible(section: Section, admin: bool) -> bool:
    return admin or section.is_published is not False


def list_sections(
    page_key: str,
    *,
    admin: bool = False,
    store: Optional[SectionStore] = None,
) -> List[Section]:
    """
    Standalone sections of a page, sorted by (positionSlot, createdAt).

    Legacy rows may still hold non-canonical slots, so the sort key is
    normalized here rather than in SQL.
    """
    store = store or SectionStore()
    page_key = (page_key or "").strip().lower()
    if not page_key:
        return []

    sections = store.find(page_key=page_key, is_full_page=False, is_content_override=False)
    sections = [s for s in sections if _visible(s, admin)]
    # find() is already ordered by created_at, and sorted() is stable.
    return sorted(sections, key=_slot_rank)


def list_nav_entries(*, store: Optional[SectionStore] = None) -> List[Section]:
    store = store or SectionStore()
    entries = store.find(show_in_nav=True, is_published=True, is_content_override=False)
    return sorted(entries, key=lambda s: (s.nav_category or "", s.heading or ""))


def get_full_page(
    slug: str,
    *,
    admin: bool = False,
    store: Optional[SectionStore] = None,
) -> Section:
    store = store or SectionStore()
    page = store.find_one(is_full_page=True, slug=(slug or "").strip().lower())
    if page is None or not _visible(page, admin):
        raise NotFoundError(f"Page '{slug}' not found")
    return page


def get_section(
    section_id: str,
    *,
    admin: bool = False,
    store: Optional[SectionStore] = None,
) -> Section:
    store = store or SectionStore()
    section = store.get(section_id)
    if section is None or section.is_content_override or not _visible(section, admin):
        raise NotFoundError(f"Section {section_id} not found")
    return section
