from typing import List, Optional

from content_engine.models.section import Section
from content_engine.store.section_store import SectionStore


def list_overrides(
    page_key: str,
    *,
    store: Optional[SectionStore] = None,
) -> List[Section]:
    """Active overrides targeting a page, in (createdAt, id) order."""
    store = store or SectionStore()
    page_key = (page_key or "").strip().lower()
    if not page_key:
        return []
    return store.find(is_content_override=True, target_page=page_key, is_active=True)
