from typing import Optional

from content_engine.domain.invariants.exceptions import NotFoundError
from content_engine.store.section_store import SectionStore


def delete_section(
    *,
    section_id: str,
    store: Optional[SectionStore] = None,
) -> None:
    """
    Hard-delete a standalone section or full page.

    Overrides are not reachable through this path; they have their own
    idempotent delete.
    """
    store = store or SectionStore()

    section = store.get(section_id)
    if section is None or section.is_content_override:
        raise NotFoundError(f"Section {section_id} not found")

    store.delete_by_id(section_id)
