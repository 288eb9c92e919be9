from typing import Any, Dict, Optional

from content_engine.domain.invariants.exceptions import (
    ConflictError,
    NotFoundError,
    UniqueConstraintError,
)
from content_engine.domain.invariants.section import assert_section
from content_engine.models.section import Section
from content_engine.store.section_store import SectionStore
from .save_override import CONTENT_ATTRS, clean_override_fields

ALLOWED_UPDATE_FIELDS = set(CONTENT_ATTRS) | {"target_selector"}


def update_override(
    *,
    override_id: str,
    data: Dict[str, Any],
    store: Optional[SectionStore] = None,
) -> Section:
    """
    Rewrite an override's content and/or its locator.

    The target page and the originalContent snapshot are fixed at creation.
    Re-sending identical content is accepted and leaves the record untouched.
    """
    store = store or SectionStore()

    override = store.get(override_id)
    if override is None or not override.is_content_override:
        raise NotFoundError(f"Override {override_id} not found")

    fields = clean_override_fields(data)
    patch = {
        field: value for field, value in fields.items()
        if field in ALLOWED_UPDATE_FIELDS and getattr(override, field) != value
    }
    if not patch:
        return override

    assert_section(Section(**{**override.column_values(), **patch}))

    try:
        updated = store.update_by_id(override_id, patch)
    except UniqueConstraintError as exc:
        raise ConflictError(
            f"Another override already targets {patch.get('target_selector')!r}",
            reason="target_selector_conflict",
        ) from exc

    if updated is None:
        raise NotFoundError(f"Override {override_id} not found")
    return updated
