from typing import Any, Dict, Optional

from content_engine.domain.invariants.exceptions import InvariantViolation, NotFoundError
from content_engine.domain.invariants.section import assert_section
from content_engine.domain.positions import normalize_position
from content_engine.models.section import Section
from content_engine.normalizers.section import coerce_bool, parse_section_payload
from content_engine.store.section_store import SectionStore
from .derive import (
    apply_role_fields,
    assert_slug_available,
    assign_block_ids,
    clean_section_fields,
    derive_nav_anchor,
    write_with_retry,
)

STORE_MANAGED = {"id", "created_at", "updated_at"}


def update_section(
    *,
    section_id: str,
    data: Dict[str, Any],
    store: Optional[SectionStore] = None,
) -> Section:
    """
    Update mutable fields on a standalone section or full page.

    Design rules:
    - Only section fields are mutable; a record never changes into an override
    - No silent no-op updates
    - The anchor is kept unless navAnchor is patched or the page changes
    - Invariants revalidated on the merged record before anything is written
    """
    store = store or SectionStore()

    section = store.get(section_id)
    if section is None or section.is_content_override:
        raise NotFoundError(f"Section {section_id} not found")

    if coerce_bool(data.get("isContentOverride")):
        raise InvariantViolation(
            "A section cannot be turned into a content override",
            reason="override_via_sections",
        )

    patch = clean_section_fields(parse_section_payload(data))
    if "position_slot" in patch:
        patch["position_slot"] = normalize_position(patch["position_slot"])

    changed = sorted(
        field for field, value in patch.items()
        if getattr(section, field) != value
    )
    if not changed:
        # Explicitly fail instead of silently succeeding
        raise InvariantViolation("No valid fields provided for update", reason="no_changes")

    current = section.column_values()
    record = {**current, **patch}
    requested_anchor = patch.get("nav_anchor")
    apply_role_fields(record)

    if record["is_full_page"]:
        if record["slug"] != current["slug"]:
            assert_slug_available(store, record["slug"], exclude_id=section_id)
    else:
        page_moved = record["page_key"] != current["page_key"]
        if requested_anchor or page_moved or not current["nav_anchor"]:
            derive_nav_anchor(
                store,
                record,
                requested=requested_anchor or current["nav_anchor"],
                exclude_id=section_id,
            )

    assign_block_ids(record)
    assert_section(Section(**record))

    def write(values: Dict[str, Any]) -> Section:
        diff = {
            field: value for field, value in values.items()
            if field not in STORE_MANAGED and current.get(field) != value
        }
        updated = store.update_by_id(section_id, diff)
        if updated is None:
            raise NotFoundError(f"Section {section_id} not found")
        return updated

    return write_with_retry(write, record, requested_anchor=requested_anchor)
