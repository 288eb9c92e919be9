from typing import Any, Dict, Optional

from content_engine.domain.invariants.exceptions import InvariantViolation
from content_engine.domain.invariants.section import assert_section
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


def create_section(
    *,
    data: Dict[str, Any],
    store: Optional[SectionStore] = None,
) -> Section:
    """
    Create a standalone section or a full page.

    Edge cases handled:
    - Legacy position values (normalized before insert)
    - Duplicate heading on the same page (anchor suffixed)
    - Duplicate full-page slug (conflict)
    - Overrides are rejected here; they go through save_override
    """
    store = store or SectionStore()

    if coerce_bool(data.get("isContentOverride")):
        raise InvariantViolation(
            "Content overrides are saved through the overrides endpoint",
            reason="override_via_sections",
        )

    record = {
        "layout": "standard",
        "image_ref": "",
        "is_full_page": False,
        "is_published": True,
        "show_in_nav": False,
        "team": None,
    }
    record.update(clean_section_fields(parse_section_payload(data)))
    requested_anchor = record.pop("nav_anchor", None)
    apply_role_fields(record)

    assert_slug_available(store, record.get("slug"))
    derive_nav_anchor(store, record, requested=requested_anchor)
    assign_block_ids(record)

    assert_section(Section(**record))

    return write_with_retry(store.create, record, requested_anchor=requested_anchor)
