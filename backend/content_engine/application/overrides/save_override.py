from typing import Any, Dict, Optional, Tuple

from flask import current_app

from content_engine.domain.invariants.exceptions import ConflictError, UniqueConstraintError
from content_engine.domain.invariants.section import assert_section
from content_engine.domain.positions import DEFAULT_POSITION
from content_engine.models.section import Section
from content_engine.normalizers.section import parse_override_payload
from content_engine.store.section_store import SectionStore

# Fields an existing override may have rewritten by a later save.
CONTENT_ATTRS = ("content_type", "override_type", "is_active", "heading", "body", "image_ref", "button_label", "button_url")


def clean_override_fields(data: Dict[str, Any]) -> Dict[str, Any]:
    fields = {
        name: value.strip() if isinstance(value, str) and name != "body" else value
        for name, value in parse_override_payload(data).items()
    }
    if isinstance(fields.get("target_page"), str):
        fields["target_page"] = fields["target_page"].lower()
    if "image_ref" in fields and fields["image_ref"] is None:
        fields["image_ref"] = ""
    if fields.get("override_type") in (None, ""):
        fields.pop("override_type", None)
    return fields


def override_record(fields: Dict[str, Any]) -> Dict[str, Any]:
    """Full column set for a new override; section-only fields stay empty."""
    record = {
        "override_type": "replace",
        "is_active": True,
        "image_ref": "",
        **fields,
    }
    record.update(
        is_content_override=True,
        page_key=None,
        nav_anchor=None,
        is_full_page=False,
        slug=None,
        team=None,
        position_slot=DEFAULT_POSITION,
    )
    return record


def _apply_to_existing(store: SectionStore, existing: Section, record: Dict[str, Any]) -> Section:
    # originalContent belongs to the first save only.
    patch = {
        attr: record[attr] for attr in CONTENT_ATTRS
        if attr in record and getattr(existing, attr) != record[attr]
    }
    if existing.original_content is None and record.get("original_content") is not None:
        patch["original_content"] = record["original_content"]

    assert_section(Section(**{**existing.column_values(), **patch}))

    if not patch:
        return existing
    return store.update_by_id(existing.id, patch)


def save_override(
    *,
    data: Dict[str, Any],
    store: Optional[SectionStore] = None,
) -> Tuple[Section, bool]:
    """
    Upsert the override for (targetPage, targetSelector).

    Responsibilities:
    - Validate required fields and enums
    - Create on first save, capturing originalContent
    - Update content in place on later saves
    - Fall back to an update once when a concurrent create won the race

    Returns the persisted record and whether it was created.
    """
    store = store or SectionStore()

    record = override_record(clean_override_fields(data))
    assert_section(Section(**record))

    key = {
        "is_content_override": True,
        "target_page": record["target_page"],
        "target_selector": record["target_selector"],
    }

    existing = store.find_one(**key)
    if existing is not None:
        return _apply_to_existing(store, existing, record), False

    try:
        return store.create(record), True
    except UniqueConstraintError as exc:
        existing = store.find_one(**key)
        if existing is None:
            raise ConflictError(str(exc), reason=exc.reason) from exc
        current_app.logger.warning(
            "override create raced on %s %r, updating %s instead",
            record["target_page"], record["target_selector"], existing.id,
        )
        return _apply_to_existing(store, existing, record), False
