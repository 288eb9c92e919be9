"""
Derived fields for section writes.

Everything a record needs (canonical position, navigation anchor, block
identifiers) is computed before the single insert/update, so a failed write
never leaves a half-derived record behind.
"""
import json
import uuid
from typing import Any, Callable, Dict, Optional

from flask import current_app

from content_engine.domain.anchors import (
    fallback_anchor,
    generate_nav_anchor,
    slugify_heading,
    time_suffix,
)
from content_engine.domain.invariants.exceptions import (
    ConflictError,
    InvariantViolation,
    UniqueConstraintError,
)
from content_engine.domain.invariants.layouts import normalize_team_members
from content_engine.domain.positions import normalize_position
from content_engine.models.section import Section

OVERRIDE_ATTRS = (
    "target_page",
    "target_selector",
    "content_type",
    "override_type",
    "original_content",
    "is_active",
)


def new_block_id() -> str:
    return str(uuid.uuid4())


def _clean_text(value: Any) -> Any:
    return value.strip() if isinstance(value, str) else value


def clean_section_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    """Trim strings, normalize the page key, coerce team members."""
    cleaned = {name: _clean_text(value) for name, value in fields.items()}

    # Structured layouts may post their body as a JSON object.
    if isinstance(cleaned.get("body"), (dict, list)):
        cleaned["body"] = json.dumps(cleaned["body"])

    if isinstance(cleaned.get("page_key"), str):
        cleaned["page_key"] = cleaned["page_key"].lower() or None

    if "team" in cleaned:
        cleaned["team"] = normalize_team_members(cleaned["team"])

    if "layout" in cleaned and cleaned["layout"] in (None, ""):
        cleaned["layout"] = "standard"

    if "image_ref" in cleaned and cleaned["image_ref"] is None:
        cleaned["image_ref"] = ""

    if "slug" in cleaned and cleaned["slug"] is not None:
        slug = slugify_heading(cleaned["slug"])
        if not slug:
            raise InvariantViolation("slug must contain letters or digits", reason="invalid_slug")
        cleaned["slug"] = slug

    return cleaned


def apply_role_fields(record: Dict[str, Any]) -> Dict[str, Any]:
    """Clear every field that belongs to a role other than the record's own."""
    record["is_content_override"] = False
    for attr in OVERRIDE_ATTRS:
        record[attr] = None

    if record.get("is_full_page"):
        record["nav_anchor"] = None
        if not record.get("page_key") and record.get("slug"):
            record["page_key"] = record["slug"]
    else:
        record["is_full_page"] = False
        record["slug"] = None

    record["position_slot"] = normalize_position(record.get("position_slot"))
    return record


def assign_block_ids(record: Dict[str, Any]) -> Dict[str, Any]:
    """
    Generate block identifiers once; existing identifiers are never replaced.
    """
    for attr in ("heading_block_id", "content_block_id"):
        if not record.get(attr):
            record[attr] = new_block_id()

    if record.get("image_ref") and not record.get("image_block_id"):
        record["image_block_id"] = new_block_id()

    if record.get("button_label") and record.get("button_url") and not record.get("button_block_id"):
        record["button_block_id"] = new_block_id()

    return record


def assert_slug_available(store, slug: Optional[str], exclude_id: Optional[str] = None) -> None:
    if slug and store.exists(is_full_page=True, slug=slug, exclude_id=exclude_id):
        raise ConflictError(f"A page with slug '{slug}' already exists", reason="slug_conflict")


def derive_nav_anchor(store, record: Dict[str, Any], *, requested=None, exclude_id=None) -> None:
    if record.get("is_full_page"):
        return
    record["nav_anchor"] = generate_nav_anchor(
        store,
        page_key=record.get("page_key"),
        heading=record.get("heading"),
        requested=requested,
        exclude_id=exclude_id,
    )


def _resuffixed_anchor(record: Dict[str, Any], requested: Optional[str]) -> str:
    base = (
        slugify_heading(requested)
        or slugify_heading(record.get("heading"))
        or fallback_anchor()
    )
    return f"{base}-{time_suffix()}"


def write_with_retry(
    write: Callable[[Dict[str, Any]], Section],
    record: Dict[str, Any],
    *,
    requested_anchor: Optional[str] = None,
) -> Section:
    """
    Run a store write, treating a nav anchor collision at the storage layer
    as retryable once with a fresh suffix. Slug collisions are surfaced.
    """
    try:
        return write(record)
    except UniqueConstraintError as exc:
        if exc.field == "slug":
            raise ConflictError(
                f"A page with slug '{record.get('slug')}' already exists",
                reason="slug_conflict",
            ) from exc
        if exc.field != "nav_anchor" or record.get("is_full_page"):
            raise ConflictError(str(exc), reason=exc.reason) from exc

        previous = record["nav_anchor"]
        record["nav_anchor"] = _resuffixed_anchor(record, requested_anchor)
        current_app.logger.warning(
            "nav anchor %r collided on page %r, retrying as %r",
            previous, record.get("page_key"), record["nav_anchor"],
        )

    try:
        return write(record)
    except UniqueConstraintError as exc:
        raise ConflictError(
            f"Could not allocate a unique anchor on page '{record.get('page_key')}'",
            reason="nav_anchor_conflict",
        ) from exc
