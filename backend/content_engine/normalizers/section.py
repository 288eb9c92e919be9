# content_engine/normalizers/section.py
from __future__ import annotations

from typing import Any, Dict

from content_engine.domain.positions import normalize_position

# API name -> model attribute
SECTION_FIELDS = {
    "pageKey": "page_key",
    "heading": "heading",
    "body": "body",
    "imageRef": "image_ref",
    "layout": "layout",
    "positionSlot": "position_slot",
    "buttonLabel": "button_label",
    "buttonUrl": "button_url",
    "team": "team",
    "navCategory": "nav_category",
    "showInNav": "show_in_nav",
    "navAnchor": "nav_anchor",
    "isFullPage": "is_full_page",
    "slug": "slug",
    "isPublished": "is_published",
}

OVERRIDE_FIELDS = {
    "targetPage": "target_page",
    "targetSelector": "target_selector",
    "contentType": "content_type",
    "overrideType": "override_type",
    "originalContent": "original_content",
    "isActive": "is_active",
    "body": "body",
    "heading": "heading",
    "imageRef": "image_ref",
    "buttonLabel": "button_label",
    "buttonUrl": "button_url",
}

BOOLEAN_FIELDS = {"show_in_nav", "is_full_page", "is_published", "is_active"}

# Legacy field names still sent by older admin tooling
LEGACY_ALIASES = {
    "page": "pageKey",
    "text": "body",
    "image": "imageRef",
    "position": "positionSlot",
}


def coerce_bool(value: Any) -> bool:
    # Multipart forms deliver booleans as strings.
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def _parse(data: Dict[str, Any], mapping: Dict[str, str]) -> Dict[str, Any]:
    data = dict(data)
    for legacy, canonical in LEGACY_ALIASES.items():
        if legacy in data and data.get(canonical) is None:
            data[canonical] = data[legacy]

    parsed: Dict[str, Any] = {}
    for api_name, attr in mapping.items():
        if api_name not in data:
            continue
        value = data[api_name]
        if attr in BOOLEAN_FIELDS and value is not None:
            value = coerce_bool(value)
        parsed[attr] = value
    return parsed


def parse_section_payload(data: Dict[str, Any]) -> Dict[str, Any]:
    """Translate an API payload into model attribute names."""
    return _parse(data, SECTION_FIELDS)


def parse_override_payload(data: Dict[str, Any]) -> Dict[str, Any]:
    return _parse(data, OVERRIDE_FIELDS)


def _timestamp(value):
    return value.isoformat() if value is not None else None


def normalize_section(section, admin: bool = False) -> Dict[str, Any]:
    """
    Serialize a standalone section or full page.

    Legacy position values are rewritten at read time, so clients only
    ever see canonical slots.
    """
    data = {
        "id": section.id,
        "pageKey": section.page_key,
        "heading": section.heading,
        "body": section.body,
        "imageRef": section.image_ref or "",
        "layout": section.layout or "standard",
        "positionSlot": normalize_position(section.position_slot),
        "buttonLabel": section.button_label,
        "buttonUrl": section.button_url,
        "team": section.team or [],
        "navCategory": section.nav_category,
        "showInNav": bool(section.show_in_nav),
        "navAnchor": section.nav_anchor,
        "isFullPage": bool(section.is_full_page),
        "slug": section.slug,
        "isPublished": section.is_published is not False,
        "isContentOverride": False,
        "headingBlockId": section.heading_block_id,
        "contentBlockId": section.content_block_id,
        "imageBlockId": section.image_block_id,
        "buttonBlockId": section.button_block_id,
        "createdAt": _timestamp(section.created_at),
        "updatedAt": _timestamp(section.updated_at),
    }

    if section.is_content_override:
        data.update(normalize_override(section))

    if admin:
        data["role"] = section.role

    return data


def normalize_override(section) -> Dict[str, Any]:
    return {
        "id": section.id,
        "isContentOverride": True,
        "targetPage": section.target_page,
        "targetSelector": section.target_selector,
        "contentType": section.content_type,
        "overrideType": section.override_type or "replace",
        "originalContent": section.original_content,
        "isActive": section.is_active is not False,
        "heading": section.heading,
        "body": section.body,
        "imageRef": section.image_ref or "",
        "buttonLabel": section.button_label,
        "buttonUrl": section.button_url,
        "createdAt": _timestamp(section.created_at),
        "updatedAt": _timestamp(section.updated_at),
    }


def normalize_nav_entry(section) -> Dict[str, Any]:
    return {
        "id": section.id,
        "heading": section.heading,
        "navCategory": section.nav_category,
        "pageKey": section.page_key,
        "navAnchor": section.nav_anchor,
        "isFullPage": bool(section.is_full_page),
        "slug": section.slug,
    }
