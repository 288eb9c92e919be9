from content_engine.domain.positions import is_canonical_position
from content_engine.models.section import CONTENT_TYPES, LAYOUTS, OVERRIDE_TYPES
from .exceptions import InvariantViolation
from .layouts import STRUCTURED_BODY_VALIDATORS

OVERRIDE_FIELDS = (
    "target_page",
    "target_selector",
    "content_type",
    "override_type",
    "original_content",
    "is_active",
)


def _blank(value):
    return value is None or (isinstance(value, str) and not value.strip())


def assert_single_role(section):
    if section.is_content_override and section.is_full_page:
        raise InvariantViolation(
            "A record cannot be both an override and a full page.",
            reason="mixed_roles",
        )

    if not section.is_full_page and section.slug is not None:
        raise InvariantViolation(
            "Only full pages may carry a slug.", reason="mixed_roles"
        )

    if not section.is_content_override:
        stray = [f for f in OVERRIDE_FIELDS if getattr(section, f) is not None]
        if stray:
            raise InvariantViolation(
                f"Override fields set on a non-override record: {stray}",
                reason="mixed_roles",
            )


def assert_layout(section):
    if section.layout not in LAYOUTS:
        raise InvariantViolation(
            f"Invalid layout {section.layout!r}; expected one of {LAYOUTS}",
            reason="invalid_layout",
        )

    if section.layout == "team":
        if not section.team:
            raise InvariantViolation(
                "Team sections need at least one member.",
                reason="team_members_required",
            )
    elif section.team:
        raise InvariantViolation(
            "Team members are only valid on team layouts.",
            reason="team_requires_team_layout",
        )

    validator = STRUCTURED_BODY_VALIDATORS.get(section.layout)
    if validator is not None:
        validator(section.body)


def assert_override(section):
    if _blank(section.target_page):
        raise InvariantViolation("targetPage is required", reason="missing_target_page")
    if _blank(section.target_selector):
        raise InvariantViolation("targetSelector is required", reason="missing_target_selector")
    if section.content_type not in CONTENT_TYPES:
        raise InvariantViolation(
            f"Invalid contentType {section.content_type!r}; expected one of {CONTENT_TYPES}",
            reason="invalid_content_type",
        )
    if section.override_type not in OVERRIDE_TYPES:
        raise InvariantViolation(
            f"Invalid overrideType {section.override_type!r}; expected one of {OVERRIDE_TYPES}",
            reason="invalid_override_type",
        )
    if section.page_key is not None or section.nav_anchor is not None:
        raise InvariantViolation(
            "Overrides do not belong to a page slot.", reason="mixed_roles"
        )
    assert_override_payload(section)


def assert_override_payload(section):
    kind = section.content_type
    if kind in ("text", "html") and section.body is None:
        raise InvariantViolation(f"{kind} overrides require body", reason="missing_content")
    if kind == "image" and _blank(section.image_ref):
        raise InvariantViolation("image overrides require imageRef", reason="missing_content")
    if kind == "link" and _blank(section.button_url):
        raise InvariantViolation("link overrides require buttonUrl", reason="missing_content")


def assert_section(section):
    """
    Schema-level checks for any record, dispatched on its role.
    Single source of truth for required-field-by-role rules.
    """
    assert_single_role(section)

    if not is_canonical_position(section.position_slot):
        raise InvariantViolation(
            f"Position {section.position_slot!r} is not canonical",
            reason="invalid_position",
        )

    if section.is_content_override:
        assert_override(section)
        return

    if section.is_full_page:
        if _blank(section.slug):
            raise InvariantViolation("Full pages require a slug", reason="missing_slug")
        if section.nav_anchor is not None:
            raise InvariantViolation(
                "Full pages are addressed by slug, not anchor.", reason="mixed_roles"
            )

    if _blank(section.page_key):
        raise InvariantViolation("page is required", reason="missing_page_key")

    if _blank(section.heading):
        raise InvariantViolation("heading is required", reason="missing_heading")

    if not section.is_full_page and _blank(section.nav_anchor):
        raise InvariantViolation(
            "Sections must carry a navigation anchor", reason="missing_nav_anchor"
        )

    if not section.is_full_page and section.layout == "standard" and _blank(section.body):
        raise InvariantViolation("body is required", reason="missing_body")

    assert_layout(section)
