import json

import pytest

from content_engine.domain.invariants.exceptions import InvariantViolation
from content_engine.domain.invariants.layouts import (
    assert_list_body,
    assert_testimonial_body,
    assert_video_body,
    normalize_team_members,
)
from content_engine.domain.invariants.section import assert_section
from content_engine.models.section import Section


def section(**fields):
    values = {
        "page_key": "home",
        "heading": "Welcome",
        "body": "Hello",
        "layout": "standard",
        "position_slot": "dynamicSections7",
        "nav_anchor": "welcome",
        "is_full_page": False,
        "is_content_override": False,
    }
    values.update(fields)
    return Section(**values)


def reason_of(func, *args):
    with pytest.raises(InvariantViolation) as excinfo:
        func(*args)
    return excinfo.value.reason


def test_valid_standard_section_passes():
    assert_section(section())


@pytest.mark.parametrize("fields, reason", [
    ({"heading": "  "}, "missing_heading"),
    ({"body": ""}, "missing_body"),
    ({"page_key": None}, "missing_page_key"),
    ({"nav_anchor": None}, "missing_nav_anchor"),
    ({"layout": "carousel"}, "invalid_layout"),
    ({"position_slot": "middle"}, "invalid_position"),
    ({"slug": "stray"}, "mixed_roles"),
    ({"target_selector": "main h1"}, "mixed_roles"),
    ({"layout": "team"}, "team_members_required"),
    ({"team": [{"name": "Ada", "bio": "Engineer"}]}, "team_requires_team_layout"),
])
def test_section_rejections(fields, reason):
    assert reason_of(assert_section, section(**fields)) == reason


def test_full_page_needs_slug_but_not_body():
    page = section(is_full_page=True, slug="about-us", nav_anchor=None, body=None)
    assert_section(page)

    assert reason_of(assert_section, section(is_full_page=True, nav_anchor=None)) == "missing_slug"


def test_full_page_cannot_carry_anchor():
    page = section(is_full_page=True, slug="about-us", nav_anchor="about")
    assert reason_of(assert_section, page) == "mixed_roles"


def override(**fields):
    values = {
        "is_content_override": True,
        "target_page": "home",
        "target_selector": "main h1",
        "content_type": "text",
        "override_type": "replace",
        "body": "New",
        "position_slot": "dynamicSections7",
    }
    values.update(fields)
    return Section(**values)


@pytest.mark.parametrize("fields, reason", [
    ({"target_page": ""}, "missing_target_page"),
    ({"target_selector": None}, "missing_target_selector"),
    ({"content_type": "video"}, "invalid_content_type"),
    ({"override_type": "merge"}, "invalid_override_type"),
    ({"page_key": "home"}, "mixed_roles"),
    ({"is_full_page": True}, "mixed_roles"),
    ({"content_type": "image", "image_ref": ""}, "missing_content"),
    ({"content_type": "link", "button_url": None}, "missing_content"),
])
def test_override_rejections(fields, reason):
    assert reason_of(assert_section, override(**fields)) == reason


def test_valid_overrides_pass():
    assert_section(override())
    assert_section(override(content_type="image", image_ref="/uploads/a.png", body=None))
    assert_section(override(content_type="link", button_url="/contact", button_label="Contact"))


def test_list_body():
    assert_list_body(json.dumps({"items": ["One", "Two"], "listType": "ordered"}))
    assert reason_of(assert_list_body, json.dumps({"items": []})) == "malformed_body"
    assert reason_of(assert_list_body, json.dumps({"items": ["ok", ""]})) == "malformed_body"
    assert reason_of(assert_list_body, json.dumps({"items": ["a"], "listType": "dl"})) == "malformed_body"
    assert reason_of(assert_list_body, "not json") == "malformed_body"


def test_testimonial_body():
    assert_testimonial_body(json.dumps({"quote": "Great", "author": "Sam", "rating": 5}))
    assert reason_of(assert_testimonial_body, json.dumps({"quote": "Great"})) == "malformed_body"
    assert reason_of(
        assert_testimonial_body, json.dumps({"quote": "Great", "author": "Sam", "rating": 6})
    ) == "malformed_body"
    assert reason_of(
        assert_testimonial_body, json.dumps({"quote": "Great", "author": "Sam", "rating": True})
    ) == "malformed_body"


@pytest.mark.parametrize("url", [
    "/videos/intro.mp4",
    "https://cdn.example.com/media/intro.webm",
    "/videos/clip.OGG",
])
def test_video_body_accepts(url):
    assert_video_body(json.dumps({"videoUrl": url}))


@pytest.mark.parametrize("url", [
    "/videos/intro.avi",
    "http://cdn.example.com/intro.mp4",
    "/media/intro.mp4",
    "",
])
def test_video_body_rejects(url):
    assert reason_of(assert_video_body, json.dumps({"videoUrl": url})) == "malformed_body"


def test_team_members_are_trimmed_and_validated():
    members = normalize_team_members(json.dumps([
        {"name": " Ada ", "bio": "Engineer", "role": "CTO", "quote": "  "},
    ]))
    assert members == [{"name": "Ada", "bio": "Engineer", "role": "CTO"}]

    assert normalize_team_members(None) is None
    assert reason_of(normalize_team_members, [{"name": "Ada"}]) == "invalid_team_member"
    assert reason_of(normalize_team_members, "{oops") == "invalid_team_member"
    assert reason_of(normalize_team_members, {"name": "Ada"}) == "invalid_team_member"
