import io
import json

import pytest

from content_engine.application.sections import derive
from content_engine.store.section_store import SectionStore


def error_reason(response):
    return response.get_json()["reason"]


# ------------------------
# Create
# ------------------------

def test_create_section_derives_position_anchor_and_block_ids(create_section):
    section = create_section(pageKey=" About ", heading="Meet Our Team!!", positionSlot="middle")

    assert section["pageKey"] == "about"
    assert section["positionSlot"] == "dynamicSections3"
    assert section["navAnchor"] == "meet-our-team"
    assert section["layout"] == "standard"
    assert section["headingBlockId"] and section["contentBlockId"]
    assert section["imageBlockId"] is None
    assert section["buttonBlockId"] is None
    assert section["isContentOverride"] is False
    assert section["role"] == "section"


def test_duplicate_heading_on_same_page_gets_suffixed_anchor(create_section):
    first = create_section(pageKey="about", heading="Meet Our Team!!")
    second = create_section(pageKey="about", heading="Meet Our Team!!")
    other_page = create_section(pageKey="home", heading="Meet Our Team!!")

    assert first["navAnchor"] == "meet-our-team"
    assert second["navAnchor"].startswith("meet-our-team-")
    assert second["navAnchor"] != first["navAnchor"]
    assert other_page["navAnchor"] == "meet-our-team"


def test_legacy_field_names_are_accepted(create_section):
    section = create_section(
        pageKey=None, page="contact", heading="Visit", body=None, text="Find us", position="top"
    )

    assert section["pageKey"] == "contact"
    assert section["body"] == "Find us"
    assert section["positionSlot"] == "dynamicSections1"


def test_button_and_image_get_block_ids(create_section):
    section = create_section(
        imageRef="/uploads/a.png", buttonLabel="Book now", buttonUrl="/book"
    )

    assert section["imageBlockId"]
    assert section["buttonBlockId"]


def test_slug_is_dropped_from_standalone_sections(create_section):
    section = create_section(slug="sneaky")

    assert section["slug"] is None
    assert section["isFullPage"] is False


def test_full_page_is_addressed_by_slug(client, create_section):
    page = create_section(isFullPage=True, pageKey=None, slug="About Us", heading="About us")

    assert page["slug"] == "about-us"
    assert page["pageKey"] == "about-us"
    assert page["navAnchor"] is None
    assert page["role"] == "full_page"

    response = client.get("/api/v1/pages/about-us")
    assert response.status_code == 200
    assert response.get_json()["page"]["id"] == page["id"]


def test_duplicate_full_page_slug_is_rejected(client, admin_headers, create_section):
    create_section(isFullPage=True, slug="about-us", heading="About us")

    response = client.post(
        "/api/v1/sections",
        json={"isFullPage": True, "slug": "about-us", "heading": "Another about page"},
        headers=admin_headers,
    )

    assert response.status_code == 409
    assert error_reason(response) == "slug_conflict"
    page = client.get("/api/v1/pages/about-us").get_json()["page"]
    assert page["heading"] == "About us"


def test_structured_layouts(create_section, client, admin_headers):
    listing = create_section(layout="list", body={"items": ["Maths", "Physics"]})
    assert json.loads(listing["body"])["items"] == ["Maths", "Physics"]

    team = create_section(
        layout="team",
        body="",
        heading="Our tutors",
        team=[{"name": "Ada", "bio": "Maths tutor", "image": "/uploads/ada.png"}],
    )
    assert team["team"] == [{"name": "Ada", "bio": "Maths tutor", "image": "/uploads/ada.png"}]

    response = client.post(
        "/api/v1/sections",
        json={"pageKey": "home", "heading": "Clip", "layout": "video",
              "body": {"videoUrl": "/videos/intro.avi"}},
        headers=admin_headers,
    )
    assert response.status_code == 400
    assert error_reason(response) == "malformed_body"


def test_multipart_upload_stores_image(client, admin_headers, app):
    response = client.post(
        "/api/v1/sections",
        data={
            "pageKey": "home",
            "heading": "Gallery",
            "body": "Photos",
            "showInNav": "true",
            "image": (io.BytesIO(b"\x89PNG fake"), "photo.png"),
        },
        headers=admin_headers,
        content_type="multipart/form-data",
    )

    assert response.status_code == 201, response.get_json()
    section = response.get_json()["section"]
    assert section["imageRef"].startswith("/uploads/")
    assert section["imageRef"].endswith(".png")
    assert section["imageBlockId"]
    assert section["showInNav"] is True


def test_multipart_override_flag_false_is_accepted(client, admin_headers):
    response = client.post(
        "/api/v1/sections",
        data={"pageKey": "home", "heading": "Form", "body": "x", "isContentOverride": "false"},
        headers=admin_headers,
        content_type="multipart/form-data",
    )

    assert response.status_code == 201, response.get_json()
    assert response.get_json()["section"]["isContentOverride"] is False


def test_multipart_override_flag_true_is_rejected(client, admin_headers):
    response = client.post(
        "/api/v1/sections",
        data={"pageKey": "home", "heading": "Form", "body": "x", "isContentOverride": "true"},
        headers=admin_headers,
        content_type="multipart/form-data",
    )

    assert response.status_code == 400
    assert error_reason(response) == "override_via_sections"


def test_upload_rejects_non_images(client, admin_headers):
    response = client.post(
        "/api/v1/sections",
        data={"pageKey": "home", "heading": "Bad", "body": "x",
              "image": (io.BytesIO(b"MZ"), "tool.exe")},
        headers=admin_headers,
        content_type="multipart/form-data",
    )

    assert response.status_code == 400
    assert error_reason(response) == "invalid_image"


# ------------------------
# Validation and auth
# ------------------------

def post(client, headers, **payload):
    return client.post("/api/v1/sections", json=payload, headers=headers)


def test_validation_reasons(client, admin_headers):
    cases = [
        ({"pageKey": "home", "heading": "No body"}, "missing_body"),
        ({"pageKey": "home", "body": "No heading"}, "missing_heading"),
        ({"heading": "No page", "body": "x"}, "missing_page_key"),
        ({"pageKey": "home", "heading": "H", "body": "b", "layout": "carousel"}, "invalid_layout"),
        ({"pageKey": "home", "heading": "H", "layout": "team", "team": []}, "team_members_required"),
        ({"pageKey": "home", "heading": "H", "layout": "team",
          "team": [{"name": "Ada"}]}, "invalid_team_member"),
        ({"pageKey": "home", "heading": "H", "body": "b",
          "team": [{"name": "Ada", "bio": "x"}]}, "team_requires_team_layout"),
        ({"isFullPage": True, "heading": "No slug"}, "missing_slug"),
        ({"pageKey": "home", "heading": "H", "body": "b", "isContentOverride": True},
         "override_via_sections"),
    ]
    for payload, reason in cases:
        response = post(client, admin_headers, **payload)
        assert response.status_code == 400, payload
        assert error_reason(response) == reason, payload


def test_writes_require_a_token(client):
    response = post(client, {}, pageKey="home", heading="H", body="b")

    assert response.status_code == 401
    assert error_reason(response) == "missing_token"


def test_writes_require_admin_role(client, reader_headers):
    response = post(client, reader_headers, pageKey="home", heading="H", body="b")

    assert response.status_code == 403
    assert error_reason(response) == "insufficient_role"


def test_garbage_token_is_rejected(client):
    response = post(client, {"Authorization": "Bearer nope"}, pageKey="home", heading="H", body="b")

    assert response.status_code == 401
    assert error_reason(response) == "invalid_token"


# ------------------------
# Reads
# ------------------------

def test_list_sections_orders_by_slot(client, create_section):
    low = create_section(heading="Low", positionSlot="dynamicSections7")
    top = create_section(heading="Top", positionSlot="top")
    mid = create_section(heading="Mid", positionSlot="dynamicSections4")
    create_section(heading="Elsewhere", pageKey="about")
    create_section(isFullPage=True, slug="home-page", pageKey="home", heading="Full page")

    response = client.get("/api/v1/sections?page=HOME")

    ids = [s["id"] for s in response.get_json()["sections"]]
    assert ids == [top["id"], mid["id"], low["id"]]


def test_unpublished_sections_are_hidden_from_readers(
    client, create_section, reader_headers, admin_headers
):
    visible = create_section(heading="Visible")
    hidden = create_section(heading="Hidden", isPublished=False)

    anonymous = client.get("/api/v1/sections?page=home").get_json()["sections"]
    reader = client.get("/api/v1/sections?page=home", headers=reader_headers).get_json()["sections"]
    admin = client.get("/api/v1/sections?page=home", headers=admin_headers).get_json()["sections"]

    assert [s["id"] for s in anonymous] == [visible["id"]]
    assert [s["id"] for s in reader] == [visible["id"]]
    assert {s["id"] for s in admin} == {visible["id"], hidden["id"]}

    assert client.get(f"/api/v1/sections/{hidden['id']}").status_code == 404
    assert client.get(f"/api/v1/sections/{hidden['id']}", headers=admin_headers).status_code == 200


def test_unpublished_full_page_is_admin_only(client, create_section, admin_headers):
    create_section(isFullPage=True, slug="draft-page", heading="Draft", isPublished=False)

    assert client.get("/api/v1/pages/draft-page").status_code == 404
    assert client.get("/api/v1/pages/draft-page", headers=admin_headers).status_code == 200


def test_navigation_entries(client, create_section):
    create_section(heading="Pricing", navCategory="Services", showInNav=True)
    create_section(heading="About", navCategory="Company", showInNav=True)
    create_section(heading="Tutoring", navCategory="Services", showInNav=True)
    create_section(heading="Secret", navCategory="Company", showInNav=True, isPublished=False)
    create_section(heading="Not in nav")

    entries = client.get("/api/v1/navigation").get_json()["entries"]

    assert [(e["navCategory"], e["heading"]) for e in entries] == [
        ("Company", "About"),
        ("Services", "Pricing"),
        ("Services", "Tutoring"),
    ]
    assert entries[0]["navAnchor"] == "about"


# ------------------------
# Update and delete
# ------------------------

def put(client, headers, section_id, **payload):
    return client.put(f"/api/v1/sections/{section_id}", json=payload, headers=headers)


def test_update_keeps_anchor_and_block_ids(client, admin_headers, create_section):
    section = create_section(heading="Welcome")

    response = put(client, admin_headers, section["id"], heading="Welcome back", positionSlot="bottom")

    assert response.status_code == 200
    updated = response.get_json()["section"]
    assert updated["heading"] == "Welcome back"
    assert updated["positionSlot"] == "dynamicSections7"
    assert updated["navAnchor"] == section["navAnchor"]
    assert updated["headingBlockId"] == section["headingBlockId"]
    assert updated["contentBlockId"] == section["contentBlockId"]


def test_update_regenerates_anchor_when_requested(client, admin_headers, create_section):
    create_section(heading="Taken")
    section = create_section(heading="Welcome")

    response = put(client, admin_headers, section["id"], navAnchor="Taken")

    anchor = response.get_json()["section"]["navAnchor"]
    assert anchor.startswith("taken-")


def test_update_adds_button_block_id(client, admin_headers, create_section):
    section = create_section()

    response = put(client, admin_headers, section["id"], buttonLabel="Go", buttonUrl="/go")

    assert response.get_json()["section"]["buttonBlockId"]


def test_noop_update_is_rejected(client, admin_headers, create_section):
    section = create_section(heading="Same")

    response = put(client, admin_headers, section["id"], heading="Same")

    assert response.status_code == 400
    assert error_reason(response) == "no_changes"


def test_update_revalidates(client, admin_headers, create_section):
    section = create_section()

    response = put(client, admin_headers, section["id"], body="")

    assert response.status_code == 400
    assert error_reason(response) == "missing_body"
    fetched = client.get(f"/api/v1/sections/{section['id']}").get_json()["section"]
    assert fetched["body"] == section["body"]


def test_update_slug_conflict(client, admin_headers, create_section):
    create_section(isFullPage=True, slug="taken", heading="Taken")
    page = create_section(isFullPage=True, slug="free", heading="Free")

    response = put(client, admin_headers, page["id"], slug="taken")

    assert response.status_code == 409
    assert error_reason(response) == "slug_conflict"


def test_update_missing_section(client, admin_headers):
    response = put(client, admin_headers, "missing", heading="x")

    assert response.status_code == 404


def test_delete_section(client, admin_headers, create_section):
    section = create_section()

    first = client.delete(f"/api/v1/sections/{section['id']}", headers=admin_headers)
    second = client.delete(f"/api/v1/sections/{section['id']}", headers=admin_headers)

    assert first.status_code == 200
    assert first.get_json() == {"deleted": True}
    assert second.status_code == 404


def test_health_reports_database(client):
    response = client.get("/api/v1/health")

    assert response.status_code == 200
    assert response.get_json() == {
        "status": "ok", "service": "content-engine", "database": "ok",
    }


# ------------------------
# Anchor races
# ------------------------

@pytest.fixture
def stale_probe(monkeypatch):
    """Make every existence probe miss, as when another writer commits first."""
    monkeypatch.setattr(SectionStore, "exists", lambda self, **filters: False)


def test_anchor_collision_at_write_is_retried_with_suffix(create_section, stale_probe):
    first = create_section(pageKey="about", heading="Meet Our Team!!")
    second = create_section(pageKey="about", heading="Meet Our Team!!")

    assert first["navAnchor"] == "meet-our-team"
    assert second["navAnchor"].startswith("meet-our-team-")
    assert second["navAnchor"] != first["navAnchor"]


def test_second_anchor_collision_is_a_conflict(
    client, admin_headers, create_section, stale_probe, monkeypatch
):
    monkeypatch.setattr(derive, "time_suffix", lambda: "abc123")
    create_section(pageKey="about", heading="Meet Our Team!!", navAnchor="meet-our-team")
    create_section(pageKey="about", heading="Other", navAnchor="meet-our-team-abc123")

    response = post(client, admin_headers, pageKey="about", heading="Meet Our Team!!", body="x")

    assert response.status_code == 409
    assert error_reason(response) == "nav_anchor_conflict"
    listed = client.get("/api/v1/sections?page=about").get_json()["sections"]
    assert len(listed) == 2
