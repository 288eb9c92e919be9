import itertools

import pytest

from content_engine.editor.applier import apply_all, apply_override, load_overrides
from content_engine.editor.content import (
    HtmlContent,
    ImageContent,
    LinkContent,
    TextContent,
    content_from_record,
    content_to_payload,
    content_type_for,
    snapshot_original,
)
from content_engine.editor.gateway import GatewayError
from content_engine.editor.markers import MANAGED_ATTR, disable_link, enable_link
from content_engine.editor.session import EditorSession, ResolverPhase

PAGE = """
<html><body>
  <main>
    <h1>Old title</h1>
    <p class="intro">Old <em>intro</em></p>
    <figure><img src="/old.png" alt="Old"></figure>
    <div class="cta"><a data-ve-button-id="btn-1" href="/old">Old link</a></div>
    <ul><li>a</li><li>b</li></ul>
  </main>
</body></html>
"""


def record(selector, content_type="text", created="2024-01-01T00:00:00+00:00", id="ov-1", **fields):
    data = {
        "id": id,
        "targetPage": "home",
        "targetSelector": selector,
        "contentType": content_type,
        "isActive": True,
        "createdAt": created,
    }
    data.update(fields)
    return data


class FakeGateway:
    def __init__(self, records=(), fail=False):
        self.records = [dict(r) for r in records]
        self.fail = fail
        self.updates = []

    def list_overrides(self, page_key):
        if self.fail:
            raise GatewayError("store unavailable")
        return [dict(r) for r in self.records if r["targetPage"] == page_key]

    def update_override(self, override_id, patch):
        self.updates.append((override_id, patch))
        for stored in self.records:
            if stored["id"] == override_id:
                stored.update(patch)
                return dict(stored)
        raise GatewayError("missing")


@pytest.fixture
def session():
    return EditorSession.from_html("home", PAGE)


def test_text_override(session):
    changed = apply_override(session, record("main h1", body="New title"))

    h1 = session.document.find("h1")
    assert changed == 1
    assert h1.get_text() == "New title"
    assert h1[MANAGED_ATTR] == "true"


def test_html_override_replaces_children(session):
    apply_override(session, record("p.intro", "html", body="<strong>Bold</strong> intro"))

    intro = session.document.find("p", class_="intro")
    assert intro.decode_contents() == "<strong>Bold</strong> intro"


def test_image_override_on_wrapper(session):
    apply_override(session, record("figure", "image", imageRef="/new.png", body="New alt"))

    img = session.document.find("img")
    assert img["src"] == "/new.png"
    assert img["alt"] == "New alt"


def test_image_override_keeps_alt_when_none_given(session):
    apply_override(session, record("img", "image", imageRef="/new.png", body=None))

    assert session.document.find("img")["alt"] == "Old"


def test_link_override(session):
    apply_override(session, record("div.cta a", "link", buttonUrl="/book", buttonLabel="Book"))

    link = session.document.find("a")
    assert link["href"] == "/book"
    assert link.get_text() == "Book"


def test_link_override_while_link_is_intercepted(session):
    link = session.document.find("a")
    disable_link(link)

    apply_override(session, record("div.cta a", "link", buttonUrl="/book", buttonLabel="Book"))

    assert link["href"] == "#"
    assert link["data-original-href"] == "/book"
    enable_link(link)
    assert link["href"] == "/book"
    assert not link.has_attr("data-original-href")


def test_missing_target_is_skipped(session):
    before = session.render()

    assert apply_override(session, record("main h6", body="Nope")) == 0
    assert session.render() == before


def test_multiple_matches_are_all_changed(session):
    assert apply_override(session, record("ul li", body="same")) == 2
    assert [li.get_text() for li in session.document.find_all("li")] == ["same", "same"]


def test_inactive_records_are_ignored(session):
    assert apply_override(session, record("main h1", body="x", isActive=False)) == 0


def test_application_is_order_independent():
    records = [
        record("main h1", body="first", created="2024-01-01T00:00:00+00:00", id="a"),
        record("main h1", body="second", created="2024-01-02T00:00:00+00:00", id="b"),
        record("main", "html", body="<h1>Replaced</h1>", created="2024-01-03T00:00:00Z", id="c"),
        record("ul li", body="item", created="2024-01-01T00:00:00+00:00", id="d"),
    ]

    renders = set()
    for permutation in itertools.permutations(records):
        session = EditorSession.from_html("home", PAGE)
        apply_all(session, permutation)
        renders.add(session.render())

    assert len(renders) == 1


def test_load_applies_and_caches(session):
    gateway = FakeGateway([record("main h1", body="Loaded"), record("h2", id="ov-2", body="x")])

    records = load_overrides(session, gateway)

    assert session.phase is ResolverPhase.APPLIED
    assert len(records) == 2
    assert session.cache.get("main h1")["body"] == "Loaded"
    assert session.document.find("h1").get_text() == "Loaded"


def test_unknown_content_type_is_skipped_on_load(session):
    gateway = FakeGateway([
        record("main h1", content_type="video", body="ignored"),
        record("div.cta a", content_type="link", id="ov-2", buttonUrl="/book"),
    ])

    records = load_overrides(session, gateway, upgrade_legacy=False)

    assert session.phase is ResolverPhase.APPLIED
    assert len(records) == 2
    assert session.document.find("h1").get_text() == "Old title"
    assert session.document.find("a")["href"] == "/book"


def test_fetch_failure_leaves_document_untouched(session):
    before = session.render()

    records = load_overrides(session, FakeGateway(fail=True))

    assert records == []
    assert session.phase is ResolverPhase.FETCH_FAILED
    assert session.render() == before


def test_legacy_button_locator_is_upgraded(session):
    legacy = record('[data-ve-button-id="btn-1"]', "link", buttonUrl="/book", buttonLabel="Book")
    gateway = FakeGateway([legacy])

    load_overrides(session, gateway)

    assert gateway.updates == [("ov-1", {"targetSelector": "body main div.cta a"})]
    assert '[data-ve-button-id="btn-1"]' not in session.cache
    assert session.cache.get("body main div.cta a")["id"] == "ov-1"
    assert session.document.find("a")["href"] == "/book"


def test_legacy_upgrade_can_be_disabled(session):
    gateway = FakeGateway([record('[data-ve-button-id="btn-1"]', "link", buttonUrl="/x", buttonLabel="X")])

    load_overrides(session, gateway, upgrade_legacy=False)

    assert gateway.updates == []
    assert session.document.find("a")["href"] == "/x"


def test_failed_upgrade_keeps_legacy_locator(session):
    class FailingUpdates(FakeGateway):
        def update_override(self, override_id, patch):
            raise GatewayError("read only")

    legacy = record('[data-ve-button-id="btn-1"]', "link", buttonUrl="/book", buttonLabel="Book")

    load_overrides(session, FailingUpdates([legacy]))

    assert '[data-ve-button-id="btn-1"]' in session.cache
    assert session.document.find("a")["href"] == "/book"


def test_content_variants():
    assert content_from_record({"contentType": "text", "body": "t"}) == TextContent("t")
    assert content_from_record({"contentType": "html", "body": "<b>x</b>"}) == HtmlContent("<b>x</b>")
    assert content_from_record(
        {"contentType": "image", "imageRef": "/a.png", "body": ""}
    ) == ImageContent("/a.png", None)
    assert content_from_record(
        {"contentType": "link", "buttonUrl": "/a", "buttonLabel": "A"}
    ) == LinkContent("/a", "A")
    assert content_to_payload(LinkContent("/a", "A")) == {
        "contentType": "link", "buttonUrl": "/a", "buttonLabel": "A",
    }

    with pytest.raises(ValueError):
        content_from_record({"contentType": "video"})


def test_content_type_and_snapshots(session):
    doc = session.document
    assert content_type_for(doc.find("img")) == "image"
    assert content_type_for(doc.find("a")) == "link"
    assert content_type_for(doc.find("h1")) == "text"
    assert content_type_for(doc.find("p", class_="intro")) == "html"

    assert snapshot_original(doc.find("h1"), "text") == "Old title"
    assert snapshot_original(doc.find("p", class_="intro"), "html") == "Old <em>intro</em>"
    assert snapshot_original(doc.find("figure"), "image") == {"src": "/old.png", "alt": "Old"}

    link = doc.find("a")
    disable_link(link)
    assert snapshot_original(link, "link") == {"href": "/old", "text": "Old link"}
