"""
Applies stored overrides to a live document.

Loading runs in two phases: every locator is computed and verified against
the untouched document first, then all mutations happen.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Tuple

from bs4 import BeautifulSoup, Tag
from dateutil.parser import isoparse

from .content import (
    HtmlContent,
    ImageContent,
    LinkContent,
    OverrideContent,
    TextContent,
    content_from_record,
    image_target,
    link_target,
)
from .gateway import GatewayError
from .markers import MANAGED_ATTR, ORIGINAL_HREF_ATTR, is_link_disabled
from .selector import is_button_locator, resolve, resolves_to, structural_selector
from .session import EditorSession, ResolverPhase

logger = logging.getLogger(__name__)

Record = Dict[str, Any]

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _apply_text(node: Tag, content: TextContent) -> None:
    node.string = content.text


def _apply_html(node: Tag, content: HtmlContent) -> None:
    fragment = BeautifulSoup(content.html, "html.parser")
    node.clear()
    for child in list(fragment.contents):
        node.append(child.extract())


def _apply_image(node: Tag, content: ImageContent) -> None:
    target = image_target(node)
    if target is None:
        logger.debug("image override on <%s> without an <img>", node.name)
        return
    target["src"] = content.src
    if content.alt:
        target["alt"] = content.alt


def _apply_link(node: Tag, content: LinkContent) -> None:
    target = link_target(node)
    if target is None:
        logger.debug("link override on <%s> without an <a>", node.name)
        return
    if content.label is not None:
        target.string = content.label
    # While the link is intercepted, its real destination lives in
    # data-original-href and is restored from there on exit.
    if is_link_disabled(target):
        target[ORIGINAL_HREF_ATTR] = content.href
    else:
        target["href"] = content.href


_APPLIERS: Dict[type, Callable[[Tag, Any], None]] = {
    TextContent: _apply_text,
    HtmlContent: _apply_html,
    ImageContent: _apply_image,
    LinkContent: _apply_link,
}


def apply_content(node: Tag, content: OverrideContent) -> None:
    applier = _APPLIERS.get(type(content))
    if applier is None:
        raise TypeError(f"Unhandled override content {content!r}")
    applier(node, content)
    node[MANAGED_ATTR] = "true"


def apply_override(session: EditorSession, record: Record) -> int:
    """
    Apply one override to every node its locator matches.

    A locator with no match is not an error: the target may simply not be
    rendered on this page. Returns the number of nodes changed.
    """
    if record.get("isActive") is False:
        return 0

    try:
        content = content_from_record(record)
    except ValueError as exc:
        logger.warning("skipping override %s: %s", record.get("id"), exc)
        return 0

    nodes = resolve(session.document, record.get("targetSelector"))
    if not nodes:
        logger.debug("override %s matched nothing: %r", record.get("id"), record.get("targetSelector"))
        return 0

    for node in nodes:
        apply_content(node, content)
    return len(nodes)


def _canonical_order(record: Record) -> Tuple[datetime, str]:
    created = record.get("createdAt")
    created_at = isoparse(created) if created else _EPOCH
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    return (created_at, record.get("id") or "")


def apply_all(session: EditorSession, records: Iterable[Record]) -> int:
    """Apply records in (createdAt, id) order, whatever order they arrive in."""
    return sum(apply_override(session, record) for record in sorted(records, key=_canonical_order))


def _plan_legacy_upgrades(session: EditorSession) -> List[Tuple[Record, str]]:
    # Read phase: nothing in the document is mutated here.
    plans = []
    for record in session.cache.records():
        locator = record.get("targetSelector")
        if record.get("contentType") != "link" or not is_button_locator(locator):
            continue

        matches = resolve(session.document, locator)
        if len(matches) != 1:
            logger.debug("legacy button locator %r matched %d nodes", locator, len(matches))
            continue

        structural = structural_selector(matches[0])
        if structural in session.cache or not resolves_to(session.document, structural, matches[0]):
            logger.debug("no unique structural path for legacy locator %r", locator)
            continue
        plans.append((record, structural))
    return plans


def upgrade_legacy_locators(session: EditorSession, gateway) -> int:
    """
    Rewrite link overrides stored under a button identifier to the node's
    structural path, so they no longer depend on an identifier that can be
    regenerated. Failures keep the original locator.
    """
    upgraded = 0
    for record, structural in _plan_legacy_upgrades(session):
        try:
            updated = gateway.update_override(record["id"], {"targetSelector": structural})
        except GatewayError as exc:
            logger.warning("could not upgrade legacy locator %r: %s", record["targetSelector"], exc)
            continue

        session.cache.pop(record["targetSelector"])
        session.cache.put(updated)
        upgraded += 1

    return upgraded


def load_overrides(session: EditorSession, gateway, *, upgrade_legacy: bool = True) -> List[Record]:
    """
    Fetch the page's active overrides and apply them.

    A failed fetch leaves the document untouched in FETCH_FAILED; there is
    no retry.
    """
    session.phase = ResolverPhase.FETCHING
    try:
        records = gateway.list_overrides(session.page_key)
    except GatewayError as exc:
        logger.warning("override fetch for page %r failed: %s", session.page_key, exc)
        session.phase = ResolverPhase.FETCH_FAILED
        return []

    session.cache.replace_all(records)
    if upgrade_legacy:
        upgrade_legacy_locators(session, gateway)

    records = session.cache.records()
    changed = apply_all(session, records)
    session.phase = ResolverPhase.APPLIED
    logger.debug("applied %d overrides to %d nodes on %r", len(records), changed, session.page_key)
    return records
