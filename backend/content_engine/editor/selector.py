"""
Locators for live document nodes.

A locator is a CSS selector persisted with an override and resolved again on
every page load. Marker attributes give the most stable locators; otherwise
the node is described by its path from <body>.
"""
from __future__ import annotations

import logging
import re
from typing import List, NamedTuple, Optional, Tuple

import soupsieve
from bs4 import BeautifulSoup, Tag

from content_engine.domain.invariants.exceptions import SelectorAmbiguityError
from .markers import (
    BLOCK_ID_ATTR,
    BUTTON_ID_ATTR,
    SECTION_ID_ATTR,
    assign_block_marker,
    is_reserved_class,
    new_marker,
)

logger = logging.getLogger(__name__)

_BUTTON_LOCATOR = re.compile(
    r'^(?:\[%s="(?:[^"\\]|\\.)*"\]\s+)?\[%s="((?:[^"\\]|\\.)*)"\]$'
    % (SECTION_ID_ATTR, BUTTON_ID_ATTR)
)


class ButtonRebind(NamedTuple):
    old_locator: Optional[str]
    structural_locator: str
    new_locator: str


def _quote(value: str) -> str:
    return '"%s"' % value.replace("\\", "\\\\").replace('"', '\\"')


def attribute_locator(node: Tag, attr: str) -> Optional[str]:
    """
    [attr="value"] for node, scoped by the nearest enclosing section marker
    when there is one.
    """
    value = node.get(attr)
    if not value:
        return None

    locator = f"[{attr}={_quote(value)}]"
    section = node.find_parent(attrs={SECTION_ID_ATTR: True})
    if section is not None:
        locator = f"[{SECTION_ID_ATTR}={_quote(section[SECTION_ID_ATTR])}] {locator}"
    return locator


def button_id_from_locator(locator: str) -> Optional[str]:
    """The identifier of a bare button-id locator, or None for any other form."""
    match = _BUTTON_LOCATOR.match((locator or "").strip())
    if match is None:
        return None
    return re.sub(r"\\(.)", r"\1", match.group(1))


def is_button_locator(locator: str) -> bool:
    return button_id_from_locator(locator) is not None


def _same_tag_siblings(node: Tag) -> List[Tag]:
    parent = node.parent
    if parent is None:
        return [node]
    return [child for child in parent.find_all(node.name, recursive=False)]


def _segment(node: Tag) -> Tuple[str, bool]:
    """One path segment for node, and whether the walk can stop here."""
    node_id = node.get("id")
    if node_id:
        return f"{node.name}#{soupsieve.escape(node_id)}", True

    for class_name in node.get("class") or []:
        if not is_reserved_class(class_name):
            return f"{node.name}.{soupsieve.escape(class_name)}", False

    siblings = _same_tag_siblings(node)
    if len(siblings) > 1:
        position = next(i for i, sibling in enumerate(siblings, start=1) if sibling is node)
        return f"{node.name}:nth-of-type({position})", False

    return node.name, False


def structural_selector(node: Tag) -> str:
    """
    Path from <body> (or the nearest element with an id) down to node.

    The walk only follows parent links and runs at most once per ancestor,
    so malformed trees cannot keep it going.
    """
    segments: List[str] = []
    current: Optional[Tag] = node
    limit = sum(1 for _ in node.parents) + 1

    for _ in range(limit):
        if current is None or isinstance(current, BeautifulSoup) or current.name == "html":
            break
        segment, anchored = _segment(current)
        segments.append(segment)
        if anchored or current.name == "body":
            break
        current = current.parent

    return " ".join(reversed(segments))


def resolve(document: BeautifulSoup, locator: str) -> List[Tag]:
    """All nodes matching locator. Invalid selectors match nothing."""
    if not locator:
        return []
    try:
        return document.select(locator)
    except (soupsieve.SelectorSyntaxError, ValueError) as exc:
        logger.debug("unresolvable locator %r: %s", locator, exc)
        return []


def resolves_to(document: BeautifulSoup, locator: str, node: Tag) -> bool:
    matches = resolve(document, locator)
    return len(matches) == 1 and matches[0] is node


def _verify(document: BeautifulSoup, locator: str, node: Tag) -> str:
    matches = resolve(document, locator)
    if len(matches) != 1 or matches[0] is not node:
        raise SelectorAmbiguityError(
            f"Locator {locator!r} matches {len(matches)} nodes",
            selector=locator,
            matches=len(matches),
        )
    return locator


def generate_selector(session, node: Tag) -> str:
    """
    Locator for node: editor buttons by their button id, marked blocks by
    their block marker, anything else by its structural path.

    A marker shared by several nodes (copied markup) is skipped in favour of
    the path.
    """
    for attr in (BUTTON_ID_ATTR, BLOCK_ID_ATTR):
        locator = attribute_locator(node, attr)
        if locator and resolves_to(session.document, locator, node):
            return locator
    return structural_selector(node)


def locate_node(session, node: Tag) -> str:
    """
    A locator verified to resolve to exactly this node.

    When the generated locator is ambiguous the node gets a fresh block
    marker and is addressed by that instead. Raises SelectorAmbiguityError
    only when the marker fallback fails too.
    """
    locator = generate_selector(session, node)
    try:
        return _verify(session.document, locator, node)
    except SelectorAmbiguityError as exc:
        logger.warning(
            "locator %r matched %d nodes, falling back to a block marker",
            exc.selector, exc.matches,
        )

    assign_block_marker(node)
    return _verify(session.document, attribute_locator(node, BLOCK_ID_ATTR), node)


def replace_button_id(session, node: Tag, new_id: Optional[str] = None) -> ButtonRebind:
    """
    Give an editor button a new identifier.

    Returns the locator under the old identifier, the structural path (which
    does not depend on any identifier) and the locator under the new one, so
    a stored override can be re-keyed in place.
    """
    old_locator = attribute_locator(node, BUTTON_ID_ATTR)
    structural = structural_selector(node)
    node[BUTTON_ID_ATTR] = new_id or new_marker()
    return ButtonRebind(old_locator, structural, attribute_locator(node, BUTTON_ID_ATTR))
