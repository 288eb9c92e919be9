"""
Attributes and classes the visual editor adds to a live document.

Block markers give a node an identity that survives layout changes, so an
override can be re-found even when its structural path moves.
"""
from __future__ import annotations

import logging
import uuid

from bs4 import BeautifulSoup, Tag

logger = logging.getLogger(__name__)

BLOCK_ID_ATTR = "data-ve-block-id"
BUTTON_ID_ATTR = "data-ve-button-id"
SECTION_ID_ATTR = "data-ve-section-id"
MANAGED_ATTR = "data-ve-managed"
LINK_DISABLED_ATTR = "data-ve-link-disabled"
ORIGINAL_HREF_ATTR = "data-original-href"

RESERVED_CLASS_PREFIX = "ve-"
RESERVED_CLASSES = frozenset({"edit-overlay", "editable", "edit-mode", "visual-editor-active"})

EDITABLE_TAGS = ("h1", "h2", "h3", "h4", "h5", "h6", "p", "img", "a")
NAV_CLASS = "main-nav"


def is_reserved_class(name: str) -> bool:
    return name.startswith(RESERVED_CLASS_PREFIX) or name in RESERVED_CLASSES


def new_marker() -> str:
    return str(uuid.uuid4())


def assign_block_marker(node: Tag) -> str:
    """Give node a fresh block marker, replacing any previous one."""
    marker = new_marker()
    node[BLOCK_ID_ATTR] = marker
    return marker


def is_link_disabled(node: Tag) -> bool:
    return node.get(LINK_DISABLED_ATTR) == "true"


def disable_link(node: Tag) -> None:
    """
    Intercept navigation on a link while it is being edited. The real
    destination moves to data-original-href until the link is re-enabled.
    """
    if is_link_disabled(node):
        return
    node[ORIGINAL_HREF_ATTR] = node.get("href", "")
    node[LINK_DISABLED_ATTR] = "true"
    node["href"] = "#"


def enable_link(node: Tag) -> None:
    if not is_link_disabled(node):
        return
    node["href"] = node.get(ORIGINAL_HREF_ATTR, "")
    del node[ORIGINAL_HREF_ATTR]
    del node[LINK_DISABLED_ATTR]


def _inside_nav(node: Tag) -> bool:
    return any(
        NAV_CLASS in (parent.get("class") or [])
        for parent in node.parents
    )


def inject_block_markers(document: BeautifulSoup) -> int:
    """
    Assign block markers to every editable tag outside the main navigation.

    Nodes that already carry a marker keep it, so running this twice over
    the same document changes nothing the second time. Returns the number of
    markers added.
    """
    added = 0
    for node in document.find_all(list(EDITABLE_TAGS)):
        if node.has_attr(BLOCK_ID_ATTR) or _inside_nav(node):
            continue
        assign_block_marker(node)
        added += 1

    logger.debug("injected %d block markers", added)
    return added
