"""
Override content as a tagged variant.

Each content type has its own immutable payload class; records coming from
the store are turned into one of them by content_from_record, which rejects
unknown types instead of letting them fall through.
"""
from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from bs4 import Tag

from .markers import ORIGINAL_HREF_ATTR

HEADING_TAGS = ("h1", "h2", "h3", "h4", "h5", "h6")
MIXED_CONTENT_TAGS = ("p", "div", "span")


@dataclass(frozen=True)
class TextContent:
    text: str
    kind = "text"


@dataclass(frozen=True)
class HtmlContent:
    html: str
    kind = "html"


@dataclass(frozen=True)
class ImageContent:
    src: str
    alt: Optional[str] = None
    kind = "image"


@dataclass(frozen=True)
class LinkContent:
    href: str
    label: Optional[str] = None
    kind = "link"


OverrideContent = Union[TextContent, HtmlContent, ImageContent, LinkContent]


def content_from_record(record: Dict[str, Any]) -> OverrideContent:
    kind = record.get("contentType")
    if kind == "text":
        return TextContent(text=record.get("body") or "")
    if kind == "html":
        return HtmlContent(html=record.get("body") or "")
    if kind == "image":
        return ImageContent(src=record.get("imageRef") or "", alt=record.get("body") or None)
    if kind == "link":
        return LinkContent(href=record.get("buttonUrl") or "", label=record.get("buttonLabel"))
    raise ValueError(f"Unknown override content type {kind!r}")


def content_to_payload(content: OverrideContent) -> Dict[str, Any]:
    """Store fields for a content value (see the override storage table)."""
    if isinstance(content, TextContent):
        return {"contentType": "text", "body": content.text}
    if isinstance(content, HtmlContent):
        return {"contentType": "html", "body": content.html}
    if isinstance(content, ImageContent):
        return {"contentType": "image", "imageRef": content.src, "body": content.alt}
    if isinstance(content, LinkContent):
        return {"contentType": "link", "buttonUrl": content.href, "buttonLabel": content.label}
    raise TypeError(f"Unhandled override content {content!r}")


def image_target(node: Tag) -> Optional[Tag]:
    return node if node.name == "img" else node.find("img")


def link_target(node: Tag) -> Optional[Tag]:
    return node if node.name == "a" else node.find("a")


def content_type_for(node: Tag) -> str:
    if node.name == "img":
        return "image"
    if node.name == "a":
        return "link"
    if node.name in MIXED_CONTENT_TAGS and node.find(True) is not None:
        return "html"
    return "text"


def _without_overlays(node: Tag) -> Tag:
    clone = copy.copy(node)
    for overlay in clone.select(".edit-overlay"):
        overlay.decompose()
    return clone


def snapshot_original(node: Tag, kind: str) -> Any:
    """Pre-edit state of node, stored once as an override's originalContent."""
    if kind == "text":
        return _without_overlays(node).get_text().strip()
    if kind == "html":
        return _without_overlays(node).decode_contents().strip()
    if kind == "image":
        target = image_target(node)
        if target is None:
            return None
        return {"src": target.get("src", ""), "alt": target.get("alt", "")}
    if kind == "link":
        target = link_target(node)
        if target is None:
            return None
        return {
            "href": target.get(ORIGINAL_HREF_ATTR) or target.get("href", ""),
            "text": _without_overlays(target).get_text().strip(),
        }
    raise ValueError(f"Unknown override content type {kind!r}")
