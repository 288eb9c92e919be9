"""
Save and restore of overrides from an editor session.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from bs4 import Tag

from .applier import apply_content
from .content import OverrideContent, content_to_payload, snapshot_original
from .selector import locate_node, replace_button_id, resolves_to
from .session import EditorSession

logger = logging.getLogger(__name__)

Record = Dict[str, Any]


@dataclass(frozen=True)
class RestoreResult:
    deleted: bool = False
    already_deleted: bool = False
    reload: bool = False


def save_override(
    session: EditorSession,
    gateway,
    node: Tag,
    content: OverrideContent,
) -> Record:
    """
    Persist content for node and show it.

    An override already addressing this node keeps its locator, so repeated
    edits update one record. New overrides capture the node's pre-edit state
    as originalContent.
    """
    existing = session.cache.find_for_node(session.document, node)
    if existing is not None:
        locator = existing["targetSelector"]
    else:
        locator = locate_node(session, node)
        existing = session.cache.get(locator)

    payload = content_to_payload(content)
    if existing is not None and existing.get("id"):
        saved = gateway.update_override(existing["id"], payload)
    else:
        saved = gateway.create_override({
            "targetPage": session.page_key,
            "targetSelector": locator,
            "originalContent": snapshot_original(node, content.kind),
            **payload,
        })

    session.cache.put(saved)
    apply_content(node, content)
    logger.info("saved %s override %s at %r", content.kind, saved.get("id"), locator)
    return saved


def _find_record(session: EditorSession, gateway, locator: str) -> Optional[Record]:
    record = session.cache.get(locator)
    if record is not None:
        return record
    for stored in gateway.list_overrides(session.page_key):
        if stored.get("targetSelector") == locator:
            return stored
    return None


def restore_override(session: EditorSession, gateway, locator: str) -> RestoreResult:
    """
    Remove the override stored under locator.

    Restoring is idempotent: an override that is already gone reports
    already_deleted. The page is reloaded rather than replaying
    originalContent, so the original markup comes from the renderer.
    """
    record = _find_record(session, gateway, locator)
    if record is None:
        return RestoreResult(already_deleted=True)

    result = gateway.delete_override(record["id"])
    session.cache.pop(locator)

    if result.get("alreadyDeleted"):
        return RestoreResult(already_deleted=True)
    return RestoreResult(deleted=True, reload=True)


def rebind_button(
    session: EditorSession,
    gateway,
    node: Tag,
    new_id: Optional[str] = None,
) -> Optional[Record]:
    """
    Give an editor button a new identifier and move its stored override,
    if any, to a locator that still finds it.
    """
    rebind = replace_button_id(session, node, new_id)
    record = session.cache.get(rebind.old_locator) if rebind.old_locator else None
    if record is None:
        return None

    if resolves_to(session.document, rebind.structural_locator, node):
        target = rebind.structural_locator
    else:
        target = rebind.new_locator

    updated = gateway.update_override(record["id"], {"targetSelector": target})
    session.cache.pop(rebind.old_locator)
    session.cache.put(updated)
    return updated
