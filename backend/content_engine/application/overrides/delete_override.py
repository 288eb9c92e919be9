from typing import Dict, Optional

from flask import current_app

from content_engine.store.section_store import SectionStore


def delete_override(
    *,
    override_id: str,
    store: Optional[SectionStore] = None,
) -> Dict[str, bool]:
    """
    Delete an override by id.

    Idempotent: a missing id (already restored, or never saved) is reported
    as {"alreadyDeleted": True} rather than an error. Ids that belong to a
    section or full page are treated as missing so this path can never remove
    one.
    """
    store = store or SectionStore()

    override = store.get(override_id)
    if override is None or not override.is_content_override:
        current_app.logger.info("override.delete id=%s already deleted", override_id)
        return {"alreadyDeleted": True}

    if not store.delete_by_id(override_id):
        return {"alreadyDeleted": True}

    return {"deleted": True}
