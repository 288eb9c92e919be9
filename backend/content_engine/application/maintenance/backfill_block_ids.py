from typing import Optional

from flask import current_app

from content_engine.application.sections.derive import assign_block_ids
from content_engine.store.section_store import SectionStore
from .report import MaintenanceReport

BLOCK_ID_ATTRS = ("heading_block_id", "content_block_id", "image_block_id", "button_block_id")


def backfill_block_ids(
    *,
    apply: bool = False,
    store: Optional[SectionStore] = None,
) -> MaintenanceReport:
    """
    Give sections created before block identifiers existed their heading and
    content identifiers, plus image/button identifiers where they have one.
    Existing identifiers are never replaced.
    """
    store = store or SectionStore()
    report = MaintenanceReport(name="backfill-block-ids", applied=apply)

    for section in store.find(is_content_override=False):
        report.scanned += 1
        current = section.column_values()
        derived = assign_block_ids(dict(current))
        patch = {
            attr: derived[attr] for attr in BLOCK_ID_ATTRS
            if derived.get(attr) != current.get(attr)
        }
        if not patch:
            continue

        report.record_change(section.id, fields=sorted(patch))
        if apply:
            store.update_by_id(section.id, patch)

    current_app.logger.info(
        "maintenance.backfill_block_ids applied=%s changed=%d", apply, report.changed
    )
    return report
