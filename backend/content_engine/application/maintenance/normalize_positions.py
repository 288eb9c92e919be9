from typing import Optional

from flask import current_app

from content_engine.domain.positions import normalize_position
from content_engine.store.section_store import SectionStore
from .report import MaintenanceReport


def normalize_positions(
    *,
    apply: bool = False,
    store: Optional[SectionStore] = None,
) -> MaintenanceReport:
    """
    Rewrite legacy position values ("top", "middle", "dynamicSections", ...)
    to canonical slots. Running it twice changes nothing the second time.
    """
    store = store or SectionStore()
    report = MaintenanceReport(name="normalize-positions", applied=apply)

    for section in store.find():
        report.scanned += 1
        canonical = normalize_position(section.position_slot)
        if section.position_slot == canonical:
            continue

        report.record_change(section.id, before=section.position_slot, after=canonical)
        if apply:
            store.update_by_id(section.id, {"position_slot": canonical})

    current_app.logger.info(
        "maintenance.normalize_positions applied=%s changed=%d", apply, report.changed
    )
    return report
