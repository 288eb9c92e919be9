from typing import Optional

from flask import current_app

from content_engine.application.sections.derive import write_with_retry
from content_engine.domain.anchors import generate_nav_anchor
from content_engine.store.section_store import SectionStore
from .report import MaintenanceReport


def backfill_nav_anchors(
    *,
    apply: bool = False,
    store: Optional[SectionStore] = None,
) -> MaintenanceReport:
    """Generate anchors for standalone sections stored without one."""
    store = store or SectionStore()
    report = MaintenanceReport(name="backfill-nav-anchors", applied=apply)

    for section in store.find(is_full_page=False, is_content_override=False):
        report.scanned += 1
        if section.nav_anchor:
            continue
        if not section.page_key:
            report.record_skip(section.id, "missing_page_key")
            continue

        record = {
            "page_key": section.page_key,
            "heading": section.heading,
            "nav_anchor": generate_nav_anchor(
                store,
                page_key=section.page_key,
                heading=section.heading,
                exclude_id=section.id,
            ),
        }
        if apply:
            write_with_retry(
                lambda values, section_id=section.id: store.update_by_id(
                    section_id, {"nav_anchor": values["nav_anchor"]}
                ),
                record,
            )
        report.record_change(section.id, after=record["nav_anchor"])

    current_app.logger.info(
        "maintenance.backfill_nav_anchors applied=%s changed=%d", apply, report.changed
    )
    return report
