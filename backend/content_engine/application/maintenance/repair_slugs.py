from typing import Optional

from flask import current_app

from content_engine.store.section_store import SectionStore
from .report import MaintenanceReport


def repair_slugs(
    *,
    apply: bool = False,
    store: Optional[SectionStore] = None,
) -> MaintenanceReport:
    """
    Clear slugs stored on records that are not full pages.

    Stray slugs on sections would otherwise occupy the global slug namespace.
    Full pages without a usable slug cannot be repaired automatically and
    are reported as skipped.
    """
    store = store or SectionStore()
    report = MaintenanceReport(name="repair-slugs", applied=apply)

    for section in store.find():
        report.scanned += 1
        if section.is_full_page and not section.is_content_override:
            if not (section.slug or "").strip():
                report.record_skip(section.id, "full_page_without_slug")
            continue
        if section.slug is None:
            continue

        report.record_change(section.id, before=section.slug, after=None)
        if apply:
            store.update_by_id(section.id, {"slug": None})

    current_app.logger.info(
        "maintenance.repair_slugs applied=%s changed=%d", apply, report.changed
    )
    return report
