from typing import Optional

from flask import current_app

from content_engine.application.sections.derive import OVERRIDE_ATTRS, write_with_retry
from content_engine.domain.anchors import generate_nav_anchor
from content_engine.domain.positions import normalize_position
from content_engine.store.section_store import SectionStore
from .report import MaintenanceReport


def _blank(value) -> bool:
    return value is None or not str(value).strip()


def demote_orphan_overrides(
    *,
    apply: bool = False,
    store: Optional[SectionStore] = None,
) -> MaintenanceReport:
    """
    Turn records flagged as overrides but lacking a target back into
    standalone sections.

    Such rows were written by older admin tooling; they match no node and
    hide a section from its page. Only rows that still name a page can be
    demoted, the rest are reported as skipped.
    """
    store = store or SectionStore()
    report = MaintenanceReport(name="demote-orphan-overrides", applied=apply)

    for section in store.find(is_content_override=True):
        report.scanned += 1
        if not (_blank(section.target_page) or _blank(section.target_selector)):
            continue
        if _blank(section.page_key) or _blank(section.heading):
            report.record_skip(section.id, "no_page_to_demote_into")
            continue

        patch = {attr: None for attr in OVERRIDE_ATTRS}
        patch.update(
            is_content_override=False,
            layout=section.layout or "standard",
            position_slot=normalize_position(section.position_slot),
            nav_anchor=section.nav_anchor or generate_nav_anchor(
                store,
                page_key=section.page_key,
                heading=section.heading,
                exclude_id=section.id,
            ),
        )
        if apply:
            record = {
                "page_key": section.page_key,
                "heading": section.heading,
                "nav_anchor": patch["nav_anchor"],
            }
            write_with_retry(
                lambda values, section_id=section.id, patch=patch: store.update_by_id(
                    section_id, {**patch, "nav_anchor": values["nav_anchor"]}
                ),
                record,
            )
            patch["nav_anchor"] = record["nav_anchor"]
        report.record_change(section.id, page=section.page_key, navAnchor=patch["nav_anchor"])

    current_app.logger.info(
        "maintenance.demote_orphan_overrides applied=%s changed=%d", apply, report.changed
    )
    return report
