# content_engine/store/section_store.py
from __future__ import annotations

from typing import Any, Dict, List, Optional

from flask import current_app
from sqlalchemy.exc import IntegrityError

from content_engine.domain.invariants.exceptions import UniqueConstraintError
from content_engine.extensions import db
from content_engine.models.section import Section
from content_engine.utils.transaction import transactional

# Constraint name / column fragments -> logical field, for both SQLite and
# PostgreSQL error texts.
_CONSTRAINT_FIELDS = (
    ("uq_sections_page_anchor", "nav_anchor"),
    ("sections.nav_anchor", "nav_anchor"),
    ("uq_sections_override_target", "target_selector"),
    ("sections.target_selector", "target_selector"),
    ("uq_sections_slug", "slug"),
    ("sections.slug", "slug"),
)


def _constraint_field(exc: IntegrityError) -> Optional[str]:
    text = str(exc.orig) if exc.orig is not None else str(exc)
    for fragment, field in _CONSTRAINT_FIELDS:
        if fragment in text:
            return field
    return None


class SectionStore:
    """
    Persistence for the polymorphic Section entity.

    Every write is a single unit of work. Uniqueness failures are translated
    into UniqueConstraintError so callers can tell them apart from other
    write failures.
    """

    def _query(self, filters: Dict[str, Any], exclude_id: Optional[str] = None):
        query = Section.query.filter_by(**filters)
        if exclude_id is not None:
            query = query.filter(Section.id != exclude_id)
        return query

    def get(self, section_id: str) -> Optional[Section]:
        if not section_id:
            return None
        return db.session.get(Section, section_id)

    def find(self, **filters: Any) -> List[Section]:
        return self._query(filters).order_by(Section.created_at.asc(), Section.id.asc()).all()

    def find_one(self, **filters: Any) -> Optional[Section]:
        return self._query(filters).order_by(Section.created_at.asc()).first()

    def exists(self, *, exclude_id: Optional[str] = None, **filters: Any) -> bool:
        return db.session.query(
            self._query(filters, exclude_id=exclude_id).exists()
        ).scalar()

    def create(self, fields: Dict[str, Any]) -> Section:
        section = Section()
        for name, value in fields.items():
            setattr(section, name, value)

        self._write(lambda: db.session.add(section))
        current_app.logger.info(
            "section.create id=%s role=%s page=%s",
            section.id, section.role, section.page_key or section.target_page,
        )
        return section

    def update_by_id(self, section_id: str, patch: Dict[str, Any]) -> Optional[Section]:
        section = self.get(section_id)
        if section is None:
            return None

        def apply():
            for name, value in patch.items():
                setattr(section, name, value)

        self._write(apply)
        current_app.logger.info(
            "section.update id=%s fields=%s", section.id, sorted(patch)
        )
        return section

    def delete_by_id(self, section_id: str) -> bool:
        section = self.get(section_id)
        if section is None:
            return False

        with transactional("section.delete") as session:
            session.delete(section)

        current_app.logger.info("section.delete id=%s", section_id)
        return True

    def _write(self, mutate) -> None:
        try:
            with transactional("section.write"):
                mutate()
        except IntegrityError as exc:
            field = _constraint_field(exc)
            if field is None:
                raise
            raise UniqueConstraintError(
                f"Unique constraint violated on {field}", field=field
            ) from exc
