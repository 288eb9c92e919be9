from content_engine.extensions import db
from .base import BaseModel

LAYOUTS = ("standard", "team", "list", "testimonial", "video")
CONTENT_TYPES = ("text", "html", "image", "link")
OVERRIDE_TYPES = ("replace", "append", "prepend")


class Section(BaseModel):
    """
    Standalone sections, full pages and content overrides share this table.

    The role of a row is carried by flags (is_full_page, is_content_override)
    rather than by a type column.
    """
    __tablename__ = "sections"

    page_key = db.Column(db.String(200), nullable=True, index=True)
    heading = db.Column(db.Text, nullable=True)
    body = db.Column(db.Text, nullable=True)
    image_ref = db.Column(db.String(1024), nullable=False, default="")
    layout = db.Column(db.String(20), nullable=True, default="standard")
    position_slot = db.Column(db.String(40), nullable=True, default="dynamicSections7", index=True)

    button_label = db.Column(db.String(200), nullable=True)
    button_url = db.Column(db.String(1024), nullable=True)
    team = db.Column(db.JSON, nullable=True)

    # Navigation
    nav_category = db.Column(db.String(100), nullable=True)
    show_in_nav = db.Column(db.Boolean, nullable=False, default=False)
    nav_anchor = db.Column(db.String(200), nullable=True)

    # Full pages
    is_full_page = db.Column(db.Boolean, nullable=False, default=False)
    slug = db.Column(db.String(200), nullable=True)
    is_published = db.Column(db.Boolean, nullable=False, default=True)

    # Content overrides
    is_content_override = db.Column(db.Boolean, nullable=False, default=False, index=True)
    target_page = db.Column(db.String(200), nullable=True, index=True)
    target_selector = db.Column(db.String(1024), nullable=True)
    content_type = db.Column(db.String(20), nullable=True)
    override_type = db.Column(db.String(20), nullable=True)
    original_content = db.Column(db.JSON, nullable=True)
    is_active = db.Column(db.Boolean, nullable=True)

    # Stable block identifiers for client-side re-binding
    heading_block_id = db.Column(db.String(36), nullable=True)
    content_block_id = db.Column(db.String(36), nullable=True)
    image_block_id = db.Column(db.String(36), nullable=True)
    button_block_id = db.Column(db.String(36), nullable=True)

    __table_args__ = (
        # NULL slugs are never compared, which gives sparse uniqueness.
        db.UniqueConstraint("slug", name="uq_sections_slug"),
        db.UniqueConstraint("page_key", "nav_anchor", name="uq_sections_page_anchor"),
        db.UniqueConstraint("target_page", "target_selector", name="uq_sections_override_target"),
        db.Index("idx_sections_page_position", "page_key", "position_slot", "created_at"),
    )

    def column_values(self):
        return {
            column.key: getattr(self, column.key)
            for column in self.__table__.columns
        }

    @property
    def role(self) -> str:
        if self.is_content_override:
            return "override"
        if self.is_full_page:
            return "full_page"
        return "section"

    def __repr__(self):
        return f"<Section {self.id} role={self.role} page={self.page_key or self.target_page}>"
