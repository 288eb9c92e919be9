from flask import jsonify

from content_engine.application.sections.queries import get_full_page
from content_engine.normalizers.section import normalize_section
from content_engine.utils.decorators import is_admin
from . import v1_bp


@v1_bp.route("/pages/<slug>", methods=["GET"])
def get_page(slug):
    admin = is_admin()
    page = get_full_page(slug, admin=admin)
    return jsonify({"page": normalize_section(page, admin=admin)})
