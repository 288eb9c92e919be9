# content_engine/api/v1/sections.py
from flask import jsonify, request
from flask_jwt_extended import jwt_required

from content_engine.application.sections.create_section import create_section
from content_engine.application.sections.delete_section import delete_section
from content_engine.application.sections.queries import (
    get_section,
    list_nav_entries,
    list_sections,
)
from content_engine.application.sections.update_section import update_section
from content_engine.normalizers.section import normalize_nav_entry, normalize_section
from content_engine.utils.decorators import is_admin, roles_required
from content_engine.utils.media import save_image
from . import v1_bp


def _section_payload():
    """JSON body, or form fields plus an optional image upload."""
    if request.files or request.form:
        data = request.form.to_dict()
        image = request.files.get("image")
        if image is not None and image.filename:
            data["imageRef"] = save_image(image)
        return data
    return request.get_json(silent=True) or {}


# ------------------------
# Sections
# ------------------------

@v1_bp.route("/sections", methods=["GET"])
def get_sections():
    admin = is_admin()
    page_key = request.args.get("page", "")
    sections = list_sections(page_key, admin=admin)
    return jsonify({
        "page": page_key.strip().lower(),
        "sections": [normalize_section(s, admin=admin) for s in sections],
    })


@v1_bp.route("/sections/<section_id>", methods=["GET"])
def get_section_by_id(section_id):
    admin = is_admin()
    section = get_section(section_id, admin=admin)
    return jsonify({"section": normalize_section(section, admin=admin)})


@v1_bp.route("/sections", methods=["POST"])
@jwt_required()
@roles_required("admin")
def post_section():
    section = create_section(data=_section_payload())
    return jsonify({
        "section": normalize_section(section, admin=True),
        "message": "Section created successfully",
    }), 201


@v1_bp.route("/sections/<section_id>", methods=["PUT"])
@jwt_required()
@roles_required("admin")
def put_section(section_id):
    section = update_section(section_id=section_id, data=_section_payload())
    return jsonify({"section": normalize_section(section, admin=True)})


@v1_bp.route("/sections/<section_id>", methods=["DELETE"])
@jwt_required()
@roles_required("admin")
def remove_section(section_id):
    delete_section(section_id=section_id)
    return jsonify({"deleted": True})


# ------------------------
# Navigation
# ------------------------

@v1_bp.route("/navigation", methods=["GET"])
def get_navigation():
    return jsonify({
        "entries": [normalize_nav_entry(s) for s in list_nav_entries()],
    })
