# content_engine/api/v1/overrides.py
from flask import jsonify, request
from flask_jwt_extended import jwt_required

from content_engine.application.overrides.delete_override import delete_override
from content_engine.application.overrides.queries import list_overrides
from content_engine.application.overrides.save_override import save_override
from content_engine.application.overrides.update_override import update_override
from content_engine.domain.invariants.exceptions import InvariantViolation
from content_engine.editor.applier import load_overrides
from content_engine.editor.gateway import StoreOverrideGateway
from content_engine.editor.session import EditorSession
from content_engine.normalizers.section import normalize_override
from content_engine.utils.decorators import roles_required
from . import v1_bp


@v1_bp.route("/overrides", methods=["GET"])
def get_overrides():
    page_key = request.args.get("page", "")
    return jsonify({
        "page": page_key.strip().lower(),
        "overrides": [normalize_override(o) for o in list_overrides(page_key)],
    })


@v1_bp.route("/overrides", methods=["POST"])
@jwt_required()
@roles_required("admin")
def post_override():
    data = request.get_json(silent=True) or {}
    override, created = save_override(data=data)
    return jsonify({"override": normalize_override(override)}), 201 if created else 200


@v1_bp.route("/overrides/<override_id>", methods=["PUT"])
@jwt_required()
@roles_required("admin")
def put_override(override_id):
    data = request.get_json(silent=True) or {}
    override = update_override(override_id=override_id, data=data)
    return jsonify({"override": normalize_override(override)})


@v1_bp.route("/overrides/<override_id>", methods=["DELETE"])
@jwt_required()
@roles_required("admin")
def remove_override(override_id):
    return jsonify(delete_override(override_id=override_id))


@v1_bp.route("/overrides/apply", methods=["POST"])
def apply_overrides():
    """Render a submitted document with the page's active overrides applied."""
    data = request.get_json(silent=True) or {}
    page_key = data.get("page")
    html = data.get("html")
    if not page_key or not isinstance(html, str):
        raise InvariantViolation("page and html are required", reason="missing_document")

    session = EditorSession.from_html(page_key, html)
    records = load_overrides(session, StoreOverrideGateway(), upgrade_legacy=False)
    return jsonify({
        "page": session.page_key,
        "phase": session.phase.value,
        "applied": len(records),
        "html": session.render(),
    })
