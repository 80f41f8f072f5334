from flask import Blueprint, abort, jsonify, request, send_file

from auth_utils import require_capability
from errors import NotFound
from models import Capability
from services import services

links_bp = Blueprint("links", __name__)


@links_bp.route("/shorten", methods=["POST"])
def create_short_link():
    require_capability(Capability.SHORTEN)

    payload = request.get_json(silent=True) or {}
    filename = payload.get("filename")
    if not isinstance(filename, str) or not filename.strip():
        abort(400, "Invalid request: 'filename' is required")

    svc = services()
    code, _located = svc.registry.create_for(svc.sandbox, filename)
    # clients build the full URL from their own host
    return jsonify({"short_url_path": "/s/" + code})


@links_bp.route("/shorten/<shortcode>", methods=["DELETE"])
def disable_short_link(shortcode):
    require_capability(Capability.SHORTEN)
    changed = services().registry.set_enabled(shortcode, False)
    message = "Short link disabled" if changed else "Short link already disabled"
    return jsonify({"message": message})


@links_bp.route("/shorten/<shortcode>/enable", methods=["POST"])
def enable_short_link(shortcode):
    require_capability(Capability.SHORTEN)
    changed = services().registry.set_enabled(shortcode, True)
    message = "Short link enabled" if changed else "Short link already enabled"
    return jsonify({"message": message})


@links_bp.route("/s/<shortcode>")
def download_short_link(shortcode):
    """
    Download through a short code. Disabled and unknown codes both 404.
    Private targets need a download token.
    """
    svc = services()
    resolved = svc.registry.resolve(shortcode)
    if resolved.private:
        require_capability(Capability.DOWNLOAD)

    # the stored name goes through the sandbox again before we open anything
    fpath = svc.registry.target_path(svc.sandbox, resolved)
    if not svc.sandbox.exists(fpath):
        raise NotFound("File not found")
    return send_file(fpath, as_attachment=True, download_name=resolved.target_filename)
