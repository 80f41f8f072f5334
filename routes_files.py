import logging

from flask import Blueprint, abort, jsonify, request, send_file

from auth_utils import require_capability
from config import PRIVATE_DIR, PUBLIC_DIR
from errors import InvalidPath
from models import Capability
from path_utils import sanitize_filename
from services import services

log = logging.getLogger("fileshare.files")

files_bp = Blueprint("files", __name__)

TARGET_DIR_HEADER = "X-Target-Dir"

# names served by fixed GET routes; a file stored under one could never be downloaded
RESERVED_NAMES = {"health", "uuid"}


@files_bp.route("/upload", methods=["POST"])
def upload():
    """
    Store a multipart `file` under public/ or private/ (the default).
    The client-side name is reduced to its last segment before anything touches disk.
    """
    require_capability(Capability.UPLOAD)

    f = request.files.get("file")
    if f is None:
        abort(400, "Invalid file upload request: missing 'file' field")
    if not f.filename:
        raise InvalidPath()

    if sanitize_filename(f.filename) in RESERVED_NAMES:
        abort(400, "Reserved filename")

    subtree = PUBLIC_DIR if request.headers.get(TARGET_DIR_HEADER) == PUBLIC_DIR else PRIVATE_DIR
    svc = services()
    dest = svc.sandbox.resolve(subtree, f.filename)

    try:
        f.save(dest)
    except OSError as e:
        log.error("Failed to save upload to %s: %s", dest, e)
        abort(500, "Failed to save file")

    log.info("Stored %s upload %s", subtree, dest.name)
    return jsonify({"download_path": "/" + sanitize_filename(f.filename)})


@files_bp.route("/<filename>")
def download(filename):
    """Public files are served as-is; private ones need a download token."""
    located = services().sandbox.locate(filename)
    if located.private:
        require_capability(Capability.DOWNLOAD)
    return send_file(located.path, as_attachment=True, download_name=sanitize_filename(filename))
