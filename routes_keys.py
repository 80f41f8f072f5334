from flask import Blueprint, abort, jsonify, request

import api_keys
from auth_utils import require_capability
from models import Capability
from services import services

keys_bp = Blueprint("api_keys", __name__)


@keys_bp.route("/api-keys", methods=["POST"])
def create_api_key():
    require_capability(Capability.ADMINISTER)

    payload = request.get_json(silent=True) or {}
    try:
        capability = Capability.parse(payload.get("type"))
    except ValueError:
        abort(400, "Invalid API key type")

    credential = api_keys.issue(services().credential_store, capability)
    body = {
        "key": credential.secret,
        "type": credential.capability.value,
        "is_enabled": credential.enabled,
    }
    return jsonify(body), 201


@keys_bp.route("/api-keys/<key>", methods=["DELETE"])
def disable_api_key(key):
    require_capability(Capability.ADMINISTER)
    changed = api_keys.set_enabled(services().credential_store, key, False)
    return jsonify({"message": "API key disabled" if changed else "API key already disabled"})


@keys_bp.route("/api-keys/<key>/enable", methods=["POST"])
def enable_api_key(key):
    require_capability(Capability.ADMINISTER)
    changed = api_keys.set_enabled(services().credential_store, key, True)
    return jsonify({"message": "API key enabled" if changed else "API key already enabled"})
