import uuid

from flask import Blueprint, jsonify

health_bp = Blueprint("health", __name__)


@health_bp.route("/health")
def health():
    return jsonify({"status": "UP"})


@health_bp.route("/uuid")
def random_uuid():
    return jsonify({"uuid": str(uuid.uuid4())})
