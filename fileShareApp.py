import argparse
import logging
from typing import Optional

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

import api_keys
from auth_utils import request_authorizer
from config import Settings, configure_logging, load_settings
from errors import ShareError
from path_utils import PathSandbox
from routes_files import files_bp
from routes_health import health_bp
from routes_keys import keys_bp
from routes_links import links_bp
from services import Services
from short_links import ShortCodeRegistry
from stores import SqlCredentialStore, SqlLinkStore, make_session_factory

log = logging.getLogger("fileshare")


def _share_error(e: ShareError):
    return jsonify({"error": e.message}), e.status_code


def _http_error(e: HTTPException):
    return jsonify({"error": e.description or e.name}), e.code


def create_app(
    settings: Optional[Settings] = None,
    credential_store=None,
    link_store=None,
) -> Flask:
    """
    Build the Flask app. Stores default to SQLAlchemy ones on settings.database_url;
    tests pass their own.
    """
    settings = settings or load_settings()

    if credential_store is None or link_store is None:
        session_factory = make_session_factory(settings.database_url)
        credential_store = credential_store or SqlCredentialStore(session_factory)
        link_store = link_store or SqlLinkStore(session_factory)

    sandbox = PathSandbox(settings.base_dir)
    sandbox.ensure_layout()

    if settings.admin_token:
        api_keys.ensure_admin(credential_store, settings.admin_token)

    app = Flask(__name__)
    app.config["MAX_CONTENT_LENGTH"] = settings.max_upload_mb * 1024 * 1024
    app.extensions["fileshare"] = Services(
        settings=settings,
        credential_store=credential_store,
        link_store=link_store,
        authorizer=request_authorizer(credential_store),
        sandbox=sandbox,
        registry=ShortCodeRegistry(
            link_store,
            code_length=settings.short_code_length,
            max_attempts=settings.short_code_attempts,
        ),
    )

    app.register_error_handler(ShareError, _share_error)
    app.register_error_handler(HTTPException, _http_error)

    app.register_blueprint(health_bp)
    app.register_blueprint(keys_bp)
    app.register_blueprint(links_bp)
    app.register_blueprint(files_bp)
    return app


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Small token-gated file sharing server")
    parser.add_argument("-c", "--env-file", default=None, help="Path to a .env file with settings")
    return parser.parse_args(argv)


if __name__ == "__main__":
    args = parse_args()
    settings = load_settings(args.env_file)
    configure_logging(settings.log_level)

    app = create_app(settings)
    log.info("Sharing folder: %s", settings.base_dir)
    log.info("Listening on http://%s:%d", settings.host, settings.port)
    app.run(host=settings.host, port=settings.port)
