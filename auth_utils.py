import logging
from typing import Callable, Mapping, Optional

from flask import current_app, g, request

from errors import StoreUnavailable, Unauthorized
from models import Capability

log = logging.getLogger("fileshare.security")

BEARER_PREFIX = "Bearer "


def extract_token(headers: Mapping, args: Mapping) -> str:
    """
    Pull the bearer value out of a request.
    Authorization: Bearer <value> wins over ?token=<value>; nothing else is read.
    """
    auth_header = headers.get("Authorization") or ""
    if auth_header.startswith(BEARER_PREFIX):
        return auth_header[len(BEARER_PREFIX):]
    return args.get("token") or ""


class TokenAuthorizer:
    def __init__(self, store, on_store_error: Optional[Callable[[Exception], None]] = None):
        self._store = store
        self._on_store_error = on_store_error

    def authorize(self, sources, required: Capability) -> bool:
        """
        True iff the request carries an enabled credential scoped to exactly
        `required`. `sources` is anything with `headers` and `args` mappings.
        """
        token = extract_token(sources.headers, sources.args)
        if not token:
            return False

        try:
            credential = self._store.find_by_credential_and_capability(token, required)
        except Exception as e:
            log.warning("Credential lookup failed for %s check: %s", required.value, e.__class__.__name__)
            if self._on_store_error is not None:
                self._on_store_error(e)
            return False

        if credential is None or not credential.enabled:
            return False
        return True


def _record_store_error(exc: Exception) -> None:
    g.store_error = exc


def request_authorizer(store) -> TokenAuthorizer:
    """Authorizer whose store failures are remembered on flask.g for the current request."""
    return TokenAuthorizer(store, on_store_error=_record_store_error)


def require_capability(capability: Capability) -> None:
    authorizer: TokenAuthorizer = current_app.extensions["fileshare"].authorizer
    g.pop("store_error", None)
    if authorizer.authorize(request, capability):
        return

    store_error = g.pop("store_error", None)
    if store_error is not None:
        raise StoreUnavailable() from store_error
    log.info("Rejected %s request to %s", capability.value, request.path)
    raise Unauthorized()
