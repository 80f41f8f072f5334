import logging
import uuid

from errors import DuplicateKey, Exhausted, NotFound
from models import Capability, Credential

log = logging.getLogger("fileshare.security")

ISSUE_ATTEMPTS = 3


def issue(store, capability: Capability) -> Credential:
    """Create a new enabled key scoped to `capability` with a random UUIDv4 secret."""
    for _ in range(ISSUE_ATTEMPTS):
        credential = Credential(secret=str(uuid.uuid4()), capability=capability, enabled=True)
        try:
            store.insert(credential)
        except DuplicateKey:
            continue
        log.info("Issued new %s key", capability.value)
        return credential
    raise Exhausted("Failed to generate key")


def set_enabled(store, secret: str, value: bool) -> bool:
    """True when the key changed state, False when it already was `value`."""
    secret = (secret or "").strip()
    credential = store.find_by_secret(secret) if secret else None
    if credential is None:
        raise NotFound("API key not found")
    if credential.enabled == value:
        return False
    store.set_enabled(secret, value)
    log.info("%s key %s", credential.capability.value, "enabled" if value else "disabled")
    return True


def ensure_admin(store, secret: str) -> bool:
    """
    Make sure `secret` exists as an administer key. Returns True if it was created.
    An existing key with the same secret is left untouched, whatever its scope.
    """
    if store.find_by_secret(secret) is not None:
        return False
    try:
        store.insert(Credential(secret=secret, capability=Capability.ADMINISTER, enabled=True))
    except DuplicateKey:
        return False
    log.info("Bootstrapped administer key from configuration")
    return True
