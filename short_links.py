"""
Short-code registry: allocates unguessable codes for files and resolves them.

A link is created enabled, can be disabled and re-enabled, and is never
deleted. A disabled link looks exactly like one that never existed.
"""

import logging
import secrets
import string
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Tuple

from config import DEFAULT_SHORT_CODE_ATTEMPTS, DEFAULT_SHORT_CODE_LENGTH, PRIVATE_DIR, PUBLIC_DIR
from errors import DuplicateKey, Exhausted, NotFound
from models import ShortLink
from path_utils import Located, PathSandbox, sanitize_filename

log = logging.getLogger("fileshare.links")

CODE_ALPHABET = string.ascii_letters + string.digits


def random_code(length: int) -> str:
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))


@dataclass(frozen=True)
class ResolvedLink:
    target_filename: str
    private: bool

    @property
    def subtree(self) -> str:
        return PRIVATE_DIR if self.private else PUBLIC_DIR


class ShortCodeRegistry:
    def __init__(
        self,
        store,
        code_length: int = DEFAULT_SHORT_CODE_LENGTH,
        max_attempts: int = DEFAULT_SHORT_CODE_ATTEMPTS,
        code_factory: Optional[Callable[[int], str]] = None,
    ):
        if code_length <= 0 or max_attempts <= 0:
            raise ValueError("code_length and max_attempts must be positive")
        self._store = store
        self.code_length = code_length
        self.max_attempts = max_attempts
        self._code_factory = code_factory or random_code

    def allocate(self, target_filename: str, private: bool) -> str:
        """
        Store a new enabled link and return its code.

        A candidate already in the store is skipped; a duplicate reported by the
        insert itself (another writer got there first) is retried the same way.
        Raises Exhausted after max_attempts draws.
        """
        for attempt in range(1, self.max_attempts + 1):
            code = self._code_factory(self.code_length)
            if self._store.exists_by_code(code):
                log.debug("Short code collision on attempt %d", attempt)
                continue
            try:
                self._store.insert(ShortLink(code=code, target_filename=target_filename, private=private))
            except DuplicateKey:
                log.debug("Short code raced on insert, attempt %d", attempt)
                continue
            log.info("Allocated short code %s for %s file %s", code, "private" if private else "public", target_filename)
            return code

        log.error("No free short code after %d attempts", self.max_attempts)
        raise Exhausted()

    def create_for(self, sandbox: PathSandbox, user_filename: str) -> Tuple[str, Located]:
        # locate first: no code is ever drawn for a file that isn't there
        located = sandbox.locate(user_filename)
        code = self.allocate(sanitize_filename(user_filename), located.private)
        return code, located

    def resolve(self, code: str) -> ResolvedLink:
        link = self._store.find_by_code(code) if code else None
        if link is None or not link.enabled:
            raise NotFound("Short link not found")
        return ResolvedLink(target_filename=link.target_filename, private=link.private)

    def target_path(self, sandbox: PathSandbox, resolved: ResolvedLink) -> Path:
        return sandbox.resolve(resolved.subtree, resolved.target_filename)

    def set_enabled(self, code: str, value: bool) -> bool:
        """
        Returns True if the link changed state, False if it already was `value`.
        Nothing is written in the second case.
        """
        link = self._store.find_by_code(code) if code else None
        if link is None:
            raise NotFound("Short link not found")
        if link.enabled == value:
            return False
        self._store.set_enabled(code, value)
        log.info("Short link %s %s", code, "enabled" if value else "disabled")
        return True
