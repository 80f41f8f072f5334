import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Union

from config import PRIVATE_DIR, PUBLIC_DIR, SUBTREES
from errors import InvalidPath, NotFound

log = logging.getLogger("fileshare.security")


def sanitize_filename(user_filename: str) -> str:
    """
    Keep only the last path segment of a user supplied name.
    Both / and \\ count as separators. Names that are empty, contain NUL, are
    "." or try to climb with ".." anywhere are rejected outright.
    """
    if not isinstance(user_filename, str) or "\x00" in user_filename:
        raise InvalidPath()
    segments = user_filename.replace("\\", "/").split("/")
    if ".." in segments:
        log.warning("Traversal attempt rejected: %r", user_filename)
        raise InvalidPath()
    name = segments[-1].strip()
    if not name or name in {".", ".."}:
        raise InvalidPath()
    return name


def certify(base_dir: Union[str, Path], candidate: Union[str, Path]) -> Path:
    """
    Canonicalize both paths and require `candidate` to sit strictly below `base_dir`.
    Comparison is per path component, so /app/data-evil is not inside /app/data.
    """
    try:
        root = Path(base_dir).resolve()
        target = Path(candidate).resolve()
    except (OSError, RuntimeError, ValueError) as e:
        log.warning("Could not canonicalize %r: %s", str(candidate), e)
        raise InvalidPath() from e

    if root not in target.parents:
        log.warning("Path escape rejected: %s is outside %s", target, root)
        raise InvalidPath()
    return target


def resolve(base_dir: Union[str, Path], subtree: str, user_filename: str) -> Path:
    if subtree not in SUBTREES:
        raise InvalidPath()
    safe_name = sanitize_filename(user_filename)
    target = certify(base_dir, Path(base_dir) / subtree / safe_name)
    # visibility is decided by subtree, so a link into the other one is an escape too
    if Path(base_dir).resolve() / subtree not in target.parents:
        log.warning("Cross-subtree path rejected: %s is outside %s", target, subtree)
        raise InvalidPath()
    return target


@dataclass(frozen=True)
class Located:
    subtree: str
    path: Path

    @property
    def private(self) -> bool:
        return self.subtree == PRIVATE_DIR


def _is_file(path: Path) -> bool:
    return path.is_file()


class PathSandbox:
    """
    A fixed sandbox root with its public/ and private/ subtrees.
    `probe` answers "does a file exist here?" and defaults to Path.is_file.
    """

    def __init__(self, base_dir: Union[str, Path], probe: Callable[[Path], bool] = _is_file):
        self.base_dir = Path(base_dir).resolve()
        self._probe = probe

    def ensure_layout(self) -> None:
        for subtree in SUBTREES:
            (self.base_dir / subtree).mkdir(parents=True, exist_ok=True)

    def exists(self, path: Path) -> bool:
        return self._probe(path)

    def resolve(self, subtree: str, user_filename: str) -> Path:
        return resolve(self.base_dir, subtree, user_filename)

    def locate(self, user_filename: str) -> Located:
        # public wins when a name exists in both subtrees
        for subtree in (PUBLIC_DIR, PRIVATE_DIR):
            path = self.resolve(subtree, user_filename)
            if self._probe(path):
                return Located(subtree=subtree, path=path)
        raise NotFound("File not found")
