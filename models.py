"""
Plain records handed between the stores and the core.

Stores never return live ORM rows; they copy into these frozen dataclasses so
callers can't accidentally write through a session.
"""

from dataclasses import dataclass
from enum import Enum


class Capability(str, Enum):
    UPLOAD = "upload"
    DOWNLOAD = "download"
    SHORTEN = "shorten"
    ADMINISTER = "administer"

    @classmethod
    def parse(cls, raw) -> "Capability":
        """Case-insensitive lookup by name; raises ValueError for anything else."""
        if not isinstance(raw, str):
            raise ValueError("capability must be a string")
        return cls(raw.strip().lower())


@dataclass(frozen=True)
class Credential:
    secret: str
    capability: Capability
    enabled: bool = True


@dataclass(frozen=True)
class ShortLink:
    code: str
    target_filename: str
    private: bool
    enabled: bool = True
