"""
Error registry backed by registry.yaml.

Each entry maps an SC-* code to the HTTP status, log severity and the
message clients are allowed to see. The file is validated as a whole on
load; a bad file raises RegistryValidationError and leaves the previous
entries in place.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterator, Mapping, Optional, Union

import yaml

from supportchat.core.errors import CODE_PATTERN

logger = logging.getLogger(__name__)

DEFAULT_REGISTRY_PATH = Path(__file__).with_name("registry.yaml")

VALID_DOMAINS = frozenset({"API", "CFG", "LLM", "EMB", "QDR"})
SEVERITY_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}
REQUIRED_FIELDS = ("code", "domain", "title", "severity", "retryable", "http_status", "safe_message")


class RegistryValidationError(Exception):
    """registry.yaml is malformed or inconsistent."""


@dataclass(frozen=True)
class ErrorEntry:
    code: str
    domain: str
    title: str
    severity: str
    retryable: bool
    http_status: int
    safe_message: str

    @property
    def log_level(self) -> int:
        return SEVERITY_LEVELS[self.severity]

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any], position: int) -> "ErrorEntry":
        missing = [name for name in REQUIRED_FIELDS if name not in raw]
        if missing:
            raise RegistryValidationError(f"entry #{position} ({raw.get('code', '?')}): missing {missing}")

        code = str(raw["code"])
        match = CODE_PATTERN.match(code)
        if match is None:
            raise RegistryValidationError(f"entry #{position}: invalid code {code!r}")
        if raw["domain"] != match.group("domain"):
            raise RegistryValidationError(f"{code}: domain {raw['domain']!r} does not match the code")
        if raw["domain"] not in VALID_DOMAINS:
            raise RegistryValidationError(f"{code}: unknown domain {raw['domain']!r}")
        if raw["severity"] not in SEVERITY_LEVELS:
            raise RegistryValidationError(f"{code}: unknown severity {raw['severity']!r}")

        status = int(raw["http_status"])
        if not 400 <= status <= 599:
            raise RegistryValidationError(f"{code}: http_status {status} is not an error status")

        return cls(
            code=code,
            domain=raw["domain"],
            title=str(raw["title"]),
            severity=raw["severity"],
            retryable=bool(raw["retryable"]),
            http_status=status,
            safe_message=str(raw["safe_message"]),
        )


class ErrorRegistry:
    """Code -> ErrorEntry lookup."""

    def __init__(self) -> None:
        self._entries: Dict[str, ErrorEntry] = {}
        self.schema_version = 0

    def load(self, path: Optional[Union[str, Path]] = None) -> None:
        source = Path(path) if path is not None else DEFAULT_REGISTRY_PATH
        document = yaml.safe_load(source.read_text(encoding="utf-8")) or {}

        raw_entries = document.get("errors", [])
        if not isinstance(raw_entries, list):
            raise RegistryValidationError("'errors' must be a list")

        entries: Dict[str, ErrorEntry] = {}
        for position, raw in enumerate(raw_entries):
            if not isinstance(raw, Mapping):
                raise RegistryValidationError(f"entry #{position} is not a mapping")
            entry = ErrorEntry.from_mapping(raw, position)
            if entry.code in entries:
                raise RegistryValidationError(f"duplicate code {entry.code}")
            entries[entry.code] = entry

        self._entries = entries
        self.schema_version = int(document.get("schema_version", 0))
        logger.info("error_registry_loaded", extra={"count": len(entries), "source": str(source)})

    def get(self, code: str) -> Optional[ErrorEntry]:
        return self._entries.get(code)

    def lookup(self, code: str) -> ErrorEntry:
        """Like `get`, but unknown codes raise KeyError."""
        try:
            return self._entries[code]
        except KeyError:
            raise KeyError(f"Unknown error code: {code!r}") from None

    def all_codes(self) -> list:
        return sorted(self._entries)

    def __contains__(self, code: object) -> bool:
        return code in self._entries

    def __iter__(self) -> Iterator[ErrorEntry]:
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)


error_registry = ErrorRegistry()
