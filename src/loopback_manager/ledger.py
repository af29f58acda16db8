"""
Persisted mapping of repositories to their loopback addresses.

The on-disk format is one ``<org> <name> <ip>`` record per line. Blank lines,
``#`` comments and lines without exactly three fields are ignored on read.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Dict, Iterator, List, NamedTuple, Optional, Set, Tuple

from .errors import IOFailure, NotFound

log = logging.getLogger(__name__)

DEFAULT_LEDGER_PATH = Path("~/.config/loopback-manager/assignments.txt")


class RepositoryKey(NamedTuple):
    org: str
    name: str

    def __str__(self) -> str:
        return f"{self.org}/{self.name}"

    @classmethod
    def parse(cls, value: str) -> "RepositoryKey":
        org, sep, name = value.partition("/")
        if not sep or not org or not name:
            raise ValueError(f"Invalid repository '{value}' (expected org/name)")
        return cls(org, name)


def parse_ledger(text: str) -> Dict[RepositoryKey, str]:
    assignments: Dict[RepositoryKey, str] = {}
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        parts = line.split()
        if len(parts) != 3:
            log.debug("Skipping malformed ledger line: %r", raw)
            continue
        assignments[RepositoryKey(parts[0], parts[1])] = parts[2]
    return assignments


def render_ledger(assignments: Dict[RepositoryKey, str]) -> str:
    lines = sorted(f"{key.org} {key.name} {ip}" for key, ip in assignments.items())
    return "\n".join(lines)


class AssignmentLedger:
    """In-memory assignments, written through to ``path`` on every change."""

    def __init__(self, path: Optional[Path] = None, assignments: Optional[Dict[RepositoryKey, str]] = None):
        self.path = Path(path).expanduser() if path else DEFAULT_LEDGER_PATH.expanduser()
        self._assignments: Dict[RepositoryKey, str] = dict(assignments or {})

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "AssignmentLedger":
        ledger = cls(path)
        try:
            text = ledger.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            log.debug("No ledger at %s, starting empty", ledger.path)
            return ledger
        except OSError as exc:
            raise IOFailure(ledger.path, f"failed to read assignments ({exc.strerror or exc})") from exc
        except UnicodeError as exc:
            raise IOFailure(ledger.path, f"failed to decode assignments ({exc})") from exc
        ledger._assignments = parse_ledger(text)
        log.debug("Loaded %d assignments from %s", len(ledger._assignments), ledger.path)
        return ledger

    def save(self) -> None:
        try:
            os.makedirs(self.path.parent, exist_ok=True)
            self.path.write_text(render_ledger(self._assignments), encoding="utf-8")
        except OSError as exc:
            raise IOFailure(self.path, f"failed to write assignments ({exc.strerror or exc})") from exc
        log.debug("Saved %d assignments to %s", len(self._assignments), self.path)

    def get(self, key: RepositoryKey) -> Optional[str]:
        return self._assignments.get(key)

    def find_by_ip(self, ip: str) -> Optional[RepositoryKey]:
        owners = self.owners_of(ip)
        return owners[0] if owners else None

    def owners_of(self, ip: str) -> List[RepositoryKey]:
        return sorted(key for key, assigned in self._assignments.items() if assigned == ip)

    def set(self, key: RepositoryKey, ip: str) -> None:
        previous = self._assignments.get(key)
        self._assignments[key] = ip
        self.save()
        if previous and previous != ip:
            log.info("Moved %s from %s to %s", key, previous, ip)
        else:
            log.info("Recorded %s for %s", ip, key)

    def remove(self, key: RepositoryKey) -> str:
        if key not in self._assignments:
            raise NotFound(key)
        ip = self._assignments.pop(key)
        self.save()
        log.info("Released %s from %s", ip, key)
        return ip

    def used_ips(self) -> Set[str]:
        return set(self._assignments.values())

    def duplicates(self) -> Dict[str, List[RepositoryKey]]:
        by_ip: Dict[str, List[RepositoryKey]] = {}
        for key, ip in self._assignments.items():
            by_ip.setdefault(ip, []).append(key)
        return {ip: sorted(keys) for ip, keys in sorted(by_ip.items()) if len(keys) > 1}

    def items(self) -> List[Tuple[RepositoryKey, str]]:
        return sorted(self._assignments.items())

    def __iter__(self) -> Iterator[RepositoryKey]:
        return iter(sorted(self._assignments))

    def __len__(self) -> int:
        return len(self._assignments)

    def __contains__(self, key: object) -> bool:
        return key in self._assignments
