import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from .ledger import AssignmentLedger, RepositoryKey

log = logging.getLogger(__name__)

COMPOSE_FILES = (
    "docker-compose.yml",
    "docker-compose.yaml",
    "compose.yml",
    "compose.yaml",
)


@dataclass
class RepositoryDescriptor:
    org: str
    name: str
    ip: Optional[str] = None

    @property
    def key(self) -> RepositoryKey:
        return RepositoryKey(self.org, self.name)

    @property
    def assigned(self) -> bool:
        return bool(self.ip)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"org": self.org, "name": self.name}
        if self.ip:
            payload["ip"] = self.ip
        return payload


def has_compose_file(path: Path) -> bool:
    return any(os.path.isfile(os.path.join(path, filename)) for filename in COMPOSE_FILES)


def _visible_dirs(path: Path) -> List[str]:
    try:
        entries = os.listdir(path)
    except OSError as exc:
        log.debug("Cannot list %s: %s", path, exc)
        return []
    return sorted(
        entry for entry in entries if not entry.startswith(".") and os.path.isdir(os.path.join(path, entry))
    )


class RepositoryCatalog:
    """Compose projects laid out as ``<base_dir>/<org>/<name>``."""

    def __init__(self, base_dir: Path):
        self.base_dir = Path(base_dir).expanduser()

    def path_for(self, key: RepositoryKey) -> Path:
        return self.base_dir / key.org / key.name

    def keys(self) -> List[RepositoryKey]:
        found: List[RepositoryKey] = []
        for org in _visible_dirs(self.base_dir):
            for name in _visible_dirs(self.base_dir / org):
                key = RepositoryKey(org, name)
                if has_compose_file(self.path_for(key)):
                    found.append(key)
        log.debug("Found %d compose projects under %s", len(found), self.base_dir)
        return sorted(found, key=str)

    def repositories(self, ledger: AssignmentLedger) -> List[RepositoryDescriptor]:
        return [RepositoryDescriptor(key.org, key.name, ledger.get(key)) for key in self.keys()]

    def unassigned(self, ledger: AssignmentLedger) -> List[RepositoryDescriptor]:
        return [repo for repo in self.repositories(ledger) if not repo.assigned]
