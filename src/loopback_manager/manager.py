import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from .catalog import RepositoryCatalog, RepositoryDescriptor
from .config import AppConfig
from .envfile import upsert_env_var
from .errors import AddressConflict, InvalidAddress, IOFailure, LoopbackError
from .ipam import AddressRange, next_available, plan_batch
from .ledger import AssignmentLedger, RepositoryKey
from .netinfo import LoopbackAddress, get_host_loopback_addresses
from .reconcile import ReconciliationReport, reconcile

log = logging.getLogger(__name__)


@dataclass
class AssignResult:
    key: RepositoryKey
    ip: str
    env_path: Optional[Path] = None
    warnings: List[str] = field(default_factory=list)


@dataclass
class PlannedAssignment:
    key: RepositoryKey
    ip: str

    def to_dict(self) -> Dict[str, Any]:
        return {"org": self.key.org, "name": self.key.name, "ip": self.ip}


@dataclass
class AutoAssignResult:
    executed: bool
    planned: List[PlannedAssignment] = field(default_factory=list)
    committed: List[AssignResult] = field(default_factory=list)
    error: Optional[LoopbackError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class LoopbackManager:
    """Coordinates the ledger, the repository catalog and host reconciliation."""

    def __init__(
        self,
        config: AppConfig,
        ledger: AssignmentLedger,
        catalog: Optional[RepositoryCatalog] = None,
        host_lookup: Callable[[], List[LoopbackAddress]] = get_host_loopback_addresses,
        env_sync: Callable[[Path, str], Path] = upsert_env_var,
    ):
        self.config = config
        self.ledger = ledger
        self.catalog = catalog or RepositoryCatalog(config.base_dir)
        self.host_lookup = host_lookup
        self.env_sync = env_sync

    @property
    def address_range(self) -> AddressRange:
        return self.config.address_range

    def validate(self, ip: str) -> None:
        if self.config.ip_range.strict:
            if not self.address_range.contains_strict(ip):
                raise InvalidAddress(
                    ip, f"expected {self.address_range.format(self.address_range.start)}"
                    f"-{self.address_range.end}"
                )
        elif not self.address_range.contains(ip):
            raise InvalidAddress(ip, f"expected {self.address_range.base}.N")

    def assign(self, org: str, name: str, ip: Optional[str] = None) -> AssignResult:
        key = RepositoryKey(org, name)
        if not ip:
            ip = next_available(self.address_range, self.ledger.used_ips(), self.address_range.start)
        self.validate(ip)

        others = [owner for owner in self.ledger.owners_of(ip) if owner != key]
        if others:
            raise AddressConflict(ip, others[0])

        self.ledger.set(key, ip)
        result = AssignResult(key=key, ip=ip)

        try:
            result.env_path = self.env_sync(self.catalog.path_for(key), ip)
        except IOFailure as exc:
            log.warning("Could not update .env file for %s: %s", key, exc)
            result.warnings.append(f"Could not update .env file: {exc}")
        return result

    def remove(self, org: str, name: str) -> str:
        return self.ledger.remove(RepositoryKey(org, name))

    def list_repositories(self) -> List[RepositoryDescriptor]:
        return self.catalog.repositories(self.ledger)

    def scan(self) -> List[RepositoryDescriptor]:
        return self.catalog.unassigned(self.ledger)

    def plan_auto_assign(self) -> List[PlannedAssignment]:
        keys = [repo.key for repo in self.scan()]
        return [PlannedAssignment(key, ip) for key, ip in plan_batch(self.address_range, self.ledger.used_ips(), keys)]

    def auto_assign(self, execute: bool = False) -> AutoAssignResult:
        """
        Give every unassigned repository the next free address, in catalog order.

        Without ``execute`` nothing is written. With it, each assignment commits
        on its own and the batch stops at the first failure; the error is kept
        on the result next to whatever was already committed.
        """
        result = AutoAssignResult(executed=execute)
        keys = [repo.key for repo in self.scan()]
        try:
            for key, ip in plan_batch(self.address_range, self.ledger.used_ips(), keys):
                result.planned.append(PlannedAssignment(key, ip))
                if execute:
                    result.committed.append(self.assign(key.org, key.name, ip))
        except LoopbackError as exc:
            log.error("Auto-assign stopped after %d assignments: %s", len(result.committed), exc)
            result.error = exc
        return result

    def check_duplicates(self) -> Dict[str, List[RepositoryKey]]:
        return self.ledger.duplicates()

    def host_addresses(self) -> List[LoopbackAddress]:
        return self.host_lookup()

    def sync_check(self) -> ReconciliationReport:
        return reconcile(self.ledger, self.host_lookup())
