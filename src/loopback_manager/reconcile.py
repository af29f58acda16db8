import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List

from .ledger import AssignmentLedger, RepositoryKey
from .netinfo import LoopbackAddress

log = logging.getLogger(__name__)

PERSISTENCE_NOTE = "Note: These changes may not persist after reboot without proper configuration."


def nmcli_command(ip: str) -> str:
    return f"sudo nmcli connection modify lo +ipv4.addresses {ip}/32"


def nmcli_commands(ips: Iterable[str]) -> List[str]:
    """NetworkManager commands for each address, followed by one to apply them."""
    commands = [nmcli_command(ip) for ip in ips]
    if commands:
        commands.append("sudo nmcli connection up lo")
    return commands


def ip_commands(ips: Iterable[str]) -> List[str]:
    return [f"sudo ip addr add {ip}/8 dev lo" for ip in ips]


@dataclass
class MissingAddress:
    ip: str
    owners: List[RepositoryKey]

    def to_dict(self) -> Dict[str, Any]:
        return {"ip": self.ip, "owners": [str(owner) for owner in self.owners]}


@dataclass
class ReconciliationReport:
    assigned_count: int
    host_configured_count: int
    missing: List[MissingAddress] = field(default_factory=list)

    @property
    def in_sync(self) -> bool:
        return not self.missing

    def missing_ips(self) -> List[str]:
        return [entry.ip for entry in self.missing]

    def nmcli_commands(self) -> List[str]:
        return nmcli_commands(self.missing_ips())

    def ip_commands(self) -> List[str]:
        return ip_commands(self.missing_ips())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "assigned_count": self.assigned_count,
            "host_configured_count": self.host_configured_count,
            "missing": [entry.to_dict() for entry in self.missing],
            "nmcli_commands": self.nmcli_commands(),
            "ip_commands": self.ip_commands(),
        }


def reconcile(ledger: AssignmentLedger, host_addresses: Iterable[LoopbackAddress]) -> ReconciliationReport:
    host_addresses = list(host_addresses)
    host_set = {addr.ip for addr in host_addresses}

    missing_ips = sorted({ip for _, ip in ledger.items() if ip not in host_set})
    missing = [MissingAddress(ip=ip, owners=ledger.owners_of(ip)) for ip in missing_ips]

    log.info(
        "Reconciled %d assignments against %d host addresses: %d missing",
        len(ledger),
        len(host_addresses),
        len(missing),
    )
    return ReconciliationReport(
        assigned_count=len(ledger),
        host_configured_count=len(host_addresses),
        missing=missing,
    )


def render_report(report: ReconciliationReport) -> str:
    lines = [
        "=== Loopback Address Consistency Check ===",
        "",
        f"Assigned addresses in config: {report.assigned_count}",
        f"Loopback addresses on host:   {report.host_configured_count}",
        "",
    ]
    if report.in_sync:
        lines.append("✓ All assigned IP addresses are configured on the host.")
        return "\n".join(lines)

    lines.append(f"⚠ Found {len(report.missing)} assigned IP addresses not configured on host:")
    lines.append("")
    for entry in report.missing:
        owners = ", ".join(str(owner) for owner in entry.owners)
        lines.append(f"  {entry.ip} (assigned to {owners})")

    lines += [
        "",
        "=== Configuration Commands ===",
        "",
        "To add these loopback addresses to your host:",
        "",
        "Using NetworkManager (if available):",
    ]
    lines += [f"  {cmd}" for cmd in report.nmcli_commands()]
    lines += ["", "Alternatively, using ip command directly:"]
    lines += [f"  {cmd}" for cmd in report.ip_commands()]
    lines += ["", PERSISTENCE_NOTE]
    return "\n".join(lines)
