"""
Host loopback address discovery.
"""

from __future__ import annotations

import ipaddress
import socket
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import psutil

from .errors import UpstreamUnavailable

DEFAULT_LOOPBACK = "127.0.0.1"


@dataclass
class LoopbackAddress:
    interface: str
    ip: str
    netmask: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"interface": self.interface, "ip": self.ip}
        if self.netmask:
            payload["netmask"] = self.netmask
        return payload


def is_valid_loopback_ip(ip: str) -> bool:
    try:
        addr = ipaddress.ip_address(ip)
    except ValueError:
        return False
    return addr.version == 4 and addr.is_loopback and ip != DEFAULT_LOOPBACK


def get_host_loopback_addresses() -> List[LoopbackAddress]:
    """Every IPv4 127/8 address on the host except 127.0.0.1."""
    try:
        interfaces = psutil.net_if_addrs()
    except (psutil.Error, OSError) as exc:
        raise UpstreamUnavailable(f"failed to get host loopback addresses: {exc}") from exc

    addresses: List[LoopbackAddress] = []
    for name, addrs in interfaces.items():
        for addr in addrs:
            if addr.family != socket.AF_INET or not addr.address:
                continue
            if not is_valid_loopback_ip(addr.address):
                continue
            addresses.append(LoopbackAddress(interface=name, ip=addr.address, netmask=addr.netmask or None))

    addresses.sort(key=lambda item: (item.interface, ipaddress.ip_address(item.ip)))
    return addresses


def is_loopback_configured(ip: str) -> bool:
    return any(addr.ip == ip for addr in get_host_loopback_addresses())
