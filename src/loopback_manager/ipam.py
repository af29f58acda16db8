import logging
from dataclasses import dataclass
from typing import AbstractSet, Iterable, Iterator, Optional, Tuple, TypeVar

from .errors import Exhausted

log = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class AddressRange:
    """Allocatable loopback space: ``base.start`` through ``base.end``."""

    base: str = "127.0.0"
    start: int = 10
    end: int = 254

    def format(self, suffix: int) -> str:
        return f"{self.base}.{suffix}"

    def contains(self, ip: str) -> bool:
        """Prefix and dotted-quad shape only; the suffix is not range checked."""
        if not ip.startswith(self.base + "."):
            return False
        return len(ip.split(".")) == 4

    def contains_strict(self, ip: str) -> bool:
        if not self.contains(ip):
            return False
        try:
            octets = [int(part) for part in ip.split(".")]
        except ValueError:
            return False
        if any(not 0 <= octet <= 255 for octet in octets):
            return False
        return self.start <= octets[3] <= self.end

    def suffix(self, ip: str) -> Optional[int]:
        if not self.contains(ip):
            return None
        try:
            return int(ip.rsplit(".", 1)[1])
        except ValueError:
            return None


def next_available(address_range: AddressRange, used: AbstractSet[str], start_hint: Optional[int] = None) -> str:
    """Return the first address from ``start_hint`` upwards that is not in ``used``."""
    first = address_range.start if start_hint is None else start_hint
    for suffix in range(first, address_range.end + 1):
        candidate = address_range.format(suffix)
        if candidate not in used:
            return candidate
    raise Exhausted()


def plan_batch(address_range: AddressRange, used: AbstractSet[str], items: Iterable[T]) -> Iterator[Tuple[T, str]]:
    """
    Pair each item with the next free address, in order.

    The hint moves past every address handed out, so two items in one batch
    never receive the same candidate. The generator raises ``Exhausted`` at the
    first item that cannot be served; pairs already yielded stay valid.
    """
    taken = set(used)
    hint = address_range.start
    for item in items:
        ip = next_available(address_range, taken, hint)
        taken.add(ip)
        hint = address_range.suffix(ip) + 1
        log.debug("Planned %s for %s", ip, item)
        yield item, ip
