from typing import Optional


class LoopbackError(RuntimeError):
    """Base class for errors surfaced to the command line."""


class InvalidAddress(LoopbackError):
    def __init__(self, ip: str, reason: Optional[str] = None):
        message = f"invalid IP address: {ip}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)
        self.ip = ip


class AddressConflict(LoopbackError):
    def __init__(self, ip: str, owner):
        super().__init__(f"IP {ip} is already assigned to {owner}")
        self.ip = ip
        self.owner = owner


class NotFound(LoopbackError):
    def __init__(self, key):
        super().__init__(f"no IP assignment found for {key}")
        self.key = key


class Exhausted(LoopbackError):
    def __init__(self, message: str = "no more available IPs in range"):
        super().__init__(message)


class IOFailure(LoopbackError):
    def __init__(self, path, message: str):
        super().__init__(f"{message}: {path}")
        self.path = path


class UpstreamUnavailable(LoopbackError):
    pass
