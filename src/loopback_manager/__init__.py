"""
Loopback IP assignments for local compose projects.
"""

__all__ = [
    "catalog",
    "cli",
    "config",
    "envfile",
    "errors",
    "ipam",
    "ledger",
    "manager",
    "netinfo",
    "reconcile",
]

__version__ = "0.1.0"
