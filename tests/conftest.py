"""Pytest configuration and shared fixtures."""

import pytest

from loopback_manager.config import AppConfig, IpRangeSettings
from loopback_manager.ipam import AddressRange
from loopback_manager.ledger import AssignmentLedger
from loopback_manager.manager import LoopbackManager


def make_repo(base_dir, org, name, compose_file="docker-compose.yml"):
    path = base_dir / org / name
    path.mkdir(parents=True, exist_ok=True)
    if compose_file:
        (path / compose_file).write_text("services: {}\n")
    return path


@pytest.fixture
def base_dir(tmp_path):
    path = tmp_path / "github"
    path.mkdir()
    return path


@pytest.fixture
def ledger_path(tmp_path):
    return tmp_path / "config" / "assignments.txt"


@pytest.fixture
def address_range():
    return AddressRange(base="127.0.0", start=10, end=254)


@pytest.fixture
def app_config(base_dir, ledger_path):
    return AppConfig(base_dir=base_dir, ip_range=IpRangeSettings(), ledger_path=ledger_path)


@pytest.fixture
def ledger(ledger_path):
    return AssignmentLedger.load(ledger_path)


@pytest.fixture
def host_addresses():
    """Mutable list returned by the manager's host lookup."""
    return []


@pytest.fixture
def manager(app_config, ledger, host_addresses):
    return LoopbackManager(app_config, ledger, host_lookup=lambda: list(host_addresses))
