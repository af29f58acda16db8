"""Unit tests for ledger module."""

from unittest.mock import patch

import pytest

from loopback_manager.errors import IOFailure, NotFound
from loopback_manager.ledger import (
    AssignmentLedger,
    RepositoryKey,
    parse_ledger,
    render_ledger,
)


class TestRepositoryKey:
    def test_str(self):
        assert str(RepositoryKey("acme", "api")) == "acme/api"

    def test_equality_is_exact(self):
        assert RepositoryKey("acme", "api") == RepositoryKey("acme", "api")
        assert RepositoryKey("Acme", "api") != RepositoryKey("acme", "api")

    def test_parse(self):
        assert RepositoryKey.parse("acme/api") == RepositoryKey("acme", "api")
        assert RepositoryKey.parse("acme/api/v2") == RepositoryKey("acme", "api/v2")

    @pytest.mark.parametrize("value", ["acme", "/api", "acme/", ""])
    def test_parse_invalid(self, value):
        with pytest.raises(ValueError):
            RepositoryKey.parse(value)


class TestParseAndRender:
    def test_parse_skips_comments_blank_and_malformed(self):
        text = "\n".join(
            [
                "# header",
                "",
                "acme api 127.0.0.10",
                "acme   web\t127.0.0.11",
                "broken line",
                "too many fields here x",
                "   ",
            ]
        )
        assert parse_ledger(text) == {
            RepositoryKey("acme", "api"): "127.0.0.10",
            RepositoryKey("acme", "web"): "127.0.0.11",
        }

    def test_render_sorted_single_space(self):
        data = {
            RepositoryKey("zeta", "b"): "127.0.0.12",
            RepositoryKey("acme", "web"): "127.0.0.11",
            RepositoryKey("acme", "api"): "127.0.0.10",
        }
        assert render_ledger(data) == "acme api 127.0.0.10\nacme web 127.0.0.11\nzeta b 127.0.0.12"

    def test_render_empty(self):
        assert render_ledger({}) == ""


class TestAssignmentLedger:
    def test_load_missing_file_is_empty(self, tmp_path):
        ledger = AssignmentLedger.load(tmp_path / "nope" / "assignments.txt")
        assert len(ledger) == 0
        assert ledger.used_ips() == set()

    def test_load_read_error(self, tmp_path):
        path = tmp_path / "assignments.txt"
        path.mkdir()  # a directory cannot be read as text
        with pytest.raises(IOFailure):
            AssignmentLedger.load(path)

    def test_load_undecodable_file(self, tmp_path):
        path = tmp_path / "assignments.txt"
        path.write_bytes(b"acme api 127.0.0.10\n\xff\xfe\n")
        with pytest.raises(IOFailure, match="failed to decode assignments"):
            AssignmentLedger.load(path)

    def test_save_creates_parent_dir(self, tmp_path):
        path = tmp_path / "deep" / "nested" / "assignments.txt"
        ledger = AssignmentLedger(path)
        ledger.set(RepositoryKey("acme", "api"), "127.0.0.10")
        assert path.read_text() == "acme api 127.0.0.10"

    def test_round_trip(self, tmp_path):
        path = tmp_path / "assignments.txt"
        path.write_text("# mine\nzeta b   127.0.0.12\n\nacme api 127.0.0.10\n")
        ledger = AssignmentLedger.load(path)
        ledger.save()

        assert path.read_text() == "acme api 127.0.0.10\nzeta b 127.0.0.12"
        assert AssignmentLedger.load(path).items() == ledger.items()

    def test_save_write_error(self, tmp_path):
        ledger = AssignmentLedger(tmp_path / "assignments.txt")
        with patch("pathlib.Path.write_text", side_effect=PermissionError(13, "Permission denied")):
            with pytest.raises(IOFailure, match="Permission denied"):
                ledger.save()

    def test_set_overwrites_and_persists(self, ledger_path):
        ledger = AssignmentLedger(ledger_path)
        key = RepositoryKey("acme", "api")
        ledger.set(key, "127.0.0.10")
        ledger.set(key, "127.0.0.20")

        assert ledger.get(key) == "127.0.0.20"
        assert AssignmentLedger.load(ledger_path).get(key) == "127.0.0.20"

    def test_get_missing(self, ledger):
        assert ledger.get(RepositoryKey("acme", "api")) is None

    def test_find_by_ip(self, ledger):
        ledger.set(RepositoryKey("acme", "api"), "127.0.0.10")
        assert ledger.find_by_ip("127.0.0.10") == RepositoryKey("acme", "api")
        assert ledger.find_by_ip("127.0.0.11") is None

    def test_owners_of_returns_all_sorted(self, ledger_path):
        ledger = AssignmentLedger(
            ledger_path,
            {
                RepositoryKey("zeta", "b"): "127.0.0.10",
                RepositoryKey("acme", "a"): "127.0.0.10",
            },
        )
        assert ledger.owners_of("127.0.0.10") == [RepositoryKey("acme", "a"), RepositoryKey("zeta", "b")]
        assert ledger.find_by_ip("127.0.0.10") == RepositoryKey("acme", "a")

    def test_remove(self, ledger_path):
        ledger = AssignmentLedger(ledger_path)
        key = RepositoryKey("acme", "api")
        ledger.set(key, "127.0.0.10")

        assert ledger.remove(key) == "127.0.0.10"
        assert key not in ledger
        assert AssignmentLedger.load(ledger_path).get(key) is None

    def test_remove_missing(self, ledger):
        with pytest.raises(NotFound, match="acme/api"):
            ledger.remove(RepositoryKey("acme", "api"))

    def test_key_with_slash_is_distinct(self, ledger_path):
        ledger = AssignmentLedger(ledger_path)
        ledger.set(RepositoryKey("a/b", "c"), "127.0.0.10")
        ledger.set(RepositoryKey("a", "b/c"), "127.0.0.11")
        assert len(ledger) == 2

    def test_duplicates(self, ledger_path):
        ledger = AssignmentLedger(
            ledger_path,
            {
                RepositoryKey("acme", "a"): "127.0.0.10",
                RepositoryKey("acme", "b"): "127.0.0.10",
                RepositoryKey("acme", "c"): "127.0.0.11",
            },
        )
        assert ledger.duplicates() == {
            "127.0.0.10": [RepositoryKey("acme", "a"), RepositoryKey("acme", "b")],
        }

    def test_no_duplicates(self, ledger_path):
        ledger = AssignmentLedger(
            ledger_path,
            {RepositoryKey("acme", "a"): "127.0.0.10", RepositoryKey("acme", "b"): "127.0.0.11"},
        )
        assert ledger.duplicates() == {}

    def test_iteration_sorted(self, ledger_path):
        ledger = AssignmentLedger(
            ledger_path,
            {RepositoryKey("b", "x"): "127.0.0.11", RepositoryKey("a", "y"): "127.0.0.10"},
        )
        assert list(ledger) == [RepositoryKey("a", "y"), RepositoryKey("b", "x")]
