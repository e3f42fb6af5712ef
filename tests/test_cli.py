"""Tests for the tlds command-line tool."""

import random
from unittest.mock import MagicMock, patch

import pytest

from tlds.cli import build_parser, display_domains, display_status, main
from tlds.persistence import save_snapshot
from tlds.snapshot import build_snapshot

from .conftest import BOOTSTRAP_AT, _capture_console

SAMPLE_IANA_TEXT = """\
# Version 2024020400, Last Updated Mon Feb  5 07:07:01 2024 UTC
AAA
COM
XN--11B4C3D
"""


@pytest.fixture(autouse=True)
def no_logging_setup():
    with patch("tlds.cli.setup_logging") as mock_setup:
        yield mock_setup


@pytest.fixture
def cache(make_cache, store, clock):
    snapshot = build_snapshot(
        SAMPLE_IANA_TEXT,
        clock.now,
        is_bootstrap=False,
        last_fetch_succeeded=True,
        last_success_at=clock.now,
        rng=random.Random(0),
    )
    save_snapshot(store, snapshot)
    return make_cache(MagicMock(return_value=SAMPLE_IANA_TEXT))


def test_parser_requires_command():
    with pytest.raises(SystemExit):
        build_parser().parse_args([])


def test_list_prints_domains(cache):
    test_console, buf = _capture_console()
    assert main(["list"], cache=cache, output_console=test_console) == 0
    output = buf.getvalue()
    assert "Top-Level Domains" in output
    assert "XN--11B4C3D" in output
    assert "Total: 3" in output


def test_list_comments(cache):
    test_console, buf = _capture_console()
    assert main(["list", "--comments"], cache=cache, output_console=test_console) == 0
    output = buf.getvalue()
    assert "Version 2024020400" in output
    assert "Total: 1" in output


def test_lookup_found(cache):
    test_console, buf = _capture_console()
    assert main(["lookup", "xn--11b4c3d"], cache=cache, output_console=test_console) == 0
    assert "XN--11B4C3D" in buf.getvalue()


def test_lookup_not_found(cache):
    test_console, buf = _capture_console()
    assert main(["lookup", "example"], cache=cache, output_console=test_console) == 1
    assert "not found" in buf.getvalue()


def test_status(cache, clock):
    test_console, buf = _capture_console()
    assert main(["status"], cache=cache, output_console=test_console) == 0
    output = buf.getvalue()
    assert "TLD Snapshot Status" in output
    assert clock.now.isoformat() in output
    assert "Refresh in progress" in output


def test_wait_reports_refreshed_snapshot(make_cache, clock):
    fetcher = MagicMock(return_value=SAMPLE_IANA_TEXT)
    cache = make_cache(fetcher)
    clock.now = BOOTSTRAP_AT.replace(year=2024)

    test_console, buf = _capture_console()
    assert main(["--wait", "lookup", "XN--11b4c3d"], cache=cache, output_console=test_console) == 0
    fetcher.assert_called_once()
    assert "XN--11B4C3D" in buf.getvalue()


def test_verbose_enables_debug_logging(cache, no_logging_setup):
    test_console, _ = _capture_console()
    main(["--verbose", "status"], cache=cache, output_console=test_console)
    no_logging_setup.assert_called_once_with(10)


def test_display_domains_uses_rich_table():
    test_console, buf = _capture_console()
    snapshot = build_snapshot(
        "COM\nNET\n",
        BOOTSTRAP_AT,
        is_bootstrap=True,
        last_fetch_succeeded=True,
        last_success_at=BOOTSTRAP_AT,
    )
    display_domains(snapshot, output_console=test_console)
    assert "Domain" in buf.getvalue()


def test_display_status_shows_failed_update():
    test_console, buf = _capture_console()
    snapshot = build_snapshot(
        "COM\n",
        BOOTSTRAP_AT,
        is_bootstrap=False,
        last_fetch_succeeded=False,
        last_success_at=BOOTSTRAP_AT,
    )
    display_status(snapshot, refresh_in_flight=True, output_console=test_console)
    output = buf.getvalue()
    assert "no" in output
    assert "yes" in output
