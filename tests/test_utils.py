from datetime import datetime, timedelta, timezone

import pytest

from vpnwatch.vpn.models import Stage
from vpnwatch.vpn.utils import elapsed_since, format_duration, parse_stage, parse_timestamp


@pytest.mark.parametrize("raw", [None, "", "   ", "idle", "IDLE", " Idle ", "invalid", "INVALID\n"])
def test_idle_tokens_are_disconnected(raw):
    assert parse_stage(raw) == Stage.DISCONNECTED


@pytest.mark.parametrize("raw, expected", [
    ("connected", Stage.CONNECTED),
    ("CONNECTED", Stage.CONNECTED),
    (" Connected ", Stage.CONNECTED),
    ("disconnected", Stage.DISCONNECTED),
    ("WAIT", Stage.WAIT_CONNECTION),
    ("assign", Stage.ASSIGN_IP),
    ("resolve", Stage.RESOLVE),
    ("vpn_generate_config", Stage.VPN_GENERATE_CONFIG),
    ("udp", Stage.UDP_CONNECT),
])
def test_token_contained_in_stage_name(raw, expected):
    assert parse_stage(raw) == expected


def test_first_declared_match_wins():
    # "auth" is in both authenticating and authentication
    assert parse_stage("auth") == Stage.AUTHENTICATING
    # "connect" is in connecting, connected, disconnected, ...
    assert parse_stage("connect") == Stage.CONNECTING
    assert parse_stage("config") == Stage.VPN_GENERATE_CONFIG


@pytest.mark.parametrize("raw", ["reconnecting_now", "NOPROCESS", "connected!", "xyz"])
def test_unmatched_tokens_are_unknown(raw):
    assert parse_stage(raw) == Stage.UNKNOWN


@pytest.mark.parametrize("seconds, expected", [
    (0, "00:00:00"),
    (59, "00:00:59"),
    (61, "00:01:01"),
    (3661, "01:01:01"),
    (86399, "23:59:59"),
    (90000, "25:00:00"),
    (360000, "100:00:00"),
])
def test_format_duration(seconds, expected):
    assert format_duration(timedelta(seconds=seconds)) == expected


def test_format_duration_drops_fractions_and_sign():
    assert format_duration(timedelta(seconds=1.9)) == "00:00:01"
    assert format_duration(timedelta(seconds=-3661)) == "01:01:01"


def test_parse_timestamp_accepts_zulu():
    assert parse_timestamp("2024-01-01T00:00:00Z") == datetime(2024, 1, 1, tzinfo=timezone.utc)


@pytest.mark.parametrize("value, expected", [
    ("2024-01-01 00:00:00 +0000", datetime(2024, 1, 1, tzinfo=timezone.utc)),
    ("20240101T000000Z", datetime(2024, 1, 1, tzinfo=timezone.utc)),
    ("2024-01-01T00:00:00.1234Z", datetime(2024, 1, 1, 0, 0, 0, 123400, tzinfo=timezone.utc)),
])
def test_parse_timestamp_accepts_loose_iso_forms(value, expected):
    assert parse_timestamp(value) == expected


def test_parse_timestamp_accepts_naive_and_offset():
    assert parse_timestamp("2024-01-01 10:30:00") == datetime(2024, 1, 1, 10, 30)
    parsed = parse_timestamp("2024-01-01T10:30:00+02:00")
    assert parsed.utcoffset() == timedelta(hours=2)


@pytest.mark.parametrize("value", [None, "", "None", "yesterday", "2024-13-01T00:00:00"])
def test_parse_timestamp_failures_return_none(value):
    assert parse_timestamp(value) is None


def test_elapsed_since_is_absolute():
    future = datetime.now(timezone.utc) + timedelta(hours=1)
    assert elapsed_since(future) > timedelta(minutes=59)
    past = datetime.now() - timedelta(seconds=30)
    assert timedelta(seconds=29) < elapsed_since(past) < timedelta(seconds=40)
