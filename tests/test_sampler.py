import re
from datetime import datetime, timedelta, timezone

import pytest

from vpnwatch.vpn.exceptions import UnsupportedPlatformError
from vpnwatch.vpn.models import PlatformKind, Stage, Status
from vpnwatch.vpn.sampler import FlatStatusDecoder, StatusDecoder, StatusSampler


DURATION = re.compile(r"^\d{2,}:\d{2}:\d{2}$")
FLAT_PAYLOAD = "2024-01-01T00:00:00Z_10_20_1000_2000"


@pytest.fixture
def sampler():
    return StatusSampler()


@pytest.mark.parametrize("stage", [s for s in Stage if s != Stage.CONNECTED])
def test_not_connected_yields_empty_status(sampler, stage):
    assert sampler.sample(stage, FLAT_PAYLOAD, PlatformKind.IOS) == Status.empty()


def test_not_connected_skips_platform_check(sampler):
    assert sampler.sample(Stage.DISCONNECTED, "garbage", PlatformKind.DESKTOP).is_empty


def test_missing_payload_yields_empty_status(sampler):
    assert sampler.sample(Stage.CONNECTED, None, PlatformKind.ANDROID) == Status.empty()


def test_flat_payload(sampler):
    status = sampler.sample(Stage.CONNECTED, FLAT_PAYLOAD, PlatformKind.IOS)

    assert status.connected_on == datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert status.packets_in == "10"
    assert status.packets_out == "20"
    assert status.byte_in == "1000"
    assert status.byte_out == "2000"
    assert DURATION.match(status.duration)


def test_flat_payload_duration_counts_from_connection():
    connected_on = datetime.now(timezone.utc) - timedelta(seconds=3661)
    payload = f"{connected_on.isoformat()}_1_2_3_4"

    status = FlatStatusDecoder().decode(payload, None)

    assert status.duration in ("01:01:01", "01:01:02")


@pytest.mark.parametrize("payload", [
    "not-a-date_10_20_1000_2000",
    "2024-01-01T00:00:00Z_10_20",
    "",
])
def test_flat_payload_failures_are_empty(sampler, payload):
    assert sampler.sample(Stage.CONNECTED, payload, PlatformKind.IOS) == Status.empty()


def test_flat_payload_ignores_fallback(sampler):
    fallback = datetime.now(timezone.utc)
    status = sampler.sample(Stage.CONNECTED, "bad_1_2_3_4", PlatformKind.IOS, fallback)
    assert status.is_empty


def test_json_payload_defaults_blank_counters(sampler):
    payload = '{"connected_on":"2024-01-01T00:00:00Z","byte_in":"","byte_out":null}'

    status = sampler.sample(Stage.CONNECTED, payload, PlatformKind.ANDROID)

    assert status.connected_on == datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert status.byte_in == "0"
    assert status.byte_out == "0"
    assert status.packets_in == "0"
    assert status.packets_out == "0"


def test_json_payload_packets_mirror_bytes(sampler):
    payload = {"connected_on": "2024-01-01T00:00:00Z", "byte_in": 4096, "byte_out": "  512 "}

    status = sampler.sample(Stage.CONNECTED, payload, PlatformKind.ANDROID)

    assert status.byte_in == "4096"
    assert status.packets_in == "4096"
    assert status.byte_out == "  512 "
    assert status.packets_out == status.byte_out


def test_json_payload_missing_counters(sampler):
    status = sampler.sample(Stage.CONNECTED, '{"connected_on":"2024-01-01T00:00:00Z"}', PlatformKind.ANDROID)
    assert (status.byte_in, status.byte_out) == ("0", "0")


def test_json_payload_uses_fallback_timestamp(sampler):
    fallback = datetime.now(timezone.utc) - timedelta(seconds=5)

    status = sampler.sample(Stage.CONNECTED, '{"connected_on":null,"byte_in":"7"}', PlatformKind.ANDROID, fallback)

    assert status.connected_on == fallback
    assert status.duration in ("00:00:05", "00:00:06")
    assert status.byte_in == "7"


def test_json_payload_without_any_timestamp_is_empty(sampler):
    status = sampler.sample(Stage.CONNECTED, '{"connected_on":"soon"}', PlatformKind.ANDROID)
    assert status.is_empty


@pytest.mark.parametrize("payload", ["{not json", "[1, 2]", "42"])
def test_json_payload_garbage_is_empty(sampler, payload):
    assert sampler.sample(Stage.CONNECTED, payload, PlatformKind.ANDROID).is_empty


def test_unsupported_platform_raises(sampler):
    with pytest.raises(UnsupportedPlatformError):
        sampler.sample(Stage.CONNECTED, FLAT_PAYLOAD, PlatformKind.DESKTOP)


def test_registered_decoder_is_used(sampler):
    class FixedDecoder(StatusDecoder):
        def decode(self, payload, fallback_connected_at):
            return Status(byte_in=str(payload))

    sampler.register(PlatformKind.DESKTOP, FixedDecoder())

    assert sampler.sample(Stage.CONNECTED, 99, PlatformKind.DESKTOP).byte_in == "99"


def test_status_to_dict():
    status = Status(connected_on=datetime(2024, 1, 1, tzinfo=timezone.utc), byte_in="5")
    data = status.to_dict()

    assert data["connected_on"] == "2024-01-01T00:00:00+00:00"
    assert data["byte_in"] == "5"
    assert Status.empty().to_dict()["connected_on"] is None
