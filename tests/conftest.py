import pytest

from vpnwatch.vpn.loopback import LoopbackTransport
from vpnwatch.vpn.manager import VPNSessionMonitor
from vpnwatch.vpn.models import PlatformKind


class Recorder:
    """Collects monitor callback invocations."""

    def __init__(self):
        self.stages = []
        self.statuses = []

    def on_stage_changed(self, stage, raw):
        self.stages.append((stage, raw))

    def on_status_changed(self, status):
        self.statuses.append(status)

    @property
    def live_statuses(self):
        return [status for status in self.statuses if not status.is_empty]


@pytest.fixture
def recorder():
    return Recorder()


@pytest.fixture
def transport():
    return LoopbackTransport()


@pytest.fixture
def make_monitor(transport, recorder):
    def _make(platform=PlatformKind.ANDROID, poll_interval=0.02, **kwargs):
        return VPNSessionMonitor(
            transport=transport,
            feed=transport.feed,
            platform=platform,
            on_stage_changed=recorder.on_stage_changed,
            on_status_changed=recorder.on_status_changed,
            poll_interval=poll_interval,
            **kwargs,
        )
    return _make


@pytest.fixture
def monitor(make_monitor):
    return make_monitor()
