"""In-process stand-in for the native VPN side.

Answers control commands the way the native plugins do and publishes raw
stage tokens on its feed. Used by the HTTP service and the tests.
"""

import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Set, Tuple

from .commands import Command
from .exceptions import TransportError
from .models import PlatformKind
from .transport import ControlTransport, StageEventFeed
from ..logging_utility import logger


CONNECT_SEQUENCE = (
    "PREPARE",
    "VPN_GENERATE_CONFIG",
    "WAIT_CONNECTION",
    "AUTH",
    "GET_CONFIG",
    "ASSIGN_IP",
    "CONNECTED",
)

DISCONNECT_SEQUENCE = (
    "EXITING",
    "DISCONNECTED",
)


class LoopbackTransport(ControlTransport):
    """Simulated native side with scriptable answers."""

    def __init__(
            self,
            feed: Optional[StageEventFeed] = None,
            permission_granted: bool = True,
            traffic_step: int = 1024,
    ):
        self.feed = feed or StageEventFeed()
        self.permission_granted = permission_granted
        self.traffic_step = traffic_step
        self.calls: List[Tuple[str, Dict[str, Any]]] = []
        self.failing: Set[str] = set()
        self.initialized = False
        self.raw_stage: Optional[str] = None
        self.status_payload: Any = None
        self.connected_on: Optional[datetime] = None
        self.last_config: Optional[str] = None
        self.byte_in = 0
        self.byte_out = 0

    def fail(self, *methods: str) -> None:
        """Make the given methods raise TransportError."""
        self.failing.update(methods)

    def emit_stage(self, raw: Optional[str]) -> None:
        self.raw_stage = raw
        self.feed.publish(raw)

    def methods_called(self) -> List[str]:
        return [method for method, _ in self.calls]

    async def invoke(self, command: Command) -> Any:
        method, arguments = command.build()
        arguments = arguments or {}
        self.calls.append((method, arguments))

        if method in self.failing:
            raise TransportError(f"Native side rejected '{method}'")

        handler = getattr(self, f"_on_{method}", None)
        if handler is None:
            raise TransportError(f"Method '{method}' is not implemented by the native side")
        return handler(arguments)

    def _on_initialize(self, arguments: Dict[str, Any]) -> None:
        self.initialized = True

    def _on_connect(self, arguments: Dict[str, Any]) -> None:
        self.last_config = arguments.get("config")
        self.connected_on = datetime.now(timezone.utc)
        self.byte_in = self.byte_out = 0
        logger.info(f"Loopback connecting '{arguments.get('name')}'")
        for raw in CONNECT_SEQUENCE:
            self.emit_stage(raw)

    def _on_disconnect(self, arguments: Dict[str, Any]) -> None:
        self.connected_on = None
        for raw in DISCONNECT_SEQUENCE:
            self.emit_stage(raw)

    def _on_stage(self, arguments: Dict[str, Any]) -> Optional[str]:
        return self.raw_stage

    def _on_status(self, arguments: Dict[str, Any]) -> Any:
        if self.status_payload is not None:
            return self.status_payload
        if self.connected_on is None:
            return None

        self.byte_in += self.traffic_step
        self.byte_out += self.traffic_step // 2
        platform = PlatformKind(arguments.get("platform", PlatformKind.ANDROID.value))
        if platform == PlatformKind.IOS:
            # Packet counts are not tracked, report one packet per KiB
            return "_".join([
                self.connected_on.isoformat(),
                str(self.byte_in // 1024),
                str(self.byte_out // 1024),
                str(self.byte_in),
                str(self.byte_out),
            ])
        return json.dumps({
            "connected_on": self.connected_on.isoformat(),
            "byte_in": str(self.byte_in),
            "byte_out": str(self.byte_out),
        })

    def _on_request_permission(self, arguments: Dict[str, Any]) -> bool:
        return self.permission_granted
