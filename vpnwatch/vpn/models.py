"""Data models for VPN session monitoring."""

from dataclasses import dataclass, asdict
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


class Stage(Enum):
    """Stages of a VPN connection.

    Declaration order matters: stage parsing picks the first member whose
    name contains the raw token.
    """
    PREPARE = "prepare"
    AUTHENTICATING = "authenticating"
    CONNECTING = "connecting"
    AUTHENTICATION = "authentication"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    DISCONNECTING = "disconnecting"
    DENIED = "denied"
    ERROR = "error"
    WAIT_CONNECTION = "wait_connection"
    VPN_GENERATE_CONFIG = "vpn_generate_config"
    GET_CONFIG = "get_config"
    TCP_CONNECT = "tcp_connect"
    UDP_CONNECT = "udp_connect"
    ASSIGN_IP = "assign_ip"
    RESOLVE = "resolve"
    EXITING = "exiting"
    UNKNOWN = "unknown"


class PlatformKind(Enum):
    """Native platform producing the status payload"""
    IOS = "ios"
    ANDROID = "android"
    DESKTOP = "desktop"


class MonitorState(Enum):
    """Session monitor lifecycle state"""
    IDLE = "idle"
    DISCONNECTED = "disconnected"
    CONNECTED = "connected"


@dataclass(frozen=True)
class Status:
    """Snapshot of the session counters"""
    connected_on: Optional[datetime] = None
    duration: str = "00:00:00"
    byte_in: str = "0"
    byte_out: str = "0"
    packets_in: str = "0"
    packets_out: str = "0"

    @classmethod
    def empty(cls) -> 'Status':
        return cls()

    @property
    def is_empty(self) -> bool:
        return self == Status.empty()

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["connected_on"] = self.connected_on.isoformat() if self.connected_on else None
        return data
