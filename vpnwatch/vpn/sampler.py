"""Platform aware decoding of native status payloads."""

import json
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, Mapping, Optional

from .exceptions import UnsupportedPlatformError
from .models import PlatformKind, Stage, Status
from .utils import elapsed_since, format_duration, parse_timestamp
from ..logging_utility import logger


class StatusDecoder(ABC):
    """Turns one platform's raw status payload into a Status."""

    @abstractmethod
    def decode(self, payload: Any, fallback_connected_at: Optional[datetime]) -> Status:
        ...


class FlatStatusDecoder(StatusDecoder):
    """
    Decoder for underscore delimited payloads.

    Layout: connectedOn_packetsIn_packetsOut_byteIn_byteOut
    """
    FIELD_COUNT = 5

    def decode(self, payload: Any, fallback_connected_at: Optional[datetime]) -> Status:
        fields = str(payload).split("_")
        if len(fields) < self.FIELD_COUNT:
            logger.warning(f"Status payload has {len(fields)} fields, expected {self.FIELD_COUNT}")
            return Status.empty()

        connected_on = parse_timestamp(fields[0])
        if connected_on is None:
            logger.warning(f"Unparsable connection timestamp in status payload: {fields[0]!r}")
            return Status.empty()

        packets_in, packets_out, byte_in, byte_out = fields[1:self.FIELD_COUNT]
        return Status(
            connected_on=connected_on,
            duration=format_duration(elapsed_since(connected_on)),
            packets_in=packets_in,
            packets_out=packets_out,
            byte_in=byte_in,
            byte_out=byte_out,
        )


class JsonStatusDecoder(StatusDecoder):
    """Decoder for JSON key/value payloads without packet counters."""

    @staticmethod
    def _counter(data: Mapping[str, Any], key: str) -> str:
        value = data.get(key)
        if value is None:
            return "0"
        text = str(value)
        return text if text.strip() else "0"

    def decode(self, payload: Any, fallback_connected_at: Optional[datetime]) -> Status:
        if isinstance(payload, Mapping):
            data = payload
        else:
            try:
                data = json.loads(payload)
            except (TypeError, ValueError) as e:
                logger.warning(f"Could not decode status payload: {e}")
                return Status.empty()
            if not isinstance(data, Mapping):
                logger.warning(f"Status payload is not an object: {payload!r}")
                return Status.empty()

        connected_on = parse_timestamp(str(data.get("connected_on"))) or fallback_connected_at
        if connected_on is None:
            return Status.empty()

        byte_in = self._counter(data, "byte_in")
        byte_out = self._counter(data, "byte_out")
        return Status(
            connected_on=connected_on,
            duration=format_duration(elapsed_since(connected_on)),
            byte_in=byte_in,
            byte_out=byte_out,
            packets_in=byte_in,
            packets_out=byte_out,
        )


DEFAULT_DECODERS: Dict[PlatformKind, StatusDecoder] = {
    PlatformKind.IOS: FlatStatusDecoder(),
    PlatformKind.ANDROID: JsonStatusDecoder(),
}


class StatusSampler:
    """Builds Status snapshots from raw payloads using per platform decoders."""

    def __init__(self, decoders: Optional[Dict[PlatformKind, StatusDecoder]] = None):
        self.decoders = dict(DEFAULT_DECODERS if decoders is None else decoders)

    def register(self, platform: PlatformKind, decoder: StatusDecoder) -> None:
        self.decoders[platform] = decoder

    def sample(
            self,
            current_stage: Stage,
            payload: Any,
            platform: PlatformKind,
            fallback_connected_at: Optional[datetime] = None,
    ) -> Status:
        """
        Decode a status payload.

        Args:
            current_stage: Stage the session is in, payloads are ignored unless connected
            payload: Raw status payload, may be None
            platform: Platform that produced the payload
            fallback_connected_at: Used when the payload has no usable timestamp

        Returns:
            Status snapshot, empty when not connected or nothing usable was found

        Raises:
            UnsupportedPlatformError: If no decoder is registered for platform
        """
        if current_stage != Stage.CONNECTED:
            return Status.empty()
        if payload is None:
            return Status.empty()

        decoder = self.decoders.get(platform)
        if decoder is None:
            raise UnsupportedPlatformError(f"Status decoding not supported on platform '{platform.value}'")
        return decoder.decode(payload, fallback_connected_at)
