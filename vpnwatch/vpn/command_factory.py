"""Factory for creating native control commands."""

from typing import List, Optional
from .commands import (
    Command,
    INITIALIZE,
    CONNECT,
    DISCONNECT,
    STAGE,
    STATUS,
    REQUEST_PERMISSION,
)
from .models import PlatformKind


CLIENT_CERT_NOT_REQUIRED = "client-cert-not-required"


class VPNCommandFactory:
    """Factory for creating VPN control commands."""

    @staticmethod
    def initialize(
            group_identifier: Optional[str] = None,
            provider_bundle_identifier: Optional[str] = None,
            localized_description: Optional[str] = None,
    ) -> Command:
        """Create engine initialization command."""
        return INITIALIZE.with_options(
            group_identifier=group_identifier,
            provider_bundle_identifier=provider_bundle_identifier,
            localized_description=localized_description,
        )

    @staticmethod
    def connect(
            config: str,
            name: str,
            username: Optional[str] = None,
            password: Optional[str] = None,
            bypass_packages: Optional[List[str]] = None,
            cert_is_required: bool = False,
    ) -> Command:
        """Create connect command.

        When the config has no client certificate the native side must be
        told so, otherwise the handshake waits for one.
        """
        if not cert_is_required:
            config = config.rstrip("\n") + "\n" + CLIENT_CERT_NOT_REQUIRED

        return CONNECT.with_options(
            config=config,
            name=name,
            username=username,
            password=password,
            bypass_packages=list(bypass_packages or []),
        )

    @staticmethod
    def disconnect() -> Command:
        """Create disconnect command."""
        return DISCONNECT

    @staticmethod
    def stage() -> Command:
        """Create stage query command."""
        return STAGE

    @staticmethod
    def status(platform: PlatformKind) -> Command:
        """Create status query command."""
        return STATUS.with_option("platform", platform.value)

    @staticmethod
    def request_permission() -> Command:
        """Create permission request command."""
        return REQUEST_PERMISSION
