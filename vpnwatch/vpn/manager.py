"""VPN session monitoring implementation."""

import asyncio
from datetime import datetime, timezone
from typing import Callable, List, Optional

from .command_factory import VPNCommandFactory
from .config_filter import randomize_remotes
from .exceptions import ConfigurationError, FeedClosedError, NotInitializedError
from .models import MonitorState, PlatformKind, Stage, Status
from .sampler import StatusSampler
from .timer import PeriodicTask
from .transport import ControlTransport, StageEventFeed, Subscription
from .utils import parse_stage
from ..logging_utility import logger


StageCallback = Callable[[Stage, Optional[str]], None]
StatusCallback = Callable[[Status], None]


class VPNSessionMonitor:
    """
    Tracks a VPN session from the native stage feed.

    Stage changes are edge triggered: a callback fires only when the parsed
    stage differs from the previous one. While connected, a status sample is
    taken every poll_interval seconds because the native side does not push
    duration or counter updates.

    Callbacks run inline on the event loop and must return quickly.
    """

    def __init__(
            self,
            transport: ControlTransport,
            feed: StageEventFeed,
            platform: PlatformKind,
            on_stage_changed: Optional[StageCallback] = None,
            on_status_changed: Optional[StatusCallback] = None,
            poll_interval: float = 1.0,
            sampler: Optional[StatusSampler] = None,
    ):
        self.transport = transport
        self.feed = feed
        self.platform = platform
        self.on_stage_changed = on_stage_changed
        self.on_status_changed = on_status_changed
        self.sampler = sampler or StatusSampler()
        self.initialized = False

        self._status_timer = PeriodicTask(poll_interval, self._sample_tick, name="status-sampler")
        self._subscription: Optional[Subscription] = None
        self._listener: Optional[asyncio.Task] = None
        self._last_stage: Optional[Stage] = None
        self._last_raw_stage: Optional[str] = None
        self._connected_at: Optional[datetime] = None

    @property
    def last_stage(self) -> Optional[Stage]:
        return self._last_stage

    @property
    def last_raw_stage(self) -> Optional[str]:
        return self._last_raw_stage

    @property
    def connected_at(self) -> Optional[datetime]:
        return self._connected_at

    @property
    def sampling(self) -> bool:
        return self._status_timer.is_active

    @property
    def listening(self) -> bool:
        return self._listener is not None and not self._listener.done()

    @property
    def failure(self) -> Optional[BaseException]:
        """Error that ended the stage listener, None while it runs or after a clean stop."""
        if self._listener is None or not self._listener.done() or self._listener.cancelled():
            return None
        return self._listener.exception()

    @property
    def state(self) -> MonitorState:
        if not (self.initialized or self.listening):
            return MonitorState.IDLE
        if self._last_stage == Stage.CONNECTED:
            return MonitorState.CONNECTED
        return MonitorState.DISCONNECTED

    def start(self) -> None:
        """Subscribe to the stage feed. Needs a running event loop."""
        if self.listening:
            return
        self._last_stage = None
        self._last_raw_stage = None
        self._subscription = self.feed.subscribe()
        self._listener = asyncio.get_running_loop().create_task(
            self._listen(self._subscription), name="stage-listener"
        )
        logger.info(f"Session monitor started for platform {self.platform.value}")

    async def stop(self) -> None:
        """Unsubscribe from the feed and stop sampling."""
        listener = self._listener
        failure = self.failure
        self._teardown()
        if failure is not None:
            logger.error(f"Stage listener had ended with an error: {failure!r}")
        elif listener is not None and not listener.done():
            listener.cancel()
            await asyncio.gather(listener, return_exceptions=True)
        logger.info("Session monitor stopped")

    async def wait(self) -> None:
        """
        Wait for the stage listener to finish.

        Raises:
            FeedClosedError: If the feed ended while the monitor listened
            Exception: Whatever error the feed was closed with
        """
        if self._listener is not None:
            await self._listener

    async def initialize(
            self,
            provider_bundle_identifier: Optional[str] = None,
            localized_description: Optional[str] = None,
            group_identifier: Optional[str] = None,
            last_status: Optional[StatusCallback] = None,
            last_stage: Optional[Callable[[Stage], None]] = None,
    ) -> None:
        """
        Start monitoring and initialize the native engine.

        Must be called before connect() or status().

        Args:
            provider_bundle_identifier: Network extension identifier (iOS)
            localized_description: Description shown in the system settings (iOS)
            group_identifier: App group identifier (iOS)
            last_status: Receives the current status once initialized
            last_stage: Receives the current stage once initialized

        Raises:
            ConfigurationError: If an identifier required on iOS is missing
            TransportError: If the native side rejects the initialization
        """
        if self.platform == PlatformKind.IOS:
            missing = [
                name for name, value in (
                    ("group_identifier", group_identifier),
                    ("provider_bundle_identifier", provider_bundle_identifier),
                    ("localized_description", localized_description),
                ) if not value
            ]
            if missing:
                raise ConfigurationError(f"Missing values required on iOS: {', '.join(missing)}")

        self._notify_status(Status.empty())
        self.start()
        try:
            await self.transport.invoke(VPNCommandFactory.initialize(
                group_identifier=group_identifier,
                provider_bundle_identifier=provider_bundle_identifier,
                localized_description=localized_description,
            ))
        except Exception as e:
            logger.error(f"Failed to initialize VPN engine: {str(e)}")
            await self.stop()
            raise

        self.initialized = True
        logger.info("VPN engine initialized")

        current_status, current_stage = await asyncio.gather(self.status(), self.stage())
        if last_status is not None:
            last_status(current_status)
        if last_stage is not None:
            last_stage(current_stage)

    async def connect(
            self,
            config: str,
            name: str,
            username: Optional[str] = None,
            password: Optional[str] = None,
            bypass_packages: Optional[List[str]] = None,
            cert_is_required: bool = False,
            randomize: bool = False,
    ) -> None:
        """
        Ask the native side to connect.

        Args:
            config: OpenVPN config script (.ovpn contents)
            name: Connection name shown in the system notification
            username: Username if the config has auth-user-pass
            password: Password if the config has auth-user-pass
            bypass_packages: Applications excluded from the tunnel (Android)
            cert_is_required: Set when the config carries a client certificate
            randomize: Keep a single random remote of the config

        Raises:
            NotInitializedError: If initialize() did not complete
            InvalidConfigError: If randomize is set and the config has no remote
            TransportError: If the native side rejects the request
        """
        self._require_initialized()
        if randomize:
            config = randomize_remotes(config)

        logger.info(f"Connecting VPN '{name}'")
        await self.transport.invoke(VPNCommandFactory.connect(
            config=config,
            name=name,
            username=username,
            password=password,
            bypass_packages=bypass_packages,
            cert_is_required=cert_is_required,
        ))

    async def disconnect(self) -> None:
        """Stop sampling immediately, then ask the native side to disconnect."""
        self._connected_at = None
        self._status_timer.cancel()
        logger.info("Disconnecting VPN")
        await self.transport.invoke(VPNCommandFactory.disconnect())

    async def stage(self) -> Stage:
        """Query the current stage, DISCONNECTED if the query fails."""
        try:
            raw = await self.transport.invoke(VPNCommandFactory.stage())
        except Exception as e:
            logger.warning(f"Stage query failed, assuming disconnected: {str(e)}")
            return Stage.DISCONNECTED
        return parse_stage(raw)

    async def is_connected(self) -> bool:
        return await self.stage() == Stage.CONNECTED

    async def status(self) -> Status:
        """
        Query and decode the current session status.

        Returns:
            Status, empty when not connected or the query failed

        Raises:
            NotInitializedError: If initialize() did not complete
            UnsupportedPlatformError: If the platform has no status decoder
        """
        self._require_initialized()
        current_stage = await self.stage()
        if current_stage != Stage.CONNECTED:
            return Status.empty()

        try:
            payload = await self.transport.invoke(VPNCommandFactory.status(self.platform))
        except Exception as e:
            logger.warning(f"Status query failed: {str(e)}")
            payload = None
        return self.sampler.sample(current_stage, payload, self.platform, self._connected_at)

    async def request_permission(self) -> bool:
        """Request the VPN permission, True if it was already granted."""
        granted = await self.transport.invoke(VPNCommandFactory.request_permission())
        return bool(granted)

    def _handle_stage_event(self, raw: Optional[str]) -> None:
        stage = parse_stage(raw)
        if stage == self._last_stage:
            return

        previous = self._last_stage
        self._last_stage = stage
        self._last_raw_stage = raw
        logger.info(
            f"Stage changed: {previous.value if previous else None} -> {stage.value} (raw: {raw!r})"
        )
        self._notify_stage(stage, raw)

        if stage == Stage.CONNECTED:
            self._connected_at = datetime.now(timezone.utc)
            self._status_timer.start()
        elif stage == Stage.DISCONNECTED:
            self._status_timer.cancel()
            self._connected_at = None

    async def _listen(self, subscription: Subscription) -> None:
        try:
            async for raw in subscription:
                self._handle_stage_event(raw)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Stage event feed failed: {str(e)}")
            self._status_timer.cancel()
            self._connected_at = None
            raise

        if subscription is self._subscription:
            logger.error("Stage event feed ended while monitoring")
            self._status_timer.cancel()
            self._connected_at = None
            raise FeedClosedError("Stage event feed ended while monitoring")

    async def _sample_tick(self) -> None:
        status = await self.status()
        # disconnect() or a restart may have happened while the query was pending
        if not self._status_timer.is_current():
            return
        logger.debug(f"Status sample: {status}")
        self._notify_status(status)

    def _teardown(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
        self._subscription = None
        self._listener = None
        self._status_timer.cancel()
        self._last_stage = None
        self._last_raw_stage = None
        self._connected_at = None
        self.initialized = False

    def _require_initialized(self) -> None:
        if not self.initialized:
            raise NotInitializedError("VPN engine needs to be initialized")

    def _notify_stage(self, stage: Stage, raw: Optional[str]) -> None:
        if self.on_stage_changed is None:
            return
        try:
            self.on_stage_changed(stage, raw)
        except Exception as e:
            logger.error(f"Stage callback failed: {str(e)}")

    def _notify_status(self, status: Status) -> None:
        if self.on_status_changed is None:
            return
        try:
            self.on_status_changed(status)
        except Exception as e:
            logger.error(f"Status callback failed: {str(e)}")
