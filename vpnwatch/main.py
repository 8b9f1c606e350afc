from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from .logging_utility import Logger, logger
from .settings import MonitorSettings, load_settings
from .vpn.exceptions import InvalidConfigError, NotInitializedError, VPNError
from .vpn.loopback import LoopbackTransport
from .vpn.manager import VPNSessionMonitor
from .vpn.models import Stage, Status


class ConnectRequest(BaseModel):
    config: str
    name: str
    username: Optional[str] = None
    password: Optional[str] = None
    bypass_packages: List[str] = []
    cert_is_required: bool = False


class StageResponse(BaseModel):
    stage: str
    raw: Optional[str] = None


class SessionState:
    """Latest values pushed by the monitor callbacks"""

    def __init__(self):
        self.status = Status.empty()

    def on_status_changed(self, status: Status) -> None:
        self.status = status


def build_monitor(settings: MonitorSettings, session: SessionState) -> VPNSessionMonitor:
    transport = LoopbackTransport()
    return VPNSessionMonitor(
        transport=transport,
        feed=transport.feed,
        platform=settings.platform,
        on_status_changed=session.on_status_changed,
        poll_interval=settings.poll_interval,
    )


def create_app(settings: Optional[MonitorSettings] = None, monitor: Optional[VPNSessionMonitor] = None) -> FastAPI:
    settings = settings or load_settings()
    Logger().set_level(settings.log_level)
    session = SessionState()
    if monitor is None:
        monitor = build_monitor(settings, session)
    elif monitor.on_status_changed is None:
        monitor.on_status_changed = session.on_status_changed

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await monitor.initialize(
            provider_bundle_identifier=settings.provider_bundle_identifier,
            localized_description=settings.localized_description,
            group_identifier=settings.group_identifier,
        )
        yield
        await monitor.stop()

    app = FastAPI(title="VPNWatch", lifespan=lifespan)
    app.state.monitor = monitor
    app.state.session = session

    def require_feed() -> None:
        if not monitor.listening:
            reason = monitor.failure or "monitor is not listening"
            logger.error(f"Stage event feed unavailable: {reason}")
            raise HTTPException(status_code=503, detail="Stage event feed unavailable")

    @app.get("/stage", response_model=StageResponse)
    async def get_stage():
        """Last stage seen on the feed, or the queried one before any event"""
        require_feed()
        if monitor.last_stage is not None:
            return StageResponse(stage=monitor.last_stage.value, raw=monitor.last_raw_stage)
        stage: Stage = await monitor.stage()
        return StageResponse(stage=stage.value)

    @app.get("/status")
    async def get_status():
        """Current session status"""
        require_feed()
        try:
            return (await monitor.status()).to_dict()
        except NotInitializedError as e:
            raise HTTPException(status_code=503, detail=str(e))
        except VPNError as e:
            logger.error(f"Error getting status: {str(e)}")
            raise HTTPException(status_code=500, detail="Failed to get status")

    @app.get("/status/latest")
    async def get_latest_status():
        """Last status sample pushed by the monitor"""
        return session.status.to_dict()

    @app.post("/connect")
    async def connect(request: ConnectRequest):
        """Start a VPN session"""
        try:
            await monitor.connect(
                config=request.config,
                name=request.name,
                username=request.username,
                password=request.password,
                bypass_packages=request.bypass_packages,
                cert_is_required=request.cert_is_required,
                randomize=settings.randomize_remotes,
            )
            return {"status": "success", "message": f"Connecting to {request.name}"}
        except InvalidConfigError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except VPNError as e:
            logger.error(f"Error connecting VPN: {str(e)}")
            raise HTTPException(status_code=500, detail="Failed to connect VPN")

    @app.post("/disconnect")
    async def disconnect():
        """Stop the VPN session"""
        try:
            await monitor.disconnect()
            return {"status": "success", "message": "VPN disconnected"}
        except VPNError as e:
            logger.error(f"Error disconnecting VPN: {str(e)}")
            raise HTTPException(status_code=500, detail="Failed to disconnect VPN")

    @app.post("/request_permission")
    async def request_permission():
        """Ask for the VPN permission"""
        try:
            return {"granted": await monitor.request_permission()}
        except VPNError as e:
            logger.error(f"Error requesting permission: {str(e)}")
            raise HTTPException(status_code=500, detail="Failed to request permission")

    return app
