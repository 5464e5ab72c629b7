import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException, Request

from discovery_agent.lib.configuration.discovery_config_file import DiscoveryConfigFile
from discovery_agent.lib.configuration.schemas import DiscoveryConfig
from discovery_agent.lib.discovery import DiscoveryService
from discovery_agent.lib.logging_utils import setup_logging
from discovery_agent.models.api_models import (
    RegisterRequest,
    RegistrationResponse,
    StatusResponse,
)
from discovery_agent.models.exceptions import (
    DiscoveryAgentException,
    EnumerationFailure,
    NoHardwareIdentity,
    NotDiscovered,
    TransportError,
)

setup_logging(level=logging.INFO)

logger = logging.getLogger(__name__)


def error_status(exc: DiscoveryAgentException) -> int:
    if isinstance(exc, (NoHardwareIdentity, NotDiscovered)):
        return 409
    if isinstance(exc, EnumerationFailure):
        return 503
    if isinstance(exc, TransportError):
        return 502
    return 500


def load_config() -> DiscoveryConfig:
    config_file = DiscoveryConfigFile()
    config_file.load_or_create_defaults()
    return config_file.as_config()


@asynccontextmanager
async def lifespan(app: FastAPI):
    config = load_config()
    service = DiscoveryService(settings=config.Discovery)
    await service.start()

    app.state.config = config
    app.state.service = service

    if config.General.register_on_startup:
        try:
            # Blocks for one round trip, keep it off the loop.
            await asyncio.to_thread(
                service.register_device, config.General.device_name, config.General.port
            )
        except DiscoveryAgentException as e:
            logger.error(f"Registration on startup failed: {e}")

    try:
        yield
    finally:
        try:
            logger.info("Starting application shutdown...")
            if service.registered:
                service.unregister_device()
            await asyncio.wait_for(service.stop(), timeout=10.0)
        except asyncio.TimeoutError:
            logger.warning("Timeout waiting for discovery service to shutdown")
        except DiscoveryAgentException as e:
            logger.error(f"Error during shutdown: {e}")
        finally:
            logger.info("Shutdown process finished")


app = FastAPI(lifespan=lifespan)


@app.get("/status", response_model=StatusResponse)
def status(request: Request):
    snapshot = request.app.state.service.status()
    return StatusResponse(**snapshot.model_dump())


# Plain def: FastAPI runs these in its threadpool.
@app.post("/register", response_model=RegistrationResponse)
def register(request: Request, body: Optional[RegisterRequest] = None):
    service = request.app.state.service
    general = request.app.state.config.General
    body = body or RegisterRequest()
    name = body.name or general.device_name
    port = body.port if body.port is not None else general.port
    try:
        serial = service.register_device(name, port)
    except DiscoveryAgentException as e:
        logger.error(f"Registration of {name} failed: {e}")
        raise HTTPException(status_code=error_status(e), detail=str(e))
    return RegistrationResponse(serial=serial, registered=True)


@app.post("/unregister", response_model=RegistrationResponse)
def unregister(request: Request):
    service = request.app.state.service
    try:
        service.unregister_device()
    except DiscoveryAgentException as e:
        logger.error(f"Unregistration failed: {e}")
        raise HTTPException(status_code=error_status(e), detail=str(e))
    snapshot = service.status()
    return RegistrationResponse(serial=snapshot.serial, registered=snapshot.registered)
