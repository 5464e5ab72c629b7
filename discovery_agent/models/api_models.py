from typing import Optional

from pydantic import BaseModel, Field

from discovery_agent.lib.discovery.domain import Interface


class RegisterRequest(BaseModel):
    name: Optional[str] = Field(
        None, description="Device name to announce, defaults to the configured name"
    )
    port: Optional[int] = Field(
        None, ge=0, le=65535, description="Port to announce, defaults to the configured port"
    )


class RegistrationResponse(BaseModel):
    serial: Optional[str] = None
    registered: bool


class StatusResponse(RegistrationResponse):
    interfaces: list[Interface] = Field(default_factory=list)
