from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from discovery_agent.constants import (
    DISCOVERY_URL,
    DISCOVERY_USER_AGENT,
    NETLINK_BUFFER_SIZE,
)


class DiscoveryGeneral(BaseModel):
    device_name: str = Field(default="discovery-agent")
    port: int = Field(default=8080, ge=0, le=65535)
    register_on_startup: bool = Field(default=False)


class DiscoverySettings(BaseModel):
    url: str = Field(default=DISCOVERY_URL)
    user_agent: str = Field(default=DISCOVERY_USER_AGENT)
    timeout: int = Field(default=15, gt=0)
    buffer_size: int = Field(default=NETLINK_BUFFER_SIZE, ge=64)

    @field_validator("url", mode="before")
    def strip_url(cls, v):  # noqa: N805
        if isinstance(v, str):
            return v.strip()
        return v


class DiscoveryConfig(BaseModel):
    General: DiscoveryGeneral = Field(default_factory=DiscoveryGeneral)
    Discovery: DiscoverySettings = Field(default_factory=DiscoverySettings)
