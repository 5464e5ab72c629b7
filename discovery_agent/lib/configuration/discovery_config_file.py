import os

from pydantic import ValidationError

from discovery_agent.constants import CONFIG_DIR
from discovery_agent.lib.configuration.config_file import ConfigFile
from discovery_agent.lib.configuration.schemas import DiscoveryConfig

DISCOVERY_CONFIG_DIR = CONFIG_DIR


class DiscoveryConfigFile(ConfigFile):
    def __init__(self):
        super().__init__(
            os.path.join(DISCOVERY_CONFIG_DIR, "config.toml"),
            defaults=DiscoveryConfig().model_dump(),
        )

    def load_or_create_defaults(self, allow_empty: bool = False):  # type: ignore[override]
        super().load_or_create_defaults(allow_empty=allow_empty)
        try:
            self.data = DiscoveryConfig(**self.data).model_dump()
        except ValidationError as e:
            self.logger.warning(f"Invalid config in {self.config_file}, restoring defaults. Error: {e}")
            self.create_defaults()
            self.save()

    def as_config(self) -> DiscoveryConfig:
        return DiscoveryConfig(**self.data)
