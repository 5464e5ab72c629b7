import copy
import logging
import os
from os import PathLike
from typing import Any, Optional, Union

import toml


class ConfigFile:
    """
    A TOML file of sections, with a copy of `defaults` used whenever the file is
    missing, empty or unreadable.
    """

    def __init__(self, config_file: Union[str, PathLike] = "config.toml", defaults: Optional[dict[str, Any]] = None):
        self.logger = logging.getLogger(__name__)
        self.logger.info(f"Initializing {__name__} for {config_file}")

        self.config_file = os.fspath(config_file)
        self.defaults: dict[str, Any] = defaults or {}
        self.data: dict[str, Any] = {}

    @property
    def exists(self) -> bool:
        return os.path.isfile(self.config_file)

    def load(self) -> dict[str, Any]:
        """
        Reads the file into `data`.

        :raises FileNotFoundError: if the file does not exist
        :raises toml.TomlDecodeError: if the file is not valid TOML
        """
        try:
            self.data = toml.load(self.config_file)
        except FileNotFoundError as e:
            self.logger.error(f"Failed to load config file: {e}")
            raise
        except toml.TomlDecodeError as e:
            self.logger.error(f"Unable to decode {self.config_file}: {e}")
            raise
        self.logger.debug(f"Loaded config from {self.config_file}")
        return self.data

    def save(self):
        directory = os.path.dirname(self.config_file)
        if directory:
            os.makedirs(directory, exist_ok=True)

        # Written beside the target, then swapped in.
        tmp_file = f"{self.config_file}.tmp"
        with open(tmp_file, "w") as f:
            toml.dump(self.data, f)
        os.replace(tmp_file, self.config_file)
        self.logger.debug(f"Saved config to {self.config_file}")

    def create_defaults(self):
        self.data = copy.deepcopy(self.defaults)

    def load_or_create_defaults(self, allow_empty: bool = False):
        try:
            self.load()
        except FileNotFoundError:
            self.logger.warning(f"No config at {self.config_file}, using defaults")
            self.create_defaults()
            return
        except toml.TomlDecodeError:
            self.logger.warning(f"Unreadable config at {self.config_file}, using defaults")
            self.create_defaults()
            return

        if not self.data and not allow_empty:
            self.logger.warning("Config file was empty, and allow_empty is false. Creating defaults")
            self.create_defaults()
