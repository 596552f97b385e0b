"""Persisted per-instance configuration.

The store is the only state shared between provisioning and the ``ip``
command. It is read and written from a single call site per operation and
is not locked; one process drives one instance at a time.
"""
import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field

from shiftctl.config import Config
from shiftctl.errors import FilesystemError

logger = logging.getLogger("shiftctl.instance_config")


class InstanceConfig(BaseModel):
    """Fields persisted for a single guest."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    ip_address: str = Field(default="", alias="IPAddress")
    is_rhel_based: bool = Field(default=False, alias="IsRHELBased")
    supports_network_assignment: bool = Field(default=False, alias="SupportsNetworkAssignment")


class InstanceConfigStore(ABC):
    """Key-value access to an InstanceConfig with an explicit flush."""

    def __init__(self, config: InstanceConfig = None):
        self.config = config or InstanceConfig()

    def get(self, key: str) -> Any:
        if key not in InstanceConfig.model_fields:
            raise KeyError(f"Unknown instance config field: {key}")
        return getattr(self.config, key)

    def set(self, key: str, value: Any) -> None:
        if key not in InstanceConfig.model_fields:
            raise KeyError(f"Unknown instance config field: {key}")
        setattr(self.config, key, value)

    @abstractmethod
    def write(self) -> None:
        """Persist the current values."""


class InMemoryInstanceConfigStore(InstanceConfigStore):
    """Store that keeps values in memory and counts flushes."""

    def __init__(self, config: InstanceConfig = None, **values: Any):
        super().__init__(config or InstanceConfig(**values))
        self.writes = 0

    def write(self) -> None:
        self.writes += 1


class FileInstanceConfigStore(InstanceConfigStore):
    """Store backed by a JSON file using the external field names."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path).expanduser()
        super().__init__(self._load())

    @classmethod
    def for_machine(cls, name: str) -> 'FileInstanceConfigStore':
        """Open the store for a named machine under SHIFTCTL_HOME."""
        return cls(Config.machines_dir() / f"{name}.json")

    def _load(self) -> InstanceConfig:
        if not self.path.exists():
            logger.debug(f"No instance config at {self.path}, using defaults")
            return InstanceConfig()
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                return InstanceConfig.model_validate(json.load(f))
        except (OSError, ValueError) as e:
            raise FilesystemError(f"Cannot read instance config {self.path}: {e}") from e

    def write(self) -> None:
        """Flush the config to disk, replacing the previous file atomically."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=str(self.path.parent), prefix=".instance-", suffix=".json")
            try:
                with os.fdopen(fd, 'w', encoding='utf-8') as f:
                    json.dump(self.config.model_dump(by_alias=True), f, indent=2)
                os.replace(tmp_path, self.path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except OSError as e:
            raise FilesystemError(f"Cannot write instance config {self.path}: {e}") from e
        logger.debug(f"Wrote instance config to {self.path}")
