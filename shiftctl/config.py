"""Configuration management for the shiftctl application."""
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

# Load environment variables from .env file if it exists
load_dotenv()


class Config:
    """Application configuration with sensible defaults."""

    # Local state
    SHIFTCTL_HOME: str = os.path.expanduser(os.getenv("SHIFTCTL_HOME", "~/.shiftctl"))

    # Download sources
    MIRROR_URL: str = os.getenv(
        "MIRROR_URL", "https://mirror.openshift.com/pub/openshift-v3/clients/"
    )
    DEV_DOWNLOAD_URL: str = os.getenv(
        "DEV_DOWNLOAD_URL", "https://developers.redhat.com/download-manager/jdf/file/"
    )

    # Timeouts (in seconds)
    DOWNLOAD_TIMEOUT: int = int(os.getenv("DOWNLOAD_TIMEOUT", "60"))
    SSH_TIMEOUT: int = int(os.getenv("SSH_TIMEOUT", "10"))
    COMMAND_TIMEOUT: int = int(os.getenv("COMMAND_TIMEOUT", "300"))

    # Guest layout
    DOCKER_PORT: int = int(os.getenv("DOCKER_PORT", "2376"))
    DOCKER_OPTIONS_DIR: str = os.getenv("DOCKER_OPTIONS_DIR", "/etc/docker")
    STATE_DIR: str = os.getenv("STATE_DIR", "/var/lib/minishift")
    NETWORK_HELPER_SCRIPT: str = os.getenv(
        "NETWORK_HELPER_SCRIPT", "/usr/local/bin/minishift-set-ipaddress"
    )
    DEFAULT_STORAGE_DRIVER: str = os.getenv("DEFAULT_STORAGE_DRIVER", "aufs")

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
    LOG_FORMAT: str = os.getenv(
        "LOG_FORMAT",
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    @classmethod
    def machines_dir(cls) -> Path:
        """Directory holding persisted instance configs."""
        return Path(cls.SHIFTCTL_HOME) / "machines"

    @classmethod
    def validate(cls) -> None:
        """Validate required configuration."""
        required = {
            "SHIFTCTL_HOME": cls.SHIFTCTL_HOME,
            "MIRROR_URL": cls.MIRROR_URL,
            "STATE_DIR": cls.STATE_DIR,
            "DOCKER_OPTIONS_DIR": cls.DOCKER_OPTIONS_DIR,
        }
        missing = [k for k, v in required.items() if not v]
        if missing:
            raise ValueError(f"Missing required configuration: {', '.join(missing)}")


# Default settings file locations, first match wins
DEFAULT_CONFIG_PATHS = [
    Path("/etc/shiftctl/config.yaml"),
    Path("~/.config/shiftctl/config.yaml").expanduser(),
    Path("shiftctl-config.yaml").absolute(),
]


class SSHSettings(BaseModel):
    """SSH connection settings for the guest."""
    user: str = Field(default="docker", description="Guest SSH username")
    key_path: str = Field(default="~/.ssh/id_rsa", description="Path to SSH private key")
    port: int = Field(default=22, description="SSH port number")
    connect_timeout: int = Field(default=Config.SSH_TIMEOUT, description="Connection timeout in seconds")

    @field_validator('key_path')
    @classmethod
    def expand_key_path(cls, v: str) -> str:
        """Expand the user home directory in the key path."""
        return os.path.expanduser(v)


class EngineSettings(BaseModel):
    """Container engine defaults applied during provisioning."""
    docker_port: int = Field(default=Config.DOCKER_PORT)
    docker_options_dir: str = Field(default=Config.DOCKER_OPTIONS_DIR)
    default_storage_driver: str = Field(default=Config.DEFAULT_STORAGE_DRIVER)
    insecure_registry: List[str] = Field(default_factory=lambda: ["172.30.0.0/16"])
    registry_mirror: List[str] = Field(default_factory=list)


class ToolSettings(BaseModel):
    """Settings loaded from an optional YAML file."""
    ssh: SSHSettings = Field(default_factory=SSHSettings)
    engine: EngineSettings = Field(default_factory=EngineSettings)

    model_config = {"extra": "ignore"}

    @classmethod
    def load(cls, config_path: Optional[Union[str, Path]] = None) -> 'ToolSettings':
        """Load settings from an explicit path or the first default path found."""
        config_data: Dict[str, Any] = {}

        if config_path:
            config_path = Path(config_path).expanduser().absolute()
            if config_path.exists():
                config_data = cls._load_config_file(config_path)
        else:
            for path in DEFAULT_CONFIG_PATHS:
                path = path.expanduser().absolute()
                if path.exists():
                    config_data = cls._load_config_file(path)
                    break

        return cls(**config_data)

    @classmethod
    def _load_config_file(cls, path: Path) -> Dict[str, Any]:
        with open(path, 'r') as f:
            return yaml.safe_load(f) or {}
