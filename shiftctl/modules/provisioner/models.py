"""Data models for container engine provisioning."""
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from shiftctl.config import Config


class Distro(str, Enum):
    """Guest distribution families with their own engine-options template."""
    RHEL = 'rhel'
    CENTOS = 'centos'
    BUILDROOT = 'buildroot'
    OTHER = 'other'

    @classmethod
    def from_os_release(cls, os_id: str) -> 'Distro':
        """Map an /etc/os-release ID onto a family."""
        try:
            return cls(os_id.strip().strip('"').lower())
        except ValueError:
            return cls.OTHER


@dataclass
class AuthOptions:
    """Local and remote locations of the TLS material."""
    store_path: str
    ca_cert_path: str
    ca_private_key_path: str
    client_cert_path: str
    client_key_path: str
    server_cert_path: str
    server_key_path: str
    server_cert_sans: List[str] = field(default_factory=list)
    ca_cert_remote_path: str = ""
    server_cert_remote_path: str = ""
    server_key_remote_path: str = ""

    @classmethod
    def from_certs_dir(cls, certs_dir: str, store_path: Optional[str] = None,
                       sans: Optional[List[str]] = None) -> 'AuthOptions':
        """Standard layout: CA and client material in certs_dir, server pair in the store."""
        store_path = store_path or certs_dir
        return cls(
            store_path=store_path,
            ca_cert_path=os.path.join(certs_dir, 'ca.pem'),
            ca_private_key_path=os.path.join(certs_dir, 'ca-key.pem'),
            client_cert_path=os.path.join(certs_dir, 'cert.pem'),
            client_key_path=os.path.join(certs_dir, 'key.pem'),
            server_cert_path=os.path.join(store_path, 'server.pem'),
            server_key_path=os.path.join(store_path, 'server-key.pem'),
            server_cert_sans=list(sans or []),
        )


@dataclass
class EngineOptions:
    """Caller-supplied container engine flags."""
    storage_driver: str = ""
    labels: List[str] = field(default_factory=list)
    insecure_registry: List[str] = field(default_factory=list)
    registry_mirror: List[str] = field(default_factory=list)
    arbitrary_flags: List[str] = field(default_factory=list)
    env: List[str] = field(default_factory=list)


@dataclass
class EngineProvisioningContext:
    """Everything one provisioning pass needs; built per call, never cached."""
    distro: Distro
    auth_options: AuthOptions
    engine_options: EngineOptions = field(default_factory=EngineOptions)
    docker_port: int = Config.DOCKER_PORT
    docker_options_dir: str = Config.DOCKER_OPTIONS_DIR
    machine_name: str = "minishift"
    default_storage_driver: str = Config.DEFAULT_STORAGE_DRIVER
