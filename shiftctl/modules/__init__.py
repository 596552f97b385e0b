"""
Guest bootstrap modules.
"""
from .instance_config import (
    FileInstanceConfigStore,
    InMemoryInstanceConfigStore,
    InstanceConfig,
    InstanceConfigStore,
)
from .ssh import SSHChannel, SSHFileTransfer

__all__ = [
    'FileInstanceConfigStore',
    'InMemoryInstanceConfigStore',
    'InstanceConfig',
    'InstanceConfigStore',
    'SSHChannel',
    'SSHFileTransfer',
]
