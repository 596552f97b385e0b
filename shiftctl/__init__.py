"""shiftctl: client tooling install and guest bootstrap for single-node cluster VMs."""

__version__ = "0.1.0"
