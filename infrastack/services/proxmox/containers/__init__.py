"""Proxmox LXC container management.

- ContainerDiscovery: Query container status, config and IP
- ContainerLifecycle: Create, mount, start, stop, destroy, exec
"""
from .discovery import ContainerDiscovery
from .lifecycle import ContainerLifecycle

__all__ = [
    'ContainerDiscovery',
    'ContainerLifecycle',
]
