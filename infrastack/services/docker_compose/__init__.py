"""
Docker Compose integration services.

Writes compose stacks into containers and drives `docker compose` there.
"""

from .deployer import ComposeDeployer

__all__ = ['ComposeDeployer']
