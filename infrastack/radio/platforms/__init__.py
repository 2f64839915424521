"""Radio platform registry.

Maps the platform type stored in the inventory (azuracast, libretime) to the
class that knows how to install and operate it. New platforms are added with
register_platform().
"""
import inspect
from typing import Dict, List, Optional, Type

from .azuracast import AzuraCastPlatform
from .base import Platform
from .libretime import LibreTimePlatform

PLATFORMS: Dict[str, Type[Platform]] = {
    AzuraCastPlatform.name: AzuraCastPlatform,
    LibreTimePlatform.name: LibreTimePlatform,
}


def register_platform(platform_cls: Type[Platform]) -> None:
    """Add a platform; it must implement every abstract Platform method."""
    if inspect.isabstract(platform_cls):
        missing = ", ".join(sorted(platform_cls.__abstractmethods__))
        raise TypeError(f"Platform {platform_cls.__name__} does not implement: {missing}")
    PLATFORMS[platform_cls.name] = platform_cls


def platform_names() -> List[str]:
    return list(PLATFORMS)


def get_platform(name: Optional[str], mock: bool = False) -> Optional[Platform]:
    """Platform instance for name (case-insensitive), or None if unknown."""
    if not name:
        return None
    platform_cls = PLATFORMS.get(name.lower())
    return platform_cls(mock=mock) if platform_cls else None


__all__ = [
    'PLATFORMS',
    'AzuraCastPlatform',
    'LibreTimePlatform',
    'Platform',
    'get_platform',
    'platform_names',
    'register_platform',
]
