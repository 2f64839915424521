"""Input validation for radio station operations."""
import re
from typing import Iterable, Optional

CTID_MIN = 100
CTID_MAX = 999999  # Proxmox max

STATION_NAME_PATTERN = re.compile(r'^[a-z0-9][a-z0-9-]{0,62}$')
QUOTA_PATTERN = re.compile(r'^[0-9]+[KMGT]?$', re.IGNORECASE)

BACKUP_TYPES = ('container', 'application', 'full')
LOG_TYPES = ('container', 'application', 'both')


class ValidationError(ValueError):
    """Raised when user input is malformed or conflicts with existing state."""
    pass


def parse_ctid(value) -> int:
    """Convert a CTID argument to int, rejecting anything non-numeric."""
    text = str(value).strip()
    if not (text.isascii() and text.isdigit()):
        raise ValidationError(f"Invalid container ID '{value}': must be a number")
    return int(text)


def validate_ctid(value, existing: Optional[Iterable[int]] = None) -> int:
    """Validate a container ID for a new station.

    Args:
        value: CTID as int or string
        existing: CTIDs already in use (inventory rows and live containers)

    Returns:
        The CTID as int

    Raises:
        ValidationError: If out of range or already in use
    """
    ctid = parse_ctid(value)

    if ctid < CTID_MIN or ctid > CTID_MAX:
        raise ValidationError(
            f"Invalid container ID {ctid}: must be between {CTID_MIN} and {CTID_MAX}"
        )

    if existing is not None and ctid in set(existing):
        raise ValidationError(f"Container ID {ctid} is already in use")

    return ctid


def validate_station_name(name: str) -> str:
    """Validate a station name used to build hostname and dataset path."""
    if not name:
        raise ValidationError("Station name is required")

    if not STATION_NAME_PATTERN.match(name):
        raise ValidationError(
            f"Invalid station name '{name}': use lowercase letters, digits and hyphens "
            f"(max 63 characters, must not start with a hyphen)"
        )

    return name


def validate_quota(quota: Optional[str]) -> Optional[str]:
    """Validate a ZFS quota like '500G'."""
    if quota is None:
        return None

    if not QUOTA_PATTERN.match(quota):
        raise ValidationError(f"Invalid quota '{quota}': expected a size such as 500G")

    return quota.upper()


def validate_ip_suffix(suffix: Optional[int]) -> Optional[int]:
    """Validate the host octet appended to the station network prefix."""
    if suffix is None:
        return None

    if suffix < 2 or suffix > 254:
        raise ValidationError(f"Invalid IP suffix {suffix}: must be between 2 and 254")

    return suffix


def validate_choice(value: str, choices: Iterable[str], label: str) -> str:
    """Validate that value is one of choices (case-insensitive)."""
    normalized = value.lower()
    choices = tuple(choices)
    if normalized not in choices:
        raise ValidationError(
            f"Unknown {label}: {value}. Valid options: {', '.join(choices)}"
        )
    return normalized
