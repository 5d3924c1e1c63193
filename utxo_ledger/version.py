"""
UTXOLedger - Version Management
=================================
Semantic versioning and build info.

Last Updated: 2026-10-19
Version: 1.0.0
"""

from typing import NamedTuple


# ============================================================================
# VERSION INFO
# ============================================================================

class VersionInfo(NamedTuple):
    """Version information structure"""
    major: int
    minor: int
    patch: int
    prerelease: str = ""
    build: str = ""


# Current version (Semantic Versioning)
VERSION = VersionInfo(
    major=1,
    minor=0,
    patch=0,
    prerelease="",
    build=""
)


def get_version_string() -> str:
    """
    Get version as string.
    
    Returns:
        str: Version (e.g., "1.0.0", "1.0.0-beta", "1.0.0+build123")
    
    Example:
        >>> get_version_string()
        '1.0.0'
    """
    version_str = f"{VERSION.major}.{VERSION.minor}.{VERSION.patch}"
    
    if VERSION.prerelease:
        version_str += f"-{VERSION.prerelease}"
    
    if VERSION.build:
        version_str += f"+{VERSION.build}"
    
    return version_str


def get_version_tuple() -> tuple:
    """Get version as tuple"""
    return (VERSION.major, VERSION.minor, VERSION.patch)


def get_build_info() -> dict:
    """Build metadata exposed by the API root endpoint"""
    return {
        "version": get_version_string(),
        "version_tuple": get_version_tuple(),
        "python_min": PYTHON_VERSION_MIN,
    }


PYTHON_VERSION_MIN = "3.10"


# ============================================================================
# EXPORT
# ============================================================================

__version__ = get_version_string()
__version_info__ = VERSION

__all__ = [
    "__version__",
    "__version_info__",
    "VERSION",
    "get_version_string",
    "get_version_tuple",
    "get_build_info",
]
