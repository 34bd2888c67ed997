"""
Loader configuration for xlsxfs.

Holds the defaults that ArchiveIndex.build and SharedStringTable.fuzzy_find
fall back to when a caller does not pass an explicit value. Explicit
arguments always win over the configuration.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class CaseMode(str, Enum):
    """How fuzzy matching treats letter case."""

    # Fold case; exact-case substrings still rank above folded ones
    IGNORE = "ignore"
    # Compare characters as they are
    RESPECT = "respect"
    # Respect case only when the query contains an uppercase letter
    SMART = "smart"


class SizePolicy(str, Enum):
    """What the archive size ceiling is measured against."""

    # Sum of decompressed bytes of the members that pass the filter
    CONTENT = "content"
    # Raw size of the byte source, checked before the ZIP is parsed
    ARCHIVE = "archive"


DEFAULT_CHUNK_SIZE = 64 * 1024

# Default for per-call ceiling arguments: use the config's ceiling.
# An explicit None always means unbounded.
FROM_CONFIG: Any = object()


@dataclass
class LoaderConfig:
    """
    Defaults for archive loading and shared-string search.

    Attributes:
        size_ceiling: Byte ceiling for builds, None for unbounded
        size_policy: Whether the ceiling bounds content or the raw archive
        read_chunk_size: Decompression read size; the ceiling is checked per chunk
        xml_chunk_size: Bytes fed to the streaming XML parser per step
        case_mode: Default case handling for fuzzy search
    """

    size_ceiling: int | None = None
    size_policy: SizePolicy = SizePolicy.CONTENT

    # Streaming granularity
    read_chunk_size: int = DEFAULT_CHUNK_SIZE
    xml_chunk_size: int = DEFAULT_CHUNK_SIZE

    # Search
    case_mode: CaseMode = CaseMode.IGNORE

    def __post_init__(self):
        """Validate settings and coerce enum values given as strings."""
        if self.size_ceiling is not None and self.size_ceiling < 0:
            raise ValueError(f"size_ceiling must be >= 0, got {self.size_ceiling}")
        if self.read_chunk_size <= 0:
            raise ValueError(f"read_chunk_size must be > 0, got {self.read_chunk_size}")
        if self.xml_chunk_size <= 0:
            raise ValueError(f"xml_chunk_size must be > 0, got {self.xml_chunk_size}")
        self.size_policy = SizePolicy(self.size_policy)
        self.case_mode = CaseMode(self.case_mode)


def get_loader_config(
    size_ceiling: int | None = None,
    size_policy: SizePolicy | str | None = None,
    case_mode: CaseMode | str | None = None,
) -> LoaderConfig:
    """
    Create a loader configuration with sensible defaults.

    Args:
        size_ceiling: Override the byte ceiling
        size_policy: Override what the ceiling measures
        case_mode: Override fuzzy search case handling

    Returns:
        Configured LoaderConfig instance
    """
    config = LoaderConfig(size_ceiling=size_ceiling)

    if size_policy is not None:
        config.size_policy = SizePolicy(size_policy)
    if case_mode is not None:
        config.case_mode = CaseMode(case_mode)

    return config


# Global config instance (can be set by the host application)
_global_config: LoaderConfig | None = None


def set_global_config(config: LoaderConfig) -> None:
    """Set the global loader configuration."""
    global _global_config
    _global_config = config


def get_global_config() -> LoaderConfig:
    """Get the global loader configuration, creating default if needed."""
    global _global_config
    if _global_config is None:
        _global_config = LoaderConfig()
    return _global_config
