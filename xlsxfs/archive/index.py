"""
In-memory, read-only index over a ZIP archive.

ArchiveIndex.build makes one pass over the archive's central directory and
decompresses every member that passes the optional PathFilter into memory.
After that the index never touches the source again; it is a frozen
mapping of normalized path to bytes and can be shared between threads.

Security:
- Member names with a '..' segment are skipped, never stored
- Decompression is bounded by the size ceiling chunk by chunk, so a member
  whose header understates its size cannot blow past the limit
- Nothing is written to the filesystem

Usage:
    index = ArchiveIndex.build(
        "book.xlsx",
        PathFilter().add_glob("xl/worksheets/*.xml"),
        size_ceiling=100 * 1024 * 1024,
    )
    for path in index.list("xl/worksheets"):
        print(path, len(index.get(path)))
"""

from __future__ import annotations

import hashlib
import io
import os
import zipfile
import zlib
from bisect import bisect_left
from dataclasses import dataclass
from types import MappingProxyType
from typing import IO, Iterable, Iterator, Mapping, Union

from loguru import logger

from xlsxfs.config import FROM_CONFIG, LoaderConfig, SizePolicy, get_global_config
from xlsxfs.errors import (
    ArchiveFormatError,
    ArchiveIOError,
    ArchiveTooLargeError,
)

from .filters import PathFilter
from .paths import is_path_safe, normalize_dir, normalize_path, parent_dir

ArchiveSource = Union[bytes, bytearray, memoryview, str, "os.PathLike[str]", IO[bytes]]

# General purpose flag bit 0: member is encrypted
_FLAG_ENCRYPTED = 0x1

# Errors zipfile and its decompressors raise for damaged or unsupported members
_MEMBER_FORMAT_ERRORS = (
    zipfile.BadZipFile,
    zipfile.LargeZipFile,
    NotImplementedError,
    RuntimeError,
    EOFError,
    zlib.error,
)


# -----------------------------------------------------------------------------
# Archive entry
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ArchiveEntry:
    """
    One materialized archive member.

    Attributes:
        path: Normalized path (forward slashes, no leading slash)
        data: Decompressed content
        compressed_size: Size of the member inside the archive
        compress_type: ZIP compression method id (0 stored, 8 deflated, ...)
    """

    path: str
    data: bytes
    compressed_size: int = 0
    compress_type: int = zipfile.ZIP_STORED

    @property
    def size(self) -> int:
        """Decompressed size in bytes."""
        return len(self.data)

    @property
    def name(self) -> str:
        """Filename without directory."""
        return self.path.rsplit("/", 1)[-1]

    @property
    def extension(self) -> str | None:
        """File extension including dot, or None."""
        if "." not in self.name:
            return None
        return "." + self.name.rsplit(".", 1)[-1].lower()

    def read_text(self, encoding: str = "utf-8", errors: str = "strict") -> str:
        """Decode the content as text."""
        return self.data.decode(encoding, errors=errors)

    def cursor(self) -> io.BytesIO:
        """Get a seekable cursor positioned at the start of the content."""
        return io.BytesIO(self.data)

    def sha256(self) -> str:
        """Hex-encoded SHA-256 of the content."""
        return hashlib.sha256(self.data).hexdigest()


# -----------------------------------------------------------------------------
# Build helpers
# -----------------------------------------------------------------------------


def _open_source(source: ArchiveSource) -> tuple[IO[bytes], bool]:
    """
    Turn a caller-supplied source into a seekable binary file object.

    Returns:
        (file object, whether we opened it and must close it)
    """
    if isinstance(source, (bytes, bytearray, memoryview)):
        return io.BytesIO(bytes(source)), True
    if isinstance(source, (str, os.PathLike)):
        try:
            return open(source, "rb"), True
        except OSError as e:
            raise ArchiveIOError(f"Cannot open archive {os.fspath(source)!r}: {e}") from e
    if not (hasattr(source, "read") and hasattr(source, "seek")):
        raise TypeError(f"Archive source must be bytes, a path or a seekable file, got {type(source).__name__}")
    return source, False


def _check_archive_size(fileobj: IO[bytes], limit: int) -> None:
    """Fail if the raw source is larger than limit, then rewind it."""
    try:
        size = fileobj.seek(0, io.SEEK_END)
        fileobj.seek(0)
    except OSError as e:
        raise ArchiveIOError(f"Cannot determine archive size: {e}") from e
    if size > limit:
        raise ArchiveTooLargeError(size, limit)


def _read_member(
    zf: zipfile.ZipFile,
    info: zipfile.ZipInfo,
    total: int,
    ceiling: int | None,
    chunk_size: int,
) -> bytes:
    """
    Decompress one member, enforcing the ceiling as bytes arrive.

    Args:
        zf: Open archive
        info: Member to read
        total: Bytes already materialized by earlier members
        ceiling: Content ceiling, or None
        chunk_size: Read granularity

    Returns:
        The member's content
    """
    chunks: list[bytes] = []
    read = 0
    try:
        with zf.open(info) as fh:
            while chunk := fh.read(chunk_size):
                read += len(chunk)
                if ceiling is not None and total + read > ceiling:
                    raise ArchiveTooLargeError(total + read, ceiling)
                chunks.append(chunk)
    except _MEMBER_FORMAT_ERRORS as e:
        raise ArchiveFormatError(f"Cannot read member {info.filename!r}: {e}") from e
    except OSError as e:
        raise ArchiveIOError(f"I/O error reading member {info.filename!r}: {e}") from e
    return b"".join(chunks)


def _load_entries(
    fileobj: IO[bytes],
    path_filter: PathFilter | None,
    ceiling: int | None,
    chunk_size: int,
) -> dict[str, ArchiveEntry]:
    """Walk the central directory once and materialize the selected members."""
    try:
        zf = zipfile.ZipFile(fileobj)
    except (zipfile.BadZipFile, zipfile.LargeZipFile, EOFError, ValueError) as e:
        raise ArchiveFormatError(f"Not a valid ZIP archive: {e}") from e
    except OSError as e:
        raise ArchiveIOError(f"I/O error reading archive: {e}") from e

    entries: dict[str, ArchiveEntry] = {}
    total = 0

    with zf:
        for info in zf.infolist():
            path = normalize_path(info.filename)

            # Skip directories
            if info.is_dir() or path.endswith("/"):
                continue

            # Security: reject unsafe paths
            if not is_path_safe(path):
                logger.warning("Skipping unsafe member name {!r}", info.filename)
                continue

            if path_filter is not None and not path_filter.matches(path):
                logger.debug("Filtered out {}", path)
                continue

            if info.flag_bits & _FLAG_ENCRYPTED:
                raise ArchiveFormatError(f"Encrypted member not supported: {info.filename!r}")

            # A later duplicate replaces the earlier one, so only one counts
            previous = entries.get(path)
            if previous is not None:
                logger.warning("Duplicate member {}, keeping the later one", path)
                total -= previous.size

            # Declared size first, so an honest header fails before decompressing
            if ceiling is not None and total + info.file_size > ceiling:
                raise ArchiveTooLargeError(total + info.file_size, ceiling)

            data = _read_member(zf, info, total, ceiling, chunk_size)

            entries[path] = ArchiveEntry(
                path=path,
                data=data,
                compressed_size=info.compress_size,
                compress_type=info.compress_type,
            )
            total += len(data)

    return entries


# -----------------------------------------------------------------------------
# Archive index
# -----------------------------------------------------------------------------


class ArchiveIndex:
    """
    Frozen, in-memory view of selected archive members.

    Lookups never fail: a missing path gives None or an empty list, whether
    the member never existed or was filtered out at build time.
    """

    __slots__ = ("_entries", "_data", "_paths", "_total_bytes")

    def __init__(self, entries: Iterable[ArchiveEntry] = ()) -> None:
        by_path = {entry.path: entry for entry in entries}
        self._entries: Mapping[str, ArchiveEntry] = MappingProxyType(by_path)
        self._data: Mapping[str, bytes] = MappingProxyType(
            {path: entry.data for path, entry in by_path.items()}
        )
        self._paths: tuple[str, ...] = tuple(sorted(by_path))
        self._total_bytes = sum(entry.size for entry in by_path.values())

    @classmethod
    def build(
        cls,
        source: ArchiveSource,
        path_filter: PathFilter | None = None,
        size_ceiling: int | None = FROM_CONFIG,
        *,
        size_policy: SizePolicy | str | None = None,
        config: LoaderConfig | None = None,
    ) -> ArchiveIndex:
        """
        Read an archive and materialize the members that pass the filter.

        Args:
            source: Archive bytes, a filesystem path, or a seekable binary file
            path_filter: Members to keep; None keeps every file member
            size_ceiling: Byte ceiling; None is unbounded (default from config)
            size_policy: What the ceiling measures (default from config)
            config: Configuration to take defaults from (default: global)

        Returns:
            The built index

        Raises:
            ArchiveTooLargeError: The ceiling was exceeded
            ArchiveFormatError: The archive or one of the selected members is damaged
            ArchiveIOError: The source could not be read
        """
        config = config or get_global_config()
        if size_ceiling is FROM_CONFIG:
            size_ceiling = config.size_ceiling
        policy = SizePolicy(size_policy) if size_policy is not None else config.size_policy

        fileobj, owned = _open_source(source)
        try:
            if size_ceiling is not None and policy is SizePolicy.ARCHIVE:
                _check_archive_size(fileobj, size_ceiling)
            content_ceiling = size_ceiling if policy is SizePolicy.CONTENT else None
            entries = _load_entries(
                fileobj, path_filter, content_ceiling, config.read_chunk_size
            )
        finally:
            if owned:
                fileobj.close()

        index = cls(entries.values())
        logger.info(
            "Indexed {} archive members ({} bytes)", len(index), index.total_bytes
        )
        return index

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    def get(self, path: str) -> bytes | None:
        """
        Return the content stored at path, or None.

        Args:
            path: Member path; backslashes and leading slashes are normalized
        """
        return self._data.get(normalize_path(path))

    def entry(self, path: str) -> ArchiveEntry | None:
        """Return the ArchiveEntry stored at path, or None."""
        return self._entries.get(normalize_path(path))

    def read_text(
        self, path: str, encoding: str = "utf-8", errors: str = "strict"
    ) -> str | None:
        """Return the content at path decoded as text, or None."""
        entry = self.entry(path)
        return None if entry is None else entry.read_text(encoding, errors)

    def list(self, directory: str) -> list[str]:
        """
        List every stored path under directory, at any depth.

        Args:
            directory: Directory path; '' or '/' means the archive root

        Returns:
            Matching paths in ascending lexicographic order
        """
        normalized = normalize_dir(directory)
        if not normalized:
            return list(self._paths)

        prefix = normalized + "/"
        result: list[str] = []
        for i in range(bisect_left(self._paths, prefix), len(self._paths)):
            path = self._paths[i]
            if not path.startswith(prefix):
                break
            result.append(path)
        return result

    def list_dir(self, directory: str) -> list[str]:
        """List the stored paths that are immediate children of directory."""
        normalized = normalize_dir(directory)
        return [path for path in self.list(normalized) if parent_dir(path) == normalized]

    def paths(self) -> tuple[str, ...]:
        """All stored paths, sorted."""
        return self._paths

    @property
    def entries(self) -> Mapping[str, bytes]:
        """Read-only mapping of path to content."""
        return self._data

    @property
    def total_bytes(self) -> int:
        """Sum of the sizes of all stored contents."""
        return self._total_bytes

    def __len__(self) -> int:
        return len(self._paths)

    def __contains__(self, path: object) -> bool:
        return isinstance(path, str) and normalize_path(path) in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(self._paths)

    def __repr__(self) -> str:
        return f"ArchiveIndex(files={len(self)}, total_bytes={self.total_bytes})"
