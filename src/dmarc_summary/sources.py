"""
Stream supplier for the DMARC summary tool.

Turns input paths into StreamSource objects, choosing the reader from the
file name:
- ``*.gz``  -> gzip-compressed report, one stream
- ``*.zip`` -> zip archive, one stream per member
- anything else -> plain XML report, one stream

Zip containers are opened while expanding (an unreadable container aborts
the run); plain and gzip files are only opened when their stream is read, so
a missing or corrupt file only affects its own stream.
"""

import gzip
import zipfile
import zlib
from contextlib import ExitStack
from functools import partial
from pathlib import Path
from typing import Iterable, Optional, Union

from .diagnostics_logger import DiagnosticsLogger
from .enums import LogLevel, StreamKind
from .exceptions import StreamOpenError, ZipOpenError
from .models import StreamSource


PathLike = Union[str, Path]


def stream_kind(path: PathLike) -> Optional[StreamKind]:
    """Return the stream kind for a path, or None for a zip container."""
    suffix = Path(path).suffix.lower()
    if suffix == ".zip":
        return None
    if suffix == ".gz":
        return StreamKind.GZIP
    return StreamKind.PLAIN


def read_plain(path: PathLike) -> bytes:
    """Read an uncompressed report file."""
    try:
        with open(path, "rb") as f:
            return f.read()
    except OSError as e:
        raise StreamOpenError(
            "open_failed",
            f"failed to open file {path}: {e}",
            {"path": str(path)},
        ) from e


def read_gzip(path: PathLike) -> bytes:
    """Read and decompress a gzip-compressed report file."""
    try:
        with gzip.open(path, "rb") as f:
            return f.read()
    except (OSError, EOFError, zlib.error) as e:
        raise StreamOpenError(
            "gzip_failed",
            f"failed to read gzip stream {path}: {e}",
            {"path": str(path)},
        ) from e


def read_zip_member(archive: zipfile.ZipFile, member: zipfile.ZipInfo, path: PathLike) -> bytes:
    """Read one member of an already opened zip archive."""
    try:
        return archive.read(member)
    except (OSError, ValueError, zipfile.BadZipFile, zlib.error, RuntimeError, NotImplementedError) as e:
        raise ZipOpenError(
            "zip_member_failed",
            f"failed to open {member.filename} in {path}: {e}",
            {"path": str(path), "member": member.filename},
        ) from e


def open_zip(path: PathLike, stack: ExitStack) -> zipfile.ZipFile:
    """
    Open a zip container and register it for closing with the stack.

    Raises:
        ZipOpenError: If the container cannot be opened
    """
    try:
        archive = zipfile.ZipFile(path, "r")
    except (OSError, zipfile.BadZipFile) as e:
        raise ZipOpenError(
            "zip_open_failed",
            f"failed to open zip archive {path}: {e}",
            {"path": str(path)},
        ) from e
    return stack.enter_context(archive)


class StreamSupplier:
    """Expands input paths into report streams."""

    def __init__(self, logger: Optional[DiagnosticsLogger] = None) -> None:
        self._logger = logger

    def expand(self, paths: Iterable[PathLike], stack: ExitStack) -> list[StreamSource]:
        """
        Expand paths into stream sources, in argument order.

        Zip archives stay open until ``stack`` is closed.

        Raises:
            ZipOpenError: If a zip container cannot be opened
        """
        sources: list[StreamSource] = []
        for path in paths:
            kind = stream_kind(path)
            if kind is StreamKind.GZIP:
                sources.append(StreamSource(str(path), kind, partial(read_gzip, path)))
            elif kind is StreamKind.PLAIN:
                sources.append(StreamSource(str(path), kind, partial(read_plain, path)))
            else:
                sources.extend(self._expand_zip(path, stack))
        return sources

    def _expand_zip(self, path: PathLike, stack: ExitStack) -> list[StreamSource]:
        archive = open_zip(path, stack)
        members = [info for info in archive.infolist() if not info.is_dir()]
        if self._logger:
            self._logger.log(
                LogLevel.DEBUG,
                "StreamSupplier",
                f"Expanded zip archive {path}",
                {"path": str(path), "members": len(members)},
            )
        return [
            StreamSource(
                f"{path}:{info.filename}",
                StreamKind.ZIP_MEMBER,
                partial(read_zip_member, archive, info, path),
            )
            for info in members
        ]
