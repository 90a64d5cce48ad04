"""Minimal file system archiver.

An archive is a plain sequence of records with no header, index or footer::

    <int32 path length> <path bytes, UTF-8> <int32 content length> <content bytes>

Lengths are little-endian signed 32-bit integers. Paths are stored relative to
the archiver's base directory using ``/`` as separator. Records are written
in the order given by the caller, so callers sort their file lists when they
need byte-identical archives. Reading is a forward scan that stops at the end
of the stream; a truncated record ends the scan early without an error. Data
that cannot be a record stream (bad deflate data, negative lengths, paths that
are not UTF-8) raises :class:`ArchiveFormatException`.

:class:`ArcDeflate` wraps the same record stream in a raw deflate stream. The
compressor is created for a single write or extract call and is always
finalized before that call returns.


File: arc.py
Author: Chris Rowles <christopher.rowles@outlook.com>
Copyright: © 2025 Chris Rowles. All rights reserved.
Version: 0.1.0
License: MIT
"""

from __future__ import annotations

import logging
import os
import re
import struct
import zlib
from contextlib import contextmanager
from dataclasses import dataclass
from typing import BinaryIO, Iterable, Iterator

from deployex.exceptions import ArchiveFormatException

logger = logging.getLogger(__name__)

LENGTH = struct.Struct("<i")

RX_SEPARATORS = re.compile(r"[\\/]+")


@dataclass(frozen=True)
class ArchiveRecord:
    path: str
    content: bytes


def _read_exact(stream: BinaryIO, size: int) -> bytes | None:
    if size < 0:
        raise ArchiveFormatException(f"negative record length {size}")
    chunks = []
    remaining = size
    while remaining > 0:
        chunk = stream.read(remaining)
        if not chunk:
            return None
        chunks.append(chunk)
        remaining -= len(chunk)
    return b"".join(chunks)


class Arc:
    """Converts between files on disk and an uncompressed archive stream."""

    def __init__(self, base_dir: str | os.PathLike | None = None):
        self._base_dir = None
        if base_dir is not None:
            self.base_dir = base_dir

    @property
    def base_dir(self) -> str:
        """Directory stored paths are relative to (default: current directory)."""
        if self._base_dir is None:
            self._base_dir = os.getcwd()
        return self._base_dir

    @base_dir.setter
    def base_dir(self, value: str | os.PathLike) -> None:
        self._base_dir = os.path.abspath(value)

    def __enter__(self):
        return self

    def __exit__(self, *_exc):
        return False

    def relative_path(self, file_path: str | os.PathLike) -> str:
        """
        Return the archive path of a file: relative to the base directory when
        inside it, with separators normalized to ``/`` and trimmed.
        """
        full_path = os.path.abspath(file_path)
        base = self.base_dir
        if os.path.normcase(full_path).lower().startswith(os.path.normcase(base).lower()):
            full_path = full_path[len(base):]
        return RX_SEPARATORS.sub("/", full_path).strip("/")

    # ------------------------------------------------------------------
    # Stream wrappers
    # ------------------------------------------------------------------
    @contextmanager
    def _writer(self, stream: BinaryIO) -> Iterator[BinaryIO]:
        yield stream

    @contextmanager
    def _reader(self, stream: BinaryIO) -> Iterator[BinaryIO]:
        yield stream

    # ------------------------------------------------------------------
    # Writing
    # ------------------------------------------------------------------
    def add_file(self, stream: BinaryIO, file_path: str | os.PathLike) -> None:
        """
        Write one file record to the stream.

        Parameters:
            stream (BinaryIO): Stream receiving the record.
            file_path (str | PathLike): Path of the file to add.
        """
        path_bytes = self.relative_path(file_path).encode("utf-8")
        with open(file_path, "rb") as f:
            content = f.read()
        stream.write(LENGTH.pack(len(path_bytes)))
        stream.write(path_bytes)
        stream.write(LENGTH.pack(len(content)))
        stream.write(content)

    def write_archive(self, stream: BinaryIO, files: Iterable[str | os.PathLike]) -> None:
        """
        Write the given files to the stream in the given order.
        """
        with self._writer(stream) as out:
            for file_path in files:
                self.add_file(out, file_path)

    def create_archive(self, target_path: str | os.PathLike, files: Iterable[str | os.PathLike]) -> None:
        """
        Create an archive file holding the given files.
        """
        with open(target_path, "wb") as f:
            self.write_archive(f, files)

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------
    def read_records(self, stream: BinaryIO) -> Iterator[ArchiveRecord]:
        """
        Yield the records of an archive stream in stored order.
        """
        with self._reader(stream) as src:
            while True:
                header = _read_exact(src, LENGTH.size)
                if header is None:
                    return
                path_bytes = _read_exact(src, LENGTH.unpack(header)[0])
                size = _read_exact(src, LENGTH.size) if path_bytes is not None else None
                content = _read_exact(src, LENGTH.unpack(size)[0]) if size is not None else None
                if content is None:
                    logger.debug("Archive stream ended inside a record")
                    return
                try:
                    path = path_bytes.decode("utf-8")
                except UnicodeDecodeError as e:
                    raise ArchiveFormatException(f"record path is not UTF-8 ({e})") from e
                yield ArchiveRecord(path, content)

    def extract_archive(self, source: BinaryIO | str | os.PathLike, target_directory: str | os.PathLike) -> None:
        """
        Extract an archive stream or file into a directory, overwriting files.

        Parameters:
            source (BinaryIO | str | PathLike): Archive stream or archive file path.
            target_directory (str | PathLike): Directory receiving the files.
        """
        if isinstance(source, (str, os.PathLike)):
            with open(source, "rb") as f:
                self.extract_archive(f, target_directory)
            return
        for record in self.read_records(source):
            target_path = os.path.join(target_directory, *RX_SEPARATORS.split(record.path))
            directory = os.path.dirname(target_path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            with open(target_path, "wb") as f:
                f.write(record.content)
            logger.debug("Extracted %s (%d bytes)", record.path, len(record.content))


class _DeflateWriter:
    """Write-only stream compressing into an underlying stream."""

    def __init__(self, stream: BinaryIO, level: int):
        self.stream = stream
        self.compressor = zlib.compressobj(level, zlib.DEFLATED, -zlib.MAX_WBITS)

    def write(self, data: bytes) -> int:
        self.stream.write(self.compressor.compress(data))
        return len(data)

    def close(self) -> None:
        if self.compressor is not None:
            self.stream.write(self.compressor.flush(zlib.Z_FINISH))
            self.compressor = None


class _DeflateReader:
    """Read-only stream decompressing from an underlying stream."""

    CHUNK = 64 * 1024

    def __init__(self, stream: BinaryIO):
        self.stream = stream
        self.decompressor = zlib.decompressobj(-zlib.MAX_WBITS)
        self.buffer = b""

    def read(self, size: int) -> bytes:
        while len(self.buffer) < size and not self.decompressor.eof:
            chunk = self.stream.read(self.CHUNK)
            if not chunk:
                self.buffer += self.decompressor.flush()
                break
            try:
                self.buffer += self.decompressor.decompress(chunk)
            except zlib.error as e:
                raise ArchiveFormatException(str(e)) from e
        data, self.buffer = self.buffer[:size], self.buffer[size:]
        return data


class ArcDeflate(Arc):
    """Converts between files on disk and a deflate compressed archive stream."""

    def __init__(self, base_dir: str | os.PathLike | None = None, compression_level: int = 6):
        super().__init__(base_dir)
        self.compression_level = compression_level

    @contextmanager
    def _writer(self, stream: BinaryIO) -> Iterator[BinaryIO]:
        writer = _DeflateWriter(stream, self.compression_level)
        try:
            yield writer
        finally:
            writer.close()

    @contextmanager
    def _reader(self, stream: BinaryIO) -> Iterator[BinaryIO]:
        yield _DeflateReader(stream)
