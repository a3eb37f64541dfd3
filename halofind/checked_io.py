"""File, stream and subprocess helpers that raise one error type with a clear message."""

from __future__ import annotations

import mmap
import os
import socket
import subprocess
from typing import IO, Any


class CheckedIOError(OSError):
    """An input/output operation failed."""


def _describe(stream: Any) -> str:
    try:
        return f"fileno {stream.fileno()}"
    except (OSError, ValueError, AttributeError):
        return "stream"


def _offset(stream: Any) -> str:
    try:
        return str(stream.tell())
    except (OSError, ValueError, AttributeError):
        return "unknown"


class CheckedReader:
    """Reads exact amounts from a stream, with room to push back one read."""

    def __init__(self, stream: IO[Any]) -> None:
        self.stream = stream
        self._pending: bytes = b""

    def read(self, size: int, nitems: int = 1) -> bytes:
        """Read exactly size * nitems bytes, raising CheckedIOError if that fails."""
        total = size * nitems
        if self._pending:
            if len(self._pending) != total:
                raise CheckedIOError("unread must be followed by an identical read!")
            data, self._pending = self._pending, b""
            return data
        chunks = []
        got = 0
        while got < total:
            try:
                chunk = self.stream.read(total - got)
            except (OSError, ValueError) as exc:
                raise self._error(size, nitems, str(exc)) from exc
            if not chunk:
                raise self._error(
                    size, nitems, f"end of file (offset {_offset(self.stream)})."
                )
            chunks.append(chunk)
            got += len(chunk)
        return b"".join(chunks)

    def unread(self, data: bytes) -> None:
        """Push data back so that the next read of the same length returns it."""
        if self._pending:
            raise CheckedIOError("Tried to unread twice in a row")
        self._pending = bytes(data)

    def skip(self, offset: int, buf_size: int = 65536) -> None:
        """Discard offset bytes by reading them; works on pipes too."""
        if buf_size < 1:
            raise ValueError("buf_size must be positive")
        done = 0
        while done < offset:
            n = min(offset - done, buf_size)
            self.read(1, n)
            done += n

    def readline(self, size: int = -1) -> Any:
        """Read one line of at most size - 1 characters; raise at end of file."""
        limit = size - 1 if size > 0 else -1
        try:
            line = self.stream.readline(limit)
        except (OSError, ValueError) as exc:
            raise self._error(size, 1, str(exc)) from exc
        if not line:
            raise self._error(size, 1, f"end of file (offset {_offset(self.stream)}).")
        return line

    def _error(self, size: int, nitems: int, reason: str) -> CheckedIOError:
        items = "item" if nitems == 1 else "items"
        return CheckedIOError(
            f"Failed to read {nitems} {items} of size {size} bytes from "
            f"{_describe(self.stream)}! Reason: {reason}"
        )


def check_open(filename: str | os.PathLike, mode: str = "r") -> IO[Any]:
    """Open a file, raising CheckedIOError naming the file and purpose on failure."""
    try:
        return open(filename, mode)
    except OSError as exc:
        if mode.startswith("w"):
            purpose = "writing"
        elif mode.startswith("a"):
            purpose = "appending"
        else:
            purpose = "reading"
        raise CheckedIOError(
            f"Failed to open file {os.fspath(filename)} for {purpose}! Reason: {exc.strerror or exc}"
        ) from exc


def check_write(stream: IO[Any], data: Any) -> int:
    """Write all of data to stream and return its length."""
    try:
        if isinstance(data, str):
            written = stream.write(data)
            if written is not None and written != len(data):
                raise CheckedIOError(
                    f"Failed to write {len(data)} characters to {_describe(stream)}!"
                )
            return len(data)
        view = memoryview(data).cast("B")
        done = 0
        while done < len(view):
            n = stream.write(view[done:])
            if not n:
                raise CheckedIOError(
                    f"Failed to write {len(view)} bytes to {_describe(stream)}!"
                )
            done += n
        return done
    except (OSError, ValueError) as exc:
        if isinstance(exc, CheckedIOError):
            raise
        raise CheckedIOError(
            f"Failed to write to {_describe(stream)}! Reason: {exc}"
        ) from exc


def check_seek(stream: IO[Any], offset: int, whence: int = os.SEEK_SET) -> int:
    """Seek in stream and return the new position."""
    try:
        return stream.seek(offset, whence)
    except (OSError, ValueError) as exc:
        raise CheckedIOError(
            f"Seek error in {_describe(stream)}! Reason: {exc}"
        ) from exc


def mmap_file(filename: str | os.PathLike, mode: str = "r") -> mmap.mmap | None:
    """Map a whole file into memory, read-only ('r') or writable ('w').

    An empty file cannot be mapped; None is returned for it.
    """
    if mode == "r":
        open_mode, access = "rb", mmap.ACCESS_READ
    elif mode == "w":
        open_mode, access = "r+b", mmap.ACCESS_WRITE
    else:
        raise CheckedIOError(f"Invalid mode {mode} passed to mmap_file!")
    with check_open(filename, open_mode) as f:
        try:
            length = os.fstat(f.fileno()).st_size
        except OSError as exc:
            raise CheckedIOError(
                f"Fstat failure on file {os.fspath(filename)}! Reason: {exc.strerror}"
            ) from exc
        if length == 0:
            return None
        try:
            return mmap.mmap(f.fileno(), length, access=access)
        except (OSError, ValueError) as exc:
            raise CheckedIOError(
                f"Mmap failure on file {os.fspath(filename)}, mode {mode}! Reason: {exc}"
            ) from exc


class RWSocket:
    """A shell command whose standard input and output are one socket stream."""

    def __init__(self, command: str) -> None:
        self.command = command
        try:
            parent, child = socket.socketpair(socket.AF_UNIX, socket.SOCK_STREAM)
        except OSError as exc:
            raise CheckedIOError(f"Failed to create socket pair! Reason: {exc}") from exc
        try:
            self.process = subprocess.Popen(
                ["sh", "-c", command], stdin=child.fileno(), stdout=child.fileno()
            )
        except OSError as exc:
            parent.close()
            raise CheckedIOError(
                f"Failed to start child process: {command}! Reason: {exc}"
            ) from exc
        finally:
            child.close()
        self._socket = parent
        self.stream = parent.makefile("rwb")
        self._closed = False

    def close(self) -> int:
        """Close the stream, kill the command and return its exit status."""
        if not self._closed:
            self._closed = True
            try:
                self.stream.close()
            except OSError:
                pass
            self._socket.close()
            if self.process.poll() is None:
                self.process.kill()
        return self.process.wait()

    def __enter__(self) -> "RWSocket":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()