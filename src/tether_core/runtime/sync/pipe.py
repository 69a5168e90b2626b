"""In-memory byte pipes: one-way `pipe()` and two-way `duplex_pipe()`.

A pipe is a bounded byte buffer with one reading end and one writing end,
each waiting on its own WakeSlot. Writers suspend while the buffer is full;
readers suspend while it is empty. Closing the write end gives the reader
end-of-file once the buffer is drained; closing the read end makes every
further write fail.

Each end serves one task at a time. A second task waiting on the same end
supersedes the first, which then never resumes.
"""

from __future__ import annotations

import anyio

from tether_core.result import Err, Ok, Result
from tether_core.runtime._logging import get_logger
from tether_core.runtime.errors import ChannelClosed, ChannelEmpty, ChannelFull
from tether_core.runtime.sync.waker import WakeSlot

__all__ = ['DuplexEnd', 'PipeReader', 'PipeWriter', 'duplex_pipe', 'pipe']

log = get_logger(__name__)


class _PipeState:
    __slots__ = ('buffer', 'max_size', 'read_closed', 'read_slot', 'write_closed', 'write_slot')

    def __init__(self, max_size: int) -> None:
        if max_size < 1:
            msg = f'Pipe buffer size must be at least 1, got {max_size}'
            raise ValueError(msg)

        self.max_size: int = max_size
        self.buffer: bytearray = bytearray()
        self.read_slot: WakeSlot = WakeSlot()
        self.write_slot: WakeSlot = WakeSlot()
        self.read_closed: bool = False
        self.write_closed: bool = False


class PipeReader:
    """Reading end of a pipe."""

    def __init__(self, state: _PipeState) -> None:
        self._state = state

    def try_read(self, max_bytes: int = -1) -> Result[bytes, ChannelEmpty | ChannelClosed]:
        """Take buffered bytes without suspending.

        Returns:
            Ok(data) with up to `max_bytes` bytes (all of them if negative).
            Ok(b'') at end-of-file.
            Err(ChannelEmpty) if nothing is buffered yet.
            Err(ChannelClosed) if this end was closed.
        """
        state = self._state
        if state.read_closed:
            return Err(ChannelClosed('read end closed'))
        if state.buffer:
            count = len(state.buffer) if max_bytes < 0 else min(max_bytes, len(state.buffer))
            data = bytes(state.buffer[:count])
            del state.buffer[:count]
            state.write_slot.wake()
            return Ok(data)
        if state.write_closed:
            return Ok(b'')
        return Err(ChannelEmpty())

    async def read(self, max_bytes: int = -1) -> bytes:
        """Read up to `max_bytes` bytes, suspending until at least one arrives.

        Returns:
            The bytes read, or b'' at end-of-file.

        Raises:
            ChannelClosedError: If this end was closed.
        """
        while True:
            match self.try_read(max_bytes):
                case Ok(data):
                    return data
                case Err(ChannelEmpty()):
                    await self._state.read_slot.park()
                case Err(error):
                    raise error.to_exception()

    async def read_exactly(self, n: int) -> bytes:
        """Read exactly `n` bytes.

        Raises:
            anyio.IncompleteRead: If end-of-file arrives first.
            ChannelClosedError: If this end was closed.
        """
        chunks = bytearray()
        while len(chunks) < n:
            data = await self.read(n - len(chunks))
            if not data:
                raise anyio.IncompleteRead()
            chunks += data
        return bytes(chunks)

    async def read_to_end(self) -> bytes:
        """Read until the write end is closed."""
        chunks = bytearray()
        while data := await self.read():
            chunks += data
        return bytes(chunks)

    def close(self) -> None:
        """Close the read end. Idempotent; pending and later writes fail."""
        state = self._state
        if state.read_closed:
            return
        state.read_closed = True
        state.buffer.clear()
        log.debug('pipe read end closed')
        state.read_slot.wake()
        state.write_slot.wake()

    def __enter__(self) -> PipeReader:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __aiter__(self) -> PipeReader:
        """Iterate over chunks until end-of-file."""
        return self

    async def __anext__(self) -> bytes:
        data = await self.read()
        if not data:
            raise StopAsyncIteration
        return data


class PipeWriter:
    """Writing end of a pipe."""

    def __init__(self, state: _PipeState) -> None:
        self._state = state

    def try_write(self, data: bytes) -> Result[int, ChannelFull | ChannelClosed]:
        """Buffer as much of `data` as fits without suspending.

        Returns:
            Ok(count) with the number of bytes taken (0 only for empty data).
            Err(ChannelFull) if the buffer has no room.
            Err(ChannelClosed) if either end was closed.
        """
        state = self._state
        if state.write_closed:
            return Err(ChannelClosed('write end closed'))
        if state.read_closed:
            return Err(ChannelClosed('read end closed'))
        if not data:
            return Ok(0)
        room = state.max_size - len(state.buffer)
        if room == 0:
            return Err(ChannelFull(state.max_size))
        count = min(room, len(data))
        state.buffer += data[:count]
        state.read_slot.wake()
        return Ok(count)

    async def write(self, data: bytes) -> int:
        """Write part of `data`, suspending while the buffer is full.

        Returns:
            Number of bytes written.

        Raises:
            ChannelClosedError: If either end was closed.
        """
        while True:
            match self.try_write(data):
                case Ok(count):
                    return count
                case Err(ChannelFull()):
                    await self._state.write_slot.park()
                case Err(error):
                    raise error.to_exception()

    async def write_all(self, data: bytes) -> None:
        """Write all of `data`, suspending as often as needed."""
        while data:
            count = await self.write(data)
            data = data[count:]

    def close(self) -> None:
        """Close the write end. Idempotent; the reader sees end-of-file."""
        state = self._state
        if state.write_closed:
            return
        state.write_closed = True
        log.debug('pipe write end closed', buffered=len(state.buffer))
        state.read_slot.wake()
        state.write_slot.wake()

    def __enter__(self) -> PipeWriter:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class DuplexEnd:
    """One side of a duplex pipe: reads what the other side writes and back."""

    def __init__(self, reader: PipeReader, writer: PipeWriter) -> None:
        self.reader = reader
        self.writer = writer

    async def read(self, max_bytes: int = -1) -> bytes:
        return await self.reader.read(max_bytes)

    async def write(self, data: bytes) -> int:
        return await self.writer.write(data)

    async def write_all(self, data: bytes) -> None:
        await self.writer.write_all(data)

    def split(self) -> tuple[PipeReader, PipeWriter]:
        return self.reader, self.writer

    def close(self) -> None:
        """Close both directions."""
        self.writer.close()
        self.reader.close()

    def __enter__(self) -> DuplexEnd:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def pipe(max_size: int) -> tuple[PipeReader, PipeWriter]:
    """Create a one-way pipe holding at most `max_size` bytes.

    Raises:
        ValueError: If max_size is less than 1.

    Example:
        ```python
        reader, writer = pipe(1024)
        await writer.write_all(b'hello')
        writer.close()
        assert await reader.read_to_end() == b'hello'
        ```
    """
    state = _PipeState(max_size)
    return PipeReader(state), PipeWriter(state)


def duplex_pipe(max_size: int) -> tuple[DuplexEnd, DuplexEnd]:
    """Create two connected ends; bytes written to one are read from the other."""
    read1, write1 = pipe(max_size)
    read2, write2 = pipe(max_size)
    return DuplexEnd(read1, write2), DuplexEnd(read2, write1)
