"""Line stream bindings for AGI sessions."""

import asyncio
import logging
import sys
from typing import Protocol, Self

from agiline.agi.exceptions import AGIConnectionError

logger = logging.getLogger(__name__)


class LineStream(Protocol):
    """Bidirectional byte stream an AGI session talks over."""

    async def readline(self) -> bytes:
        """Read one line including its newline, or what is left at EOF."""
        ...

    async def buffered(self) -> int:
        """Number of received bytes not yet returned by readline(), without blocking."""
        ...

    def write(self, data: bytes) -> None: ...

    async def drain(self) -> None: ...

    async def close(self) -> None: ...


class AGIStream:
    """
    LineStream over an asyncio reader/writer pair.

    Keeps its own read buffer so that buffered() reports lines Asterisk has
    already sent but nobody has read yet, usually a HANGUP notification.

    Usage:
        stream = AGIStream(reader, writer)        # FastAGI connection
        stream = await AGIStream.from_stdio()     # AGI script started by Asterisk
    """

    READ_SIZE: int = 4096

    def __init__(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        pipe: bool = False,
    ) -> None:
        self._reader = reader
        self._writer = writer
        self._pipe = pipe
        self._buffer = bytearray()

    @classmethod
    async def from_stdio(cls) -> Self:
        """Create a stream on the process stdin and stdout."""
        loop = asyncio.get_running_loop()

        reader = asyncio.StreamReader()
        await loop.connect_read_pipe(lambda: asyncio.StreamReaderProtocol(reader), sys.stdin)

        transport, protocol = await loop.connect_write_pipe(asyncio.streams.FlowControlMixin, sys.stdout)
        writer = asyncio.StreamWriter(transport, protocol, reader, loop)
        return cls(reader, writer, pipe=True)

    @property
    def peername(self) -> str:
        """Remote address, or "stdio" for pipes."""
        peer = self._writer.get_extra_info("peername")
        if self._pipe or peer is None:
            return "stdio"
        if isinstance(peer, tuple):
            return f"{peer[0]}:{peer[1]}"
        return str(peer)

    async def buffered(self) -> int:
        # Pull in whatever the reader already holds, never wait for more
        try:
            async with asyncio.timeout(0):
                chunk = await self._reader.read(self.READ_SIZE)
        except TimeoutError:
            chunk = b""
        except OSError as e:
            raise AGIConnectionError(f"Read failed: {e}") from e
        self._buffer.extend(chunk)
        return len(self._buffer)

    async def readline(self) -> bytes:
        while True:
            ind = self._buffer.find(b"\n")
            if ind >= 0:
                line = bytes(self._buffer[: ind + 1])
                del self._buffer[: ind + 1]
                return line

            try:
                chunk = await self._reader.read(self.READ_SIZE)
            except OSError as e:
                raise AGIConnectionError(f"Read failed: {e}") from e

            if not chunk:
                # EOF, hand out whatever partial line is left
                line = bytes(self._buffer)
                self._buffer.clear()
                return line
            self._buffer.extend(chunk)

    def write(self, data: bytes) -> None:
        self._writer.write(data)

    async def drain(self) -> None:
        await self._writer.drain()

    async def close(self) -> None:
        """Close the underlying transport."""
        if self._writer.is_closing():
            return
        self._writer.close()
        if self._pipe:
            # Pipe write protocols have no close waiter
            return
        try:
            await self._writer.wait_closed()
        except OSError as e:
            logger.debug(f"Error while closing stream: {e}")
