"""FastAGI server: one AGISession per incoming Asterisk connection."""

import asyncio
import importlib
import logging
import ssl
from collections.abc import Awaitable, Callable
from typing import Self

from agiline.agi import AGIError, AGIHangupError, AGISession, AGIStream
from agiline.fastagi.config import Settings, TLSSettings

logger = logging.getLogger(__name__)

Handler = Callable[[AGISession], Awaitable[None]]


def load_handler(path: str) -> Handler:
    """Resolve a ``module:callable`` path to a session handler."""
    module_name, sep, attr = path.partition(":")
    if not sep or not module_name or not attr:
        raise ValueError(f"Invalid handler path {path!r}, expected 'module:callable'")
    module = importlib.import_module(module_name)
    handler = getattr(module, attr)
    if not callable(handler):
        raise ValueError(f"Handler {path!r} is not callable")
    return handler


def build_ssl_context(tls: TLSSettings) -> ssl.SSLContext | None:
    """Create the server SSL context, or None when TLS is disabled."""
    if not tls.enabled:
        return None
    if tls.certfile is None:
        raise ValueError("TLS is enabled but no certificate file is configured")
    context = ssl.create_default_context(ssl.Purpose.CLIENT_AUTH)
    context.load_cert_chain(tls.certfile, tls.keyfile)
    return context


class FastAGIServer:
    """
    Async FastAGI server.

    Usage:
        server = FastAGIServer(settings, handler)
        await server.start()
        await server.serve_forever()
    """

    def __init__(self, settings: Settings, handler: Handler) -> None:
        self._settings = settings
        self._handler = handler
        self._server: asyncio.Server | None = None

    @property
    def sockets(self) -> list[tuple[str, int]]:
        """Bound listener addresses."""
        if not self._server:
            return []
        return [sock.getsockname()[:2] for sock in self._server.sockets]

    async def start(self) -> None:
        """Bind the listener and start accepting connections."""
        await self._listen()

    async def _listen(self) -> asyncio.Server:
        cfg = self._settings.server
        server = await asyncio.start_server(
            self._handle_connection,
            cfg.host,
            cfg.port,
            ssl=build_ssl_context(cfg.tls),
        )
        scheme = "agis" if cfg.tls.enabled else "agi"
        logger.info(f"Starting FastAGI server on {scheme}://{cfg.host}:{cfg.port}")
        self._server = server
        return server

    async def serve_forever(self) -> None:
        """Serve until cancelled."""
        server = self._server or await self._listen()
        async with server:
            await server.serve_forever()

    async def close(self) -> None:
        """Stop accepting connections."""
        if self._server:
            self._server.close()
            await self._server.wait_closed()
            self._server = None

    async def __aenter__(self) -> Self:
        await self.start()
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()

    async def _handle_connection(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        stream = AGIStream(reader, writer)
        peer = stream.peername
        logger.debug(f"Connected: {peer}")

        session = AGISession(stream, self._settings.agi.min_env_vars)
        try:
            env = await session.init()
            logger.info(f"New AGI session from {peer}: {env.get('request', '')}")
            await self._handler(session)
        except AGIHangupError:
            logger.info(f"Channel hung up: {peer}")
        except AGIError as e:
            logger.error(f"AGI session with {peer} failed: {e}")
        except Exception as e:
            logger.exception(f"Unhandled error in AGI handler for {peer}: {e}")
        finally:
            await session.close()
            logger.debug(f"Closed connection from {peer}")
