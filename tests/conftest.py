"""Shared fixtures."""

from collections.abc import Awaitable, Callable

import pytest
from helpers import ENV_BLOCK, FakeStream

from agiline.agi import AGISession

SessionFactory = Callable[..., Awaitable[tuple[AGISession, FakeStream]]]


@pytest.fixture
def env_block() -> bytes:
    return ENV_BLOCK


@pytest.fixture
def make_session() -> SessionFactory:
    """Build an initialized session whose peer answers with the given replies."""

    async def factory(*replies: bytes) -> tuple[AGISession, FakeStream]:
        stream = FakeStream(ENV_BLOCK, list(replies))
        session = AGISession(stream)
        await session.init()
        return session, stream

    return factory
