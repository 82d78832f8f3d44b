"""
agiline.agi - Async Asterisk Gateway Interface library.

Usage:
    from agiline.agi import AGISession, AGIStream

    async with AGISession(AGIStream(reader, writer)) as agi:
        await agi.answer()
        await agi.stream_file("hello-world")
        await agi.hangup()

Standalone AGI scripts started by Asterisk use stdin/stdout instead:

    agi = await AGISession.from_stdio()
    await agi.init()
"""

from agiline.agi.environment import Environment, parse_environment
from agiline.agi.exceptions import (
    AGICommandError,
    AGIConnectionError,
    AGIEnvironmentError,
    AGIError,
    AGIHangupError,
    AGIResponseError,
    DeadChannelError,
    IncompleteEnvironmentError,
    InvalidCommandError,
    InvalidSyntaxError,
    Malformed200ResponseError,
    MalformedEnvironmentError,
    MalformedResponseError,
    ResultParseError,
    UnsolicitedLineError,
)
from agiline.agi.protocol import parse_reply, quote
from agiline.agi.session import AGISession
from agiline.agi.stream import AGIStream, LineStream
from agiline.agi.types import ChannelStatus, Reply, ReplyCode

__all__ = [
    # Session
    "AGISession",
    "AGIStream",
    "LineStream",
    "Environment",
    "parse_environment",
    "parse_reply",
    "quote",
    # Exceptions
    "AGIError",
    "AGIConnectionError",
    "AGIHangupError",
    "AGIEnvironmentError",
    "MalformedEnvironmentError",
    "IncompleteEnvironmentError",
    "AGIResponseError",
    "MalformedResponseError",
    "Malformed200ResponseError",
    "ResultParseError",
    "UnsolicitedLineError",
    "AGICommandError",
    "InvalidCommandError",
    "DeadChannelError",
    "InvalidSyntaxError",
    # Types
    "Reply",
    "ReplyCode",
    "ChannelStatus",
]

__version__ = "1.0.0"
