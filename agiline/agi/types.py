"""AGI reply types and status codes."""

from dataclasses import dataclass
from enum import IntEnum


class ReplyCode(IntEnum):
    """Status tokens sent by Asterisk at the start of a reply line."""

    SUCCESS = 200
    INVALID_COMMAND = 510
    DEAD_CHANNEL = 511
    INVALID_SYNTAX = 520


class ChannelStatus(IntEnum):
    """Result values of CHANNEL STATUS."""

    DOWN_AVAILABLE = 0
    DOWN_RESERVED = 1
    OFF_HOOK = 2
    DIGITS_DIALED = 3
    RINGING = 4
    REMOTE_RINGING = 5
    UP = 6
    BUSY = 7


@dataclass(frozen=True, slots=True)
class Reply:
    """Result of a single AGI command.

    ``result`` is the numeric value after ``result=``, its meaning depends on
    the command. ``data`` holds whatever followed it on the reply line.
    """

    result: int
    data: str = ""
