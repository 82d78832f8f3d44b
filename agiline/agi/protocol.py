"""AGI protocol utilities.

Parsing of environment and reply lines, and formatting of command lines.
Everything here works on already-read lines; reading from and writing to the
stream is done by :class:`agiline.agi.session.AGISession`.
"""

import re
from typing import Final

from agiline.agi.exceptions import (
    AGIHangupError,
    DeadChannelError,
    InvalidCommandError,
    InvalidSyntaxError,
    Malformed200ResponseError,
    MalformedEnvironmentError,
    MalformedResponseError,
    ResultParseError,
)
from agiline.agi.types import Reply

ENV_PREFIX: Final[str] = "agi_"
# "agi_type" is the shortest known key, "agi_network_script" the longest
ENV_KEY_MIN: Final[int] = len("agi_type")
ENV_KEY_MAX: Final[int] = len("agi_network_script")
# Minimum number of environment variables, older Asterisk versions send 18
ENV_MIN: Final[int] = 18
# Maximum number of environment lines read before giving up
ENV_MAX: Final[int] = 150

HANGUP: Final[str] = "HANGUP"
RESULT_PREFIX: Final[str] = "200 result="
USAGE_FOLLOWS: Final[str] = "520-Invalid"

_INT_RE: Final = re.compile(r"[+-]?[0-9]+")


def decode_line(raw: bytes) -> str:
    """Strip the trailing newline and decode a line read from Asterisk."""
    if raw.endswith(b"\n"):
        raw = raw[:-1]
    return raw.decode("utf-8", errors="replace")


def parse_env_line(line: str) -> tuple[str, str]:
    """Parse an ``agi_<key>: <value>`` line into ``(key, value)``.

    The ``agi_`` prefix is removed from the key. Raises
    :class:`MalformedEnvironmentError` if the line does not match
    ``/^.{8,18}:.+$/``.
    """
    ind = line.find(":")
    if ind < ENV_KEY_MIN or ind > ENV_KEY_MAX or ind == len(line) - 1:
        raise MalformedEnvironmentError(line)
    key = line[len(ENV_PREFIX) : ind]
    value = line[ind + len(": ") :]
    return key, value


def _atoi(token: str) -> int:
    """Strict integer conversion, no whitespace or digit separators."""
    if _INT_RE.fullmatch(token) is None:
        raise ValueError(f"invalid integer literal: {token!r}")
    return int(token)


def _parse_result(token: str, line: str) -> int:
    try:
        return _atoi(token)
    except ValueError as e:
        raise ResultParseError(line) from e


def _parse_success(line: str) -> Reply:
    """Parse ``200 result=<n>`` and ``200 result=<n> <data>``."""
    if not line.startswith(RESULT_PREFIX) or len(line) == len(RESULT_PREFIX):
        raise Malformed200ResponseError(line)

    rest = line[len(RESULT_PREFIX) :]
    ind = rest.find(" ")
    if ind < 0:
        return Reply(_parse_result(rest, line))
    if 0 < ind < len(rest) - 1:
        return Reply(_parse_result(rest[:ind], line), rest[ind + 1 :])
    raise Malformed200ResponseError(line)


def parse_reply(line: str) -> Reply:
    """Parse a single reply line (without its newline) into a Reply.

    Every reply other than a well formed ``200`` raises a subclass of
    :class:`agiline.agi.exceptions.AGIError`. For ``520-Invalid`` the caller
    still has to consume the usage line that follows, see
    :func:`usage_follows`.
    """
    ind = line.find(" ")
    if ind <= 0 or ind == len(line) - 1:
        # Line doesn't match /^\w+\s.+$/
        if line == HANGUP:
            raise AGIHangupError()
        raise MalformedResponseError(line)

    match line[:ind]:
        case "200":
            return _parse_success(line)
        case "510":
            raise InvalidCommandError(line)
        case "511":
            raise DeadChannelError(line)
        case "520" | "520-Invalid":
            raise InvalidSyntaxError(line)
        case _:
            raise MalformedResponseError(line)


def usage_follows(line: str) -> bool:
    """Check if Asterisk appends a usage line after this reply line."""
    return line.split(" ", 1)[0] == USAGE_FOLLOWS


def sanitize(command: str) -> str:
    """Replace CR and LF so a command always occupies exactly one line."""
    return command.replace("\r", " ").replace("\n", " ")


def encode_command(command: str) -> bytes:
    """Build the wire form of a command: sanitized text plus one newline."""
    return (sanitize(command) + "\n").encode("utf-8")


def quote(value: object) -> str:
    """Wrap an argument in double quotes, escaping backslashes and quotes."""
    text = "" if value is None else str(value)
    return '"{}"'.format(text.replace("\\", "\\\\").replace('"', '\\"'))


def format_command(command: str, *args: object) -> str:
    """Join a command and its arguments, skipping arguments that are None."""
    parts = [command]
    parts.extend(str(arg) for arg in args if arg is not None)
    return " ".join(parts)
