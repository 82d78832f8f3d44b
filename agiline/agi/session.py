"""Async AGI Session."""

import asyncio
import logging
from typing import Any, Self

from agiline.agi.environment import Environment, parse_environment
from agiline.agi.exceptions import (
    AGIConnectionError,
    AGIError,
    AGIHangupError,
    InvalidSyntaxError,
    UnsolicitedLineError,
)
from agiline.agi.protocol import (
    ENV_MIN,
    HANGUP,
    decode_line,
    encode_command,
    format_command,
    parse_reply,
    quote,
    usage_follows,
)
from agiline.agi.stream import AGIStream, LineStream
from agiline.agi.types import Reply

logger = logging.getLogger(__name__)


class AGISession:
    """
    Async AGI session over a single stream.

    Usage:
        async with AGISession(AGIStream(reader, writer)) as agi:
            logger.info(agi.env["channel"])
            await agi.answer()
            reply = await agi.get_variable("CALLERID(num)")
            await agi.hangup()

    Every command returns a fresh Reply or raises an AGIError subclass.
    """

    def __init__(self, stream: LineStream, min_env_vars: int = ENV_MIN) -> None:
        self._stream = stream
        self._min_env_vars = min_env_vars
        self._env: Environment | None = None

        # One command/reply pair at a time
        self._send_lock = asyncio.Lock()

    @classmethod
    async def from_stdio(cls, min_env_vars: int = ENV_MIN) -> Self:
        """Create a session for an AGI script started by Asterisk."""
        return cls(await AGIStream.from_stdio(), min_env_vars)

    async def init(self) -> Environment:
        """Read the AGI environment, must be called before any command."""
        self._env = await parse_environment(self._stream, self._min_env_vars)
        return self._env

    async def close(self) -> None:
        """Close the underlying stream."""
        await self._stream.close()

    async def __aenter__(self) -> Self:
        await self.init()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    @property
    def env(self) -> Environment:
        """AGI environment variables without the ``agi_`` prefix."""
        if self._env is None:
            raise AGIError("Session not initialized")
        return self._env

    async def _read_line(self) -> str:
        """Read a single line ending with \\n."""
        try:
            raw = await self._stream.readline()
        except OSError as e:
            raise AGIConnectionError(f"Read failed: {e}") from e

        if not raw.endswith(b"\n"):
            raise AGIConnectionError("Connection closed unexpectedly")

        line = decode_line(raw)
        logger.debug(f"Received: {line!r}")
        return line

    async def read_reply(self) -> Reply:
        """Read and classify the reply to the last command."""
        line = await self._read_line()
        try:
            return parse_reply(line)
        except InvalidSyntaxError as e:
            if usage_follows(line):
                # Drain the usage text so the next reply starts on a fresh line
                e.usage = await self._read_line()
            raise

    async def send(self, command: str) -> Reply:
        """Send a raw command line and return its reply."""
        async with self._send_lock:
            # Make sure nothing arrived in the meantime, usually a HANGUP from Asterisk
            if await self._stream.buffered():
                line = await self._read_line()
                logger.warning(f"Unsolicited line before command {command!r}: {line!r}")
                if line == HANGUP:
                    raise AGIHangupError()
                raise UnsolicitedLineError(line)

            data = encode_command(command)
            logger.debug(f"Sending: {data!r}")
            try:
                self._stream.write(data)
                await self._stream.drain()
            except OSError as e:
                raise AGIConnectionError(f"Failed to send command: {e}") from e

            return await self.read_reply()

    async def _send_stripped(self, command: str, chars: str) -> Reply:
        reply = await self.send(command)
        if reply.data:
            return Reply(reply.result, reply.data.strip(chars))
        return reply

    async def _send_endpos(self, command: str) -> Reply:
        reply = await self.send(command)
        if reply.data:
            return Reply(reply.result, reply.data.removeprefix("endpos="))
        return reply

    # ============ AGI commands ============

    async def answer(self) -> Reply:
        """Answer channel. Result is -1 on channel failure, 0 if successful."""
        return await self.send("ANSWER")

    async def asyncagi_break(self) -> Reply:
        """Interrupt Async AGI. Result is always 0."""
        return await self.send("ASYNCAGI BREAK")

    async def channel_status(self, channel: str | None = None) -> Reply:
        """
        Status of the given channel, or of the current one.

        Result is a ChannelStatus value.
        """
        return await self.send(format_command("CHANNEL STATUS", channel))

    async def control_stream_file(
        self,
        filename: str,
        escape_digits: str,
        *params: str | int,
    ) -> Reply:
        """
        Play a file and let the listener control the stream.

        Optional params: skipms, ffchar, rewchr, pausechr. Result is 0 if
        playback completes, the ASCII value of a pressed digit, or -1 on error.
        """
        return await self.send(format_command("CONTROL STREAM FILE", filename, quote(escape_digits), *params))

    async def database_del(self, family: str, key: str) -> Reply:
        """Remove database key/value. Result is 1 if successful, 0 otherwise."""
        return await self.send(format_command("DATABASE DEL", family, key))

    async def database_deltree(self, family: str, keytree: str | None = None) -> Reply:
        """Remove database keytree/value. Result is 1 if successful, 0 otherwise."""
        return await self.send(format_command("DATABASE DELTREE", family, keytree))

    async def database_get(self, family: str, key: str) -> Reply:
        """Get database value. Result is 1 if the key is set, data holds the value."""
        return await self._send_stripped(format_command("DATABASE GET", family, key), "()")

    async def database_put(self, family: str, key: str, value: str) -> Reply:
        """Add or update database value. Result is 1 if successful, 0 otherwise."""
        return await self.send(format_command("DATABASE PUT", family, key, quote(value)))

    async def exec(self, application: str, options: str = "") -> Reply:
        """Execute a dialplan application. Result is -2 if it was not found."""
        return await self.send(format_command("EXEC", application, quote(options)))

    async def get_data(
        self,
        filename: str,
        timeout: int | None = None,
        max_digits: int | None = None,
    ) -> Reply:
        """Play a prompt and collect DTMF. Result holds the digits received."""
        return await self.send(format_command("GET DATA", filename, timeout, max_digits))

    async def get_full_variable(self, expression: str, channel: str | None = None) -> Reply:
        """Evaluate a channel expression. Result is 1 if set, data holds the value."""
        return await self._send_stripped(format_command("GET FULL VARIABLE", expression, channel), "()")

    async def get_option(self, filename: str, escape_digits: str, timeout: int | None = None) -> Reply:
        """
        Stream file and wait for a digit.

        Result is the ASCII value of the digit, -1 on failure; data holds the
        sample offset.
        """
        return await self._send_endpos(format_command("GET OPTION", filename, quote(escape_digits), timeout))

    async def get_variable(self, name: str) -> Reply:
        """Get a channel variable. Result is 1 if set, data holds the value."""
        return await self._send_stripped(format_command("GET VARIABLE", name), "()")

    async def gosub(self, context: str, extension: str, priority: str | int, args: str | None = None) -> Reply:
        """Execute a dialplan subroutine, returning with Return()."""
        return await self.send(format_command("GOSUB", context, extension, priority, args))

    async def hangup(self, channel: str | None = None) -> Reply:
        """Hang up a channel. Result is 1 on success, -1 if the channel was not found."""
        return await self.send(format_command("HANGUP", channel))

    async def noop(self, *params: str | int) -> Reply:
        """Do nothing. Result is always 0."""
        return await self.send(format_command("NOOP", *params))

    async def raw_command(self, *params: str | int) -> Reply:
        """Send a user defined command, mostly useful for debugging."""
        return await self.send(" ".join(str(param) for param in params))

    async def receive_char(self, timeout: int) -> Reply:
        """Receive one character. Result is its decimal value, 0 if unsupported, -1 on error."""
        return await self.send(format_command("RECEIVE CHAR", timeout))

    async def receive_text(self, timeout: int) -> Reply:
        """Receive text. Result is 1 on success with the text in data, -1 on failure."""
        return await self._send_stripped(format_command("RECEIVE TEXT", timeout), "()")

    async def record_file(
        self,
        filename: str,
        fmt: str,
        escape_digits: str,
        timeout: int,
        *params: str | int,
    ) -> Reply:
        """
        Record to a file until a digit is pressed or the timeout expires.

        Optional params: offset samples, ``BEEP``, ``s=<silence seconds>``.
        Negative results mean error; data differs per outcome, see res_agi.c.
        """
        return await self.send(format_command("RECORD FILE", filename, fmt, quote(escape_digits), timeout, *params))

    async def say_alpha(self, text: str, escape_digits: str = "") -> Reply:
        return await self.send(format_command("SAY ALPHA", text, quote(escape_digits)))

    async def say_date(self, date: int, escape_digits: str = "") -> Reply:
        """Say a date given as Unix time."""
        return await self.send(format_command("SAY DATE", date, quote(escape_digits)))

    async def say_datetime(
        self,
        time: int,
        escape_digits: str = "",
        fmt: str | None = None,
        timezone: str | None = None,
    ) -> Reply:
        """Say a Unix time, optionally with a voicemail.conf format and timezone."""
        return await self.send(
            format_command("SAY DATETIME", time, quote(escape_digits), None if fmt is None else quote(fmt), timezone)
        )

    async def say_digits(self, digits: int | str, escape_digits: str = "") -> Reply:
        return await self.send(format_command("SAY DIGITS", digits, quote(escape_digits)))

    async def say_number(self, number: int, escape_digits: str = "", gender: str | None = None) -> Reply:
        return await self.send(format_command("SAY NUMBER", number, quote(escape_digits), gender))

    async def say_phonetic(self, text: str, escape_digits: str = "") -> Reply:
        return await self.send(format_command("SAY PHONETIC", text, quote(escape_digits)))

    async def say_time(self, time: int, escape_digits: str = "") -> Reply:
        return await self.send(format_command("SAY TIME", time, quote(escape_digits)))

    async def send_image(self, image: str) -> Reply:
        """Send an image (name without extension). Result is -1 only on error/hangup."""
        return await self.send(format_command("SEND IMAGE", image))

    async def send_text(self, text: str) -> Reply:
        """Send text. Result is -1 only on error/hangup."""
        return await self.send(format_command("SEND TEXT", quote(text)))

    async def set_autohangup(self, seconds: int) -> Reply:
        """Hang up after a number of seconds, 0 disables. Result is always 0."""
        return await self.send(format_command("SET AUTOHANGUP", seconds))

    async def set_callerid(self, callerid: str) -> Reply:
        return await self.send(format_command("SET CALLERID", quote(callerid)))

    async def set_context(self, context: str) -> Reply:
        return await self.send(format_command("SET CONTEXT", context))

    async def set_extension(self, extension: str) -> Reply:
        return await self.send(format_command("SET EXTENSION", extension))

    async def set_music(self, enabled: bool, music_class: str | None = None) -> Reply:
        """Enable or disable music on hold. Result is always 0."""
        return await self.send(format_command("SET MUSIC", "on" if enabled else "off", music_class))

    async def set_priority(self, priority: str | int) -> Reply:
        return await self.send(format_command("SET PRIORITY", priority))

    async def set_variable(self, name: str, value: Any) -> Reply:
        """Set a channel variable. Result is always 1."""
        return await self.send(format_command("SET VARIABLE", quote(name), quote(value)))

    async def speech_activate_grammar(self, grammar: str) -> Reply:
        return await self.send(format_command("SPEECH ACTIVATE GRAMMAR", grammar))

    async def speech_create(self, engine: str) -> Reply:
        return await self.send(format_command("SPEECH CREATE", engine))

    async def speech_deactivate_grammar(self, grammar: str) -> Reply:
        return await self.send(format_command("SPEECH DEACTIVATE GRAMMAR", grammar))

    async def speech_destroy(self) -> Reply:
        return await self.send("SPEECH DESTROY")

    async def speech_load_grammar(self, grammar: str, path: str) -> Reply:
        return await self.send(format_command("SPEECH LOAD GRAMMAR", grammar, path))

    async def speech_recognize(self, prompt: str, timeout: int, offset: int | None = None) -> Reply:
        """Recognize speech. Result is 1 on success; data format varies, see res_agi.c."""
        return await self.send(format_command("SPEECH RECOGNIZE", prompt, timeout, offset))

    async def speech_set(self, name: str, value: str) -> Reply:
        return await self.send(format_command("SPEECH SET", name, value))

    async def speech_unload_grammar(self, grammar: str) -> Reply:
        return await self.send(format_command("SPEECH UNLOAD GRAMMAR", grammar))

    async def stream_file(self, filename: str, escape_digits: str = "", offset: int | None = None) -> Reply:
        """
        Play a file.

        Result is 0 if playback completes, the ASCII value of a pressed digit,
        or -1 on error; data holds the end position.
        """
        return await self._send_endpos(format_command("STREAM FILE", filename, quote(escape_digits), offset))

    async def tdd_mode(self, mode: str) -> Reply:
        """Toggle TDD mode (on, off, mate, tdd)."""
        return await self.send(format_command("TDD MODE", mode))

    async def verbose(self, message: str, level: int | None = None) -> Reply:
        """Log a message to the Asterisk verbose log. Result is always 1."""
        return await self.send(format_command("VERBOSE", quote(message), level))

    async def wait_for_digit(self, timeout: int) -> Reply:
        """
        Wait for a DTMF digit, -1 blocks forever.

        Result is -1 on failure, 0 on timeout or the ASCII value of the digit.
        """
        return await self.send(format_command("WAIT FOR DIGIT", timeout))
