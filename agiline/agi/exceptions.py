"""AGI API Exceptions."""

from agiline.agi.types import ReplyCode


class AGIError(Exception):
    """Base exception for AGI errors."""

    pass


class AGIConnectionError(AGIError):
    """Transport failures (closed stream, broken pipe, etc.)."""

    pass


class AGIHangupError(AGIError):
    """Asterisk sent an unsolicited HANGUP, the session is over."""

    def __init__(self) -> None:
        super().__init__("client sent a HANGUP request")


# ============ Environment ============


class AGIEnvironmentError(AGIError):
    """The AGI environment block could not be parsed."""

    pass


class MalformedEnvironmentError(AGIEnvironmentError):
    """A line of the environment block is not ``agi_<key>: <value>``."""

    def __init__(self, line: str) -> None:
        self.line = line
        super().__init__(f"malformed environment input: {line}")


class IncompleteEnvironmentError(AGIEnvironmentError):
    """The environment block ended before enough variables were read."""

    def __init__(self, count: int, minimum: int) -> None:
        self.count = count
        self.minimum = minimum
        super().__init__(f"incomplete environment with only {count} env vars (need {minimum})")


# ============ Replies ============


class AGIResponseError(AGIError):
    """A reply line could not be parsed."""

    message = "malformed or partial agi response"

    def __init__(self, line: str) -> None:
        self.line = line
        super().__init__(f"{self.message}: {line}")


class MalformedResponseError(AGIResponseError):
    """Reply line without a recognisable status token."""

    pass


class Malformed200ResponseError(AGIResponseError):
    """200 reply that does not follow ``200 result=<n>[ <data>]``."""

    message = "malformed 200 response"


class ResultParseError(AGIResponseError):
    """The ``result=`` value of a 200 reply is not an integer."""

    message = "failed to parse AGI 200 reply"


class UnsolicitedLineError(AGIResponseError):
    """A line arrived while no command was pending."""

    message = "unsolicited agi line"


# ============ Command rejections ============


class AGICommandError(AGIError):
    """Asterisk rejected the command."""

    code: ReplyCode
    message: str

    def __init__(self, line: str = "") -> None:
        self.line = line
        super().__init__(self.message)


class InvalidCommandError(AGICommandError):
    """510: invalid or unknown command."""

    code = ReplyCode.INVALID_COMMAND
    message = "invalid or unknown command"


class DeadChannelError(AGICommandError):
    """511: command not permitted on a dead channel."""

    code = ReplyCode.DEAD_CHANNEL
    message = "command not permitted on a dead channel"


class InvalidSyntaxError(AGICommandError):
    """520: invalid command syntax.

    For the multi-line ``520-Invalid`` variant ``usage`` holds the usage text
    Asterisk sent after the status line.
    """

    code = ReplyCode.INVALID_SYNTAX
    message = "invalid command syntax"

    def __init__(self, line: str = "", usage: str | None = None) -> None:
        self.usage = usage
        super().__init__(line)
