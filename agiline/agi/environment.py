"""AGI environment parsing."""

import logging
from collections.abc import Iterator, Mapping

from agiline.agi.exceptions import IncompleteEnvironmentError
from agiline.agi.protocol import ENV_MAX, ENV_MIN, decode_line, parse_env_line
from agiline.agi.stream import LineStream

logger = logging.getLogger(__name__)


class Environment(Mapping[str, str]):
    """
    Read-only mapping of the AGI environment variables.

    Keys are stored without the ``agi_`` prefix:

        env["channel"]      # SIP/1234-00000000
        env["network"]      # yes
        env.args            # ["argument1", "argument 2", "3"]
    """

    __slots__ = ("_vars",)

    def __init__(self, variables: Mapping[str, str] | None = None) -> None:
        self._vars: dict[str, str] = dict(variables or {})

    def __getitem__(self, key: str) -> str:
        return self._vars[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._vars)

    def __len__(self) -> int:
        return len(self._vars)

    def __repr__(self) -> str:
        return f"Environment({self._vars!r})"

    @property
    def args(self) -> list[str]:
        """Script arguments ``arg_1`` .. ``arg_N`` in order."""
        args: list[str] = []
        i = 1
        while f"arg_{i}" in self._vars:
            args.append(self._vars[f"arg_{i}"])
            i += 1
        return args

    @property
    def network(self) -> bool:
        """True if the session was started through FastAGI."""
        return self._vars.get("network") == "yes"


async def parse_environment(stream: LineStream, min_vars: int = ENV_MIN) -> Environment:
    """
    Read the environment block Asterisk sends at the start of a session.

    Stops at the blank line that ends the block or at end of stream. Raises
    MalformedEnvironmentError on the first invalid line and
    IncompleteEnvironmentError if fewer than ``min_vars`` variables were read.
    """
    variables: dict[str, str] = {}
    for _ in range(ENV_MAX):
        raw = await stream.readline()
        if not raw.endswith(b"\n") or len(raw) <= len(b"\r\n"):
            break
        key, value = parse_env_line(decode_line(raw))
        variables[key] = value

    if len(variables) < min_vars:
        raise IncompleteEnvironmentError(len(variables), min_vars)

    logger.debug(f"Parsed {len(variables)} environment variables")
    return Environment(variables)
