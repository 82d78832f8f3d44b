"""Test helpers: an in-memory Asterisk peer speaking the AGI wire format."""

# AGI environment as sent by Asterisk for a FastAGI call
ENV_BLOCK = b"""agi_network: yes
agi_network_script: foo?
agi_request: agi://127.0.0.1/foo?
agi_channel: SIP/1234-00000000
agi_language: en
agi_type: SIP
agi_uniqueid: 1397044468.0
agi_version: 0.1
agi_callerid: 1001
agi_calleridname: 1001
agi_callingpres: 67
agi_callingani2: 0
agi_callington: 0
agi_callingtns: 0
agi_dnid: 123456
agi_rdnis: unknown
agi_context: default
agi_extension: 123456
agi_priority: 1
agi_enhanced: 0.0
agi_accountcode: 0
agi_threadid: -1289290944
agi_arg_1: argument1
agi_arg_2: argument 2
agi_arg_3: 3

"""

ENV_COUNT = 25


class FakeStream:
    """
    LineStream backed by memory.

    ``initial`` is readable right away. Each entry of ``replies`` becomes
    readable only after a command has been drained, like a real switch that
    answers once it has read the command.
    """

    def __init__(self, initial: bytes = b"", replies: list[bytes] | None = None) -> None:
        self._buffer = bytearray(initial)
        self._replies = list(replies or [])
        self.written = bytearray()
        self.write_error: OSError | None = None
        self.closed = False

    def push(self, data: bytes) -> None:
        """Make data readable immediately, e.g. an unsolicited HANGUP."""
        self._buffer.extend(data)

    def remaining(self) -> bytes:
        return bytes(self._buffer)

    def lines_written(self) -> list[bytes]:
        return bytes(self.written).splitlines(keepends=True)

    async def readline(self) -> bytes:
        ind = self._buffer.find(b"\n")
        end = len(self._buffer) if ind < 0 else ind + 1
        line = bytes(self._buffer[:end])
        del self._buffer[:end]
        return line

    async def buffered(self) -> int:
        return len(self._buffer)

    def write(self, data: bytes) -> None:
        if self.write_error is not None:
            raise self.write_error
        self.written.extend(data)

    async def drain(self) -> None:
        if self._replies:
            self._buffer.extend(self._replies.pop(0))

    async def close(self) -> None:
        self.closed = True
