"""Tests for AGI line parsing and command formatting."""

import pytest

from agiline.agi import (
    AGICommandError,
    AGIHangupError,
    AGIResponseError,
    DeadChannelError,
    InvalidCommandError,
    InvalidSyntaxError,
    Malformed200ResponseError,
    MalformedEnvironmentError,
    MalformedResponseError,
    Reply,
    ReplyCode,
    ResultParseError,
)
from agiline.agi.protocol import (
    decode_line,
    encode_command,
    format_command,
    parse_env_line,
    parse_reply,
    quote,
    sanitize,
    usage_follows,
)


class TestEnvLine:
    def test_strips_prefix(self):
        assert parse_env_line("agi_channel: SIP/1234-00000000") == ("channel", "SIP/1234-00000000")

    def test_value_keeps_colons_and_spaces(self):
        assert parse_env_line("agi_request: agi://127.0.0.1/foo?") == ("request", "agi://127.0.0.1/foo?")
        assert parse_env_line("agi_arg_2: argument 2") == ("arg_2", "argument 2")

    def test_empty_value(self):
        assert parse_env_line("agi_accountcode: ") == ("accountcode", "")

    def test_shortest_and_longest_keys(self):
        assert parse_env_line("agi_type: SIP") == ("type", "SIP")
        assert parse_env_line("agi_network_script: foo?") == ("network_script", "foo?")

    @pytest.mark.parametrize(
        "line",
        [
            "agi_foo: bar",  # key too short
            "agi_this_key_is_too_long: bar",
            "agi_channel:",  # delimiter is the last character
            "no delimiter at all",
            "",
        ],
    )
    def test_malformed(self, line):
        with pytest.raises(MalformedEnvironmentError) as exc_info:
            parse_env_line(line)
        assert exc_info.value.line == line
        assert line in str(exc_info.value)


class TestParseReply:
    def test_result_only(self):
        assert parse_reply("200 result=1") == Reply(1, "")

    def test_result_with_data(self):
        reply = parse_reply("200 result=1 (speech) endpos=1234 results=foo bar")
        assert reply.result == 1
        assert reply.data == "(speech) endpos=1234 results=foo bar"

    def test_negative_result(self):
        assert parse_reply("200 result=-1") == Reply(-1)

    def test_parenthesized_data_is_kept(self):
        assert parse_reply("200 result=1 (SIP/1234)") == Reply(1, "(SIP/1234)")

    def test_same_line_parses_to_equal_replies(self):
        line = "200 result=0 endpos=8000"
        assert parse_reply(line) == parse_reply(line)

    @pytest.mark.parametrize(
        "line",
        [
            "200 result=",
            "200 foo",
            "200 results=1",
            "200 resultx1",
            "200 result=1 ",  # trailing space without data
            "200 result= 1",
        ],
    )
    def test_malformed_200(self, line):
        with pytest.raises(Malformed200ResponseError) as exc_info:
            parse_reply(line)
        assert exc_info.value.line == line

    @pytest.mark.parametrize("line", ["200 result=abc", "200 result=1x (data)", "200 result=1_0", "200 result=--1"])
    def test_result_not_an_integer(self, line):
        with pytest.raises(ResultParseError) as exc_info:
            parse_reply(line)
        assert isinstance(exc_info.value.__cause__, ValueError)

    def test_510(self):
        with pytest.raises(InvalidCommandError) as exc_info:
            parse_reply("510 Invalid or unknown command")
        assert exc_info.value.code == ReplyCode.INVALID_COMMAND

    def test_511(self):
        with pytest.raises(DeadChannelError) as exc_info:
            parse_reply("511 Command Not Permitted on a dead channel")
        assert exc_info.value.code == ReplyCode.DEAD_CHANNEL

    def test_520(self):
        with pytest.raises(InvalidSyntaxError) as exc_info:
            parse_reply("520 Invalid command syntax.  Proper usage not available.")
        assert exc_info.value.code == ReplyCode.INVALID_SYNTAX
        assert exc_info.value.usage is None

    def test_520_with_usage(self):
        line = "520-Invalid command syntax.  Proper usage follows:"
        with pytest.raises(InvalidSyntaxError):
            parse_reply(line)
        assert usage_follows(line)
        assert not usage_follows("520 Invalid command syntax.  Proper usage not available.")

    def test_rejections_share_a_base(self):
        for line in ("510 x", "511 x", "520 x"):
            with pytest.raises(AGICommandError):
                parse_reply(line)

    def test_hangup(self):
        with pytest.raises(AGIHangupError):
            parse_reply("HANGUP")

    def test_hangup_is_not_a_response_error(self):
        assert not issubclass(AGIHangupError, AGIResponseError)

    @pytest.mark.parametrize(
        "line",
        [
            "",
            "200",
            "HANGUP ",
            " 200 result=1",
            "hangup",
            "some random reply that we are not supposed to get",
            "404 Not found",
        ],
    )
    def test_malformed(self, line):
        with pytest.raises(MalformedResponseError) as exc_info:
            parse_reply(line)
        assert exc_info.value.line == line


class TestCommandFormatting:
    def test_sanitize(self):
        assert sanitize("VERBOSE \"a\r\nb\" 1") == "VERBOSE \"a  b\" 1"

    def test_encode_ends_with_single_newline(self):
        data = encode_command("SET VARIABLE \"X\" \"line1\nline2\r\"")
        assert data == b'SET VARIABLE "X" "line1 line2 "\n'
        assert data.count(b"\n") == 1
        assert b"\r" not in data

    def test_encode_utf8(self):
        assert encode_command("VERBOSE \"caf\u00e9\"") == 'VERBOSE "caf\u00e9"\n'.encode("utf-8")

    def test_quote(self):
        assert quote("any") == '"any"'
        assert quote("") == '""'
        assert quote(None) == '""'
        assert quote(42) == '"42"'
        assert quote('say "hi"') == '"say \\"hi\\""'
        assert quote("C:\\path") == '"C:\\\\path"'

    def test_format_command_skips_none(self):
        assert format_command("CHANNEL STATUS", None) == "CHANNEL STATUS"
        assert format_command("GET DATA", "beep", 5000, None) == "GET DATA beep 5000"
        assert format_command("ANSWER") == "ANSWER"


def test_decode_line():
    assert decode_line(b"200 result=1\n") == "200 result=1"
    assert decode_line(b"200 result=1") == "200 result=1"
    # Only the newline is stripped
    assert decode_line(b"200 result=1\r\n") == "200 result=1\r"
    assert decode_line(b"\xff\n") == "\ufffd"
