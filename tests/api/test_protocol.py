"""Test control channel framing."""
from __future__ import annotations

import json

import pytest

from custom_components.yeelight_lan.api.protocol import (
    CommandReply,
    FrameBuffer,
    PropsNotification,
    encode_command,
    parse_frame,
)


# ==============================================================================
# encode_command Tests
# ==============================================================================


class TestEncodeCommand:
    """Test request serialization."""

    def test_single_line_crlf_terminated(self):
        """Test request is one JSON line ending in CRLF."""
        line = encode_command(1, "set_power", ["on", "smooth", 300])

        assert line.endswith(b"\r\n")
        assert b"\r\n" not in line[:-2]
        assert json.loads(line) == {
            "id": 1,
            "method": "set_power",
            "params": ["on", "smooth", 300],
        }

    def test_unserializable_params_raise(self):
        """Test params that are not JSON raise TypeError."""
        with pytest.raises(TypeError):
            encode_command(1, "set_power", [object()])

    def test_nan_params_raise(self):
        """Test NaN is rejected rather than emitted as invalid JSON."""
        with pytest.raises(ValueError):
            encode_command(1, "set_bright", [float("nan")])


# ==============================================================================
# FrameBuffer Tests
# ==============================================================================


class TestFrameBuffer:
    """Test line reassembly."""

    def test_complete_lines(self):
        """Test several complete lines in one chunk."""
        buffer = FrameBuffer()

        lines = buffer.feed(b'{"id":1}\r\n{"id":2}\r\n')

        assert lines == ['{"id":1}', '{"id":2}']
        assert len(buffer) == 0

    def test_partial_line_kept_across_reads(self):
        """Test incomplete trailing data waits for the rest of the line."""
        buffer = FrameBuffer()

        assert buffer.feed(b'{"id":1,"res') == []
        assert buffer.feed(b'ult":["ok"]}\r\n{"id"') == ['{"id":1,"result":["ok"]}']
        assert len(buffer) == len(b'{"id"')

    def test_terminator_split_across_reads(self):
        """Test CR and LF arriving in separate chunks."""
        buffer = FrameBuffer()

        assert buffer.feed(b'{"id":1}\r') == []
        assert buffer.feed(b"\n") == ['{"id":1}']

    def test_multibyte_character_split_across_reads(self):
        """Test UTF-8 sequences split between chunks decode correctly."""
        buffer = FrameBuffer()
        encoded = '{"name":"café"}\r\n'.encode("utf-8")
        split = encoded.index(b"\xa9")

        assert buffer.feed(encoded[:split]) == []
        assert buffer.feed(encoded[split:]) == ['{"name":"café"}']

    def test_undecodable_line_dropped(self):
        """Test invalid UTF-8 drops only that line."""
        buffer = FrameBuffer()

        assert buffer.feed(b"\xff\xfe\r\n{\"id\":3}\r\n") == ['{"id":3}']

    def test_clear(self):
        """Test clear discards the partial line."""
        buffer = FrameBuffer()
        buffer.feed(b"partial")

        buffer.clear()

        assert len(buffer) == 0


# ==============================================================================
# parse_frame Tests
# ==============================================================================


class TestParseFrame:
    """Test inbound frame classification."""

    def test_result_reply(self):
        """Test reply with a result array."""
        frame = parse_frame('{"id":5,"result":["on","80"]}')

        assert frame == CommandReply(5, result=["on", "80"])
        assert not frame.is_error

    def test_result_values_stringified(self):
        """Test non-string result entries become strings."""
        frame = parse_frame('{"id":5,"result":[1,"ok"]}')

        assert frame.result == ["1", "ok"]

    def test_error_reply(self):
        """Test reply with an error object."""
        frame = parse_frame('{"id":2,"error":{"code":-1,"message":"unsupported method"}}')

        assert isinstance(frame, CommandReply)
        assert frame.is_error
        assert frame.error_message == "unsupported method"
        assert frame.error_code == -1

    def test_ack_only_reply(self):
        """Test reply without result or error resolves as ok."""
        frame = parse_frame('{"id":7}')

        assert frame == CommandReply(7, result=["ok"])

    def test_error_without_message_is_ack(self):
        """Test error object lacking a message is treated as an ack."""
        frame = parse_frame('{"id":7,"error":{"code":-1}}')

        assert frame == CommandReply(7, result=["ok"])

    def test_props_notification(self):
        """Test props notification."""
        frame = parse_frame('{"method":"props","params":{"power":"off"}}')

        assert frame == PropsNotification({"power": "off"})

    def test_non_integer_id_is_not_a_reply(self):
        """Test string id is neither reply nor notification."""
        assert parse_frame('{"id":"1","result":["ok"]}') is None

    def test_boolean_id_is_not_a_reply(self):
        """Test JSON true is not accepted as an id."""
        assert parse_frame('{"id":true,"result":["ok"]}') is None

    @pytest.mark.parametrize(
        "line",
        [
            "",
            "   ",
            "not json",
            "[1,2,3]",
            '{"method":"props","params":[1]}',
            '{"method":"other","params":{}}',
        ],
    )
    def test_unrecognized_lines(self, line):
        """Test lines that carry nothing usable are ignored."""
        assert parse_frame(line) is None
