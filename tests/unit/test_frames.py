import pytest

from chatwire import frames


class TestEncodeFrame:
    def test_text_frame(self):
        assert frames.text_frame("Hello") == '0:"Hello"\n'

    def test_text_frame_escapes_newlines_and_keeps_unicode(self):
        assert frames.text_frame("你好\n") == '0:"你好\\n"\n'

    def test_data_frame_is_one_element_array(self):
        assert frames.data_frame({"type": "thinking"}) == '2:[{"type":"thinking"}]\n'

    def test_tool_call_start_frame(self):
        line = frames.tool_call_start_frame("tool-1", "calculator")
        assert line == 'b:{"toolCallId":"tool-1","toolName":"calculator"}\n'

    def test_finish_frame(self):
        line = frames.finish_frame(completion_tokens=13)
        assert line == (
            'd:{"finishReason":"stop","usage":'
            '{"promptTokens":0,"completionTokens":13}}\n'
        )

    def test_error_frame(self):
        assert frames.error_frame("boom") == '3:"boom"\n'

    def test_unknown_prefix_rejected(self):
        with pytest.raises(ValueError, match="Unknown frame prefix"):
            frames.encode_frame("9", "x")

    def test_unserialisable_payload_falls_back_to_str(self):
        class Thing:
            def __str__(self):
                return "thing"

        assert frames.data_frame({"result": Thing()}) == '2:[{"result":"thing"}]\n'


class TestParseFrame:
    def test_parse_text(self):
        assert frames.parse_frame('0:"hi"\n') == ("0", "hi")

    def test_parse_finish(self):
        prefix, payload = frames.parse_frame(frames.finish_frame(5, prompt_tokens=2))
        assert prefix == "d"
        assert payload["usage"] == {"promptTokens": 2, "completionTokens": 5}

    @pytest.mark.parametrize("line", ["hello", "x:1\n", ':"a"'])
    def test_malformed(self, line):
        with pytest.raises(ValueError):
            frames.parse_frame(line)


def test_is_terminal_frame():
    assert frames.is_terminal_frame(frames.finish_frame(1))
    assert frames.is_terminal_frame(frames.error_frame("x"))
    assert not frames.is_terminal_frame(frames.text_frame("d:"))
