"""SGR decoder tests.

Covers classification, chunk boundary handling and end-of-stream flushing.
"""

import pytest

from conftest import HEADING_OUTPUT, SEARCH_OUTPUT
from search_nav.sgr import (MAX_PENDING_LENGTH, ParseState, Segment,
                            SegmentKind, SgrDecoder, coalesce, decode_chunk,
                            finish_stream, strip_ansi)

PLAIN = SegmentKind.PLAIN
FILE_NAME = SegmentKind.FILE_NAME
LINE_NUMBER = SegmentKind.LINE_NUMBER
MATCH = SegmentKind.MATCH


# Escapes ag does not emit for search hits: a screen clear, an unknown color,
# a start code nested in an open run, an erase-line inside a run, and a
# 256-color code whose prefix is the longest one held back between chunks
UNUSUAL_OUTPUT = (
    "\x1b[2J"
    + "\x1b[1;32mfoo.txt\x1b[0m\x1b[K:\x1b[1;33m12\x1b[0m\x1b[K:"
    + "\x1b[31mred\x1b[0m and "
    + "\x1b[30;43mab\x1b[Kc\x1b[1;32md\x1b[0m\x1b[K "
    + "\x1b[38;5;196mdeep\x1b[m\n"
)

STREAMS = [SEARCH_OUTPUT, HEADING_OUTPUT, UNUSUAL_OUTPUT]


def decode_all(chunks):
    decoder = SgrDecoder()
    segments = []
    for chunk in chunks:
        segments.extend(decoder.decode(chunk))
    segments.extend(decoder.finish())
    return segments


class TestClassification:
    """Runs are typed by the code that opened them."""

    def test_file_name_run(self):
        assert decode_all(["\x1b[1;32mfoo.txt\x1b[0m"]) == [Segment(FILE_NAME, "foo.txt")]

    def test_match_closed_by_bare_reset(self):
        assert decode_all(["\x1b[30;43mhello\x1b[m"]) == [Segment(MATCH, "hello")]

    def test_line_number_run(self):
        assert decode_all(["\x1b[1;33m42\x1b[0m"]) == [Segment(LINE_NUMBER, "42")]

    def test_unwrapped_text_is_plain(self):
        assert decode_all(["just text\n"]) == [Segment(PLAIN, "just text\n")]

    def test_unknown_code_becomes_plain(self):
        segments = decode_all(["a\x1b[31mred\x1b[0mb"])
        assert segments == [Segment(PLAIN, "aredb")]

    def test_reset_without_open_run_is_noop(self):
        assert decode_all(["a\x1b[0mb\x1b[mc"]) == [Segment(PLAIN, "abc")]

    def test_nested_start_code_is_ignored(self):
        segments = decode_all(["\x1b[1;32mfoo\x1b[30;43mbar\x1b[0m"])
        assert segments == [Segment(FILE_NAME, "foobar")]

    def test_non_sgr_sequences_are_stripped(self):
        segments = decode_all(["\x1b[30;43mhi\x1b[0m\x1b[K there\x1b[2J"])
        assert segments == [Segment(MATCH, "hi"), Segment(PLAIN, " there")]

    def test_empty_runs_emit_nothing(self):
        assert decode_all(["\x1b[1;32m\x1b[0m"]) == []


class TestEndToEnd:
    def test_two_chunk_scenario(self):
        chunks = [
            "\x1b[1;32mfoo.txt\x1b[0m:\x1b[1;33m12\x1b[0m:",
            "  \x1b[30;43mhello\x1b[mworld\n",
        ]
        assert coalesce(decode_all(chunks)) == [
            Segment(FILE_NAME, "foo.txt"),
            Segment(PLAIN, ":"),
            Segment(LINE_NUMBER, "12"),
            Segment(PLAIN, ":  "),
            Segment(MATCH, "hello"),
            Segment(PLAIN, "world\n"),
        ]

    def test_search_output(self):
        kinds = [segment.kind for segment in coalesce(decode_all([SEARCH_OUTPUT]))]
        assert kinds.count(FILE_NAME) == 2
        assert kinds.count(LINE_NUMBER) == 2
        assert kinds.count(MATCH) == 3


class TestStreamProperties:
    """Round trip and chunking invariance over realistic output."""

    @pytest.mark.parametrize("stream", STREAMS)
    def test_round_trip(self, stream):
        text = "".join(segment.text for segment in decode_all([stream]))
        assert text == strip_ansi(stream)

    @pytest.mark.parametrize("stream", STREAMS)
    def test_any_single_split_point(self, stream):
        whole = coalesce(decode_all([stream]))
        for i in range(len(stream) + 1):
            assert coalesce(decode_all([stream[:i], stream[i:]])) == whole, f"split at {i}"

    @pytest.mark.parametrize("stream", STREAMS)
    def test_one_character_at_a_time(self, stream):
        whole = coalesce(decode_all([stream]))
        assert coalesce(decode_all(list(stream))) == whole

    def test_any_two_split_points(self):
        whole = coalesce(decode_all([UNUSUAL_OUTPUT]))
        n = len(UNUSUAL_OUTPUT)
        for i in range(n + 1):
            for j in range(i, n + 1):
                chunks = [UNUSUAL_OUTPUT[:i], UNUSUAL_OUTPUT[i:j], UNUSUAL_OUTPUT[j:]]
                assert coalesce(decode_all(chunks)) == whole, f"split at {i}, {j}"

    def test_unusual_escapes_classified(self):
        assert coalesce(decode_all([UNUSUAL_OUTPUT])) == [
            Segment(FILE_NAME, "foo.txt"),
            Segment(PLAIN, ":"),
            Segment(LINE_NUMBER, "12"),
            Segment(PLAIN, ":red and "),
            Segment(MATCH, "abcd"),
            Segment(PLAIN, " deep\n"),
        ]

    def test_bytes_split_inside_multibyte_character(self):
        stream = "\x1b[30;43mcaf\u00e9\x1b[0m na\u00efve\n".encode("utf-8")
        whole = coalesce(decode_all([stream]))
        pieces = [stream[i:i + 1] for i in range(len(stream))]
        assert coalesce(decode_all(pieces)) == whole
        assert whole[0] == Segment(MATCH, "caf\u00e9")


class TestParseState:
    def test_partial_escape_is_held_back(self):
        state, segments = decode_chunk(ParseState(), "abc\x1b[1;3")
        assert segments == [Segment(PLAIN, "abc")]
        assert state.pending == "\x1b[1;3"
        assert len(state.pending) < MAX_PENDING_LENGTH

    def test_lone_escape_is_held_back(self):
        state, segments = decode_chunk(ParseState(), "abc\x1b")
        assert state.pending == "\x1b"
        assert segments == [Segment(PLAIN, "abc")]

    def test_longest_held_prefix(self):
        state, segments = decode_chunk(ParseState(), "x\x1b[38;5;196")
        assert state.pending == "\x1b[38;5;196"
        assert len(state.pending) == MAX_PENDING_LENGTH - 1
        assert segments == [Segment(PLAIN, "x")]

        state, segments = decode_chunk(state, "mdeep\x1b[0m")
        assert segments == [Segment(PLAIN, "deep")]
        assert state.is_idle

    def test_overlong_prefix_is_not_held(self):
        chunk = "x\x1b[" + "1;" * 10
        state, segments = decode_chunk(ParseState(), chunk)
        assert state.pending == ""
        assert segments == [Segment(PLAIN, chunk)]

    def test_open_run_carries_to_next_chunk(self):
        state, segments = decode_chunk(ParseState(), "\x1b[30;43mhel")
        assert segments == []
        assert state.open_code == "30;43"
        assert state.run == "hel"

        state, segments = decode_chunk(state, "lo\x1b[0m!")
        assert segments == [Segment(MATCH, "hello"), Segment(PLAIN, "!")]
        assert state.is_idle

    def test_state_is_not_mutated(self):
        start = ParseState()
        decode_chunk(start, "\x1b[30;43mabc")
        assert start.is_idle


class TestFinish:
    def test_open_run_is_flushed_best_effort(self):
        decoder = SgrDecoder()
        assert decoder.decode("\x1b[30;43mhel") == []
        assert decoder.finish() == [Segment(MATCH, "hel")]

    def test_pending_escape_flushed_as_text(self):
        decoder = SgrDecoder()
        decoder.decode("tail\x1b[1")
        assert decoder.finish() == [Segment(PLAIN, "\x1b[1")]

    def test_finish_twice_returns_empty(self):
        decoder = SgrDecoder()
        decoder.decode("\x1b[30;43mabc")
        assert decoder.finish() == [Segment(MATCH, "abc")]
        assert decoder.finish() == []

    def test_finish_stream_resets_state(self):
        state, _ = decode_chunk(ParseState(), b"\xc3")
        assert state.pending_bytes == b"\xc3"
        state, segments = finish_stream(state)
        assert state.is_idle
        assert segments == [Segment(PLAIN, "\ufffd")]
