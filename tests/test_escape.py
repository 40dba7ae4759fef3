"""Tests for ptyhost.pty.escape."""

from __future__ import annotations

import pytest

from ptyhost.pty.escape import decode, extract_command_lines, parse_command_line, to_bytes


class TestDecode:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            (r"ls\n", "ls\n"),
            (r"a\rb", "a\rb"),
            (r"a\tb", "a\tb"),
            (r"back\\slash", "back\\slash"),
            (r"\x03", "\x03"),
            (r"\x1b[A", "\x1b[A"),
            (r"\u00e9", "\u00e9"),
            (r"\u2603", "\u2603"),
        ],
    )
    def test_known_sequences(self, raw: str, expected: str) -> None:
        assert decode(raw) == expected

    def test_plain_text_untouched(self) -> None:
        assert decode("echo hello") == "echo hello"

    @pytest.mark.parametrize("raw", [r"\q", r"\x4", r"\xZZ", r"\u12", r"\a"])
    def test_unknown_or_short_sequences_pass_through(self, raw: str) -> None:
        assert decode(raw) == raw

    def test_escaped_backslash_is_not_reparsed(self) -> None:
        # "\\n" is a literal backslash followed by n, not a newline
        assert decode(r"\\n") == "\\n"

    def test_mixed(self) -> None:
        assert decode(r"git status\r\n\x04") == "git status\r\n\x04"

    def test_surrogate_code_points_pass_through(self) -> None:
        assert decode(r"\ud800") == r"\ud800"


class TestToBytes:
    def test_high_hex_escapes_are_single_bytes(self) -> None:
        assert to_bytes(decode(r"\xff\x80")) == b"\xff\x80"

    def test_low_hex_escapes_unchanged(self) -> None:
        assert to_bytes(decode(r"\x1b[A")) == b"\x1b[A"

    def test_unicode_escapes_are_utf8(self) -> None:
        assert to_bytes(decode(r"\xffé")) == b"\xff\xc3\xa9"
        assert to_bytes("café") == "café".encode("utf-8")


class TestExtractCommandLines:
    def test_splits_on_newline_runs(self) -> None:
        assert extract_command_lines("ls -la\n\n\r\npwd\n") == ["ls -la", "pwd"]

    def test_trims_segments(self) -> None:
        assert extract_command_lines("   echo hi   \n") == ["echo hi"]

    def test_drops_ctrl_c_and_ctrl_d(self) -> None:
        assert extract_command_lines("\x03\nmake\n\x04") == ["make"]

    def test_control_prefix_drops_whole_segment(self) -> None:
        assert extract_command_lines("\x03rm -rf /") == []

    def test_empty_input(self) -> None:
        assert extract_command_lines("") == []
        assert extract_command_lines("\n\r\n") == []


class TestParseCommandLine:
    def test_command_and_args(self) -> None:
        assert parse_command_line("git push origin main") == ("git", ["push", "origin", "main"])

    def test_collapses_whitespace(self) -> None:
        assert parse_command_line("  ls \t -la  ") == ("ls", ["-la"])

    def test_command_only(self) -> None:
        assert parse_command_line("pwd") == ("pwd", [])

    def test_empty(self) -> None:
        assert parse_command_line("") == ("", [])
        assert parse_command_line("   ") == ("", [])
