"""Tests for the diagnostic line grammar."""

from __future__ import annotations

import pytest

from optview.recognizer import (
    AUTOGENERATED,
    fold_case_path,
    identity_path,
    parse_line_number,
    platform_path_policy,
    recognize,
)


def _recognize(line: bytes, **kwargs):
    return recognize(line, 0, len(line), **kwargs)


class TestRecognize:
    def test_basic(self):
        line = b"/a/b.go:3: cannot inline foo"
        found = _recognize(line)
        assert found.path == "/a/b.go"
        assert found.line == 3
        assert found.message.slice(line) == b"cannot inline foo"

    def test_column_ignored(self):
        line = b"./main.go:12:6: can inline add"
        found = _recognize(line)
        assert found.path == "./main.go"
        assert found.line == 12
        assert found.message.slice(line) == b"can inline add"

    def test_drive_letter(self):
        line = b"C:\\Go\\src\\example\\abc.go:688: cannot inline run"
        found = _recognize(line)
        assert found.path == "C:\\Go\\src\\example\\abc.go"
        assert found.line == 688
        assert found.message.slice(line) == b"cannot inline run"

    def test_message_keeps_later_colons(self):
        line = b"x.go:1:2: cannot inline f: function too complex: cost 90"
        found = _recognize(line)
        assert found.message.slice(line) == b"cannot inline f: function too complex: cost 90"

    def test_range_is_absolute_in_buffer(self):
        data = b"noise\nx.go:4: note here\n"
        start = data.index(b"x.go")
        end = data.index(b"\n", start)
        found = recognize(data, start, end)
        assert found.message.slice(data) == b"note here"

    def test_empty_message(self):
        line = b"x.go:4: "
        found = _recognize(line)
        assert found.message.slice(line) == b""

    @pytest.mark.parametrize("line", [b"", b"a", b"ab", b"a:"])
    def test_short_lines_rejected(self, line):
        assert _recognize(line) is None

    def test_tab_rejected(self):
        assert _recognize(b"\tx.go:1:2: continuation") is None

    def test_no_colon_rejected(self):
        assert _recognize(b"# command-line-arguments") is None

    def test_colon_before_offset_two_is_skipped(self):
        # The first two bytes are never a separator.
        assert _recognize(b"a:b: message") is None

    def test_single_colon_rejected(self):
        assert _recognize(b"main.go:12 no second separator") is None

    def test_no_space_rejected(self):
        assert _recognize(b"main.go:12:6:nospace") is None

    def test_autogenerated_rejected(self):
        assert _recognize(b"<autogenerated>:1: inlining call to x") is None

    def test_custom_sentinel(self):
        assert _recognize(b"<synthetic>:1: x", sentinel="<synthetic>") is None
        assert _recognize(AUTOGENERATED.encode() + b":1: x", sentinel="<synthetic>") is not None

    def test_non_numeric_line_is_zero(self):
        found = _recognize(b"main.go:abc: weird")
        assert found is not None
        assert found.line == 0

    def test_fold_case(self):
        found = _recognize(b"C:\\Src\\Main.go:1: x", normalize=fold_case_path)
        assert found.path == "c:\\src\\main.go"

    def test_invalid_utf8_path_replaced(self):
        found = _recognize(b"/src/caf\xe9.go:1: x")
        assert found.path == "/src/caf\ufffd.go"
        found.path.encode("utf-8")


class TestParseLineNumber:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            (b"42", 42),
            (b"007", 7),
            (b"+3", 3),
            (b"-3", -3),
            (b"", 0),
            (b"12a", 0),
            (b" 12", 0),
            (b"1_000", 0),
            (b"99999999999999999999", 0),
        ],
    )
    def test_parse(self, raw, expected):
        assert parse_line_number(raw) == expected


class TestPathPolicy:
    def test_windows_folds(self):
        assert platform_path_policy("win32") is fold_case_path

    def test_linux_identity(self):
        assert platform_path_policy("linux") is identity_path

    def test_darwin_identity(self):
        assert platform_path_policy("darwin") is identity_path
