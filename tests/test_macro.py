"""Tests for macro resolution and substitution."""

import pytest

from load_control.errors import ValidationError
from load_control.macro import apply_macro, resolve_macro


class TestResolveMacro:
    def test_finds_index(self):
        assert resolve_macro(["-c", "%", "-n", "100"], "%") == 1

    def test_first_match_wins(self):
        assert resolve_macro(["%", "-c", "%"], "%") == 0

    def test_exact_match_only(self):
        with pytest.raises(ValidationError):
            resolve_macro(["-q", "%%", "x%"], "%")

    def test_missing_macro(self):
        with pytest.raises(ValidationError) as info:
            resolve_macro(["-c", "10"], "%")
        assert info.value.stage == "validate"

    def test_custom_token(self):
        assert resolve_macro(["-c", "{MV}", "-q", "%"], "{MV}") == 1


class TestApplyMacro:
    def test_overwrites_slot(self):
        args = ["-c", "%", "-z", "10s"]
        apply_macro(args, 1, 1234)
        assert args == ["-c", "1234", "-z", "10s"]

    def test_negative_value(self):
        args = ["%"]
        apply_macro(args, 0, -50)
        assert args == ["-50"]

    def test_repeated_apply_reuses_slot(self):
        args = ["-c", "%"]
        apply_macro(args, 1, 10)
        apply_macro(args, 1, 20)
        assert args == ["-c", "20"]
