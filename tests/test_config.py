"""Tests for control configuration and command parsing."""

import pytest

from load_control.config import ControlConfig, LoadCommand
from load_control.errors import ValidationError


class TestControlConfig:
    def test_defaults_validate(self):
        ControlConfig().validate()

    @pytest.mark.parametrize("sv", [0, 100])
    def test_sv_bounds_accepted(self, sv):
        ControlConfig(sv=sv).validate()

    @pytest.mark.parametrize("sv", [-1, 101])
    def test_sv_out_of_range(self, sv):
        with pytest.raises(ValidationError):
            ControlConfig(sv=sv).validate()

    def test_interval_must_be_positive(self):
        with pytest.raises(ValidationError):
            ControlConfig(interval_ms=0).validate()

    def test_buffer_length_at_least_one(self):
        with pytest.raises(ValidationError):
            ControlConfig(buffer_length=0).validate()

    def test_empty_macro(self):
        with pytest.raises(ValidationError):
            ControlConfig(macro="").validate()

    def test_interval_seconds(self):
        assert ControlConfig(interval_ms=250).interval == 0.25


class TestLoadCommand:
    def test_parse(self):
        cmd = LoadCommand.parse("hey -c % -n 100000 http://example.com")
        assert cmd.executable == "hey"
        assert cmd.args == ["-c", "%", "-n", "100000", "http://example.com"]
        assert cmd.argv()[0] == "hey"

    def test_parse_splits_on_single_spaces(self):
        assert LoadCommand.parse("ab  -c %").args == ["", "-c", "%"]

    def test_parse_empty(self):
        with pytest.raises(ValidationError):
            LoadCommand.parse("")
