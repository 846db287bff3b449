"""Tests for the strategy registry and the proportional law."""

import pytest

from load_control.config import ControlConfig
from load_control.errors import ValidationError
from load_control.models import ControlContext
from load_control.strategies import (
    DEFAULT_STRATEGY,
    ProportionalStrategy,
    available_strategies,
    build_strategy,
)


def context(config, mv, average):
    return ControlContext(cycle=0, mv=mv, samples=[average], average_pv=average, config=config)


class TestRegistry:
    def test_default_is_proportional(self):
        assert DEFAULT_STRATEGY == "proportional"
        assert "proportional" in available_strategies()

    def test_build(self):
        strategy = build_strategy("proportional", ControlConfig())
        assert isinstance(strategy, ProportionalStrategy)

    def test_unknown(self):
        with pytest.raises(ValidationError):
            build_strategy("pid", ControlConfig())


class TestProportional:
    def test_below_set_point(self):
        config = ControlConfig(kp=10000, sv=50)
        decision = ProportionalStrategy(config).decide(context(config, 1000, 40))
        assert decision.delta == 100000
        assert "raise" in decision.reason

    def test_above_set_point(self):
        config = ControlConfig(kp=10000, sv=0)
        decision = ProportionalStrategy(config).decide(context(config, 5, 100))
        assert decision.delta == -1000000
        assert "reduce" in decision.reason

    def test_at_set_point(self):
        config = ControlConfig(kp=7, sv=30)
        assert ProportionalStrategy(config).decide(context(config, 12, 30)).delta == 0

    def test_negative_gain(self):
        config = ControlConfig(kp=-2, sv=60)
        assert ProportionalStrategy(config).decide(context(config, 0, 50)).delta == -20
