import pytest

from timesheet_server.core.errors import PricingError
from timesheet_server.models.wage import ShiftSplit, WageWindowConfig
from timesheet_server.services.pricing_service import PricingMode, price_shift


@pytest.fixture
def split():
    return ShiftSplit(morning_hours=2.0, night_hours=2.0, unassigned_hours=0.0, total_hours=4.0)


def test_split_mode_prices_each_bucket(split, default_config):
    assert price_shift(split, default_config, PricingMode.SPLIT) == 74.0


def test_split_mode_is_the_default(split, default_config):
    assert price_shift(split, default_config) == 74.0


def test_flat_mode_prices_total_hours(split, default_config):
    assert price_shift(split, default_config, PricingMode.FLAT) == 80.0


def test_unassigned_hours_are_not_paid_in_split_mode(default_config):
    split = ShiftSplit(morning_hours=0.0, night_hours=2.0, unassigned_hours=1.0, total_hours=3.0)
    assert price_shift(split, default_config, PricingMode.SPLIT) == 40.0
    assert price_shift(split, default_config, PricingMode.FLAT) == 60.0


def test_amount_rounds_half_up(default_config):
    config = default_config.model_copy(update={"morning_rate": 0.25, "night_rate": 0.0})
    split = ShiftSplit(morning_hours=0.5, night_hours=0.0, total_hours=0.5)
    assert price_shift(split, config) == 0.13


def test_zero_hours_cost_nothing(default_config):
    assert price_shift(ShiftSplit(), default_config) == 0.0


def test_missing_rate_is_an_error_not_a_default(split):
    config = WageWindowConfig(morning_start="06:00", morning_end="17:00",
                              night_start="17:00", night_end="01:00", morning_rate=17.0)
    with pytest.raises(PricingError, match="night_rate"):
        price_shift(split, config, PricingMode.SPLIT)


def test_missing_flat_rate(split):
    config = WageWindowConfig(morning_start="06:00", morning_end="17:00",
                              night_start="17:00", night_end="01:00",
                              morning_rate=17.0, night_rate=20.0)
    with pytest.raises(PricingError, match="flat_rate"):
        price_shift(split, config, PricingMode.FLAT)


def test_nan_hours(default_config):
    split = ShiftSplit(morning_hours=float("nan"), night_hours=1.0, total_hours=1.0)
    with pytest.raises(PricingError):
        price_shift(split, default_config)


def test_negative_rate_bypassing_validation(split, default_config):
    config = default_config.model_construct(**{**default_config.model_dump(), "morning_rate": -5.0})
    with pytest.raises(PricingError, match="negative"):
        price_shift(split, config)


def test_unknown_mode(split, default_config):
    with pytest.raises(PricingError):
        price_shift(split, default_config, "hourly")
