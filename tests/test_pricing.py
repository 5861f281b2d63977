"""Unit tests for suggested pricing at a target margin."""

import math

import pytest

from recipe_costing.exceptions import ComputationError, InputError, MarginOutOfRange
from recipe_costing.services import costing, pricing


class TestSuggestedPrice:
    def test_quarter_margin(self):
        price = pricing.suggested_price(3.00, 25)
        assert price == pytest.approx(4.00)
        per_serving = pricing.profit_per_serving(price, 3.00)
        assert per_serving == pytest.approx(1.00)
        assert pricing.total_profit_at_margin(per_serving, 10) == pytest.approx(10.00)

    @pytest.mark.parametrize("margin", [5, 25, 33.3, 50, 99.5])
    def test_margin_round_trip(self, margin):
        price = pricing.suggested_price(2.37, margin)
        assert costing.profit_margin(price, 2.37) == pytest.approx(margin)

    @pytest.mark.parametrize("margin", [100, 150, 0, -10, math.nan])
    def test_margin_out_of_range_rejected(self, margin):
        with pytest.raises(MarginOutOfRange):
            pricing.suggested_price(3.00, margin)

    def test_out_of_range_is_both_input_and_computation_error(self):
        with pytest.raises(InputError):
            pricing.suggested_price(3.00, 100)
        with pytest.raises(ComputationError):
            pricing.suggested_price(3.00, 150)

    def test_non_numeric_margin(self):
        with pytest.raises(InputError) as exc_info:
            pricing.validate_margin("lots", field="margin")
        assert exc_info.value.field == "margin"

    def test_infinite_cost_rejected(self):
        with pytest.raises(InputError) as exc_info:
            pricing.suggested_price(math.inf, 25)
        assert exc_info.value.field == "cost_per_serving"


class TestScenarios:
    def test_order_and_length_preserved(self):
        margins = [50, 20, 50, 35]
        scenarios = pricing.evaluate_scenarios(3.00, 10, margins)
        assert len(scenarios) == len(margins)
        assert [s.margin for s in scenarios] == margins

    def test_scenario_figures(self):
        scenario = pricing.price_at_margin(3.00, 10, 25)
        assert scenario.suggested_price == pytest.approx(4.00)
        assert scenario.profit_per_serving == pytest.approx(1.00)
        assert scenario.total_profit == pytest.approx(10.00)

    def test_any_bad_margin_fails_the_batch(self):
        with pytest.raises(MarginOutOfRange):
            pricing.evaluate_scenarios(3.00, 10, [20, 100])
