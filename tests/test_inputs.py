"""Unit tests for input preparation."""

from datetime import date

import pytest

from valuecast.analysis.errors import InvalidInputError
from valuecast.analysis.inputs import (
    DEFAULT_GROWTH,
    Asset,
    aggregate_assets,
    build_simulation_input,
    historical_growth_from_prices,
    is_licensed_theme,
    returns_from_price_points,
    years_since,
)
from valuecast.analysis.sim_models import SimulationInput


class TestSimulationInput:
    def test_age_floor_and_growth_clamp(self):
        sim_input = SimulationInput(current_value=10, years_old=0.1, historical_growth=3.0)
        assert sim_input.years_old == 0.5
        assert sim_input.historical_growth == 1.0
        assert isinstance(sim_input.current_value, float)

    def test_negative_age(self):
        with pytest.raises(InvalidInputError):
            SimulationInput(current_value=10, years_old=-1)

    def test_non_finite_returns(self):
        with pytest.raises(InvalidInputError):
            SimulationInput(current_value=10, historical_returns=(0.1, float("nan")))


class TestPriceHistory:
    def test_cagr(self):
        growth = historical_growth_from_prices([("2020-01-01", 100.0), ("2022-01-01", 121.0)])
        assert growth == pytest.approx(0.10, abs=1e-3)

    def test_order_independent(self):
        points = [(date(2022, 1, 1), 121.0), (date(2020, 1, 1), 100.0)]
        assert historical_growth_from_prices(points) == pytest.approx(0.10, abs=1e-3)

    def test_defaults_when_insufficient(self):
        assert historical_growth_from_prices([]) == DEFAULT_GROWTH
        assert historical_growth_from_prices([("2020-01-01", 100.0)]) == DEFAULT_GROWTH
        assert historical_growth_from_prices(
            [("2020-01-01", 100.0), ("2020-01-15", 150.0)]
        ) == DEFAULT_GROWTH

    def test_invalid_points_dropped(self):
        points = [
            ("2020-01-01", 100.0),
            ("2020-06-01", None),
            ("2020-09-01", -5.0),
            ("2021-01-01", float("nan")),
        ]
        assert historical_growth_from_prices(points) == DEFAULT_GROWTH

    def test_returns_are_monthly_rates(self):
        returns = returns_from_price_points(
            [("2020-03-01", 110.0), ("2020-01-01", 100.0), ("2020-02-01", 121.0)]
        )
        # 31 and 29 day intervals, each scaled to a 30.4375 day month
        assert returns == pytest.approx(
            (1.21 ** (30.4375 / 31) - 1, (110.0 / 121.0) ** (30.4375 / 29) - 1)
        )

    def test_sparse_history_scaled_to_monthly(self):
        returns = returns_from_price_points([("2020-01-01", 100.0), ("2022-01-01", 121.0)])
        assert len(returns) == 1
        assert (1 + returns[0]) ** 12 - 1 == pytest.approx(0.10, abs=1e-3)

    def test_close_points_merged_into_next_interval(self):
        returns = returns_from_price_points(
            [("2020-01-01", 100.0), ("2020-01-10", 200.0), ("2020-02-01", 110.0)]
        )
        assert returns == pytest.approx((1.1 ** (30.4375 / 31) - 1,))

    def test_trailing_close_point_dropped(self):
        returns = returns_from_price_points(
            [("2020-01-01", 100.0), ("2020-02-01", 110.0), ("2020-02-05", 500.0)]
        )
        assert len(returns) == 1

    def test_invalid_date(self):
        with pytest.raises(InvalidInputError):
            returns_from_price_points([("01/02/2020", 100.0), ("2020-03-01", 110.0)])

    def test_non_numeric_price(self):
        with pytest.raises(InvalidInputError):
            historical_growth_from_prices([("2020-01-01", "100"), ("2021-01-01", 110.0)])

    def test_returns_single_point(self):
        assert returns_from_price_points([("2020-01-01", 100.0)]) == ()

    def test_years_since(self):
        assert years_since("2020-01-01", as_of=date(2021, 1, 1)) == pytest.approx(1.0, abs=0.01)


class TestBuildSimulationInput:
    POINTS = [("2020-01-01", 100.0), ("2021-01-01", 110.0), ("2022-01-01", 121.0)]

    def test_derives_from_price_points(self):
        sim_input = build_simulation_input(500.0, years_old=2, price_points=self.POINTS)
        assert sim_input.historical_growth == pytest.approx(0.10, abs=1e-3)
        assert sim_input.historical_returns == pytest.approx(
            (1.1 ** (30.4375 / 366) - 1, 1.1 ** (30.4375 / 365) - 1)
        )

    def test_explicit_values_win(self):
        sim_input = build_simulation_input(
            500.0,
            historical_growth=0.02,
            historical_returns=[0.01],
            price_points=self.POINTS,
        )
        assert sim_input.historical_growth == 0.02
        assert sim_input.historical_returns == (0.01,)

    def test_defaults(self):
        sim_input = build_simulation_input(500.0)
        assert sim_input.historical_growth == DEFAULT_GROWTH
        assert sim_input.historical_returns == ()

    def test_invalid_value(self):
        with pytest.raises(InvalidInputError):
            build_simulation_input(0.0)


class TestAggregateAssets:
    def test_portfolio(self):
        sim_input = aggregate_assets([
            Asset(value=600.0, years_old=3, theme="Star Wars"),
            Asset(value=400.0, years_old=1, theme="City", growth=2.0),
        ])
        assert sim_input.current_value == 1000.0
        assert sim_input.years_old == pytest.approx(2.0)
        # second growth clamped to 1.0, first defaults to 5 %
        assert sim_input.historical_growth == pytest.approx(0.525)
        assert sim_input.is_licensed is False

    def test_licensed_majority(self):
        sim_input = aggregate_assets([
            Asset(value=1.0, theme="Harry Potter"),
            Asset(value=1.0, theme="Technic", is_licensed=True),
            Asset(value=1.0, theme="Marvel", is_licensed=False),
        ])
        assert sim_input.is_licensed is True

    def test_empty(self):
        with pytest.raises(InvalidInputError):
            aggregate_assets([])

    @pytest.mark.parametrize(
        "theme, expected",
        [("Star Wars", True), ("DC Comics", True), ("Creator Expert", False), (None, False)],
    )
    def test_licensed_theme(self, theme, expected):
        assert is_licensed_theme(theme) is expected
