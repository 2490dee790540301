"""Input preparation for the valuation engine.

Turns collaborator data (current values, dated price points, qualitative
asset flags) into a validated SimulationInput. No I/O: callers load the
data and pass it in.
"""

import logging
import math
import numbers
from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, Sequence

import numpy as np

from valuecast.analysis.errors import InvalidInputError
from valuecast.analysis.sim_models import (
    MAX_HISTORICAL_GROWTH,
    MIN_HISTORICAL_GROWTH,
    MIN_YEARS_OLD,
    SimulationInput,
)

logger = logging.getLogger(__name__)

DAYS_PER_YEAR = 365.25
DAYS_PER_MONTH = DAYS_PER_YEAR / 12
DEFAULT_GROWTH = 0.05
MIN_GROWTH_SPAN_YEARS = 0.1
MIN_RETURN_INTERVAL_DAYS = 28

LICENSED_THEMES = ("star wars", "harry potter", "marvel", "disney", "dc", "licensed")

PricePoint = tuple[date | datetime | str, float]


@dataclass
class Asset:
    """One holding as supplied by the portfolio collaborator."""

    value: float
    years_old: float = 1.0
    theme: str = ""
    growth: float | None = None       # annual fraction, e.g. 0.12 for 12 %
    is_licensed: bool | None = None   # None: derive from theme


def _to_date(value: date | datetime | str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.fromisoformat(value).date()
    except (TypeError, ValueError) as e:
        raise InvalidInputError(f"invalid price point date {value!r}: expected ISO format") from e


def _sorted_points(points: Iterable[PricePoint]) -> list[tuple[date, float]]:
    parsed = []
    for raw_date, price in points:
        if price is not None and not isinstance(price, numbers.Real):
            raise InvalidInputError(f"price for {raw_date!r} must be a number, got {price!r}")
        if price is None or not math.isfinite(price) or price <= 0:
            logger.debug("Dropping invalid price point %r", (raw_date, price))
            continue
        parsed.append((_to_date(raw_date), float(price)))
    return sorted(parsed, key=lambda p: p[0])


def years_since(release_date: date | datetime | str, as_of: date | None = None) -> float:
    """Age in years between ``release_date`` and ``as_of`` (default today)."""
    as_of = as_of or date.today()
    return (as_of - _to_date(release_date)).days / DAYS_PER_YEAR


def historical_growth_from_prices(points: Iterable[PricePoint]) -> float:
    """Compound annual growth rate between the first and last price point.

    Falls back to 5 % when fewer than two valid points exist or they span
    less than 0.1 years.
    """
    ordered = _sorted_points(points)
    if len(ordered) < 2:
        return DEFAULT_GROWTH

    (first_date, first_price), (last_date, last_price) = ordered[0], ordered[-1]
    years = (last_date - first_date).days / DAYS_PER_YEAR
    if years < MIN_GROWTH_SPAN_YEARS:
        return DEFAULT_GROWTH

    return (last_price / first_price) ** (1 / years) - 1


def returns_from_price_points(points: Iterable[PricePoint]) -> tuple[float, ...]:
    """Monthly returns between consecutive date-ordered price points.

    Each interval's change is converted to a compound monthly rate from the
    days it spans, so sparse histories resample at the right scale. A point
    less than 28 days after the last kept point is merged into the next
    interval; a trailing point that close is dropped.
    """
    ordered = _sorted_points(points)
    if len(ordered) < 2:
        return ()

    returns = []
    anchor_date, anchor_price = ordered[0]
    for point_date, price in ordered[1:]:
        days = (point_date - anchor_date).days
        if days < MIN_RETURN_INTERVAL_DAYS:
            continue
        months = days / DAYS_PER_MONTH
        returns.append((price / anchor_price) ** (1 / months) - 1)
        anchor_date, anchor_price = point_date, price

    return tuple(float(r) for r in returns)


def is_licensed_theme(theme: str | None) -> bool:
    """True when the theme name contains a licensed-brand keyword."""
    lowered = (theme or "").lower()
    return any(keyword in lowered for keyword in LICENSED_THEMES)


def build_simulation_input(
    current_value: float,
    years_old: float = 1.0,
    is_licensed: bool = False,
    historical_growth: float | None = None,
    historical_returns: Sequence[float] | None = None,
    price_points: Iterable[PricePoint] | None = None,
) -> SimulationInput:
    """Assemble a SimulationInput, deriving missing data from price points.

    Growth and returns given explicitly take precedence over those derived
    from ``price_points``. SimulationInput performs validation and clamping.
    """
    points = list(price_points) if price_points is not None else []

    if historical_growth is None:
        historical_growth = historical_growth_from_prices(points) if points else DEFAULT_GROWTH
    if historical_returns is None:
        historical_returns = returns_from_price_points(points) if points else ()

    return SimulationInput(
        current_value=current_value,
        years_old=years_old,
        is_licensed=is_licensed,
        historical_growth=historical_growth,
        historical_returns=tuple(historical_returns),
    )


def aggregate_assets(assets: Sequence[Asset]) -> SimulationInput:
    """Collapse a portfolio into one SimulationInput.

    Value is summed; age and growth are averaged; the portfolio counts as
    licensed when more than half of its assets are.
    """
    if not assets:
        raise InvalidInputError("cannot aggregate an empty portfolio")

    total_value = sum(a.value for a in assets)
    licensed = [
        a.is_licensed if a.is_licensed is not None else is_licensed_theme(a.theme)
        for a in assets
    ]
    growths = [
        min(MAX_HISTORICAL_GROWTH, max(MIN_HISTORICAL_GROWTH, a.growth))
        if a.growth is not None else DEFAULT_GROWTH
        for a in assets
    ]
    ages = [max(MIN_YEARS_OLD, a.years_old) for a in assets]

    logger.debug(
        "Aggregated %d assets: value=%.2f licensed=%d",
        len(assets), total_value, sum(licensed),
    )

    return SimulationInput(
        current_value=total_value,
        years_old=float(np.mean(ages)),
        is_licensed=sum(licensed) > len(assets) / 2,
        historical_growth=float(np.mean(growths)),
    )
