from __future__ import annotations

"""Pearson correlation between independently indexed series.

Series are paired by their ``(summer, monthDay)`` key, never by position.
The key sets must match exactly after any lag shift; anything else raises
:class:`~shelf_summers.errors.AlignmentError`.  A zero-variance or too
short input gives an *undefined* :class:`CorrelationResult` (``NaN``
estimate) rather than an exception, which keeps it apart from a genuine
``r = 0``.

Significance is judged against the critical r for the actual number of
aligned pairs (:func:`critical_r`), not against a fixed degrees-of-freedom
table.
"""

import dataclasses
import logging
import typing

import numpy as np
import numpy.typing as npt
import pandas as pd
import scipy.stats

import shelf_summers.batch as batch
import shelf_summers.config as config
import shelf_summers.constants as constants
import shelf_summers.detrend as detrend_module
import shelf_summers.errors as errors
import shelf_summers.summers as summers

_LOG = logging.getLogger(__name__)

_MIN_PAIRS: int = 3


@dataclasses.dataclass(frozen=True)
class CorrelationResult:
    estimate: float
    p_value: float
    n: int

    @property
    def degrees_of_freedom(self) -> int:
        return max(self.n - 2, 0)

    @property
    def is_defined(self) -> bool:
        return bool(np.isfinite(self.estimate))

    def is_significant(self, alpha: float = constants.DEFAULT_ALPHA) -> bool:
        return self.is_defined and self.p_value < alpha

    @classmethod
    def undefined(cls, n: int = 0) -> CorrelationResult:
        return cls(estimate=float("nan"), p_value=float("nan"), n=int(n))


def critical_r(n: int, alpha: float = constants.DEFAULT_ALPHA) -> float:
    """Smallest |r| significant at *alpha* (two-tailed) for *n* pairs."""
    dof = n - 2
    if dof < 1:
        return float("nan")
    t_crit = scipy.stats.t.ppf(1.0 - alpha / 2.0, dof)
    return float(t_crit / np.sqrt(t_crit ** 2 + dof))


def correlate_values(
    a: npt.ArrayLike,
    b: npt.ArrayLike,
    *,
    detrend: bool = True,
) -> CorrelationResult:
    """Correlate two equal-length, already aligned sequences.

    Each sequence is detrended on its own (over its full length) before
    incomplete pairs are removed.
    """
    a = np.asarray(a, dtype=float)
    b = np.asarray(b, dtype=float)
    if a.shape != b.shape:
        raise errors.AlignmentError(
            "Aligned samples differ in length: %d vs %d" % (a.size, b.size)
        )
    complete = np.isfinite(a) & np.isfinite(b)
    n = int(complete.sum())
    if n < _MIN_PAIRS:
        return CorrelationResult.undefined(n)
    scale_a = float(np.max(np.abs(a[complete])))
    scale_b = float(np.max(np.abs(b[complete])))
    if detrend:
        a = detrend_module.linear_detrend(a)
        b = detrend_module.linear_detrend(b)
    a, b = a[complete], b[complete]
    flat_a = detrend_module.is_constant(a, scale=scale_a)
    flat_b = detrend_module.is_constant(b, scale=scale_b)
    if flat_a or flat_b:
        return CorrelationResult.undefined(n)
    estimate, p_value = scipy.stats.pearsonr(a, b)
    return CorrelationResult(
        estimate=float(estimate), p_value=float(p_value), n=n
    )


def _keyed(
    series: pd.Series,
    *,
    split_month: int,
    lag_days: int = 0,
) -> pd.Series:
    summers.check_ordered(series.index, label=str(series.name or "series"))
    dates = pd.DatetimeIndex(series.index) - pd.Timedelta(days=int(lag_days))
    return pd.Series(
        np.asarray(series.values, dtype=float),
        index=summers.summer_keys(dates, split_month),
        name=series.name,
    )


def align_pair(
    series_a: pd.Series,
    series_b: pd.Series,
    *,
    lag_days: int = 0,
    split_month: int = constants.DEFAULT_SPLIT_MONTH,
) -> pd.DataFrame:
    """Pair A and B by ``(summer, monthDay)``, B's dates shifted back by *lag_days*.

    Returns a two-column frame ordered by A's keys.
    """
    keyed_a = _keyed(series_a, split_month=split_month)
    keyed_b = _keyed(series_b, split_month=split_month, lag_days=lag_days)
    summers.check_aligned(
        keyed_a.index,
        keyed_b.index,
        label_a=str(series_a.name or "A"),
        label_b=str(series_b.name or "B"),
    )
    return pd.DataFrame(
        {"a": keyed_a.to_numpy(), "b": keyed_b.reindex(keyed_a.index).to_numpy()},
        index=keyed_a.index,
    )


def correlate(
    series_a: pd.Series,
    series_b: pd.Series,
    detrend: bool = True,
    lag_days: int = 0,
    split_month: int = constants.DEFAULT_SPLIT_MONTH,
) -> CorrelationResult:
    pairs = align_pair(
        series_a, series_b, lag_days=lag_days, split_month=split_month
    )
    return correlate_values(pairs["a"], pairs["b"], detrend=detrend)


# ---------------------------------------------------------------------------
# One correlation per calendar day and unit
# ---------------------------------------------------------------------------
@dataclasses.dataclass(frozen=True)
class CalendarDayCorrelation:
    estimate: pd.DataFrame
    p_value: pd.DataFrame
    n: pd.DataFrame
    failures: typing.Mapping[str, str]

    def significant(self, alpha: float = constants.DEFAULT_ALPHA) -> pd.DataFrame:
        return self.estimate.where(self.p_value < alpha)


def _correlate_unit_by_day(
    series_a: pd.Series,
    series_b: pd.Series,
    *,
    detrend: bool,
    lag_days: int,
    split_month: int,
    drop_leap_day: bool,
) -> typing.Dict[str, CorrelationResult]:
    pairs = align_pair(
        series_a, series_b, lag_days=lag_days, split_month=split_month
    )
    table_a = pairs["a"].unstack(level="summer")
    table_b = pairs["b"].unstack(level="summer")
    order = [
        k for k in summers.month_day_order(split_month) if k in table_a.index
    ]
    if drop_leap_day and constants.LEAP_DAY_KEY in order:
        order.remove(constants.LEAP_DAY_KEY)
    return {
        key: correlate_values(
            table_a.loc[key].to_numpy(),
            table_b.loc[key].to_numpy(),
            detrend=detrend,
        )
        for key in order
    }


def correlate_per_calendar_day(
    series_a_by_unit: typing.Union[pd.DataFrame, typing.Mapping[str, pd.Series]],
    series_b: pd.Series,
    detrend: bool = True,
    lag_days: int = 0,
    split_month: int = constants.DEFAULT_SPLIT_MONTH,
    *,
    drop_leap_day: bool = True,
    fail_fast: bool = False,
) -> CalendarDayCorrelation:
    """Correlate each unit with B separately for every ``monthDay``.

    For a fixed unit and ``monthDay`` the sample is that day's value in
    every summer.  Units and days are independent; a unit that fails to
    align is reported in ``failures`` (and left as no-data) unless
    *fail_fast* is set.  Units may come as DataFrame columns or as a
    mapping of separately indexed series.
    """
    split_month = config.validate_split_month(split_month)
    if isinstance(series_a_by_unit, pd.DataFrame):
        by_unit = {str(c): series_a_by_unit[c] for c in series_a_by_unit.columns}
    else:
        by_unit = {str(k): v for k, v in series_a_by_unit.items()}

    def _task(unit: str) -> typing.Dict[str, CorrelationResult]:
        column = by_unit[unit].rename(unit)
        return _correlate_unit_by_day(
            column,
            series_b,
            detrend=detrend,
            lag_days=lag_days,
            split_month=split_month,
            drop_leap_day=drop_leap_day,
        )

    report = batch.run_per_unit(
        _task, list(by_unit), fail_fast=fail_fast
    )
    order = []
    for results in report.results.values():
        order.extend(k for k in results if k not in order)
    canonical = summers.month_day_order(split_month)
    order.sort(key=canonical.index)

    columns = list(by_unit)
    estimate = pd.DataFrame(np.nan, index=order, columns=columns)
    p_value = pd.DataFrame(np.nan, index=order, columns=columns)
    n = pd.DataFrame(0, index=order, columns=columns)
    for unit, results in report.results.items():
        for key, result in results.items():
            estimate.loc[key, unit] = result.estimate
            p_value.loc[key, unit] = result.p_value
            n.loc[key, unit] = result.n
    for frame in (estimate, p_value, n):
        frame.index.name = "month_day"
    return CalendarDayCorrelation(
        estimate=estimate, p_value=p_value, n=n, failures=dict(report.failures)
    )


# ---------------------------------------------------------------------------
# Running correlation across summers
# ---------------------------------------------------------------------------
def running_correlation(
    series_a: pd.Series,
    series_b: pd.Series,
    window_years: int = constants.DEFAULT_CORRELATION_WINDOW_YEARS,
    detrend: bool = True,
) -> pd.DataFrame:
    """Centred running-window correlation between two summer-indexed series.

    Both series are indexed by summer and must share the same summers.  A
    summer gets a value only when all ``side`` summers before and after it
    are present; each window is detrended on its own.
    """
    window_years = config.validate_window(window_years, label="correlation window")
    side = window_years // 2
    index_a = pd.Index([int(s) for s in series_a.index], name="summer")
    index_b = pd.Index([int(s) for s in series_b.index], name="summer")
    summers.check_aligned(
        index_a,
        index_b,
        label_a=str(series_a.name or "A"),
        label_b=str(series_b.name or "B"),
    )
    a = pd.Series(np.asarray(series_a.values, dtype=float), index=index_a).sort_index()
    b = pd.Series(np.asarray(series_b.values, dtype=float), index=index_b).reindex(a.index)

    present = set(a.index)
    rows = []
    for summer in a.index:
        window = list(range(summer - side, summer + side + 1))
        if not all(s in present for s in window):
            result = CorrelationResult.undefined()
        else:
            result = correlate_values(
                a.loc[window].to_numpy(), b.loc[window].to_numpy(), detrend=detrend
            )
        rows.append((result.estimate, result.p_value, result.n))
    return pd.DataFrame(rows, index=a.index, columns=["estimate", "p_value", "n"])
