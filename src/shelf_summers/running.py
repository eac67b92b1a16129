from __future__ import annotations

"""Running means and per-calendar-day climatologies.

Running windows are centred, of odd length ``L`` (``side = (L - 1) / 2``)
and never cross a summer boundary: the first and last ``side`` days of
each summer have no running value.  Any no-data day inside a window makes
that window no-data.

Climatologies group every summer's value for the same ``monthDay`` and
reduce across summers.  The standard deviation is always the *sample*
standard deviation (``ddof=1``); spread statistics need at least two
summers, the mean and median at least one.
"""

import logging
import typing

import numpy as np
import pandas as pd

import shelf_summers.config as config
import shelf_summers.constants as constants
import shelf_summers.errors as errors
import shelf_summers.summers as summers

_LOG = logging.getLogger(__name__)

STATISTICS: typing.Tuple[str, ...] = ("mean", "sd", "median", "iqr", "idr")

_SeriesOrFrame = typing.Union[pd.Series, pd.DataFrame]


def running_mean(
    series: _SeriesOrFrame,
    window: int = constants.DEFAULT_RUNNING_WINDOW,
    split_month: int = constants.DEFAULT_SPLIT_MONTH,
) -> _SeriesOrFrame:
    """Centred running mean of a daily series, computed within each summer.

    Dates missing from the index inside a summer are treated as no-data
    rather than skipped, so a window always spans ``window`` calendar days.
    A DataFrame is processed column by column.
    """
    window = config.validate_window(window, label="running window")
    if isinstance(series, pd.DataFrame):
        return series.apply(
            lambda column: running_mean(column, window, split_month)
        )

    summers.check_ordered(series.index, label=str(series.name or "series"))
    index = pd.DatetimeIndex(series.index)
    values = pd.Series(np.asarray(series.values, dtype=float), index=index)
    labels = summers.summer_labels(index, split_month)
    result = np.full(len(values), np.nan)

    for summer in np.unique(labels):
        in_summer = labels == summer
        part = values[in_summer]
        calendar = pd.date_range(part.index[0], part.index[-1], freq="D")
        filled = part.reindex(calendar)
        if len(calendar) != len(part):
            _LOG.debug(
                "Summer %d has %d missing dates; treated as no-data",
                summer,
                len(calendar) - len(part),
            )
        rolled = filled.rolling(window, center=True, min_periods=window).mean()
        result[in_summer] = rolled.reindex(part.index).to_numpy()

    return pd.Series(result, index=series.index, name=series.name)


# ---------------------------------------------------------------------------
# Output precision
# ---------------------------------------------------------------------------
def decimal_places(
    reference: typing.Any,
    extra_decimals: int = constants.DEFAULT_EXTRA_DECIMALS,
) -> typing.Optional[int]:
    """Decimal places to keep, from the variability of *reference*.

    The intrinsic precision is the decimal position of the leading digit
    of the sample standard deviation; one more place (*extra_decimals*) is
    kept by default.  ``None`` when the spread is zero or undefined.
    """
    values = np.asarray(reference, dtype=float).ravel()
    values = values[np.isfinite(values)]
    if values.size < 2:
        return None
    spread = float(np.std(values, ddof=1))
    if not np.isfinite(spread) or spread == 0.0:
        return None
    intrinsic = max(0, -int(np.floor(np.log10(spread))))
    return intrinsic + int(extra_decimals)


def round_to_precision(
    values: _SeriesOrFrame,
    reference: typing.Any = None,
    extra_decimals: int = constants.DEFAULT_EXTRA_DECIMALS,
) -> _SeriesOrFrame:
    places = decimal_places(
        values if reference is None else reference, extra_decimals
    )
    if places is None:
        return values
    return values.round(places)


# ---------------------------------------------------------------------------
# Climatology
# ---------------------------------------------------------------------------
def _reduce_across_summers(
    table: pd.DataFrame,
    *,
    statistic: str,
    decile_bounds: typing.Tuple[float, float],
) -> pd.Series:
    count = table.notna().sum(axis=1)
    if statistic == "mean":
        return table.mean(axis=1)
    if statistic == "median":
        return table.median(axis=1)
    if statistic == "sd":
        result = table.std(axis=1, ddof=1)
    elif statistic == "iqr":
        result = table.quantile(0.75, axis=1) - table.quantile(0.25, axis=1)
    elif statistic == "idr":
        lower, upper = decile_bounds
        result = table.quantile(upper, axis=1) - table.quantile(lower, axis=1)
    else:
        raise errors.ConfigError(
            "Unknown statistic %s; expected one of %s" % (statistic, STATISTICS)
        )
    return result.where(count >= 2)


def climatology(
    series: _SeriesOrFrame,
    statistic: str = "mean",
    split_month: int = constants.DEFAULT_SPLIT_MONTH,
    *,
    decile_bounds: typing.Sequence[float] = constants.DEFAULT_DECILE_BOUNDS,
    drop_leap_day: bool = True,
    round_output: bool = True,
    extra_decimals: int = constants.DEFAULT_EXTRA_DECIMALS,
    reference: typing.Any = None,
) -> _SeriesOrFrame:
    """Per-``monthDay`` statistic across all summers.

    *series* is usually a running mean.  The result is indexed by
    ``monthDay`` in austral order.  Values are rounded with
    :func:`decimal_places` of *reference* (the raw input, defaulting to
    *series*) unless *round_output* is false.  A DataFrame gives one column
    per unit.
    """
    bounds = config.validate_decile_bounds(decile_bounds)
    if isinstance(series, pd.DataFrame):
        return pd.DataFrame(
            {
                column: climatology(
                    series[column],
                    statistic,
                    split_month,
                    decile_bounds=bounds,
                    drop_leap_day=drop_leap_day,
                    round_output=round_output,
                    extra_decimals=extra_decimals,
                    reference=None if reference is None else reference[column],
                )
                for column in series.columns
            }
        )

    table = summers.pivot_by_summer(
        series, split_month, drop_leap_day=drop_leap_day
    )
    result = _reduce_across_summers(
        table, statistic=statistic, decile_bounds=bounds
    )
    result.name = series.name
    if round_output:
        result = round_to_precision(
            result,
            reference=series if reference is None else reference,
            extra_decimals=extra_decimals,
        )
    return result


def climatology_table(
    series: pd.Series,
    statistics: typing.Sequence[str] = STATISTICS,
    split_month: int = constants.DEFAULT_SPLIT_MONTH,
    **kwargs: typing.Any,
) -> pd.DataFrame:
    """Several climatological statistics for one unit, one column each."""
    return pd.DataFrame(
        {
            statistic: climatology(series, statistic, split_month, **kwargs)
            for statistic in statistics
        }
    )


def anomalies(
    series: pd.Series,
    climatological_mean: pd.Series,
) -> pd.Series:
    """Daily departure from the climatological mean of the same ``monthDay``.

    Days whose ``monthDay`` is absent from the climatology (the leap day,
    by default) are no-data.
    """
    keys = summers.month_day_labels(series.index)
    baseline = climatological_mean.reindex(keys).to_numpy(dtype=float)
    return pd.Series(
        np.asarray(series.values, dtype=float) - baseline,
        index=series.index,
        name=series.name,
    )
