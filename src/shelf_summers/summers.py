from __future__ import annotations

"""Austral-summer calendar alignment.

The melt season straddles the calendar year, so most statistics here are
grouped by *summer* rather than by year.  With the default split month of
March, April 1991 -- March 1992 is summer 1992:

    summer = year + 1   if month > split_month
    summer = year       otherwise

Days are paired across years with a year-independent ``monthDay`` key
(``"Dec-15"``).  Two series are only ever combined after checking that
their ``(summer, monthDay)`` keys match exactly; a silent off-by-one-summer
shift produces plausible but wrong correlations.
"""

import dataclasses
import logging
import typing

import numpy as np
import numpy.typing as npt
import pandas as pd

import shelf_summers.config as config
import shelf_summers.constants as constants
import shelf_summers.errors as errors
import shelf_summers.variables as variables

_LOG = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True, order=True)
class CalendarDate:
    year: int
    month: int
    day: int

    @classmethod
    def from_timestamp(cls, timestamp: typing.Any) -> CalendarDate:
        ts = pd.Timestamp(timestamp)
        return cls(year=ts.year, month=ts.month, day=ts.day)

    @property
    def month_day(self) -> str:
        return month_day_of(self)

    def summer(self, split_month: int = constants.DEFAULT_SPLIT_MONTH) -> int:
        return summer_of(self, split_month=split_month)


def summer_of(
    date: CalendarDate,
    split_month: int = constants.DEFAULT_SPLIT_MONTH,
) -> int:
    split_month = config.validate_split_month(split_month)
    return date.year + (1 if date.month > split_month else 0)


def month_day_of(date: CalendarDate) -> str:
    return "%s-%02d" % (constants.MONTH_NAMES[date.month - 1], date.day)


def summer_months(
    split_month: int = constants.DEFAULT_SPLIT_MONTH,
) -> typing.List[str]:
    """Month names in austral order, starting after *split_month*."""
    split_month = config.validate_split_month(split_month)
    names = constants.MONTH_NAMES
    return names[split_month:] + names[:split_month]


def summer_calendar(
    summer: int,
    split_month: int = constants.DEFAULT_SPLIT_MONTH,
) -> pd.DatetimeIndex:
    """Every calendar date belonging to *summer*."""
    split_month = config.validate_split_month(split_month)
    if split_month == 12:
        start = pd.Timestamp(summer, 1, 1)
    else:
        start = pd.Timestamp(summer - 1, split_month + 1, 1)
    end = pd.Timestamp(summer, split_month, 1) + pd.offsets.MonthEnd(0)
    return pd.date_range(start, end, freq="D")


def month_day_order(
    split_month: int = constants.DEFAULT_SPLIT_MONTH,
) -> typing.List[str]:
    """All 366 ``monthDay`` keys in austral order ("Feb-29" after "Feb-28")."""
    split_month = config.validate_split_month(split_month)
    order = list(range(split_month, 12)) + list(range(split_month))
    keys = []
    for m in order:
        for d in range(1, constants.DAYS_PER_MONTH_LEAP[m] + 1):
            keys.append("%s-%02d" % (constants.MONTH_NAMES[m], d))
    return keys


# ---------------------------------------------------------------------------
# Vectorised labels for date-indexed pandas objects
# ---------------------------------------------------------------------------
def _as_datetime_index(index: typing.Any) -> pd.DatetimeIndex:
    if not isinstance(index, pd.DatetimeIndex):
        try:
            index = pd.DatetimeIndex(index)
        except (TypeError, ValueError) as exc:
            raise errors.AlignmentError(
                "Series must be indexed by calendar date: %s" % exc
            ) from exc
    return index


def summer_labels(
    index: typing.Any,
    split_month: int = constants.DEFAULT_SPLIT_MONTH,
) -> npt.NDArray[np.integer]:
    split_month = config.validate_split_month(split_month)
    index = _as_datetime_index(index)
    return np.asarray(index.year + (index.month > split_month), dtype=int)


def month_day_labels(index: typing.Any) -> npt.NDArray[np.object_]:
    index = _as_datetime_index(index)
    names = np.array(constants.MONTH_NAMES, dtype=object)
    return np.array(
        [
            "%s-%02d" % (names[m - 1], d)
            for m, d in zip(index.month, index.day)
        ],
        dtype=object,
    )


def summer_keys(
    index: typing.Any,
    split_month: int = constants.DEFAULT_SPLIT_MONTH,
) -> pd.MultiIndex:
    """``(summer, monthDay)`` key for every date in *index*."""
    return pd.MultiIndex.from_arrays(
        [summer_labels(index, split_month), month_day_labels(index)],
        names=["summer", "month_day"],
    )


def check_ordered(index: typing.Any, *, label: str = "series") -> None:
    index = _as_datetime_index(index)
    if index.has_duplicates:
        raise errors.AlignmentError("%s has duplicated dates" % label)
    if not index.is_monotonic_increasing:
        raise errors.AlignmentError("%s dates are not in increasing order" % label)


def check_aligned(
    keys_a: pd.Index,
    keys_b: pd.Index,
    *,
    label_a: str = "A",
    label_b: str = "B",
) -> None:
    """Raise :class:`AlignmentError` unless both key sets match exactly."""
    if keys_a.has_duplicates or keys_b.has_duplicates:
        raise errors.AlignmentError(
            "Duplicated keys after alignment (%s: %s, %s: %s)"
            % (
                label_a,
                keys_a.has_duplicates,
                label_b,
                keys_b.has_duplicates,
            )
        )
    if len(keys_a) == len(keys_b) and keys_a.equals(keys_b):
        return
    only_a = keys_a.difference(keys_b)
    only_b = keys_b.difference(keys_a)
    if len(only_a) == 0 and len(only_b) == 0:
        return
    raise errors.AlignmentError(
        "%s and %s do not align: %d keys only in %s (first %s), "
        "%d keys only in %s (first %s)"
        % (
            label_a,
            label_b,
            len(only_a),
            label_a,
            list(only_a[:3]),
            len(only_b),
            label_b,
            list(only_b[:3]),
        )
    )


def pivot_by_summer(
    series: pd.Series,
    split_month: int = constants.DEFAULT_SPLIT_MONTH,
    *,
    drop_leap_day: bool = False,
) -> pd.DataFrame:
    """Reshape a daily series into a ``monthDay`` x summer table.

    Rows follow :func:`month_day_order`; cells with no observation are
    ``NaN``.
    """
    check_ordered(series.index, label=str(series.name or "series"))
    keyed = pd.Series(
        np.asarray(series.values, dtype=float),
        index=summer_keys(series.index, split_month),
    )
    table = keyed.unstack(level="summer")
    order = [
        k for k in month_day_order(split_month) if k in table.index
    ]
    if drop_leap_day and constants.LEAP_DAY_KEY in order:
        order.remove(constants.LEAP_DAY_KEY)
    table = table.reindex(order)
    table.index.name = "month_day"
    return table


# ---------------------------------------------------------------------------
# Year x month tables (monthly climate indices)
# ---------------------------------------------------------------------------
def align_to_summers(
    table: pd.DataFrame,
    split_month: int = constants.DEFAULT_SPLIT_MONTH,
) -> pd.DataFrame:
    """Re-slice a year x month table into summer x month rows.

    *table* is indexed by calendar year with one column per month name.
    Months after *split_month* of year ``Y`` join the months up to
    *split_month* of year ``Y + 1`` as summer ``Y + 1``.

    A summer whose post-split months fall in a year missing from *table*
    cannot be built and is dropped (this always removes the first summer).
    A summer whose pre-split months fall after the last year is kept with
    those months as ``NaN``.
    """
    split_month = config.validate_split_month(split_month)
    missing_cols = [m for m in constants.MONTH_NAMES if m not in table.columns]
    if missing_cols:
        raise errors.AlignmentError(
            "Monthly table is missing columns %s" % missing_cols
        )
    years = [int(y) for y in table.index]
    if len(set(years)) != len(years):
        raise errors.AlignmentError("Monthly table has duplicated years")

    post_cols = constants.MONTH_NAMES[split_month:]
    pre_cols = constants.MONTH_NAMES[:split_month]
    values = table.astype(float)
    values.index = years

    candidates = set(years)
    if post_cols:
        candidates |= {y + 1 for y in years}
    summers = sorted(
        s for s in candidates if not post_cols or (s - 1) in values.index
    )

    rows = []
    for summer in summers:
        if post_cols:
            post = values.loc[summer - 1, post_cols].to_numpy()
        else:
            post = np.array([], dtype=float)
        if summer in values.index:
            pre = values.loc[summer, pre_cols].to_numpy()
        else:
            pre = np.full(len(pre_cols), np.nan)
        rows.append(np.concatenate([post, pre]))

    dropped = sorted(set(years) - set(summers)) if post_cols else []
    if dropped:
        _LOG.debug(
            "Dropped summers without post-split months: %s", dropped
        )
    aligned = pd.DataFrame(
        rows,
        index=pd.Index(summers, name="summer"),
        columns=post_cols + pre_cols,
    )
    return aligned


def flatten_summers(
    aligned: pd.DataFrame,
    split_month: int = constants.DEFAULT_SPLIT_MONTH,
) -> pd.DataFrame:
    """Inverse of :func:`align_to_summers`: back to a year x month table.

    Years with no values at all are dropped.
    """
    split_month = config.validate_split_month(split_month)
    post_cols = constants.MONTH_NAMES[split_month:]
    pre_cols = constants.MONTH_NAMES[:split_month]
    summers = [int(s) for s in aligned.index]

    years = sorted(
        set(summers) | ({s - 1 for s in summers} if post_cols else set())
    )
    flat = pd.DataFrame(
        np.nan,
        index=pd.Index(years, name="year"),
        columns=list(constants.MONTH_NAMES),
    )
    for summer, (_, row) in zip(summers, aligned.iterrows()):
        if post_cols:
            flat.loc[summer - 1, post_cols] = row[post_cols].to_numpy(dtype=float)
        flat.loc[summer, pre_cols] = row[pre_cols].to_numpy(dtype=float)
    return flat.dropna(how="all")


# ---------------------------------------------------------------------------
# One value per summer
# ---------------------------------------------------------------------------
def summer_statistic(
    series: pd.Series,
    variable: typing.Union[str, variables.Variable],
    split_month: int = constants.DEFAULT_SPLIT_MONTH,
    *,
    months: typing.Optional[typing.Sequence[str]] = None,
) -> pd.Series:
    """Reduce a daily series to one value per summer.

    Summable quantities (fluxes, mass terms) are summed, the others are
    averaged.  *months* restricts the reduction to some month names
    (e.g. ``["Dec", "Jan", "Feb"]``); by default the whole summer is used.
    Every calendar day of the selection must be present and defined: a
    summer partly outside the record, with absent dates or with a no-data
    day is no-data.
    """
    if isinstance(variable, str):
        variable = variables.get_variable(variable)
    check_ordered(series.index, label=str(series.name or variable.name))
    if months is None:
        months = constants.MONTH_NAMES
    unknown = [m for m in months if m not in constants.MONTH_NAMES]
    if unknown:
        raise errors.ConfigError("Unknown month names: %s" % unknown)
    wanted = [constants.MONTH_NAMES.index(m) + 1 for m in months]
    index = _as_datetime_index(series.index)
    values = pd.Series(np.asarray(series.values, dtype=float), index=index)

    reduced = {}
    for summer in np.unique(summer_labels(index, split_month)):
        calendar = summer_calendar(int(summer), split_month)
        calendar = calendar[np.isin(calendar.month, wanted)]
        absent = calendar.difference(index)
        if len(absent):
            _LOG.debug(
                "Summer %d lacks %d of %d selected dates; no-data",
                summer,
                len(absent),
                len(calendar),
            )
            reduced[int(summer)] = np.nan
            continue
        part = values.reindex(calendar)
        if part.isna().any():
            reduced[int(summer)] = np.nan
        elif variable.summable:
            reduced[int(summer)] = float(part.sum())
        else:
            reduced[int(summer)] = float(part.mean())
    result = pd.Series(reduced, dtype=float, name=series.name)
    result.index.name = "summer"
    return result
