from __future__ import annotations

"""Readers for the published climate-index time series.

Two monthly layouts are supported:

``sam``
    NOAA CPC / BAS style table: a header row of month names followed by
    one row per year (``year v1 .. v12``).  Rows for the current year may
    be short; the missing months become ``NaN``.
``enso``
    NOAA PSL ``nino*.long.anom.data`` layout: a first line holding the
    first and last year, one row per year, then a missing-value line and
    free-text metadata.

Daily SAM/AAO files are plain ``year month day value`` rows.  Every
missing-value sentinel is turned into ``NaN``.
"""

import logging
import pathlib
import typing

import numpy as np
import pandas as pd

import shelf_summers.constants as constants
import shelf_summers.errors as errors
import shelf_summers.summers as summers

_LOG = logging.getLogger(__name__)

INDEX_KINDS: typing.Tuple[str, ...] = ("sam", "enso")

_SENTINELS: typing.Tuple[float, ...] = (
    constants.PSL_MISSING_VALUE,
    constants.CPC_MISSING_VALUE,
    -99.9,
)


def _require(path: pathlib.Path, *, label: str) -> pathlib.Path:
    path = pathlib.Path(path)
    if not path.exists():
        raise errors.MissingInputError(label, str(path))
    return path


def _mask_sentinels(frame: pd.DataFrame) -> pd.DataFrame:
    frame = frame.astype(float)
    for sentinel in _SENTINELS:
        frame = frame.mask(np.isclose(frame, sentinel))
    return frame


def _read_sam_table(path: pathlib.Path) -> pd.DataFrame:
    # a header one field short of the rows makes the year the index
    table = pd.read_csv(path, sep=r"\s+")
    if str(table.columns[0]).strip().lower() == "year":
        table = table.set_index(table.columns[0])
    table.columns = [str(c).strip().title()[:3] for c in table.columns]
    return table


def _read_psl_table(path: pathlib.Path) -> pd.DataFrame:
    with open(path, "r") as handle:
        lines = handle.read().splitlines()
    try:
        first_year, last_year = (int(t) for t in lines[0].split()[:2])
    except (IndexError, ValueError) as exc:
        raise ValueError(
            "%s does not start with a 'first last' year line" % path
        ) from exc
    n_years = last_year - first_year + 1
    rows = []
    for line in lines[1 : 1 + n_years]:
        tokens = line.split()
        if len(tokens) != 13:
            raise ValueError(
                "Malformed row in %s: %r" % (path, line)
            )
        rows.append([float(t) for t in tokens])
    data = np.array(rows)
    return pd.DataFrame(
        data[:, 1:], index=data[:, 0].astype(int), columns=constants.MONTH_NAMES
    )


def read_monthly_index(
    path: pathlib.Path,
    kind: str = "sam",
) -> pd.DataFrame:
    """Read a monthly index file into a year x month table."""
    if kind not in INDEX_KINDS:
        raise errors.ConfigError(
            "Unknown index kind %s; expected one of %s" % (kind, INDEX_KINDS)
        )
    path = _require(path, label="%s monthly index" % kind)
    _LOG.info("Reading %s index from %s", kind, path)
    if kind == "enso":
        table = _read_psl_table(path)
    else:
        table = _read_sam_table(path)
    missing = [m for m in constants.MONTH_NAMES if m not in table.columns]
    if missing:
        raise ValueError(
            "%s has no columns for %s" % (path, missing)
        )
    table = _mask_sentinels(table[constants.MONTH_NAMES])
    table.index = pd.Index([int(y) for y in table.index], name="year")
    return table


def read_daily_index(path: pathlib.Path, *, name: str = "sam") -> pd.Series:
    """Read a ``year month day value`` file into a date-indexed series."""
    path = _require(path, label="%s daily index" % name)
    _LOG.info("Reading daily %s index from %s", name, path)
    raw = pd.read_csv(
        path,
        sep=r"\s+",
        header=None,
        names=["year", "month", "day", "value"],
        comment="#",
    )
    dates = pd.to_datetime(raw[["year", "month", "day"]])
    values = _mask_sentinels(raw[["value"]])["value"].to_numpy()
    series = pd.Series(values, index=pd.DatetimeIndex(dates, name="date"), name=name)
    summers.check_ordered(series.index, label=name)
    return series


def load_summer_index(
    path: pathlib.Path,
    kind: str = "sam",
    split_month: int = constants.DEFAULT_SPLIT_MONTH,
    *,
    since: typing.Optional[int] = None,
) -> pd.DataFrame:
    """Read a monthly index and align it to summers from *since* onwards."""
    aligned = summers.align_to_summers(
        read_monthly_index(path, kind), split_month
    )
    if since is not None:
        aligned = aligned.loc[aligned.index >= since]
    _LOG.info(
        "%s index aligned to summers %s-%s",
        kind,
        aligned.index.min(),
        aligned.index.max(),
    )
    return aligned


def seasonal_index(
    aligned: pd.DataFrame,
    months: typing.Sequence[str],
) -> pd.Series:
    """Mean of selected months of a summer-aligned index (e.g. DJF SAM).

    A summer with any of those months missing is no-data.
    """
    unknown = [m for m in months if m not in aligned.columns]
    if unknown:
        raise errors.ConfigError("Unknown month names: %s" % unknown)
    selected = aligned[list(months)]
    result = selected.mean(axis=1).where(selected.notna().all(axis=1))
    result.name = "-".join(months)
    return result
