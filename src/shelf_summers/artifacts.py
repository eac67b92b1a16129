from __future__ import annotations

"""Serialized intermediates passed between pipeline stages.

JSON artifacts hold one or more 2-D tables plus a metadata block::

    {
      "metadata": {"description": "...", "sources": ["..."], "created": "..."},
      "tables": {
        "<name>": {"index_kind": "date", "index": [...],
                   "columns": [...], "data": [[...], ...]}
      }
    }

``NaN`` is written as ``null``.  ``index_kind`` is one of ``date``,
``month_day``, ``summer``, ``year`` or ``label`` and decides how the index
is rebuilt on reading.  Per-cell regression grids are NetCDF files.
"""

import datetime
import json
import logging
import pathlib
import typing

import netCDF4
import numpy as np
import pandas as pd
import xarray as xr

import shelf_summers.errors as errors

_LOG = logging.getLogger(__name__)

INDEX_KINDS: typing.Tuple[str, ...] = ("date", "month_day", "summer", "year", "label")


def _index_kind(index: pd.Index) -> str:
    if isinstance(index, pd.DatetimeIndex):
        return "date"
    if index.name in ("month_day", "summer", "year"):
        return str(index.name)
    return "label"


def _encode_table(table: pd.DataFrame) -> typing.Dict[str, typing.Any]:
    kind = _index_kind(table.index)
    if kind == "date":
        index = [ts.strftime("%Y-%m-%d") for ts in table.index]
    elif kind in ("summer", "year"):
        index = [int(v) for v in table.index]
    else:
        index = [str(v) for v in table.index]
    values = table.to_numpy(dtype=float)
    data = [
        [None if not np.isfinite(v) else float(v) for v in row]
        for row in values
    ]
    return {
        "index_kind": kind,
        "index": index,
        "columns": [str(c) for c in table.columns],
        "data": data,
    }


def _decode_table(encoded: typing.Mapping[str, typing.Any]) -> pd.DataFrame:
    kind = encoded.get("index_kind", "label")
    if kind not in INDEX_KINDS:
        raise ValueError("Unknown index_kind %s" % kind)
    if kind == "date":
        index = pd.DatetimeIndex(pd.to_datetime(encoded["index"]), name="date")
    elif kind in ("summer", "year"):
        index = pd.Index([int(v) for v in encoded["index"]], name=kind)
    elif kind == "month_day":
        index = pd.Index(encoded["index"], name="month_day")
    else:
        index = pd.Index(encoded["index"])
    data = np.array(
        [[np.nan if v is None else v for v in row] for row in encoded["data"]],
        dtype=float,
    ).reshape(len(index), len(encoded["columns"]))
    return pd.DataFrame(data, index=index, columns=list(encoded["columns"]))


def write_artifact(
    path: pathlib.Path,
    tables: typing.Mapping[str, typing.Union[pd.DataFrame, pd.Series]],
    *,
    description: str,
    sources: typing.Sequence[str] = (),
) -> pathlib.Path:
    path = pathlib.Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = {
        "metadata": {
            "description": description,
            "sources": [str(s) for s in sources],
            "created": datetime.datetime.now().isoformat(timespec="seconds"),
        },
        "tables": {
            name: _encode_table(
                table.to_frame() if isinstance(table, pd.Series) else table
            )
            for name, table in tables.items()
        },
    }
    with open(path, "w") as handle:
        json.dump(payload, handle, indent=1)
    _LOG.info("Wrote %d tables to %s", len(payload["tables"]), path)
    return path


def read_artifact(
    path: pathlib.Path,
) -> typing.Tuple[typing.Dict[str, typing.Any], typing.Dict[str, pd.DataFrame]]:
    """Return ``(metadata, tables)`` from a JSON artifact."""
    path = pathlib.Path(path)
    if not path.exists():
        raise errors.MissingInputError(path.name, str(path))
    with open(path, "r") as handle:
        payload = json.load(handle)
    tables = {
        name: _decode_table(encoded)
        for name, encoded in payload.get("tables", {}).items()
    }
    return dict(payload.get("metadata", {})), tables


def read_table(path: pathlib.Path, name: str) -> pd.DataFrame:
    _, tables = read_artifact(path)
    if name not in tables:
        raise errors.MissingInputError(
            "%s:%s" % (pathlib.Path(path).name, name),
            "available tables: %s" % sorted(tables),
        )
    return tables[name]


def write_regression_grid(
    result: xr.Dataset,
    output_path: pathlib.Path,
    *,
    description: str = "",
) -> pathlib.Path:
    """Write a :func:`~shelf_summers.regression.regress_grid` result to NetCDF."""
    output_path = pathlib.Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    dims = list(result["slope"].dims)
    with netCDF4.Dataset(str(output_path), "w", format="NETCDF4") as ds:
        for dim in dims:
            ds.createDimension(dim, result.sizes[dim])
            if dim in result.coords:
                coord = ds.createVariable(dim, "f8", (dim,))
                coord[:] = np.asarray(result[dim].values, dtype=float)
        for name in ("slope", "p_value", "r_squared"):
            var = ds.createVariable(name, "f8", tuple(dims), fill_value=np.nan)
            var[:] = np.asarray(result[name].values, dtype=float)
        for key, value in result.attrs.items():
            ds.setncattr(key, value)
        if description:
            ds.description = description
    _LOG.info("Wrote regression grid to %s", output_path)
    return output_path
