from __future__ import annotations

"""Simple linear regression of one variable on another.

:func:`simple_regression` fits ``y = a + b x`` by ordinary least squares
and reports the slope ``b``, the two-tailed p-value of the slope and the
coefficient of determination.  :func:`regress_grid` applies the same fit
independently to every cell of a gridded field that shares a time
dimension with the predictor, e.g. regressing summer 2-m temperature at
each RACMO cell on the summer SAM index.
"""

import dataclasses
import logging
import typing

import numpy as np
import numpy.typing as npt
import scipy.stats
import xarray as xr

import shelf_summers.detrend as detrend_module
import shelf_summers.errors as errors

_LOG = logging.getLogger(__name__)

_MIN_PAIRS: int = 3


@dataclasses.dataclass(frozen=True)
class RegressionResult:
    slope: float
    p_value: float
    r_squared: float

    def as_tuple(self) -> typing.Tuple[float, float, float]:
        return self.slope, self.p_value, self.r_squared


_UNDEFINED = RegressionResult(
    slope=float("nan"), p_value=float("nan"), r_squared=float("nan")
)


def simple_regression(
    x: npt.ArrayLike,
    y: npt.ArrayLike,
    detrend: bool = False,
) -> RegressionResult:
    """OLS of *y* on *x*, optionally after detrending both.

    Pairs with a no-data value on either side are left out.  Fewer than
    three complete pairs or a constant predictor give an all-``NaN``
    result.
    """
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    if x.shape != y.shape:
        raise ValueError(
            "x and y must have the same shape, got %s and %s" % (x.shape, y.shape)
        )
    complete = np.isfinite(x) & np.isfinite(y)
    if complete.sum() < _MIN_PAIRS:
        return _UNDEFINED
    scale = float(np.max(np.abs(x[complete])))
    if detrend:
        x = detrend_module.linear_detrend(x)
        y = detrend_module.linear_detrend(y)
    x, y = x[complete], y[complete]
    if detrend_module.is_constant(x, scale=scale):
        return _UNDEFINED
    fit = scipy.stats.linregress(x, y)
    return RegressionResult(
        slope=float(fit.slope),
        p_value=float(fit.pvalue),
        r_squared=float(fit.rvalue ** 2),
    )


def _regression_cell(
    x: npt.NDArray[np.floating],
    y: npt.NDArray[np.floating],
    detrend: bool,
) -> typing.Tuple[float, float, float]:
    return simple_regression(x, y, detrend=detrend).as_tuple()


def regress_grid(
    x: xr.DataArray,
    y: xr.DataArray,
    *,
    dim: str = "time",
    detrend: bool = False,
) -> xr.Dataset:
    """Per-cell :func:`simple_regression` of *y* on *x* along *dim*.

    *x* is usually a 1-D index series and *y* a ``(dim, lat, lon)`` field,
    but any pair that broadcasts over the non-*dim* dimensions works.  The
    coordinates along *dim* must be identical.
    """
    if dim not in x.dims or dim not in y.dims:
        raise ValueError("Both inputs need a %s dimension" % dim)
    if x.sizes[dim] != y.sizes[dim] or (
        dim in x.coords
        and dim in y.coords
        and not np.array_equal(x[dim].values, y[dim].values)
    ):
        raise errors.AlignmentError(
            "Predictor and field disagree along %s" % dim
        )
    _LOG.info(
        "Regressing %s on %s over %d steps (detrend=%s)",
        y.name,
        x.name,
        y.sizes[dim],
        detrend,
    )
    slope, p_value, r_squared = xr.apply_ufunc(
        _regression_cell,
        x,
        y,
        kwargs={"detrend": detrend},
        input_core_dims=[[dim], [dim]],
        output_core_dims=[[], [], []],
        vectorize=True,
        output_dtypes=[float, float, float],
    )
    return xr.Dataset(
        {"slope": slope, "p_value": p_value, "r_squared": r_squared},
        attrs={
            "predictor": str(x.name),
            "response": str(y.name),
            "detrended": int(detrend),
        },
    )
