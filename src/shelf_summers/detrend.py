from __future__ import annotations

import logging
import typing

import numpy as np
import numpy.typing as npt
import pandas as pd

_LOG = logging.getLogger(__name__)

_MIN_DEFINED_POINTS: int = 3
CONSTANT_TOLERANCE: float = 1e-10


def _detrend_values(values: npt.NDArray[np.floating]) -> npt.NDArray[np.floating]:
    out = np.full(values.shape, np.nan)
    defined = np.isfinite(values)
    n_defined = int(defined.sum())
    if n_defined == 0:
        return out
    if n_defined < _MIN_DEFINED_POINTS:
        # too short to fit a trend: centre only
        out[defined] = values[defined] - values[defined].mean()
        return out
    position = np.arange(values.size, dtype=float)
    slope, intercept = np.polyfit(position[defined], values[defined], 1)
    out[defined] = values[defined] - (intercept + slope * position[defined])
    return out


def linear_detrend(
    values: typing.Union[pd.Series, npt.ArrayLike],
) -> typing.Union[pd.Series, npt.NDArray[np.floating]]:
    """Residuals of an OLS fit of *values* against their position 0..n-1.

    No-data positions are left out of the fit and stay no-data.  With
    fewer than three defined points the series is only centred on zero.
    A pandas Series keeps its index and name.
    """
    if isinstance(values, pd.Series):
        return pd.Series(
            _detrend_values(np.asarray(values.values, dtype=float)),
            index=values.index,
            name=values.name,
        )
    array = np.asarray(values, dtype=float)
    if array.ndim != 1:
        raise ValueError("linear_detrend expects 1-D input, got shape %s" % (array.shape,))
    return _detrend_values(array)


def is_constant(values: npt.ArrayLike, *, scale: float) -> bool:
    """True when *values* vary by no more than rounding noise.

    *scale* is the largest magnitude of the data before any detrending;
    residuals of an exact line are of order ``1e-15 * scale``, not zero.
    """
    values = np.asarray(values, dtype=float)
    return float(np.ptp(values)) <= CONSTANT_TOLERANCE * scale
