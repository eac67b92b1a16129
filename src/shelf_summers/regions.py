from __future__ import annotations

import logging
import typing

import numpy as np
import pandas as pd

import shelf_summers.config as config

_LOG = logging.getLogger(__name__)


def regional_mean(
    per_unit_values: typing.Mapping[str, float],
    region: typing.Sequence[str],
) -> float:
    """Mean over the shelves of *region*, ignoring no-data shelves.

    Shelves absent from *per_unit_values* count as no-data.  ``NaN`` when
    no shelf in the region has a value.
    """
    values = np.array(
        [per_unit_values.get(name, np.nan) for name in region], dtype=float
    )
    defined = values[np.isfinite(values)]
    if defined.size == 0:
        return float("nan")
    return float(defined.mean())


def regional_means(
    table: pd.DataFrame,
    project: config.ProjectConfig,
    *,
    include_shelves: bool = False,
) -> pd.DataFrame:
    """Row-wise region means of a (row x shelf) table, one column per region.

    With *include_shelves* the shelf columns are kept in front of the region
    columns.
    """
    out = {}
    for region in project.region_names:
        members = [m for m in project.shelves_in(region) if m in table.columns]
        missing = sorted(set(project.shelves_in(region)) - set(members))
        if missing:
            _LOG.debug("Region %s: no column for %s", region, missing)
        if members:
            out[region] = table[members].astype(float).mean(axis=1, skipna=True)
        else:
            out[region] = pd.Series(np.nan, index=table.index)
    regions = pd.DataFrame(out, index=table.index)
    if include_shelves:
        return pd.concat([table, regions], axis=1)
    return regions
