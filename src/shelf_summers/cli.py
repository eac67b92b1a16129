from __future__ import annotations

import logging
import pathlib
import typing

import numpy as np
import pandas as pd
import typer
import typing_extensions
import xarray as xr

import shelf_summers.artifacts as artifacts
import shelf_summers.batch as batch
import shelf_summers.config as config
import shelf_summers.constants as constants
import shelf_summers.correlation as correlation
import shelf_summers.errors as errors
import shelf_summers.indices as indices
import shelf_summers.regions as regions
import shelf_summers.regression as regression
import shelf_summers.running as running
import shelf_summers.summers as summers

app = typer.Typer(help="Austral-summer statistics for Antarctic ice shelves.")


def _setup_logging() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )


def _split_list(value: str) -> typing.List[str]:
    return [v.strip() for v in value.split(",") if v.strip()]


def _require_coverage(
    wanted: pd.Index, available: pd.Index, *, label: str
) -> None:
    gap = wanted.difference(available)
    if len(gap):
        raise errors.AlignmentError(
            "%s does not cover %d of %d keys (first %s, last %s)"
            % (label, len(gap), len(wanted), gap[0], gap[-1])
        )


# -----------------------------------------------------------------------
# Climate index -> summer-aligned monthly table
# -----------------------------------------------------------------------
@app.command()
def align_index(
    index_file: typing_extensions.Annotated[
        pathlib.Path, typer.Option(help="Monthly SAM (CPC table) or ENSO (PSL) file")
    ],
    output: typing_extensions.Annotated[
        pathlib.Path, typer.Option(help="Output JSON artifact")
    ],
    kind: typing_extensions.Annotated[
        str, typer.Option(help="Index layout: sam or enso")
    ] = "sam",
    split_month: typing_extensions.Annotated[
        int, typer.Option(help="Last month of an austral summer")
    ] = constants.DEFAULT_SPLIT_MONTH,
    since: typing_extensions.Annotated[
        typing.Optional[int], typer.Option(help="First summer to keep")
    ] = None,
) -> None:
    """Align a monthly climate index to austral summers."""
    _setup_logging()
    project = config.build_project_config(split_month=split_month)
    print("Aligning %s index to summers (split month %d)" % (kind, split_month))
    aligned = indices.load_summer_index(
        index_file, kind, project.split_month, since=since
    )
    artifacts.write_artifact(
        output,
        {"monthly": aligned},
        description="%s index aligned to austral summers; months after "
        "%s belong to the following summer"
        % (kind.upper(), constants.MONTH_NAMES[project.split_month - 1]),
        sources=[str(index_file)],
    )
    print("Done.")


# -----------------------------------------------------------------------
# Running means and daily climatologies
# -----------------------------------------------------------------------
@app.command()
def climatology(
    input_artifact: typing_extensions.Annotated[
        pathlib.Path, typer.Option(help="JSON artifact with a daily shelfwide table")
    ],
    output: typing_extensions.Annotated[
        pathlib.Path, typer.Option(help="Output JSON artifact")
    ],
    table: typing_extensions.Annotated[
        str, typer.Option(help="Table name inside the input artifact")
    ] = "daily",
    window: typing_extensions.Annotated[
        int, typer.Option(help="Running-mean window in days (odd)")
    ] = constants.DEFAULT_RUNNING_WINDOW,
    split_month: typing_extensions.Annotated[
        int, typer.Option(help="Last month of an austral summer")
    ] = constants.DEFAULT_SPLIT_MONTH,
    statistics: typing_extensions.Annotated[
        str, typer.Option(help="Comma-separated: mean,sd,median,iqr,idr")
    ] = ",".join(running.STATISTICS),
    round_output: typing_extensions.Annotated[
        bool, typer.Option(help="Round to the precision implied by the raw data")
    ] = True,
) -> None:
    """Running mean of every unit, then per-monthDay climatologies."""
    _setup_logging()
    project = config.build_project_config(
        split_month=split_month, running_window=window
    )
    daily = artifacts.read_table(input_artifact, table)
    print("Running mean (window=%d) for %d units" % (window, daily.shape[1]))
    smoothed = running.running_mean(
        daily, project.running_window, project.split_month
    )
    tables = {"running_mean": smoothed}
    for statistic in _split_list(statistics):
        print("Climatology: %s" % statistic)
        tables[statistic] = running.climatology(
            smoothed,
            statistic,
            project.split_month,
            decile_bounds=project.decile_bounds,
            round_output=round_output,
            extra_decimals=project.extra_decimals,
            reference=daily if round_output else None,
        )
    artifacts.write_artifact(
        output,
        tables,
        description="%d-day running mean and climatology of %s"
        % (window, input_artifact.name),
        sources=[str(input_artifact)],
    )
    print("Done.")


# -----------------------------------------------------------------------
# Per-calendar-day correlation with a daily index
# -----------------------------------------------------------------------
@app.command()
def correlate_days(
    shelf_artifact: typing_extensions.Annotated[
        pathlib.Path, typer.Option(help="JSON artifact with a daily shelfwide table")
    ],
    daily_index: typing_extensions.Annotated[
        pathlib.Path, typer.Option(help="Daily index file (year month day value)")
    ],
    output: typing_extensions.Annotated[
        pathlib.Path, typer.Option(help="Output JSON artifact")
    ],
    table: typing_extensions.Annotated[
        str, typer.Option(help="Table name inside the shelf artifact")
    ] = "daily",
    window: typing_extensions.Annotated[
        int, typer.Option(help="Running-mean window applied to both series")
    ] = constants.DEFAULT_RUNNING_WINDOW,
    lag_days: typing_extensions.Annotated[
        int, typer.Option(help="Shift the index back by this many days")
    ] = 0,
    split_month: typing_extensions.Annotated[
        int, typer.Option(help="Last month of an austral summer")
    ] = constants.DEFAULT_SPLIT_MONTH,
    detrend: typing_extensions.Annotated[
        bool, typer.Option(help="Linearly detrend each sample first")
    ] = True,
    fail_fast: typing_extensions.Annotated[
        bool, typer.Option(help="Stop at the first unit that fails")
    ] = False,
) -> None:
    """Correlate every unit with a daily index, one value per monthDay."""
    _setup_logging()
    project = config.build_project_config(
        split_month=split_month, running_window=window
    )
    shelves = running.running_mean(
        artifacts.read_table(shelf_artifact, table),
        project.running_window,
        project.split_month,
    )
    index = running.running_mean(
        indices.read_daily_index(daily_index),
        project.running_window,
        project.split_month,
    )
    # the index usually covers more days than the shelf table
    wanted = pd.DatetimeIndex(shelves.index) + pd.Timedelta(days=lag_days)
    _require_coverage(wanted, index.index, label="Daily index %s" % daily_index.name)
    index = index.loc[wanted]
    print("Correlating %d units (lag=%d days)" % (shelves.shape[1], lag_days))
    result = correlation.correlate_per_calendar_day(
        shelves,
        index,
        detrend=detrend,
        lag_days=lag_days,
        split_month=project.split_month,
        fail_fast=fail_fast,
    )
    n_pairs = int(result.n.max().max()) if result.n.size else 0
    artifacts.write_artifact(
        output,
        {
            "estimate": result.estimate,
            "p_value": result.p_value,
            "n": result.n.astype(float),
        },
        description="Per-monthDay Pearson correlation (detrend=%s, lag=%d days, "
        "%d-day running means); critical r at 0.05 for n=%d is %.3f; "
        "failed units: %s"
        % (
            detrend,
            lag_days,
            window,
            n_pairs,
            correlation.critical_r(n_pairs),
            sorted(result.failures) or "none",
        ),
        sources=[str(shelf_artifact), str(daily_index)],
    )
    if result.failures:
        print("Failed units: %s" % ", ".join(sorted(result.failures)))
    print("Done.")


# -----------------------------------------------------------------------
# Running correlation across summers
# -----------------------------------------------------------------------
@app.command()
def running_correlation(
    shelf_artifact: typing_extensions.Annotated[
        pathlib.Path, typer.Option(help="JSON artifact with a daily shelfwide table")
    ],
    index_artifact: typing_extensions.Annotated[
        pathlib.Path, typer.Option(help="Summer-aligned index artifact (align-index)")
    ],
    variable: typing_extensions.Annotated[
        str, typer.Option(help="Variable short name, decides sum or mean")
    ],
    output: typing_extensions.Annotated[
        pathlib.Path, typer.Option(help="Output JSON artifact")
    ],
    table: typing_extensions.Annotated[
        str, typer.Option(help="Table name inside the shelf artifact")
    ] = "daily",
    months: typing_extensions.Annotated[
        str, typer.Option(help="Comma-separated months forming the season")
    ] = "Dec,Jan,Feb",
    window_years: typing_extensions.Annotated[
        int, typer.Option(help="Running window length in summers (odd)")
    ] = constants.DEFAULT_CORRELATION_WINDOW_YEARS,
    split_month: typing_extensions.Annotated[
        int, typer.Option(help="Last month of an austral summer")
    ] = constants.DEFAULT_SPLIT_MONTH,
) -> None:
    """Running-window correlation between seasonal shelf values and an index."""
    _setup_logging()
    project = config.build_project_config(
        split_month=split_month, correlation_window_years=window_years
    )
    season = _split_list(months)
    daily = artifacts.read_table(shelf_artifact, table)
    index = indices.seasonal_index(
        artifacts.read_table(index_artifact, "monthly"), season
    )

    seasonal = batch.run_per_unit(
        lambda unit: summers.summer_statistic(
            daily[unit], variable, project.split_month, months=season
        ),
        [str(c) for c in daily.columns],
    )
    defined = sorted(
        {int(s) for values in seasonal.results.values() for s in values.dropna().index}
    )
    _require_coverage(
        pd.Index(defined), index.index, label="Index %s" % index_artifact.name
    )

    def _task(unit: str) -> pd.DataFrame:
        values = seasonal.results[unit]
        # only summers where the shelf is no-data may fall outside the index
        common = index.reindex(values.index)
        return correlation.running_correlation(
            values,
            common,
            project.correlation_window_years,
            detrend=project.detrend,
        )

    report = batch.run_per_unit(_task, list(seasonal.results))
    report.failures.update(seasonal.failures)
    tables = {
        name: pd.DataFrame(
            {unit: frame[name] for unit, frame in report.results.items()}
        )
        for name in ("estimate", "p_value")
    }
    artifacts.write_artifact(
        output,
        tables,
        description="%d-summer running correlation of %s %s with %s index"
        % (window_years, "-".join(season), variable, index_artifact.name),
        sources=[str(shelf_artifact), str(index_artifact)],
    )
    if not report.ok:
        print("Failed units: %s" % ", ".join(sorted(report.failures)))
    print("Done.")


# -----------------------------------------------------------------------
# Region means
# -----------------------------------------------------------------------
@app.command()
def regional_means(
    input_artifact: typing_extensions.Annotated[
        pathlib.Path, typer.Option(help="JSON artifact with a shelf table")
    ],
    output: typing_extensions.Annotated[
        pathlib.Path, typer.Option(help="Output JSON artifact")
    ],
    table: typing_extensions.Annotated[
        str, typer.Option(help="Table name inside the input artifact")
    ] = "daily",
    include_shelves: typing_extensions.Annotated[
        bool, typer.Option(help="Keep the shelf columns next to the regions")
    ] = False,
) -> None:
    """Average shelf columns into the six regions."""
    _setup_logging()
    project = config.build_project_config()
    shelf_table = artifacts.read_table(input_artifact, table)
    unknown = [c for c in shelf_table.columns if c not in project.shelf_names]
    if unknown:
        raise errors.ConfigError("Unknown ice shelves in %s: %s" % (table, unknown))
    print("Averaging %d shelves into %d regions" % (shelf_table.shape[1], len(project.regions)))
    artifacts.write_artifact(
        output,
        {table: regions.regional_means(shelf_table, project, include_shelves=include_shelves)},
        description="Regional means of %s:%s" % (input_artifact.name, table),
        sources=[str(input_artifact)],
    )
    print("Done.")


# -----------------------------------------------------------------------
# Per-cell regression on a seasonal index
# -----------------------------------------------------------------------
@app.command()
def regress_grid(
    field_file: typing_extensions.Annotated[
        pathlib.Path, typer.Option(help="NetCDF field with a 'summer' dimension")
    ],
    field_variable: typing_extensions.Annotated[
        str, typer.Option(help="Variable name inside the NetCDF file")
    ],
    index_artifact: typing_extensions.Annotated[
        pathlib.Path, typer.Option(help="Summer-aligned index artifact (align-index)")
    ],
    output: typing_extensions.Annotated[
        pathlib.Path, typer.Option(help="Output NetCDF file")
    ],
    months: typing_extensions.Annotated[
        str, typer.Option(help="Comma-separated months forming the season")
    ] = "Dec,Jan,Feb",
    detrend: typing_extensions.Annotated[
        bool, typer.Option(help="Linearly detrend both series first")
    ] = False,
) -> None:
    """Regress every grid cell of a summer field on a seasonal index."""
    _setup_logging()
    if not field_file.exists():
        raise errors.MissingInputError(field_file.name, str(field_file))
    season = _split_list(months)
    index = indices.seasonal_index(
        artifacts.read_table(index_artifact, "monthly"), season
    )
    with xr.open_dataset(field_file) as ds:
        if field_variable not in ds:
            raise errors.MissingInputError(
                "%s:%s" % (field_file.name, field_variable)
            )
        field = ds[field_variable].load()
    field_summers = [int(s) for s in field["summer"].values]
    absent = sorted(set(field_summers) - set(index.index))
    if absent:
        raise errors.AlignmentError(
            "Index has no value for summers %s" % absent
        )
    predictor = xr.DataArray(
        index.reindex(field_summers).to_numpy(dtype=float),
        coords={"summer": field["summer"].values},
        dims=["summer"],
        name=index.name,
    )
    print("Regressing %s on %s index" % (field_variable, "-".join(season)))
    result = regression.regress_grid(
        predictor, field, dim="summer", detrend=detrend
    )
    artifacts.write_regression_grid(
        result,
        output,
        description="Regression of %s on %s index (%s)"
        % (field_variable, index_artifact.name, "-".join(season)),
    )
    n_significant = int(np.sum(result["p_value"].values < constants.DEFAULT_ALPHA))
    print("%d cells significant at %.2f" % (n_significant, constants.DEFAULT_ALPHA))
    print("Done.")


if __name__ == "__main__":
    app()
