import pathlib

import numpy as np
import pandas as pd
import typer.testing
import xarray as xr

import shelf_summers.artifacts as artifacts
import shelf_summers.cli as cli
import shelf_summers.constants as constants
import shelf_summers.errors as errors

from conftest import daily_series

runner = typer.testing.CliRunner()


def test_align_index(tmp_path: pathlib.Path) -> None:
    rows = ["%d " % y + " ".join(["0.5"] * 12) for y in (2000, 2001)]
    source = tmp_path / "aao.txt"
    source.write_text("Jan Feb Mar Apr May Jun Jul Aug Sep Oct Nov Dec\n%s\n" % "\n".join(rows))
    output = tmp_path / "sam.json"
    result = runner.invoke(
        cli.app, ["align-index", "--index-file", str(source), "--output", str(output)]
    )
    assert result.exit_code == 0, result.output
    assert "Done." in result.output
    aligned = artifacts.read_table(output, "monthly")
    assert list(aligned.index) == [2001, 2002]


def test_climatology_and_regions(tmp_path: pathlib.Path) -> None:
    daily = pd.DataFrame(
        {
            "Amery": daily_series(range(2001, 2005), seed=1),
            "Totten": daily_series(range(2001, 2005), seed=2),
        }
    )
    source = artifacts.write_artifact(tmp_path / "daily.json", {"daily": daily}, description="")

    clim = tmp_path / "clim.json"
    result = runner.invoke(
        cli.app,
        ["climatology", "--input-artifact", str(source), "--output", str(clim),
         "--statistics", "mean,sd"],
    )
    assert result.exit_code == 0, result.output
    _, tables = artifacts.read_artifact(clim)
    assert set(tables) == {"running_mean", "mean", "sd"}
    assert list(tables["mean"].columns) == ["Amery", "Totten"]

    regional = tmp_path / "regions.json"
    result = runner.invoke(
        cli.app,
        ["regional-means", "--input-artifact", str(source), "--output", str(regional)],
    )
    assert result.exit_code == 0, result.output
    table = artifacts.read_table(regional, "daily")
    np.testing.assert_allclose(table["Wilkes"].to_numpy(), daily["Totten"].to_numpy())


def _daily_index_file(path: pathlib.Path, start: str, end: str) -> pathlib.Path:
    dates = pd.date_range(start, end, freq="D")
    values = np.random.default_rng(7).standard_normal(len(dates))
    path.write_text(
        "".join(
            "%d %d %d %.4f\n" % (d.year, d.month, d.day, v)
            for d, v in zip(dates, values)
        )
    )
    return path


def _summer_index_artifact(path: pathlib.Path, summers) -> pathlib.Path:
    summers = list(summers)
    months = constants.MONTH_NAMES[3:] + constants.MONTH_NAMES[:3]
    table = pd.DataFrame(
        np.random.default_rng(8).standard_normal((len(summers), 12)),
        index=pd.Index(summers, name="summer"),
        columns=months,
    )
    return artifacts.write_artifact(path, {"monthly": table}, description="")


def _shelf_artifact(path: pathlib.Path, summers, **kwargs) -> pathlib.Path:
    daily = pd.DataFrame(
        {
            "Amery": daily_series(summers, seed=1, **kwargs),
            "Totten": daily_series(summers, seed=2, **kwargs),
        }
    )
    return artifacts.write_artifact(path, {"daily": daily}, description="")


class TestCorrelateDays:
    def test_one_value_per_day_and_unit(self, tmp_path: pathlib.Path) -> None:
        shelf = _shelf_artifact(tmp_path / "daily.json", range(2001, 2011))
        index = _daily_index_file(tmp_path / "aao.txt", "2000-10-01", "2010-03-31")
        output = tmp_path / "corr.json"
        result = runner.invoke(
            cli.app,
            ["correlate-days", "--shelf-artifact", str(shelf), "--daily-index", str(index),
             "--output", str(output), "--lag-days", "2"],
        )
        assert result.exit_code == 0, result.output
        metadata, tables = artifacts.read_artifact(output)
        assert list(tables["estimate"].columns) == ["Amery", "Totten"]
        assert tables["n"].loc["Dec-15", "Amery"] == 10.0
        assert np.isfinite(tables["estimate"].loc["Dec-15"]).all()
        assert "lag=2 days" in metadata["description"]

    def test_index_shorter_than_shelf_record(self, tmp_path: pathlib.Path) -> None:
        shelf = _shelf_artifact(tmp_path / "daily.json", range(2001, 2011))
        index = _daily_index_file(tmp_path / "aao.txt", "2000-10-01", "2005-03-31")
        result = runner.invoke(
            cli.app,
            ["correlate-days", "--shelf-artifact", str(shelf), "--daily-index", str(index),
             "--output", str(tmp_path / "corr.json")],
        )
        assert result.exit_code != 0
        assert isinstance(result.exception, errors.AlignmentError)
        assert not (tmp_path / "corr.json").exists()


class TestRunningCorrelationCommand:
    def test_windows_centred_on_summers(self, tmp_path: pathlib.Path) -> None:
        shelf = _shelf_artifact(tmp_path / "daily.json", range(1990, 2010), end="03-01")
        index = _summer_index_artifact(tmp_path / "sam.json", range(1990, 2010))
        output = tmp_path / "running.json"
        result = runner.invoke(
            cli.app,
            ["running-correlation", "--shelf-artifact", str(shelf),
             "--index-artifact", str(index), "--variable", "t2m", "--output", str(output)],
        )
        assert result.exit_code == 0, result.output
        estimate = artifacts.read_table(output, "estimate")
        assert list(estimate.index) == list(range(1990, 2010))
        assert np.isfinite(estimate.loc[1995:2004]).all().all()
        assert estimate.loc[1990:1994].isna().all().all()

    def test_index_missing_summers(self, tmp_path: pathlib.Path) -> None:
        shelf = _shelf_artifact(tmp_path / "daily.json", range(1990, 2010), end="03-01")
        index = _summer_index_artifact(tmp_path / "sam.json", range(1995, 2010))
        result = runner.invoke(
            cli.app,
            ["running-correlation", "--shelf-artifact", str(shelf),
             "--index-artifact", str(index), "--variable", "t2m",
             "--output", str(tmp_path / "running.json")],
        )
        assert isinstance(result.exception, errors.AlignmentError)


def test_regress_grid(tmp_path: pathlib.Path) -> None:
    summers = np.arange(1990, 2010)
    index = _summer_index_artifact(tmp_path / "sam.json", summers)
    djf = artifacts.read_table(index, "monthly")[["Dec", "Jan", "Feb"]].mean(axis=1)
    field = xr.DataArray(
        2.0 * djf.to_numpy()[:, None, None] + np.zeros((20, 2, 3)),
        coords={"summer": summers, "lat": [-70.0, -71.0], "lon": [0.0, 1.0, 2.0]},
        dims=["summer", "lat", "lon"],
        name="t2m",
    )
    field_file = tmp_path / "t2m.nc"
    field.to_dataset().to_netcdf(field_file)
    output = tmp_path / "grid.nc"
    result = runner.invoke(
        cli.app,
        ["regress-grid", "--field-file", str(field_file), "--field-variable", "t2m",
         "--index-artifact", str(index), "--output", str(output)],
    )
    assert result.exit_code == 0, result.output
    with xr.open_dataset(output) as ds:
        np.testing.assert_allclose(ds["slope"].values, 2.0)
        np.testing.assert_allclose(ds["r_squared"].values, 1.0)
