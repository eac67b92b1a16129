import numpy as np
import pandas as pd
import pytest

import shelf_summers.errors as errors
import shelf_summers.running as running
from conftest import daily_series


class TestRunningMean:
    def test_example_window_three(self) -> None:
        index = pd.date_range("2000-01-01", periods=9, freq="D")
        series = pd.Series(np.arange(1.0, 10.0), index=index)
        result = running.running_mean(series, 3)
        expected = [np.nan, 2, 3, 4, 5, 6, 7, 8, np.nan]
        np.testing.assert_allclose(result.to_numpy(), expected)

    @pytest.mark.parametrize("window", [3, 5, 11])
    def test_edges_of_every_summer_are_no_data(self, window: int) -> None:
        series = daily_series([2001, 2002, 2003])
        result = running.running_mean(series, window)
        side = window // 2
        labels = result.index.year + (result.index.month > 3)
        for summer in (2001, 2002, 2003):
            part = result[labels == summer].to_numpy()
            assert np.isnan(part[:side]).all()
            assert np.isnan(part[len(part) - side:]).all()
            assert np.isfinite(part[side:len(part) - side]).all()

    def test_window_never_crosses_summers(self) -> None:
        # one contiguous block of dates spanning the April split
        index = pd.date_range("2000-03-25", "2000-04-07", freq="D")
        series = pd.Series(np.arange(len(index), dtype=float), index=index)
        result = running.running_mean(series, 3)
        assert np.isnan(result.loc["2000-03-31"])
        assert np.isnan(result.loc["2000-04-01"])
        assert result.loc["2000-03-30"] == pytest.approx(5.0)

    def test_no_data_propagates(self) -> None:
        index = pd.date_range("2000-01-01", periods=9, freq="D")
        series = pd.Series(np.arange(1.0, 10.0), index=index)
        series.iloc[4] = np.nan
        result = running.running_mean(series, 3).to_numpy()
        assert np.isnan(result[3:6]).all()
        assert result[2] == pytest.approx(3.0)

    def test_gap_in_dates_is_no_data(self) -> None:
        index = pd.date_range("2000-01-01", periods=9, freq="D").delete(4)
        series = pd.Series(np.ones(8), index=index)
        result = running.running_mean(series, 3)
        assert np.isnan(result.loc["2000-01-04"])
        assert np.isnan(result.loc["2000-01-06"])
        assert result.loc["2000-01-03"] == pytest.approx(1.0)

    def test_frame_is_processed_per_column(self) -> None:
        index = pd.date_range("2000-01-01", periods=5, freq="D")
        frame = pd.DataFrame({"A": np.arange(5.0), "B": np.ones(5)}, index=index)
        result = running.running_mean(frame, 3)
        assert list(result.columns) == ["A", "B"]
        assert result.loc["2000-01-02", "A"] == pytest.approx(1.0)

    @pytest.mark.parametrize("window", [0, 2, 4, -3])
    def test_bad_window(self, window: int) -> None:
        series = daily_series([2001])
        with pytest.raises(errors.WindowError):
            running.running_mean(series, window)


class TestClimatology:
    def test_single_summer_mean_equals_running_mean(self) -> None:
        smoothed = running.running_mean(daily_series([2005]), 5)
        clim = running.climatology(smoothed, "mean", round_output=False)
        keys = [ts.strftime("%b-%d") for ts in smoothed.index]
        np.testing.assert_allclose(
            clim.loc[keys].to_numpy(), smoothed.to_numpy(), equal_nan=True
        )

    def test_spread_needs_two_summers(self) -> None:
        series = daily_series([2005])
        for statistic in ("sd", "iqr", "idr"):
            assert running.climatology(series, statistic).isna().all()
        assert running.climatology(series, "median").notna().all()

    def test_sample_standard_deviation(self) -> None:
        series = daily_series([2001, 2002, 2003], seed=3)
        clim = running.climatology(series, "sd", round_output=False)
        values = [series.loc["%d-12-15" % y] for y in (2000, 2001, 2002)]
        assert clim.loc["Dec-15"] == pytest.approx(np.std(values, ddof=1))

    def test_interdecile_range_bounds(self) -> None:
        series = daily_series([2001 + i for i in range(10)], seed=4)
        narrow = running.climatology(series, "idr", decile_bounds=(0.25, 0.75))
        iqr = running.climatology(series, "iqr")
        np.testing.assert_allclose(narrow.to_numpy(), iqr.to_numpy())

    def test_ignores_no_data(self) -> None:
        series = daily_series([2001, 2002, 2003], seed=5)
        series.loc["2001-12-15"] = np.nan
        clim = running.climatology(series, "mean", round_output=False)
        expected = np.mean([series.loc["2000-12-15"], series.loc["2002-12-15"]])
        assert clim.loc["Dec-15"] == pytest.approx(expected)

    def test_leap_day_dropped_by_default(self) -> None:
        series = daily_series([2004, 2005], end="03-10")
        assert "Feb-29" not in running.climatology(series).index
        assert "Feb-29" in running.climatology(series, drop_leap_day=False).index

    def test_ordered_through_the_summer(self) -> None:
        clim = running.climatology(daily_series([2001, 2002]))
        assert clim.index[0] == "Nov-01"
        assert clim.index[-1] == "Feb-28"

    def test_unknown_statistic(self) -> None:
        with pytest.raises(errors.ConfigError):
            running.climatology(daily_series([2001, 2002]), "mode")

    def test_table_and_frames(self) -> None:
        series = daily_series([2001, 2002, 2003])
        table = running.climatology_table(series)
        assert list(table.columns) == list(running.STATISTICS)
        frame = pd.DataFrame({"Amery": series, "Totten": series * 2})
        clim = running.climatology(frame, "mean", round_output=False)
        np.testing.assert_allclose(clim["Totten"], 2 * clim["Amery"])


class TestPrecision:
    def test_one_more_place_than_the_spread(self) -> None:
        assert running.decimal_places([1.0, 3.0, 5.0]) == 1
        assert running.decimal_places([0.01, 0.05, 0.09]) == 3
        assert running.decimal_places([100.0, 300.0]) == 1

    def test_configurable(self) -> None:
        assert running.decimal_places([0.01, 0.05, 0.09], extra_decimals=0) == 2

    def test_undefined_spread(self) -> None:
        assert running.decimal_places([2.0, 2.0]) is None
        assert running.decimal_places([2.0]) is None

    def test_rounded_by_default(self) -> None:
        series = daily_series([2001, 2002, 2003])
        places = running.decimal_places(series)
        assert places is not None
        raw = running.climatology(series, "mean", round_output=False)
        clim = running.climatology(series, "mean")
        np.testing.assert_allclose(clim.to_numpy(), raw.round(places).to_numpy())
        assert not np.allclose(clim.to_numpy(), raw.to_numpy(), rtol=0.0, atol=1e-9)


class TestAnomalies:
    def test_departure_from_mean(self) -> None:
        series = daily_series([2001, 2002])
        clim = running.climatology(series, "mean", round_output=False)
        anomalies = running.anomalies(series, clim)
        pair = anomalies.loc[pd.to_datetime(["2000-12-15", "2001-12-15"])].to_numpy()
        assert pair.sum() == pytest.approx(0.0)
