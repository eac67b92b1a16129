import numpy as np
import pytest

import shelf_summers.batch as batch
import shelf_summers.config as config
import shelf_summers.errors as errors
import shelf_summers.variables as variables


class TestProjectConfig:
    def test_default_reference_data(self, project: config.ProjectConfig) -> None:
        assert len(project.shelves) == 27
        assert project.region_names == ["Weddell", "DML", "Amery", "Wilkes", "Oates", "Ross"]
        assert sum(len(project.shelves_in(r)) for r in project.region_names) == 27

    def test_lookups(self, project: config.ProjectConfig) -> None:
        assert project.region_of("Totten") == "Wilkes"
        assert project.shelf("Brunt_Stancomb").initials == "BS"
        with pytest.raises(errors.ConfigError):
            project.shelf("Larsen_C")
        with pytest.raises(errors.ConfigError):
            project.shelves_in("Peninsula")

    def test_regions_are_read_only(self, project: config.ProjectConfig) -> None:
        with pytest.raises(TypeError):
            project.regions["Peninsula"] = ("Larsen_C",)

    def test_unknown_region_member(self) -> None:
        with pytest.raises(errors.ConfigError, match="unknown"):
            config.build_project_config(
                shelves=[("A", "A", "A")], regions={"R": ("A", "B")}
            )

    def test_shelf_in_two_regions(self) -> None:
        with pytest.raises(errors.ConfigError, match="both"):
            config.build_project_config(
                shelves=[("A", "A", "A")], regions={"R": ("A",), "S": ("A",)}
            )

    def test_duplicate_shelves(self) -> None:
        with pytest.raises(errors.ConfigError):
            config.build_project_config(
                shelves=[("A", "A", "A"), ("A", "A2", "A2")], regions={"R": ("A",)}
            )

    @pytest.mark.parametrize("split_month", [0, 13])
    def test_split_month_out_of_range(self, split_month: int) -> None:
        with pytest.raises(errors.ConfigError):
            config.build_project_config(split_month=split_month)

    @pytest.mark.parametrize("window", [0, 4, -3])
    def test_invalid_windows(self, window: int) -> None:
        with pytest.raises(errors.WindowError):
            config.build_project_config(running_window=window)
        with pytest.raises(errors.WindowError):
            config.build_project_config(correlation_window_years=window)

    @pytest.mark.parametrize("bounds", [(0.9, 0.1), (0.0, 0.9), (0.1,)])
    def test_invalid_decile_bounds(self, bounds) -> None:
        with pytest.raises(errors.ConfigError):
            config.build_project_config(decile_bounds=bounds)

    def test_window_error_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            config.validate_window(2)


class TestVariables:
    def test_single_name_gives_list(self) -> None:
        result = variables.get_variables("smb")
        assert isinstance(result, list)
        assert [v.name for v in result] == ["smb"]

    def test_unknown_variable(self) -> None:
        with pytest.raises(errors.ConfigError):
            variables.get_variable("not_a_variable")

    def test_aggregation(self) -> None:
        assert variables.get_variable("snowmelt").aggregation == "sum"
        assert variables.get_variable("t2m").aggregation == "mean"

    def test_mass_flux_daily_totals(self) -> None:
        category = variables.QuantityCategory.MASS_FLUX
        assert category.convert(1e-5) == pytest.approx(0.864)
        assert category.convert(3.0, monthly=True) == 3.0

    def test_energy_flux_accumulated_monthly(self) -> None:
        category = variables.QuantityCategory.ENERGY_FLUX
        seconds = 31 * 86400.0
        assert category.convert(seconds * 50.0, monthly=True, seconds=seconds) == pytest.approx(50.0)
        assert category.convert(50.0) == 50.0

    def test_temperature_array(self) -> None:
        result = variables.QuantityCategory.TEMPERATURE.convert(np.array([273.15, 263.15]))
        np.testing.assert_allclose(result, [0.0, -10.0])

    def test_labels(self) -> None:
        smb = variables.get_variable("smb")
        assert variables.variable_label(smb) == "SMB (kg m-2 s-1)"
        assert variables.variable_label(smb, original_units=False) == "SMB (kg m-2 day-1)"
        assert variables.variable_label(variables.get_variable("albd")) == "Albedo"

    def test_categories(self) -> None:
        pressure = variables.variables_in(variables.QuantityCategory.PRESSURE)
        assert [v.name for v in pressure] == ["mslp"]
        assert all(v.source == "ERA5" for v in pressure)


class TestRunPerUnit:
    @staticmethod
    def _task(unit: str) -> int:
        if unit == "bad":
            raise errors.AlignmentError("keys differ")
        return len(unit)

    def test_failures_collected(self, caplog) -> None:
        report = batch.run_per_unit(self._task, ["Amery", "bad", "Ross"])
        assert report.results == {"Amery": 5, "Ross": 4}
        assert list(report.failures) == ["bad"]
        assert "AlignmentError" in report.failures["bad"]
        assert not report.ok
        assert any(r.levelname == "ERROR" and "bad" in r.getMessage() for r in caplog.records)

    def test_fail_fast(self) -> None:
        with pytest.raises(errors.AlignmentError):
            batch.run_per_unit(self._task, ["bad", "Amery"], fail_fast=True)

    def test_other_errors_propagate(self) -> None:
        def _broken(unit: str) -> int:
            raise KeyError(unit)

        with pytest.raises(KeyError):
            batch.run_per_unit(_broken, ["Amery"])

    def test_all_ok(self) -> None:
        assert batch.run_per_unit(self._task, ["Amery"]).ok
