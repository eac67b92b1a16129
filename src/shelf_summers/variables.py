from __future__ import annotations

"""Physical-quantity categories and the RACMO / ERA5 variables that use them.

Each :class:`QuantityCategory` carries its native unit, the unit usually
shown in figures and tables, and the conversion between the two.  Energy
fluxes are stored as accumulated J m-2 in the monthly RACMO files but as
W m-2 in the daily files, so their conversion needs to know the resolution;
mass fluxes are always per second and are converted to daily totals.
"""

import dataclasses
import enum
import typing

import numpy as np
import numpy.typing as npt

import shelf_summers.constants as constants
import shelf_summers.errors as errors

_ArrayLike = typing.Union[float, npt.NDArray[np.floating]]


def _identity(values: _ArrayLike, *, seconds: float) -> _ArrayLike:
    return values


def _per_second_to_per_day(values: _ArrayLike, *, seconds: float) -> _ArrayLike:
    return values * constants.SECONDS_PER_DAY


def _accumulated_to_mean_flux(values: _ArrayLike, *, seconds: float) -> _ArrayLike:
    return values / seconds


def _kelvin_to_celsius(values: _ArrayLike, *, seconds: float) -> _ArrayLike:
    return values - constants.CELSIUS_OFFSET


def _pascal_to_hectopascal(values: _ArrayLike, *, seconds: float) -> _ArrayLike:
    return values / 100.0


def _fraction_to_percent(values: _ArrayLike, *, seconds: float) -> _ArrayLike:
    return values * 100.0


class QuantityCategory(enum.Enum):
    # (native daily unit, native monthly unit, display unit, converter)
    MASS_FLUX = ("kg m-2 s-1", "kg m-2 month-1", "kg m-2 day-1", _per_second_to_per_day)
    ENERGY_FLUX = ("W m-2", "J m-2", "W m-2", _accumulated_to_mean_flux)
    TEMPERATURE = ("K", "K", "degC", _kelvin_to_celsius)
    WIND = ("m s-1", "m s-1", "m s-1", _identity)
    PRESSURE = ("Pa", "Pa", "hPa", _pascal_to_hectopascal)
    GEOPOTENTIAL = ("m", "m", "m", _identity)
    ALBEDO = ("1", "1", "%", _fraction_to_percent)

    def __init__(self, daily_unit, monthly_unit, display_unit, converter):
        self.daily_unit = daily_unit
        self.monthly_unit = monthly_unit
        self.display_unit = display_unit
        self._converter = converter

    def native_unit(self, *, monthly: bool = False) -> str:
        return self.monthly_unit if monthly else self.daily_unit

    def convert(
        self,
        values: _ArrayLike,
        *,
        monthly: bool = False,
        seconds: float = constants.SECONDS_PER_DAY,
    ) -> _ArrayLike:
        """Convert *values* from the native to the display unit.

        *seconds* is the length of the accumulation period; it only matters
        for energy fluxes in monthly files.
        """
        if self is QuantityCategory.ENERGY_FLUX and not monthly:
            return values
        if self is QuantityCategory.MASS_FLUX and monthly:
            # monthly mass terms are already totals
            return values
        return self._converter(values, seconds=seconds)


@dataclasses.dataclass(frozen=True)
class Variable:
    name: str
    long_name: str
    short_name: str
    category: QuantityCategory
    summable: bool
    source: str = "RACMO"

    @property
    def aggregation(self) -> str:
        return "sum" if self.summable else "mean"


def _racmo_mass(name, long_name, short_name):
    return Variable(name, long_name, short_name, QuantityCategory.MASS_FLUX, True)


def _racmo_energy(name, long_name, short_name):
    return Variable(name, long_name, short_name, QuantityCategory.ENERGY_FLUX, True)


_ALL_VARIABLES: typing.List[Variable] = [
    _racmo_mass("smb", "Surface Mass Balance", "SMB"),
    _racmo_mass("precip", "Precipitation", "Precipitation"),
    _racmo_mass("sndiv", "Snow Drift", "Snow Drift"),
    _racmo_mass("subl", "Sublimation", "Subl."),
    _racmo_mass("totwat", "Total Liquid Water", "Liquid Water"),
    _racmo_mass("refreeze", "Surface Refreezing", "Refreezing"),
    _racmo_mass("runoff", "Surface Runoff", "Runoff"),
    _racmo_mass("snowmelt", "Surface Melt Flux", "Surface Melt"),
    _racmo_mass("meltsur", "Surface Melt", "Surface Melt"),
    _racmo_mass("meltin", "Internal Melt", "Internal Melt"),
    _racmo_mass("melt", "Melt", "Melt"),
    _racmo_energy("seb", "Surface Energy Balance", "SEB"),
    _racmo_energy("turb", "Net Turbulent Fluxes", "Turbulent NET"),
    _racmo_energy("radi", "Net Radiative Fluxes", "Radiative NET"),
    _racmo_energy("swsn", "Net Shortwave Radiation", "SW NET"),
    _racmo_energy("swsd", "Incoming Shortwave Radiation", "SW IN"),
    _racmo_energy("swsu", "Outgoing Shortwave Radiation", "SW OUT"),
    _racmo_energy("lwsn", "Net Longwave Radiation", "LW NET"),
    _racmo_energy("lwsd", "Incoming Longwave Radiation", "LW IN"),
    _racmo_energy("lwsu", "Outgoing Longwave Radiation", "LW OUT"),
    _racmo_energy("senf", "Sensible Heat", "Sensible Heat"),
    _racmo_energy("latf", "Latent Heat", "Latent Heat"),
    _racmo_energy("gbot", "Ground Heat Flux", "Ground Heat"),
    _racmo_energy("swabsin", "Absorbed Shortwave Radiation", "SW ABS"),
    Variable("t2m", "Surface (2m) Air Temperatures", "T2m",
             QuantityCategory.TEMPERATURE, False),
    Variable("tskin", "Skin Temperature", "Tskin",
             QuantityCategory.TEMPERATURE, False),
    Variable("albd", "Surface Albedo", "Albedo", QuantityCategory.ALBEDO, False),
    Variable("w10m", "Absolute Wind Speed", "Wind Speed",
             QuantityCategory.WIND, False),
    Variable("u10m", "Zonal Wind Speed", "Zonal Winds",
             QuantityCategory.WIND, False),
    Variable("v10m", "Meridional Wind Speed", "Meridional Winds",
             QuantityCategory.WIND, False),
    Variable("mslp", "MSL Pressure", "MSLP", QuantityCategory.PRESSURE, False, "ERA5"),
    Variable("z850", "850 hPa Geopotential Height", "Z850",
             QuantityCategory.GEOPOTENTIAL, False, "ERA5"),
    Variable("z700", "700 hPa Geopotential Height", "Z700",
             QuantityCategory.GEOPOTENTIAL, False, "ERA5"),
    Variable("z500", "500 hPa Geopotential Height", "Z500",
             QuantityCategory.GEOPOTENTIAL, False, "ERA5"),
    Variable("z250", "250 hPa Geopotential Height", "Z250",
             QuantityCategory.GEOPOTENTIAL, False, "ERA5"),
]

VARIABLES: typing.Dict[str, Variable] = {v.name: v for v in _ALL_VARIABLES}


def get_variable(name: str) -> Variable:
    try:
        return VARIABLES[name]
    except KeyError:
        raise errors.ConfigError(
            "Unknown variable %s; expected one of %s" % (name, sorted(VARIABLES))
        ) from None


def get_variables(names: typing.Iterable[str]) -> typing.List[Variable]:
    """Look up several variables; a single name still gives a list."""
    if isinstance(names, str):
        names = [names]
    return [get_variable(n) for n in names]


def variables_in(category: QuantityCategory) -> typing.List[Variable]:
    return [v for v in _ALL_VARIABLES if v.category is category]


def variable_label(
    variable: Variable,
    *,
    original_units: bool = True,
    monthly: bool = False,
    short: bool = True,
) -> str:
    """``"Name (unit)"`` label for tables and artifact metadata."""
    name = variable.short_name if short else variable.long_name
    if original_units:
        unit = variable.category.native_unit(monthly=monthly)
    else:
        unit = variable.category.display_unit
    if unit == "1":
        return name
    return "%s (%s)" % (name, unit)
