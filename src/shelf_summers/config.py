from __future__ import annotations

"""Immutable project configuration.

A :class:`ProjectConfig` is built once at process start by
:func:`build_project_config` and handed to every component that needs the
shelf list, the region definitions or the calendar parameters.  All checks
happen at construction time so that an unknown shelf in a region, an even
running window or an out-of-range split month fails before any data is
read.
"""

import dataclasses
import logging
import types
import typing

import shelf_summers.constants as constants
import shelf_summers.errors as errors

_LOG = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class Shelf:
    name: str
    title: str
    initials: str
    region: str


@dataclasses.dataclass(frozen=True)
class ProjectConfig:
    shelves: typing.Tuple[Shelf, ...]
    regions: typing.Mapping[str, typing.Tuple[str, ...]]
    split_month: int = constants.DEFAULT_SPLIT_MONTH
    running_window: int = constants.DEFAULT_RUNNING_WINDOW
    correlation_window_years: int = constants.DEFAULT_CORRELATION_WINDOW_YEARS
    decile_bounds: typing.Tuple[float, float] = constants.DEFAULT_DECILE_BOUNDS
    detrend: bool = True
    extra_decimals: int = constants.DEFAULT_EXTRA_DECIMALS

    @property
    def shelf_names(self) -> typing.List[str]:
        return [s.name for s in self.shelves]

    @property
    def region_names(self) -> typing.List[str]:
        return list(self.regions)

    def shelf(self, name: str) -> Shelf:
        for s in self.shelves:
            if s.name == name:
                return s
        raise errors.ConfigError("Unknown ice shelf: %s" % name)

    def shelves_in(self, region: str) -> typing.List[str]:
        if region not in self.regions:
            raise errors.ConfigError(
                "Unknown region %s; expected one of %s"
                % (region, self.region_names)
            )
        return list(self.regions[region])

    def region_of(self, shelf_name: str) -> str:
        return self.shelf(shelf_name).region


def validate_split_month(split_month: int) -> int:
    if not 1 <= int(split_month) <= 12:
        raise errors.ConfigError(
            "split_month must be within 1..12, got %s" % split_month
        )
    return int(split_month)


def validate_window(length: int, *, label: str = "window") -> int:
    if int(length) != length or length < 1 or length % 2 == 0:
        raise errors.WindowError(
            "%s length must be an odd integer >= 1, got %s" % (label, length)
        )
    return int(length)


def validate_decile_bounds(
    bounds: typing.Sequence[float],
) -> typing.Tuple[float, float]:
    if len(bounds) != 2:
        raise errors.ConfigError(
            "decile bounds must be a (lower, upper) pair, got %s" % (bounds,)
        )
    lower, upper = float(bounds[0]), float(bounds[1])
    if not 0.0 < lower < upper < 1.0:
        raise errors.ConfigError(
            "decile bounds must satisfy 0 < lower < upper < 1, got (%s, %s)"
            % (lower, upper)
        )
    return lower, upper


def build_project_config(
    *,
    shelves: typing.Optional[
        typing.Sequence[typing.Tuple[str, str, str]]
    ] = None,
    regions: typing.Optional[
        typing.Mapping[str, typing.Sequence[str]]
    ] = None,
    split_month: int = constants.DEFAULT_SPLIT_MONTH,
    running_window: int = constants.DEFAULT_RUNNING_WINDOW,
    correlation_window_years: int = constants.DEFAULT_CORRELATION_WINDOW_YEARS,
    decile_bounds: typing.Sequence[float] = constants.DEFAULT_DECILE_BOUNDS,
    detrend: bool = True,
    extra_decimals: int = constants.DEFAULT_EXTRA_DECIMALS,
) -> ProjectConfig:
    """Validate the static reference data and freeze it.

    Defaults to the 27 shelves and six regions in
    :mod:`shelf_summers.constants`.  Every shelf must belong to exactly one
    region and every region member must name a known shelf.
    """
    shelves = constants.SHELVES if shelves is None else shelves
    regions = constants.REGIONS if regions is None else regions

    names = [s[0] for s in shelves]
    duplicated = sorted({n for n in names if names.count(n) > 1})
    if duplicated:
        raise errors.ConfigError("Duplicate ice shelves: %s" % duplicated)

    membership: typing.Dict[str, str] = {}
    for region, members in regions.items():
        if not members:
            raise errors.ConfigError("Region %s has no ice shelves" % region)
        unknown = [m for m in members if m not in names]
        if unknown:
            raise errors.ConfigError(
                "Region %s names unknown ice shelves: %s" % (region, unknown)
            )
        for m in members:
            if m in membership:
                raise errors.ConfigError(
                    "Ice shelf %s is in both %s and %s"
                    % (m, membership[m], region)
                )
            membership[m] = region

    frozen_shelves = tuple(
        Shelf(
            name=name,
            title=title,
            initials=initials,
            region=membership.get(name, ""),
        )
        for name, title, initials in shelves
    )
    unassigned = [s.name for s in frozen_shelves if not s.region]
    if unassigned:
        _LOG.warning("Ice shelves without a region: %s", unassigned)

    config = ProjectConfig(
        shelves=frozen_shelves,
        regions=types.MappingProxyType(
            {region: tuple(members) for region, members in regions.items()}
        ),
        split_month=validate_split_month(split_month),
        running_window=validate_window(running_window, label="running window"),
        correlation_window_years=validate_window(
            correlation_window_years, label="correlation window"
        ),
        decile_bounds=validate_decile_bounds(decile_bounds),
        detrend=bool(detrend),
        extra_decimals=int(extra_decimals),
    )
    _LOG.debug(
        "Project config: %d shelves, %d regions, split_month=%d",
        len(config.shelves),
        len(config.regions),
        config.split_month,
    )
    return config
