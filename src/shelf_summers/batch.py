from __future__ import annotations

import dataclasses
import logging
import typing

import shelf_summers.errors as errors

_LOG = logging.getLogger(__name__)

_T = typing.TypeVar("_T")


@dataclasses.dataclass
class BatchReport(typing.Generic[_T]):
    results: typing.Dict[str, _T] = dataclasses.field(default_factory=dict)
    failures: typing.Dict[str, str] = dataclasses.field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failures


def run_per_unit(
    func: typing.Callable[[str], _T],
    units: typing.Iterable[str],
    *,
    fail_fast: bool = False,
) -> BatchReport[_T]:
    """Run *func* once per unit, collecting failures instead of stopping.

    Only this package's own errors are collected; anything else is a bug
    and propagates.  With *fail_fast* the first error propagates too.
    """
    report: BatchReport[_T] = BatchReport()
    for unit in units:
        try:
            report.results[unit] = func(unit)
        except errors.ShelfSummersError as exc:
            if fail_fast:
                raise
            _LOG.error("Unit %s failed: %s", unit, exc)
            report.failures[unit] = "%s: %s" % (type(exc).__name__, exc)
    if report.failures:
        _LOG.warning(
            "%d of %d units failed: %s",
            len(report.failures),
            len(report.failures) + len(report.results),
            sorted(report.failures),
        )
    return report
