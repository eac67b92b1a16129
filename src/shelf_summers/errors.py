"""Exception taxonomy.

Degenerate statistics (zero variance, too few samples) are not errors:
they come back as ``NaN`` or an undefined
:class:`~shelf_summers.correlation.CorrelationResult`.
"""


class ShelfSummersError(Exception):
    """Base class for all errors raised by this package."""


class ConfigError(ShelfSummersError, ValueError):
    """A static parameter (split month, window, unit name) is invalid."""


class WindowError(ConfigError):
    """A running-window length is even or smaller than one."""


class AlignmentError(ShelfSummersError):
    """Two series do not pair up by (summer, monthDay) or summer key."""


class MissingInputError(ShelfSummersError, FileNotFoundError):
    """An upstream file or table has not been produced yet."""

    def __init__(self, prerequisite: str, detail: str = "") -> None:
        self.prerequisite = prerequisite
        message = "Missing prerequisite: %s" % prerequisite
        if detail:
            message = "%s (%s)" % (message, detail)
        super().__init__(message)
