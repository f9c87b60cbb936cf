"""
Exceptions raised by trackenv.

Every error derives from `TrackEnvError` so scripts can catch the whole
family at once, while tests and callers can still tell apart which step of
the workflow failed.
"""


class TrackEnvError(Exception):
    """Base class for all trackenv errors."""


class ParseError(TrackEnvError):
    """
    Raised when a tabular input cannot be read or does not have the
    expected layout (missing file, too few columns, non-numeric cells).
    """


class ProjectionError(TrackEnvError):
    """
    Raised when a raster has no usable coordinate reference system or
    when transforming coordinates or grids between systems fails.
    """


class EmptyResultError(TrackEnvError):
    """
    Raised when filtering leaves no samples inside the reference extent.
    """
