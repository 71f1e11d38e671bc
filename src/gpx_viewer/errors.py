"""Exception taxonomy for gpx-viewer."""

from __future__ import annotations


class GpxViewerError(Exception):
    """Base class for all gpx-viewer errors."""


class ParseError(GpxViewerError):
    """A GPX document could not be parsed.

    Fatal to the load that triggered it; no partial timeline is produced.
    """


class MetadataReadError(GpxViewerError):
    """The metadata block of an image could not be decoded."""


class MissingGeoTagError(GpxViewerError):
    """An image carries no usable GPS coordinate tags."""
