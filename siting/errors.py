"""
Exceptions raised by the site finder.
"""


class SiteFinderError(Exception):
    """Base class for site finder failures."""


class MissingReferenceDataError(SiteFinderError):
    """AD plant locations or boundary data are not available."""


class ReferenceDataError(SiteFinderError):
    """A reference data source could not be read or parsed."""


class NoAnalysisResultError(SiteFinderError):
    """An operation needs a completed analysis but none has run yet."""


class UnsupportedExportFormatError(SiteFinderError, ValueError):
    """Export was requested in a format that is not supported."""


class WorkerUnavailableError(SiteFinderError):
    """The requested background worker is not registered or is busy."""
