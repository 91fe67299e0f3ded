"""
Error taxonomy for the dashboard.

NetworkError and DataFormatError are raised by the API client and caught at
the fetch boundary (see loaders.py). NoDataError marks a valid but empty
result. ExportError covers workbook generation and file delivery.
"""


class DashboardError(Exception):
    """Base class for all dashboard errors."""


class NetworkError(DashboardError):
    """Request failed, was rejected, or returned an undecodable body."""


class DataFormatError(DashboardError):
    """Response arrived but is missing `status: success` or has the wrong shape."""


class NoDataError(DashboardError):
    """Valid response with an empty result set."""


class ExportError(DashboardError):
    """Spreadsheet generation or file delivery failed."""
