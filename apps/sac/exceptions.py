"""
Domain exceptions for sac app.

These exceptions are raised by the CSV import and reporting code and
translated to HTTP responses by the views (or to CommandError by the
``import_csv`` management command).

Exception Hierarchy:
    SACServiceError (base)
    ├── CSVParseError
    ├── CSVValidationError
    └── InvalidReportDateError

Usage:
    from apps.sac.exceptions import CSVValidationError

    if missing:
        raise CSVValidationError(f"Missing required fields: {', '.join(missing)}")
"""


class SACServiceError(Exception):
    """
    Base exception for all sac service errors.

        try:
            rows = parse_csv(text)
        except SACServiceError as e:
            return Response({'error': str(e)}, status=400)
    """

    pass


class CSVParseError(SACServiceError):
    """
    Raised when uploaded text cannot be read as CSV, or has no data rows.

    Example:
        raise CSVParseError("CSV must have a header row and at least one data row")
    """

    pass


class CSVValidationError(SACServiceError):
    """
    Raised when parsed rows lack the columns an import needs.

    Example:
        raise CSVValidationError("Missing required fields: email, role")
    """

    pass


class InvalidReportDateError(SACServiceError):
    """
    Raised when a report day cannot be interpreted.
    """

    pass
