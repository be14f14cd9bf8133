"""Exceptions shared by the API, the Admin client and the repository."""


class ConfigurationError(Exception):
    """Server credentials are missing; always surfaces as HTTP 500."""


class AdminAPIError(Exception):
    """A data-table or member call to the Admin API failed."""

    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class TableNotFoundError(AdminAPIError):
    """The data table itself does not exist (the Admin API answered 404)."""

    def __init__(self, table: str, message: str | None = None):
        self.table = table
        super().__init__(message or f"Data table '{table}' not found", status_code=404)
