class RawCSVError(Exception):
    """Base class for all errors raised by rawcsv."""

    pass


class UsageError(RawCSVError):
    """Exception raised for invalid command line input (bad limit, missing path)."""

    pass


class DiscoveryError(RawCSVError):
    """Exception raised when the root path given for discovery does not exist."""

    pass


class FileOpenError(RawCSVError):
    """Exception raised when a CSV file cannot be opened for reading."""

    pass


class HeaderFormatError(RawCSVError):
    """Exception raised when a header row cannot be turned into a table schema."""

    pass


class DuplicateColumnError(HeaderFormatError):
    """Exception raised when two header cells sanitize to the same column name."""

    pass


class TableCreateError(RawCSVError):
    """Exception raised when the storage engine fails to create a table."""

    pass


class RowFormatError(RawCSVError):
    """Exception raised when a data row does not line up with the header."""

    pass


class RowInsertError(RawCSVError):
    """Exception raised when the storage engine rejects a single row."""

    pass
