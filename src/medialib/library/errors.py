"""Errors raised while validating and configuring library preferences."""


class LibraryError(Exception):
    """Base exception for library preference operations.

    Attributes:
        value: Path or MIME type the error refers to.
        code: HTTP-style status code describing the failure class.
    """

    code = 400

    def __init__(self, value: str, message: str | None = None) -> None:
        super().__init__(message or value)
        self.value = value


class LibraryPathNotExistingError(LibraryError):
    """Raised when a library path does not exist on the filesystem."""


class LibraryPathNotADirectoryError(LibraryError):
    """Raised when a library path exists but is not a directory."""


class LibraryPathNotReadableError(LibraryError):
    """Raised when the process cannot read a library path."""


class LibraryPathAlreadyConfiguredError(LibraryError):
    """Raised when adding a library path that is already configured."""

    code = 409


class LibraryPathNotConfiguredError(LibraryError):
    """Raised when removing a library path that was never configured."""

    code = 404


class InvalidMimeTypeError(LibraryError):
    """Raised when a MIME type string is malformed."""


class SupportedMimeTypeAlreadyConfiguredError(LibraryError):
    """Raised when adding a MIME type that is already allowed."""

    code = 409


class SupportedMimeTypeNotConfiguredError(LibraryError):
    """Raised when removing a MIME type that is not allowed."""

    code = 404
