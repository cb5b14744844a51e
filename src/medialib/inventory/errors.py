"""Inventory persistence errors."""


class InventoryError(Exception):
    """Base exception for inventory repository operations."""

    code = 500


class RequiredParameterNotSetError(InventoryError):
    """Raised when a record lacks a required field."""

    code = 400

    def __init__(self, parameter: str, message: str) -> None:
        super().__init__(message)
        self.parameter = parameter


class ParameterOutOfBoundsError(InventoryError):
    """Raised when a record field exceeds its maximum length."""

    code = 400

    def __init__(self, parameter: str, message: str) -> None:
        super().__init__(message)
        self.parameter = parameter


class NotAUniqueValueError(InventoryError):
    """Raised when a unique field collides with another record."""

    code = 409

    def __init__(self, parameter: str, value: str, message: str) -> None:
        super().__init__(message)
        self.parameter = parameter
        self.value = value


class RecordNotFoundError(InventoryError):
    """Raised when deleting or updating a record that is not stored."""

    code = 404
