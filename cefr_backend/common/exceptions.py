"""
Common Exception Classes

This module defines custom exceptions used throughout the application.
"""

from typing import Optional, Any


class BaseError(Exception):
    """Base class for all custom exceptions."""

    def __init__(self, message: str, original_exception: Optional[Exception] = None):
        """
        Initialize the exception.

        Args:
            message: Error message
            original_exception: Original exception that caused this error
        """
        super().__init__(message)
        self.message = message
        self.original_exception = original_exception


class DatabaseError(BaseError):
    """Exception raised for database-related errors."""

    def __init__(self, message: str, original_exception: Optional[Exception] = None):
        """
        Initialize the database error.

        Args:
            message: Error message
            original_exception: Original database exception
        """
        super().__init__(f"Database error: {message}", original_exception)


class ValidationError(BaseError):
    """Exception raised for validation errors."""

    def __init__(self, message: str, errors: Optional[dict] = None):
        """
        Initialize the validation error.

        Args:
            message: Error message
            errors: Dictionary of validation errors
        """
        super().__init__(f"Validation error: {message}")
        self.errors = errors or {}


class InvalidAnswerError(ValidationError):
    """Raised when a submitted answer references a question that does not exist."""

    def __init__(self, message: str, section_index: Optional[int] = None,
                 question_index: Optional[int] = None):
        super().__init__(
            message,
            errors={"section_index": section_index, "question_index": question_index}
        )
        self.section_index = section_index
        self.question_index = question_index


class AuthorizationError(BaseError):
    """Exception raised for authorization-related errors."""

    def __init__(self, message: str, resource: Optional[str] = None, action: Optional[str] = None):
        """
        Initialize the authorization error.

        Args:
            message: Error message
            resource: The resource that was being accessed
            action: The action that was being attempted
        """
        super().__init__(f"Authorization error: {message}")
        self.resource = resource
        self.action = action


class NotFoundError(BaseError):
    """Exception raised when a resource is not found."""

    def __init__(self, resource_type: str, resource_id: Any):
        """
        Initialize the not found error.

        Args:
            resource_type: Type of resource that wasn't found
            resource_id: ID of the resource that wasn't found
        """
        super().__init__(f"{resource_type} with ID {resource_id} not found")
        self.resource_type = resource_type
        self.resource_id = resource_id


class AttemptAlreadyCompletedError(BaseError):
    """Raised when a second submission targets an attempt that is already completed."""

    def __init__(self, attempt_id: Any):
        super().__init__(f"Attempt {attempt_id} has already been submitted")
        self.attempt_id = attempt_id
