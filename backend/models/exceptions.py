"""
Domain exceptions.

Services raise these; main.py converts them to HTTP responses in one
place, so the service layer never imports FastAPI. Each exception
carries the request correlation ID so the error body, the log line and
the Sentry event can be matched up.
"""

from core.correlation import generate_correlation_id, get_correlation_id


class DomainException(Exception):
    """
    Base class for all domain exceptions.

    Attributes:
        message: User-readable error message.
        correlation_id: Request correlation ID (generated if none is bound).
    """

    def __init__(self, message: str, correlation_id: str | None = None):
        self.message = message
        self.correlation_id = (
            correlation_id or get_correlation_id() or generate_correlation_id()
        )
        super().__init__(self.message)


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    pass


class PermissionDeniedException(DomainException):
    """Raised when an authenticated caller lacks the required permission."""

    pass


class ValidationException(DomainException):
    """Raised when input is malformed, out of range or missing."""

    pass


class ConflictException(DomainException):
    """Raised when operation conflicts with existing data."""

    pass


class AuthenticationException(DomainException):
    """Raised when the caller is not authenticated (missing, invalid or expired token)."""

    pass


class AlreadyExistsException(DomainException):
    """Raised when trying to create a resource that already exists."""

    pass


class BusinessRuleException(DomainException):
    """Raised when a business rule is violated."""

    pass


# Report lifecycle


class ReportNotFoundException(NotFoundException):
    """Report not found."""

    def __init__(self, report_id: int) -> None:
        super().__init__(f"Report {report_id} not found")
        self.report_id = report_id


class InvalidTransitionException(BusinessRuleException):
    """
    Raised when a status change is not allowed from the report's current state.

    Distinct from ValidationException: the request itself is well formed,
    but the report has moved on (or never could get there). Clients should
    refresh the report rather than fix the request.
    """

    def __init__(self, report_id: int, current_status: str, target_status: str) -> None:
        super().__init__(
            f"Report {report_id} cannot move from '{current_status}' to '{target_status}'"
        )
        self.report_id = report_id
        self.current_status = current_status
        self.target_status = target_status


class DailyReportLimitExceededException(BusinessRuleException):
    """Raised when a reporter has used up today's submission quota."""

    def __init__(self, limit: int) -> None:
        super().__init__(
            f"Daily report limit reached ({limit} per day). Please try again tomorrow."
        )
        self.limit = limit


class CannotDeleteReportException(PermissionDeniedException):
    """Raised when a reporter tries to delete a report they cannot remove."""

    pass


# Accounts


class AdminNotFoundException(NotFoundException):
    """Admin account not found."""

    def __init__(self, admin_id: int) -> None:
        super().__init__(f"Admin {admin_id} not found")
        self.admin_id = admin_id


class UserNotFoundException(NotFoundException):
    """Reporter account not found."""

    def __init__(self, user_id: int) -> None:
        super().__init__(f"User {user_id} not found")
        self.user_id = user_id


class UsernameTakenException(AlreadyExistsException):
    """Username (or email) already registered."""

    pass


class InvalidCredentialsException(AuthenticationException):
    """Invalid username or password."""

    def __init__(self) -> None:
        super().__init__("Invalid username or password")


class InactiveAccountException(AuthenticationException):
    """Account is deactivated or frozen."""

    def __init__(self, message: str = "Account is deactivated") -> None:
        super().__init__(message)


class InsufficientPermissionsException(PermissionDeniedException):
    """Caller does not hold the permission the action requires."""

    def __init__(self, permission: str | None = None, message: str | None = None) -> None:
        if message is None:
            message = (
                f"Access denied. Required permission: {permission}"
                if permission
                else "Access denied"
            )
        super().__init__(message)
        self.permission = permission


class SelfModificationException(BusinessRuleException):
    """Raised when an admin tries to delete, deactivate or demote their own account."""

    pass


class RegistrationClosedException(BusinessRuleException):
    """Raised when new reporter registrations are disabled."""

    def __init__(self) -> None:
        super().__init__("User registration is currently disabled")


# Settings


class SettingNotFoundException(NotFoundException):
    """System setting not found."""

    def __init__(self, key: str) -> None:
        super().__init__(f"Setting '{key}' not found")
        self.key = key


# Notifications


class NotificationNotFoundException(NotFoundException):
    """Notification not found, or owned by someone else."""

    def __init__(self, notification_id: int) -> None:
        super().__init__(f"Notification {notification_id} not found")
        self.notification_id = notification_id
