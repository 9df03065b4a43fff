class DomainError(Exception):
    """Business-rule failure. Rendered as ``{"error": message}``."""

    status_code = 500
    default_message = "An unexpected error occurred."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(DomainError):
    status_code = 400
    default_message = "Invalid request."


class AuthenticationError(DomainError):
    status_code = 401
    default_message = "Authentication required."


class AuthorizationError(DomainError):
    status_code = 403
    default_message = "Access denied."


class NotFound(DomainError):
    status_code = 404
    default_message = "Not found."


class WalletNotFound(NotFound):
    default_message = "Wallet not found."


class InvalidTransition(DomainError):
    status_code = 409
    default_message = "Booking is not in a state that allows this action."


class InsufficientFunds(DomainError):
    status_code = 400
    default_message = "Insufficient wallet balance."


class RequestAlreadyProcessed(DomainError):
    status_code = 409
    default_message = "Wallet request has already been processed."


class NotEligible(DomainError):
    status_code = 400
    default_message = "Cannot review unpaid or incomplete bookings."


class Conflict(DomainError):
    status_code = 409
    default_message = "Resource already exists."
