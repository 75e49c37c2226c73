"""
Custom Exceptions for the Billing Engine

Hierarchical exception classes for proper error handling across layers.
"""

from typing import Optional, Dict, Any


class BillingEngineError(Exception):
    """Base exception for all billing engine errors."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        original_error: Optional[Exception] = None
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.original_error = original_error

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details
        }


class ValidationError(BillingEngineError):
    """Raised when input validation fails."""
    pass


class InvalidPaymentDateError(ValidationError):
    """Raised when a webhook's next_payment_date is missing or not a real DD/MM/YYYY date."""

    def __init__(
        self,
        message: str,
        value: Optional[str] = None,
        original_error: Optional[Exception] = None
    ):
        details = {}
        if value is not None:
            details["next_payment_date"] = value
        super().__init__(message, details, original_error)


class DatabaseError(BillingEngineError):
    """Raised when database operations fail."""

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        table: Optional[str] = None,
        original_error: Optional[Exception] = None
    ):
        details = {}
        if operation:
            details["operation"] = operation
        if table:
            details["table"] = table
        super().__init__(message, details, original_error)


class NotFoundError(DatabaseError):
    """Raised when a requested resource is not found."""
    pass


class SubscriptionNotFoundError(NotFoundError):
    """Raised when a renewal references an unknown external subscription id."""

    def __init__(self, subscription_id: str, message: Optional[str] = None):
        super().__init__(
            message or f"Subscription not found: {subscription_id}. Cannot process renewal.",
            operation="find_by_subscription_id",
            table="subscriptions",
        )
        self.details["subscription_id"] = subscription_id


class AddOnNotFoundError(NotFoundError):
    """Raised when an add-on renewal cannot be matched to an add-on row."""

    def __init__(self, subscription_id: str):
        super().__init__(
            f"No addon found for subscription {subscription_id}. Cannot process addon renewal.",
            operation="find_renewable_add_on",
            table="add_ons",
        )
        self.details["subscription_id"] = subscription_id


class DuplicateError(DatabaseError):
    """Raised when attempting to create a duplicate resource."""
    pass


class DuplicatePaymentError(DuplicateError):
    """Raised when a payment with the same transaction id already exists."""

    def __init__(self, transaction_id: str, original_error: Optional[Exception] = None):
        super().__init__(
            f"Payment already processed: {transaction_id}",
            operation="create",
            table="payments",
            original_error=original_error,
        )
        self.details["transaction_id"] = transaction_id


class RenewalProcessingError(BillingEngineError):
    """Raised when a renewal cannot be applied to the referenced records."""
    pass


class GatewayError(BillingEngineError):
    """Raised when the payment gateway API call fails."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        original_error: Optional[Exception] = None
    ):
        details = {}
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(message, details, original_error)


class NotificationError(BillingEngineError):
    """Raised when an outbound email cannot be delivered."""
    pass


class ConfigurationError(BillingEngineError):
    """Raised when configuration is missing or invalid."""

    def __init__(
        self,
        message: str,
        missing_keys: Optional[list] = None,
        original_error: Optional[Exception] = None
    ):
        details = {}
        if missing_keys:
            details["missing_keys"] = missing_keys
        super().__init__(message, details, original_error)
