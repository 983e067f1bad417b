"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Auth
  2xxx: Account
  3xxx: Billing
  9xxx: System
"""


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 1xxx: Auth ---

class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1001, "Invalid or expired token", 401)


# --- 2xxx: Account ---

class AccountNotFoundError(AppError):
    def __init__(self, user_id: str) -> None:
        super().__init__(2001, f"Account not found for user {user_id}", 404)


class AccountStoreError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(2002, f"Account store failure: {detail}", 500)


# --- 3xxx: Billing ---

class AuthenticationError(AppError):
    """Webhook signature is missing or does not match the raw body."""

    def __init__(self, detail: str = "Invalid signature") -> None:
        super().__init__(3001, detail, 400)


class MalformedEventError(AppError):
    """Event body or its required metadata is missing/invalid."""

    def __init__(self, detail: str) -> None:
        super().__init__(3002, f"Malformed event: {detail}", 400)


class UnresolvedPlanError(AppError):
    def __init__(self, price_id: str | None) -> None:
        super().__init__(3003, f"Unknown price id: {price_id}", 422)
        self.price_id = price_id


class ProcessorError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(3004, f"Payment processor error: {detail}", 502)


class BillingNotConfiguredError(AppError):
    def __init__(self) -> None:
        super().__init__(3005, "Payment processor is not configured", 503)


class NoSubscriptionError(AppError):
    def __init__(self, user_id: str) -> None:
        super().__init__(3006, f"No subscription on record for user {user_id}", 404)


# --- 9xxx: System ---

class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)
