"""Error codes and exception hierarchy.

Every business-rule violation is an AppError subclass raised from the
service layer; src.main turns it into the ApiResponse envelope.

Kind base classes (one per failure class the caller can act on):
  NotFoundError           404  referenced record missing or in the wrong state
  InvalidInputError       422  missing / non-positive amounts, empty fields
  ForbiddenError          403  admin-only action, self/admin targeting
  InsufficientBalanceError 422 purchase exceeds cached balance
  ConflictError           409  duplicate submission, name taken, item in use
  InfrastructureError     5xx  store / image host unavailable (retryable)

Code ranges:
  1xxx: Auth/User
  2xxx: Ledger
  3xxx: Quest
  4xxx: Shop
  5xxx: Notification
  9xxx: System
"""


class AppError(Exception):
    """Base application error."""

    retryable: bool = False

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


class NotFoundError(AppError):
    def __init__(self, code: int, message: str) -> None:
        super().__init__(code, message, 404)


class InvalidInputError(AppError):
    def __init__(self, code: int, message: str) -> None:
        super().__init__(code, message, 422)


class ForbiddenError(AppError):
    def __init__(self, code: int, message: str) -> None:
        super().__init__(code, message, 403)


class ConflictError(AppError):
    def __init__(self, code: int, message: str) -> None:
        super().__init__(code, message, 409)


class InfrastructureError(AppError):
    retryable = True


# --- 1xxx: Auth/User ---

class UserNameExistsError(ConflictError):
    def __init__(self, name: str) -> None:
        super().__init__(1001, f"User name already exists: {name}")


class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1003, "Invalid name or PIN", 401)


class InvalidRefreshTokenError(AppError):
    def __init__(self) -> None:
        super().__init__(1005, "Refresh token is invalid or expired", 401)


class UserNotFoundError(NotFoundError):
    def __init__(self, user_id: int) -> None:
        super().__init__(1006, f"User not found: {user_id}")


class AdminRequiredError(ForbiddenError):
    def __init__(self) -> None:
        super().__init__(1007, "Admin access required")


class InvalidUserError(InvalidInputError):
    def __init__(self, detail: str) -> None:
        super().__init__(1008, f"Invalid user: {detail}")


# --- 2xxx: Ledger ---

class InsufficientBalanceError(AppError):
    def __init__(self, required: int, available: int) -> None:
        super().__init__(
            2001,
            f"Insufficient balance: required {required}, available {available}",
            422,
        )


class InvalidAmountError(InvalidInputError):
    def __init__(self, amount: int | None) -> None:
        super().__init__(2002, f"Amount must be a positive integer, got {amount}")


class SelfTargetError(ForbiddenError):
    def __init__(self) -> None:
        super().__init__(2003, "You can't respect or disrespect yourself")


class AdminTargetError(ForbiddenError):
    def __init__(self) -> None:
        super().__init__(2004, "You can't respect or disrespect admins")


class AdminParticipationError(ForbiddenError):
    def __init__(self, action: str) -> None:
        super().__init__(2005, f"Admins can't {action}")


# --- 3xxx: Quest ---

class QuestNotFoundError(NotFoundError):
    def __init__(self, quest_id: int) -> None:
        super().__init__(3001, f"Quest not found or not active: {quest_id}")


class CompletionNotFoundError(NotFoundError):
    def __init__(self, completion_id: int) -> None:
        super().__init__(3002, f"Pending quest completion not found: {completion_id}")


class QuestAlreadyPendingError(ConflictError):
    def __init__(self, quest_id: int) -> None:
        super().__init__(3003, f"Quest {quest_id} is already submitted for approval")


class QuestAlreadyCompletedError(ConflictError):
    def __init__(self, quest_id: int) -> None:
        super().__init__(3004, f"Quest {quest_id} is already completed")


class InvalidQuestError(InvalidInputError):
    def __init__(self, detail: str) -> None:
        super().__init__(3005, f"Invalid quest: {detail}")


# --- 4xxx: Shop ---

class ItemNotFoundError(NotFoundError):
    def __init__(self, item_id: int) -> None:
        super().__init__(4001, f"Shop item not found: {item_id}")


class PurchaseNotFoundError(NotFoundError):
    def __init__(self, purchase_id: int) -> None:
        super().__init__(4002, f"Pending purchase not found: {purchase_id}")


class ItemInUseError(ConflictError):
    def __init__(self, item_id: int) -> None:
        super().__init__(4003, f"Shop item {item_id} has purchases and can't be deleted")


class InvalidItemError(InvalidInputError):
    def __init__(self, detail: str) -> None:
        super().__init__(4005, f"Invalid shop item: {detail}")


# --- 5xxx: Notification ---

class NotificationNotFoundError(NotFoundError):
    def __init__(self, notification_id: int) -> None:
        super().__init__(5001, f"Notification not found: {notification_id}")


# --- 9xxx: System ---

class RateLimitError(AppError):
    def __init__(self) -> None:
        super().__init__(9001, "Rate limit exceeded", 429)


class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)


class StoreUnavailableError(InfrastructureError):
    def __init__(self, detail: str = "Database unavailable") -> None:
        super().__init__(9003, detail, 503)


class ImageUploadError(InfrastructureError):
    def __init__(self, detail: str) -> None:
        super().__init__(9004, f"Image upload failed: {detail}", 502)


class LedgerInvariantError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(9005, f"Ledger invariant violated: {detail}", 500)
