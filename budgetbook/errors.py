"""
Error taxonomy shared by use cases and API handlers.

Каждая ошибка несёт HTTP-статус и короткое сообщение для пользователя.
Диагностика (коды драйвера БД и т.п.) остаётся только в логах сервера.
"""


class BudgetBookError(Exception):
    """Base class for all errors reported to API clients"""
    status_code = 500
    message = "Внутренняя ошибка сервера"

    def __init__(self, message: str | None = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"message": self.message, "field": None}


class Unauthenticated(BudgetBookError):
    status_code = 401
    message = "Требуется авторизация"


class ValidationError(BudgetBookError):
    """Invalid client input for a specific field"""
    status_code = 400

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(reason)

    def to_dict(self) -> dict:
        return {"message": self.message, "field": self.field}


class NotFound(BudgetBookError):
    status_code = 404
    message = "Не найдено"


class Forbidden(BudgetBookError):
    status_code = 403
    message = "Нет доступа"


class Conflict(BudgetBookError):
    status_code = 409
    message = "Конфликт данных"


class StorageUnavailable(BudgetBookError):
    """Storage call failed; the original exception is chained as __cause__"""
    status_code = 503
    message = "Хранилище временно недоступно, попробуйте позже"


class UnexpectedError(BudgetBookError):
    status_code = 500
