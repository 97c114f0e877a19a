"""
Create test user (с пустым профилем и нулевой сводкой)
"""
from budgetbook.infrastructure.db.session import get_db
from budgetbook.application.accounts import RegisterUserUseCase
from budgetbook.auth import get_user_by_email
from budgetbook.errors import BudgetBookError

EMAIL = "test@example.com"
PASSWORD = "password123"

db = next(get_db())

try:
    existing = get_user_by_email(db, EMAIL)
    if existing:
        print(f"User already exists: {EMAIL} (ID: {existing.id})")
    else:
        user = RegisterUserUseCase(db).execute(EMAIL, PASSWORD, name="Тестовый пользователь")
        print("Created user:")
        print(f"  ID: {user.id}")
        print(f"  Email: {EMAIL}")
        print(f"  Password: {PASSWORD}")
except BudgetBookError as e:
    print(f"✗ ОШИБКА: {e.message}")
    raise SystemExit(1)

finally:
    db.close()
