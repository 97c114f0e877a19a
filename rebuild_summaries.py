"""
Пересобрать budget_summaries из ленты операций

Usage:
    python rebuild_summaries.py            # все пользователи
    python rebuild_summaries.py <user_id>  # один пользователь
"""
import sys
import uuid

from budgetbook.infrastructure.db.session import get_db
from budgetbook.infrastructure.db.models import User
from budgetbook.application.budget_summary import SummaryService
from budgetbook.config import SUMMARY_STRATEGY_INCREMENTAL

db = next(get_db())

try:
    if len(sys.argv) > 1:
        user_ids = [uuid.UUID(sys.argv[1])]
    else:
        user_ids = [row.id for row in db.query(User.id).all()]

    service = SummaryService(db, strategy=SUMMARY_STRATEGY_INCREMENTAL)
    drifted = 0

    for user_id in user_ids:
        report = service.check_consistency(user_id)
        if report.is_consistent:
            continue
        drifted += 1
        view = service.rebuild(user_id)
        print(
            f"  - {user_id}: income {report.stored.income} -> {view.income}, "
            f"expense {report.stored.expense} -> {view.expense}"
        )

    print(f"✓ Проверено пользователей: {len(user_ids)}, пересобрано: {drifted}")

except Exception as e:
    print(f"✗ ОШИБКА: {e}")
    import traceback
    traceback.print_exc()
    sys.exit(1)

finally:
    db.close()
