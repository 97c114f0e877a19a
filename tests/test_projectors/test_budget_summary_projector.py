"""
Tests for BudgetSummaryProjector
"""
import threading
import uuid
from concurrent.futures import ThreadPoolExecutor
from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.dialects import postgresql
from sqlalchemy.orm import sessionmaker

from budgetbook.infrastructure.db.session import Base
from budgetbook.infrastructure.db.models import BudgetSummary, Transaction, User
from budgetbook.readmodels.projectors.budget_summary import BudgetSummaryProjector, compute_ledger_totals


def _tx(user, kind, amount, day=1):
    return Transaction(
        id=uuid.uuid4(),
        user_id=user.id,
        kind=kind,
        amount=Decimal(amount),
        category="기타",
        occurred_on=date(2026, 10, day),
    )


def _reload(db, user):
    db.expire_all()
    return db.get(BudgetSummary, user.id)


def test_ensure_creates_zero_row_once(db_session, owner):
    projector = BudgetSummaryProjector(db_session)

    first = projector.ensure(owner.id)
    db_session.commit()
    second = projector.ensure(owner.id)

    assert first is second
    assert db_session.query(BudgetSummary).count() == 1
    row = _reload(db_session, owner)
    assert row.income == 0
    assert row.expense == 0
    assert row.balance == 0
    assert row.expected_remainder == 0
    assert row.currency == "KRW"


def test_apply_created_and_deleted(db_session, owner):
    projector = BudgetSummaryProjector(db_session)
    salary = _tx(owner, "income", "3200000")
    rent = _tx(owner, "expense", "1800000")

    projector.apply_created(salary)
    projector.apply_created(rent)
    db_session.commit()

    row = _reload(db_session, owner)
    assert row.income == Decimal("3200000")
    assert row.expense == Decimal("1800000")
    assert row.balance == Decimal("1400000")
    assert row.expected_remainder == Decimal("1400000")

    projector.apply_deleted(rent)
    db_session.commit()

    row = _reload(db_session, owner)
    assert row.expense == 0
    assert row.balance == Decimal("3200000")


def test_apply_updated_moves_amount_between_kinds(db_session, owner):
    projector = BudgetSummaryProjector(db_session)
    projector.apply_created(_tx(owner, "expense", "1000"))

    projector.apply_updated(owner.id, "expense", Decimal("1000"), "income", Decimal("1500"))
    db_session.commit()

    row = _reload(db_session, owner)
    assert row.income == Decimal("1500")
    assert row.expense == 0
    assert row.balance == Decimal("1500")


def test_shift_never_goes_below_zero(db_session, owner):
    projector = BudgetSummaryProjector(db_session)
    projector.apply_created(_tx(owner, "income", "100"))

    projector.apply_deleted(_tx(owner, "income", "250"))
    db_session.commit()

    row = _reload(db_session, owner)
    assert row.income == 0
    assert row.balance == 0


def test_shared_expense_affects_expected_remainder_only(db_session, owner):
    projector = BudgetSummaryProjector(db_session)
    projector.apply_created(_tx(owner, "income", "3200000"))
    projector.apply_created(_tx(owner, "expense", "1800000"))

    projector.set_shared_expense(owner.id, Decimal("400000"))
    projector.apply_created(_tx(owner, "expense", "100000"))
    db_session.commit()

    row = _reload(db_session, owner)
    assert row.shared_expense == Decimal("400000")
    assert row.balance == Decimal("1300000")
    assert row.expected_remainder == Decimal("900000")


def test_rebuild_restores_totals_from_ledger(db_session, owner):
    db_session.add_all([
        _tx(owner, "income", "3200000", day=1),
        _tx(owner, "expense", "1800000", day=2),
        _tx(owner, "expense", "200000", day=3),
    ])
    projector = BudgetSummaryProjector(db_session)
    projector.set_shared_expense(owner.id, Decimal("100000"))
    db_session.commit()

    row = projector.rebuild(owner.id)
    db_session.commit()

    assert row.income == Decimal("3200000")
    assert row.expense == Decimal("2000000")
    assert row.balance == Decimal("1200000")
    assert row.shared_expense == Decimal("100000")
    assert row.expected_remainder == Decimal("1100000")


def test_rebuild_locks_summary_row_before_reading_ledger(db_engine, db_session, owner):
    BudgetSummaryProjector(db_session).ensure(owner.id)
    db_session.add(_tx(owner, "income", "1000"))
    db_session.commit()

    statements = []

    def _capture(conn, clauseelement, multiparams, params, execution_options):
        if hasattr(clauseelement, "compile"):
            statements.append(str(clauseelement.compile(dialect=postgresql.dialect())))

    event.listen(db_engine, "before_execute", _capture)
    try:
        BudgetSummaryProjector(db_session).rebuild(owner.id)
    finally:
        event.remove(db_engine, "before_execute", _capture)
    db_session.commit()

    lock_at = next(i for i, sql in enumerate(statements) if "FOR UPDATE" in sql)
    sum_at = next(i for i, sql in enumerate(statements) if "sum(transactions.amount)" in sql)
    assert "budget_summaries" in statements[lock_at]
    assert lock_at < sum_at
    assert _reload(db_session, owner).income == Decimal("1000")


def test_compute_ledger_totals_ignores_other_users(db_session, owner, other_owner):
    db_session.add_all([
        _tx(owner, "income", "500"),
        _tx(other_owner, "income", "9999"),
        _tx(other_owner, "expense", "1"),
    ])
    db_session.commit()

    totals = compute_ledger_totals(db_session, owner.id)

    assert totals.income == Decimal("500")
    assert totals.expense == 0


# ---------------------------------------------------------------------------
# Параллельные изменения одного владельца
# ---------------------------------------------------------------------------

@pytest.fixture
def file_session_factory(tmp_path):
    """File SQLite: у каждого потока своё соединение"""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'budget.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(engine)
    yield sessionmaker(bind=engine)
    engine.dispose()


def test_concurrent_shifts_are_not_lost(file_session_factory):
    user_id = uuid.uuid4()
    with file_session_factory() as session:
        session.add(User(id=user_id, email="race@example.com", password_hash="x"))
        session.flush()
        BudgetSummaryProjector(session).ensure(user_id)
        session.commit()

    barrier = threading.Barrier(2)

    def record_income(amount):
        with file_session_factory() as session:
            projector = BudgetSummaryProjector(session)
            # обе сессии уже видят строку сводки со старыми суммами
            projector.ensure(user_id)
            barrier.wait(timeout=10)
            projector.apply_created(
                Transaction(user_id=user_id, kind="income", amount=Decimal(amount))
            )
            session.commit()

    with ThreadPoolExecutor(max_workers=2) as pool:
        futures = [pool.submit(record_income, amount) for amount in ("100", "200")]
        for future in futures:
            future.result()

    with file_session_factory() as session:
        row = session.get(BudgetSummary, user_id)
        assert row.income == Decimal("300")
        assert row.balance == Decimal("300")
