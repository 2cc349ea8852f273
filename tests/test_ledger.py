from datetime import datetime
from unittest.mock import patch

import pytest

from models.expense_model import Expense
from models.income_model import REF_MANUAL
from utils.errors import ValidationError, NotFoundError
from utils.ledger import (
    add_manual_income, add_expense, delete_expense, list_income, list_expenses,
    ledger_summary, resolve_summary_range
)


@pytest.fixture
def accountant(users, as_actor):
    return as_actor(users["accountant"])


class TestEntries:
    def test_manual_income(self, accountant):
        income = add_manual_income(accountant, {
            "date": "2025-08-01", "source": "Workshop", "amount": "1500.50", "note": "Weekend seminar"
        })

        assert income.ref_type == REF_MANUAL
        assert income.ref_id is None
        assert float(income.amount) == 1500.5
        assert list_income()[0].id == income.id

    def test_manual_income_needs_date_source_amount(self, accountant):
        with pytest.raises(ValidationError):
            add_manual_income(accountant, {"date": "2025-08-01", "amount": 100})
        with pytest.raises(ValidationError):
            add_manual_income(accountant, {"date": "2025-08-01", "source": "Workshop", "amount": 0})

    def test_two_manual_rows_do_not_collide(self, accountant):
        add_manual_income(accountant, {"date": "2025-08-01", "source": "Workshop", "amount": 100})
        add_manual_income(accountant, {"date": "2025-08-02", "source": "Workshop", "amount": 200})
        assert len(list_income()) == 2

    def test_expense_lifecycle(self, accountant):
        expense = add_expense(accountant, {"date": "2025-08-03", "purpose": "Office rent", "amount": 20000})
        assert [e.id for e in list_expenses()] == [expense.id]

        delete_expense(accountant, expense.id)
        assert Expense.query.count() == 0

        with pytest.raises(NotFoundError):
            delete_expense(accountant, expense.id)

    def test_expense_needs_purpose(self, accountant):
        with pytest.raises(ValidationError):
            add_expense(accountant, {"date": "2025-08-03", "amount": 20000})


class TestSummary:
    def test_totals_and_daily_series(self, accountant):
        add_manual_income(accountant, {"date": "2025-08-01T09:00:00", "source": "Fee", "amount": 5000})
        add_manual_income(accountant, {"date": "2025-08-01T15:00:00", "source": "Fee", "amount": 2500})
        add_manual_income(accountant, {"date": "2025-08-05", "source": "Workshop", "amount": 1000})
        add_expense(accountant, {"date": "2025-08-02", "purpose": "Rent", "amount": 3000})
        add_expense(accountant, {"date": "2025-09-15", "purpose": "Ads", "amount": 999})

        summary = ledger_summary("2025-08-01", "2025-08-31")

        assert summary["totalIncome"] == 8500
        assert summary["totalExpense"] == 3000
        assert summary["profit"] == 5500
        assert summary["incomeSeries"] == [
            {"date": "2025-08-01", "amount": 7500},
            {"date": "2025-08-05", "amount": 1000},
        ]
        assert summary["expenseSeries"] == [{"date": "2025-08-02", "amount": 3000}]

    def test_date_only_end_is_inclusive(self, accountant):
        add_expense(accountant, {"date": "2025-08-31T18:30:00", "purpose": "Rent", "amount": 100})

        assert ledger_summary("2025-08-01", "2025-08-31")["totalExpense"] == 100
        assert ledger_summary("2025-08-01", "2025-08-31T12:00:00")["totalExpense"] == 0

    def test_default_range_starts_at_office_new_year(self, app):
        """Midnight on 1 January in Dhaka is 18:00 UTC on 31 December"""
        with patch("utils.ledger.utc_now", return_value=datetime(2025, 8, 10, 6, 0)):
            start, end = resolve_summary_range()

        assert start == datetime(2024, 12, 31, 18, 0)
        assert end > datetime(2025, 8, 10, 6, 0)

    def test_default_range_year_follows_office_time(self, app):
        with patch("utils.ledger.utc_now", return_value=datetime(2025, 12, 31, 20, 0)):
            start, _ = resolve_summary_range()

        assert start == datetime(2025, 12, 31, 18, 0)

    def test_default_range_includes_early_new_year_entries(self, accountant):
        # 02:00 on 1 January office time, stored as 20:00 UTC the day before
        add_expense(accountant, {"date": "2024-12-31T20:00:00Z", "purpose": "Rent", "amount": 700})

        with patch("utils.ledger.utc_now", return_value=datetime(2025, 3, 1, 6, 0)):
            summary = ledger_summary()

        assert summary["totalExpense"] == 700
        assert summary["from"] == "2025-01-01"

    def test_text_fields_must_be_text(self, accountant):
        with pytest.raises(ValidationError):
            add_expense(accountant, {"date": "2025-08-03", "purpose": ["Rent"], "amount": 100})
        with pytest.raises(ValidationError):
            add_manual_income(accountant, {"date": "2025-08-03", "source": "Fee", "amount": 100, "note": 5})

    def test_bad_range(self, app):
        with pytest.raises(ValidationError):
            resolve_summary_range("yesterday", None)
        with pytest.raises(ValidationError):
            resolve_summary_range("2025-08-10", "2025-08-01")


def test_summary_endpoint_roles(login_as, users):
    client = login_as(users["admin"])
    assert client.get("/accounting/summary?from=2025-01-01&to=2025-12-31").status_code == 200
    assert client.post("/accounting/expense", json={"date": "2025-08-01", "purpose": "Rent", "amount": 1}).status_code == 403

    login_as(users["admission"])
    assert client.get("/accounting/summary").status_code == 403
