"""
Income and expense ledger for the Accounting team

Manual entries, expense housekeeping and the income/expense summary used by
the accounting dashboard. Admission fee income is booked by utils.fee_workflow.
"""

import logging
from datetime import datetime, timedelta

from sqlalchemy import func

from init_db import db
from models.expense_model import Expense
from models.income_model import Income, REF_MANUAL
from utils.errors import ValidationError, NotFoundError
from utils.timezone_helper import utc_now, utc_to_local, local_to_utc, parse_iso_datetime
from utils.validators import text_field, parse_amount, parse_required_date

logger = logging.getLogger(__name__)


def _required(data, *fields):
    for field in fields:
        value = data.get(field)
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValidationError(f"{', '.join(fields)} required")


def add_manual_income(actor, data):
    """Record income that does not come from an admission fee"""
    _required(data, "date", "source", "amount")

    income = Income(
        date=parse_required_date(data.get("date"), "date"),
        source=text_field(data.get("source"), "source"),
        amount=parse_amount(data.get("amount")),
        ref_type=REF_MANUAL,
        ref_id=None,
        added_by_user_id=actor.id,
        note=text_field(data.get("note"), "note"),
    )
    db.session.add(income)
    db.session.commit()

    logger.info(f"Manual income {income.id} ({income.amount}, {income.source}) added by user {actor.id}")
    return income


def list_income():
    return Income.query.order_by(Income.date.desc(), Income.id.desc()).all()


def add_expense(actor, data):
    _required(data, "date", "purpose", "amount")

    expense = Expense(
        date=parse_required_date(data.get("date"), "date"),
        purpose=text_field(data.get("purpose"), "purpose"),
        amount=parse_amount(data.get("amount")),
        note=text_field(data.get("note"), "note"),
        added_by_user_id=actor.id,
    )
    db.session.add(expense)
    db.session.commit()

    logger.info(f"Expense {expense.id} ({expense.amount}, {expense.purpose}) added by user {actor.id}")
    return expense


def list_expenses():
    return Expense.query.order_by(Expense.date.desc(), Expense.id.desc()).all()


def delete_expense(actor, expense_pk):
    try:
        expense = db.session.get(Expense, int(expense_pk))
    except (TypeError, ValueError):
        expense = None
    if not expense:
        raise NotFoundError("Expense not found")

    db.session.delete(expense)
    db.session.commit()
    logger.info(f"Expense {expense_pk} deleted by user {actor.id}")


def _is_date_only(value):
    return isinstance(value, str) and len(value.strip()) == 10


def resolve_summary_range(date_from=None, date_to=None, now=None):
    """
    Work out the [start, end) window for the summary

    Defaults to local midnight on 1 January of the current office year,
    expressed in stored UTC, through now. A date-only `to` covers that
    whole day.
    """
    now = now or utc_now()
    try:
        start = parse_iso_datetime(date_from)
        end = parse_iso_datetime(date_to)
    except (TypeError, ValueError):
        raise ValidationError("from/to must be ISO dates")

    if start is None:
        start = local_to_utc(datetime(utc_to_local(now).year, 1, 1))
    if end is None:
        end = now + timedelta(seconds=1)
    elif _is_date_only(date_to):
        end = end + timedelta(days=1)

    if end <= start:
        raise ValidationError("to must not be before from")
    return start, end


def _daily_series(model, start, end):
    day = func.date(model.date)
    rows = (
        db.session.query(day.label("day"), func.sum(model.amount).label("amount"))
        .filter(model.date >= start, model.date < end)
        .group_by(day)
        .order_by(day)
        .all()
    )
    # SQLite returns the day as text, other backends as a date
    return [{"date": str(row.day), "amount": float(row.amount or 0)} for row in rows]


def ledger_summary(date_from=None, date_to=None):
    """
    Totals and per-day series of income and expense over a date range

    Returns:
        dict: totalIncome, totalExpense, profit, incomeSeries, expenseSeries
    """
    start, end = resolve_summary_range(date_from, date_to)

    income_series = _daily_series(Income, start, end)
    expense_series = _daily_series(Expense, start, end)

    total_income = round(sum(point["amount"] for point in income_series), 2)
    total_expense = round(sum(point["amount"] for point in expense_series), 2)

    return {
        # The default start is stored UTC; report it as the office date
        "from": (start if date_from else utc_to_local(start)).date().isoformat(),
        "to": (end - timedelta(seconds=1)).date().isoformat(),
        "totalIncome": total_income,
        "totalExpense": total_expense,
        "profit": round(total_income - total_expense, 2),
        "incomeSeries": income_series,
        "expenseSeries": expense_series,
    }
