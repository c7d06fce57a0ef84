"""Dashboard totals, filtered report aggregates and the Excel export."""
import io
from collections import OrderedDict
from datetime import datetime, time, timedelta
from typing import List, Optional

import openpyxl
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter
from sqlalchemy import func
from sqlalchemy.orm import Query, Session

import schemas
from models import Expense, ExpenseType, PaymentMode

DAILY_TOTALS_LIMIT = 15

EXPORT_COLUMNS = [
    ("Date", 12),
    ("Branch", 15),
    ("Expense Type", 15),
    ("Amount", 10),
    ("Mode of Payment", 12),
    ("Payment To", 20),
    ("Vehicle", 15),
    ("Remarks", 40),
]


def _sum_between(db: Session, owner_id: int, start: Optional[datetime], end: Optional[datetime]) -> float:
    q = db.query(func.coalesce(func.sum(Expense.amount), 0)).filter(Expense.user_id == owner_id)
    if start is not None:
        q = q.filter(Expense.date >= start)
    if end is not None:
        q = q.filter(Expense.date < end)
    return float(q.scalar() or 0)


def percent_change(current: float, previous: float) -> float:
    if previous == 0:
        return 0.0 if current == 0 else 100.0
    return round((current - previous) / previous * 100, 2)


def period_totals(db: Session, owner_id: int, now: Optional[datetime] = None) -> schemas.PeriodTotalsOut:
    now = now or datetime.utcnow()
    today_start = datetime.combine(now.date(), time.min)
    tomorrow = today_start + timedelta(days=1)
    # weeks start on Sunday
    week_start = today_start - timedelta(days=(now.weekday() + 1) % 7)
    month_start = today_start.replace(day=1)
    if month_start.month == 12:
        next_month = month_start.replace(year=month_start.year + 1, month=1)
    else:
        next_month = month_start.replace(month=month_start.month + 1)

    total_today = _sum_between(db, owner_id, today_start, tomorrow)
    total_week = _sum_between(db, owner_id, week_start, week_start + timedelta(days=7))
    total_month = _sum_between(db, owner_id, month_start, next_month)
    all_time = _sum_between(db, owner_id, None, None)

    return schemas.PeriodTotalsOut(
        total_today=total_today,
        total_this_week=total_week,
        total_this_month=total_month,
        all_time_total=all_time,
        change_today=percent_change(total_today, total_week - total_today),
        change_this_week=percent_change(total_week, total_month - total_week),
        change_this_month=percent_change(total_month, all_time - total_month),
    )


def filtered_query(db: Session, owner_id: int, filters: schemas.ReportFilters) -> Query:
    q = db.query(Expense).filter(Expense.user_id == owner_id)
    if filters.branch:
        q = q.filter(Expense.branch == filters.branch)
    if filters.expense_type:
        q = q.filter(Expense.expense_type == filters.expense_type)
    if filters.mode_of_payment:
        q = q.filter(Expense.mode_of_payment == filters.mode_of_payment)
    if filters.date_from:
        q = q.filter(Expense.date >= datetime.combine(filters.date_from, time.min))
    if filters.date_to:
        # inclusive of the whole end day
        q = q.filter(Expense.date < datetime.combine(filters.date_to, time.min) + timedelta(days=1))
    return q


def build_report(db: Session, owner_id: int, filters: schemas.ReportFilters) -> schemas.ReportOut:
    expenses = filtered_query(db, owner_id, filters).order_by(Expense.date.asc(), Expense.id.asc()).all()

    total_amount = float(sum(e.amount for e in expenses))
    total_transactions = len(expenses)

    by_type = (
        filtered_query(db, owner_id, filters)
        .with_entities(Expense.expense_type, func.sum(Expense.amount).label("total"))
        .group_by(Expense.expense_type)
        .order_by(func.sum(Expense.amount).desc())
        .all()
    )

    daily = OrderedDict()
    for e in expenses:
        day = e.date.date()
        daily[day] = daily.get(day, 0.0) + float(e.amount)
    daily_totals = [schemas.DailyTotal(date=d, total=t) for d, t in daily.items()][-DAILY_TOTALS_LIMIT:]

    return schemas.ReportOut(
        total_amount=total_amount,
        total_transactions=total_transactions,
        average_expense=total_amount / total_transactions if total_transactions else 0.0,
        highest_expense=max((float(e.amount) for e in expenses), default=0.0),
        by_type=[schemas.TypeTotal(expense_type=t, total=float(total)) for t, total in by_type],
        daily_totals=daily_totals,
        available=available_values(db, owner_id),
    )


def available_values(db: Session, owner_id: int) -> dict:
    """Distinct branches, types and payment modes the owner has used, for filter pickers."""
    def distinct(column) -> List:
        rows = db.query(column).filter(Expense.user_id == owner_id).distinct().order_by(column).all()
        return [r[0] for r in rows]

    return {
        "branches": distinct(Expense.branch),
        "expenseTypes": [t.value if isinstance(t, ExpenseType) else t for t in distinct(Expense.expense_type)],
        "modesOfPayment": [m.value if isinstance(m, PaymentMode) else m for m in distinct(Expense.mode_of_payment)],
    }


def export_workbook(db: Session, owner_id: int, filters: schemas.ReportFilters) -> io.BytesIO:
    expenses = filtered_query(db, owner_id, filters).order_by(Expense.date.desc(), Expense.id.desc()).all()

    workbook = openpyxl.Workbook()
    sheet = workbook.active
    sheet.title = "Expenses"

    sheet.append([title for title, _ in EXPORT_COLUMNS])
    for cell in sheet[1]:
        cell.font = Font(bold=True)
    for index, (_, width) in enumerate(EXPORT_COLUMNS, start=1):
        sheet.column_dimensions[get_column_letter(index)].width = width

    for exp in expenses:
        sheet.append([
            exp.date.date().isoformat(),
            exp.branch,
            exp.expense_type.value,
            exp.amount,
            exp.mode_of_payment.value,
            exp.payment_to,
            exp.vehicle_number or "-",
            exp.remarks or "-",
        ])

    stream = io.BytesIO()
    workbook.save(stream)
    stream.seek(0)
    return stream


def export_filename(today: Optional[datetime] = None) -> str:
    today = today or datetime.utcnow()
    return f"Expense_Report_{today.date().isoformat()}.xlsx"
