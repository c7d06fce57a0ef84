"""Owner-scoped CRUD for expense records.

Every lookup matches on both the record id and the owning user, so a record
that belongs to someone else is indistinguishable from one that does not exist.
"""
import logging
from datetime import datetime
from typing import List

from sqlalchemy.orm import Session

import schemas
from errors import NotFoundError
from models import Expense

logger = logging.getLogger(__name__)


def _apply_fields(expense: Expense, payload: schemas.ExpenseIn) -> None:
    expense.branch = payload.branch
    expense.expense_type = payload.expense_type
    expense.amount = payload.amount
    expense.mode_of_payment = payload.mode_of_payment
    expense.payment_to = payload.payment_to
    expense.vehicle_number = payload.vehicle_number
    expense.remarks = payload.remarks


def _get_owned(db: Session, owner_id: int, expense_id: int) -> Expense:
    expense = (
        db.query(Expense)
        .filter(Expense.id == expense_id, Expense.user_id == owner_id)
        .first()
    )
    if expense is None:
        raise NotFoundError()
    return expense


def create_expense(db: Session, owner_id: int, payload: schemas.ExpenseIn) -> Expense:
    now = datetime.utcnow()
    expense = Expense(user_id=owner_id, date=payload.date or now, created_at=now, updated_at=now)
    _apply_fields(expense, payload)
    db.add(expense)
    db.commit()
    db.refresh(expense)
    logger.info("User %s added expense %s (%s %.2f)", owner_id, expense.id, expense.expense_type.value, expense.amount)
    return expense


def list_expenses(db: Session, owner_id: int) -> List[Expense]:
    return (
        db.query(Expense)
        .filter(Expense.user_id == owner_id)
        .order_by(Expense.date.desc(), Expense.id.desc())
        .all()
    )


def update_expense(db: Session, owner_id: int, expense_id: int, payload: schemas.ExpenseIn) -> Expense:
    expense = _get_owned(db, owner_id, expense_id)
    # an omitted date leaves the stored one in place
    if payload.date is not None:
        expense.date = payload.date
    _apply_fields(expense, payload)
    db.commit()
    db.refresh(expense)
    logger.info("User %s updated expense %s", owner_id, expense.id)
    return expense


def delete_expense(db: Session, owner_id: int, expense_id: int) -> None:
    expense = _get_owned(db, owner_id, expense_id)
    db.delete(expense)
    db.commit()
    logger.info("User %s deleted expense %s", owner_id, expense_id)
