import logging
from contextlib import asynccontextmanager
from datetime import date, datetime

from fastapi import APIRouter, FastAPI, Depends, Query, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse
from sqlalchemy import text
from sqlalchemy.orm import Session
from typing import Optional

import crud
import reports
import schemas
import users
from config import get_settings
from database import get_db, init_db
from errors import register_error_handlers
from models import ExpenseType, PaymentMode
from security import clear_session_cookie, get_current_user, set_session_cookie

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger("expense-backend")


@asynccontextmanager
async def lifespan(_: FastAPI):
    init_db()
    logger.info("Expense Tracker API started (%s)", settings.environment)
    yield


app = FastAPI(title="Expense Tracker API", lifespan=lifespan)

# CORS: explicit origins plus the deployment preview domains, with cookies
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_origin_regex=settings.cors_origin_regex,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "Cookie"],
)

register_error_handlers(app)

user_router = APIRouter(prefix="/api/user", tags=["user"])
expense_router = APIRouter(prefix="/api/expense", tags=["expense"])


# ===== DEPS =====
def report_filters(
    branch: Optional[str] = Query(None),
    expense_type: Optional[ExpenseType] = Query(None, alias="expenseType"),
    mode_of_payment: Optional[PaymentMode] = Query(None, alias="modeOfPayment"),
    date_from: Optional[date] = Query(None, alias="dateFrom"),
    date_to: Optional[date] = Query(None, alias="dateTo"),
) -> schemas.ReportFilters:
    return schemas.ReportFilters(
        branch=branch,
        expense_type=expense_type,
        mode_of_payment=mode_of_payment,
        date_from=date_from,
        date_to=date_to,
    )


# ===== ROUTES =====
@app.get("/")
def home():
    return {
        "message": "Expense Tracker API is running!",
        "timestamp": datetime.utcnow().isoformat(),
    }


@app.get("/health")
def health(db: Session = Depends(get_db)):
    try:
        db.execute(text("SELECT 1"))
        database = "Connected"
    except Exception:
        logger.exception("Health check could not reach the database")
        database = "Disconnected"
    return {"status": "OK", "database": database}


@user_router.post("/signup", response_model=schemas.AuthOut, status_code=status.HTTP_201_CREATED)
def signup(payload: schemas.SignupIn, response: Response, db: Session = Depends(get_db)):
    token, user = users.register(db, payload)
    set_session_cookie(response, token)
    return {"message": "User created successfully", "user": user}


@user_router.post("/login", response_model=schemas.AuthOut)
def login(payload: schemas.LoginIn, response: Response, db: Session = Depends(get_db)):
    token, user = users.authenticate(db, payload)
    set_session_cookie(response, token)
    return {"message": "Login successful", "user": user}


@user_router.post("/logout", response_model=schemas.MessageOut)
def logout(response: Response):
    clear_session_cookie(response)
    return {"message": "Logout successful"}


@app.get("/isLoggedIn", response_model=schemas.SessionOut)
def is_logged_in(current: schemas.SessionUser = Depends(get_current_user)):
    return {"message": "User is logged in", "user": current}


@app.get("/findUser", response_model=schemas.ProfileOut)
def find_user(current: schemas.SessionUser = Depends(get_current_user), db: Session = Depends(get_db)):
    return {"user": users.get_profile(db, current.id)}


@expense_router.post("/addExpense", response_model=schemas.ExpenseMessageOut, status_code=status.HTTP_201_CREATED)
def add_expense(
    payload: schemas.ExpenseIn,
    db: Session = Depends(get_db),
    current: schemas.SessionUser = Depends(get_current_user),
):
    expense = crud.create_expense(db, current.id, payload)
    return {"message": "Expense added successfully", "expense": expense}


@expense_router.get("/getExpenses", response_model=schemas.ExpenseListOut)
def get_expenses(db: Session = Depends(get_db), current: schemas.SessionUser = Depends(get_current_user)):
    return {"expenses": crud.list_expenses(db, current.id)}


@expense_router.put("/updateExpense/{expense_id}", response_model=schemas.ExpenseMessageOut)
def update_expense(
    expense_id: int,
    payload: schemas.ExpenseIn,
    db: Session = Depends(get_db),
    current: schemas.SessionUser = Depends(get_current_user),
):
    expense = crud.update_expense(db, current.id, expense_id, payload)
    return {"message": "Expense updated successfully", "expense": expense}


@expense_router.delete("/deleteExpense/{expense_id}", response_model=schemas.MessageOut)
def delete_expense(
    expense_id: int,
    db: Session = Depends(get_db),
    current: schemas.SessionUser = Depends(get_current_user),
):
    crud.delete_expense(db, current.id, expense_id)
    return {"message": "Expense deleted successfully"}


@expense_router.get("/summary", response_model=schemas.PeriodTotalsOut)
def summary(db: Session = Depends(get_db), current: schemas.SessionUser = Depends(get_current_user)):
    return reports.period_totals(db, current.id)


@expense_router.get("/report", response_model=schemas.ReportOut)
def report(
    filters: schemas.ReportFilters = Depends(report_filters),
    db: Session = Depends(get_db),
    current: schemas.SessionUser = Depends(get_current_user),
):
    return reports.build_report(db, current.id, filters)


@expense_router.get("/export/excel")
def export_excel(
    filters: schemas.ReportFilters = Depends(report_filters),
    db: Session = Depends(get_db),
    current: schemas.SessionUser = Depends(get_current_user),
):
    stream = reports.export_workbook(db, current.id, filters)
    return StreamingResponse(
        stream,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={
            "Content-Disposition": f"attachment; filename={reports.export_filename()}"
        },
    )


app.include_router(user_router)
app.include_router(expense_router)


def main() -> None:
    import uvicorn

    uvicorn.run("main:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
