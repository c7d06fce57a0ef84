"""Error taxonomy and the handlers that turn it into JSON responses.

Every failure leaves the API as ``{"message": ...}`` with the status code of
the error class below.
"""
import logging
from typing import Iterable, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import get_settings

logger = logging.getLogger(__name__)


class ExpenseTrackerError(RuntimeError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(ExpenseTrackerError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid input"

    def __init__(self, messages: Iterable[str]):
        self.messages = list(messages)
        super().__init__(", ".join(self.messages))


class ConflictError(ExpenseTrackerError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "User with this email or username already exists"


class ExternalLoginRequiredError(ExpenseTrackerError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Please login using Google OAuth"


class InvalidCredentialsError(ExpenseTrackerError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid credentials"


class UnauthorizedError(ExpenseTrackerError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Unauthorized"


class NotFoundError(ExpenseTrackerError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Expense not found or unauthorized"


class ServerError(ExpenseTrackerError):
    pass


# human readable names for the camelCase fields clients send
FIELD_LABELS = {
    "fullName": "Full name",
    "username": "Username",
    "email": "Email",
    "password": "Password",
    "branch": "Branch",
    "date": "Date",
    "expenseType": "Expense type",
    "amount": "Amount",
    "modeOfPayment": "Mode of payment",
    "paymentTo": "Payment to",
    "vehicleNumber": "Vehicle number",
    "remarks": "Remarks",
}


def describe_validation_errors(errors) -> list:
    """Flatten pydantic error dicts into one message per violated field."""
    messages = []
    for error in errors:
        loc = [part for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        field = str(loc[-1]) if loc else "body"
        label = FIELD_LABELS.get(field, field)
        if error.get("type") == "missing":
            message = f"{label} is required"
        else:
            message = f"{label}: {error.get('msg', 'invalid value')}"
        if message not in messages:
            messages.append(message)
    return messages


def _error_response(exc: ExpenseTrackerError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


async def expense_tracker_error_handler(request: Request, exc: ExpenseTrackerError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return _error_response(exc)


async def request_validation_handler(request: Request, exc: RequestValidationError):
    error = ValidationError(describe_validation_errors(exc.errors()))
    logger.info("Rejected %s %s: %s", request.method, request.url.path, error.message)
    return _error_response(error)


async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("Database error on %s %s", request.method, request.url.path)
    return _error_response(ServerError())


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": "Route not found", "path": request.url.path},
        )
    return JSONResponse(status_code=exc.status_code, content={"message": str(exc.detail)})


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    content = {"message": "Something went wrong!"}
    if get_settings().environment == "development":
        content["error"] = str(exc)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ExpenseTrackerError, expense_tracker_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(SQLAlchemyError, database_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
