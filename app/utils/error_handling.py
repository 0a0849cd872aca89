"""
Error Handling Module for the Payroll Journal Engine

This module provides centralized error handling with:
- Custom exception hierarchy
- Standardized error responses
- Error logging
- Payroll specific validation and journal errors
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Iterable, Optional
import logging

from fastapi import FastAPI, Request, HTTPException, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

# Configure logging
logger = logging.getLogger("payroll_engine.errors")


class ErrorCode(str, Enum):
    """Standardized error codes for the application"""

    # Validation Errors (4xx)
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_INPUT = "INVALID_INPUT"
    MISSING_FIELD = "MISSING_FIELD"
    INVALID_FORMAT = "INVALID_FORMAT"
    INVALID_AMOUNT = "INVALID_AMOUNT"
    INVALID_TRANSACTION_TYPE = "INVALID_TRANSACTION_TYPE"
    INVALID_ALLOCATION = "INVALID_ALLOCATION"

    # Resource Errors (404)
    NOT_FOUND = "NOT_FOUND"

    # Business Logic Errors (422)
    BUSINESS_RULE_VIOLATION = "BUSINESS_RULE_VIOLATION"
    UNBALANCED_JOURNAL = "UNBALANCED_JOURNAL"
    TOO_MANY_LINES = "TOO_MANY_LINES"
    EMPTY_JOURNAL = "EMPTY_JOURNAL"

    # Internal Errors (500)
    INTERNAL_ERROR = "INTERNAL_ERROR"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"


class AppException(Exception):
    """Base exception for all application exceptions"""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[Dict[str, Any]] = None,
        field: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.field = field
        self.original_error = original_error
        self.timestamp = datetime.utcnow()
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON response"""
        result = {
            "code": self.code.value,
            "message": self.message,
            "timestamp": self.timestamp.isoformat() + "Z",
        }
        if self.field:
            result["field"] = self.field
        if self.details:
            result["details"] = self.details
        return result


# ============================================================================
# Configuration Exceptions
# ============================================================================

class InvalidConfigKeyException(AppException):
    """Unknown account/class/description key - a configuration bug"""

    def __init__(self, kind: str, key: str, available: Optional[Iterable[str]] = None):
        details: Dict[str, Any] = {"kind": kind, "key": key}
        if available is not None:
            details["available_keys"] = sorted(available)
        super().__init__(
            code=ErrorCode.CONFIGURATION_ERROR,
            message=f"Invalid {kind} key: {key}",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            details=details,
            field=kind,
        )


# ============================================================================
# Validation Exceptions
# ============================================================================

class ValidationException(AppException):
    """Base validation exception"""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        code: ErrorCode = ErrorCode.VALIDATION_ERROR,
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            details=details,
            field=field,
        )


class InvalidDateFormatException(ValidationException):
    """Date input cannot be parsed"""

    def __init__(self, value: Any, expected_format: str = "YYYY-MM-DD", field: str = "payroll_date"):
        super().__init__(
            message=f"Invalid date format: {value}. Expected format: {expected_format}",
            field=field,
            code=ErrorCode.INVALID_FORMAT,
            details={"provided": str(value), "expected_format": expected_format},
        )


class InvalidTransactionTypeException(ValidationException):
    """Transaction type outside the closed set"""

    def __init__(self, value: Any, valid_types: Iterable[str]):
        valid = list(valid_types)
        super().__init__(
            message=f"Invalid transaction type: {value}. Valid types: {', '.join(valid)}",
            field="transaction_type",
            code=ErrorCode.INVALID_TRANSACTION_TYPE,
            details={"provided": str(value), "valid_types": valid},
        )


class AllocationPercentageException(ValidationException):
    """Allocation rules for an employee are not usable"""

    def __init__(
        self,
        message: str,
        payroll_number: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        _details = details or {}
        if payroll_number is not None:
            _details["payroll_number"] = payroll_number
        super().__init__(
            message=message,
            field="allocations",
            code=ErrorCode.INVALID_ALLOCATION,
            details=_details,
        )


# ============================================================================
# Business Logic Exceptions
# ============================================================================

class BusinessRuleException(AppException):
    """Business rule violation exception"""

    def __init__(
        self,
        message: str,
        rule: Optional[str] = None,
        code: ErrorCode = ErrorCode.BUSINESS_RULE_VIOLATION,
        details: Optional[Dict[str, Any]] = None,
    ):
        _details = details or {}
        if rule:
            _details["violated_rule"] = rule
        super().__init__(
            code=code,
            message=message,
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            details=_details,
        )


class UnbalancedJournalException(BusinessRuleException):
    """Journal lines do not sum to the expected balance. Never posted."""

    def __init__(
        self,
        balance: Decimal,
        tolerance: Decimal,
        doc_number: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.balance = balance
        _details = {"balance": str(balance), "tolerance": str(tolerance)}
        if doc_number:
            _details["doc_number"] = doc_number
        _details.update(details or {})
        super().__init__(
            message=f"Journal entry is not balanced (debits != credits). Discrepancy: {balance}",
            rule="DEBITS_EQUAL_CREDITS",
            code=ErrorCode.UNBALANCED_JOURNAL,
            details=_details,
        )


class TooManyLinesException(BusinessRuleException):
    """Journal exceeds the ledger line limit. Caller must split or reject."""

    def __init__(self, line_count: int, max_lines: int, doc_number: Optional[str] = None):
        self.line_count = line_count
        self.max_lines = max_lines
        details: Dict[str, Any] = {"line_count": line_count, "max_lines": max_lines}
        if doc_number:
            details["doc_number"] = doc_number
        super().__init__(
            message=f"Journal exceeds maximum line count of {max_lines} ({line_count} lines)",
            rule="MAX_JOURNAL_LINES",
            code=ErrorCode.TOO_MANY_LINES,
            details=details,
        )


class EmptyJournalException(BusinessRuleException):
    """No line of the journal is large enough to post"""

    def __init__(self, doc_number: Optional[str] = None, dropped_lines: int = 0):
        details: Dict[str, Any] = {"dropped_lines": dropped_lines}
        if doc_number:
            details["doc_number"] = doc_number
        super().__init__(
            message="Journal entry has no lines to post",
            rule="AT_LEAST_ONE_LINE",
            code=ErrorCode.EMPTY_JOURNAL,
            details=details,
        )


# ============================================================================
# Exception Handlers
# ============================================================================

def create_error_response(
    code: ErrorCode,
    message: str,
    status_code: int,
    details: Optional[Dict[str, Any]] = None,
    field: Optional[str] = None,
) -> JSONResponse:
    """Create a standardized error response"""
    content = {
        "detail": {
            "code": code.value,
            "message": message,
            "timestamp": datetime.utcnow().isoformat() + "Z",
        }
    }
    if field:
        content["detail"]["field"] = field
    if details:
        content["detail"]["details"] = details

    return JSONResponse(status_code=status_code, content=content)


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handle AppException"""
    logger.error(
        f"AppException: {exc.code.value} - {exc.message}",
        extra={
            "code": exc.code.value,
            "path": request.url.path,
            "method": request.method,
            "details": exc.details,
        },
        exc_info=exc.original_error,
    )

    return create_error_response(
        code=exc.code,
        message=exc.message,
        status_code=exc.status_code,
        details=exc.details,
        field=exc.field,
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle HTTPException"""
    code_map = {
        400: ErrorCode.INVALID_INPUT,
        404: ErrorCode.NOT_FOUND,
        422: ErrorCode.VALIDATION_ERROR,
        500: ErrorCode.INTERNAL_ERROR,
    }

    error_code = code_map.get(exc.status_code, ErrorCode.INTERNAL_ERROR)
    message = exc.detail if isinstance(exc.detail, str) else str(exc.detail)

    logger.warning(
        f"HTTPException: {exc.status_code} - {message}",
        extra={"path": request.url.path, "method": request.method},
    )

    return create_error_response(
        code=error_code,
        message=message,
        status_code=exc.status_code,
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle Pydantic validation errors"""
    errors = []
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error["loc"])
        errors.append({
            "field": field,
            "message": error["msg"],
            "type": error["type"],
        })

    logger.warning(
        f"ValidationError: {len(errors)} validation errors",
        extra={"path": request.url.path, "method": request.method, "errors": errors},
    )

    return create_error_response(
        code=ErrorCode.VALIDATION_ERROR,
        message="Request validation failed",
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        details={"errors": errors},
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unhandled exceptions"""
    logger.critical(
        f"UnhandledException: {type(exc).__name__} - {str(exc)}",
        extra={"path": request.url.path, "method": request.method},
        exc_info=True,
    )

    # In production, don't expose internal error details
    return create_error_response(
        code=ErrorCode.INTERNAL_ERROR,
        message="An unexpected error occurred. Please try again later.",
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI application"""
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)


# Export all exceptions for easy importing
__all__ = [
    # Base
    "AppException",
    "ErrorCode",

    # Configuration
    "InvalidConfigKeyException",

    # Validation
    "ValidationException",
    "InvalidDateFormatException",
    "InvalidTransactionTypeException",
    "AllocationPercentageException",

    # Business Logic
    "BusinessRuleException",
    "UnbalancedJournalException",
    "TooManyLinesException",
    "EmptyJournalException",

    # Handlers
    "setup_exception_handlers",
    "create_error_response",
]
