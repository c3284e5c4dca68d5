from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class ErrorSeverity(str, Enum):
    """Severity levels for conversion errors."""
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class ErrorCode(str, Enum):
    """Standardized error codes for the query-to-frame pipeline."""
    UNKNOWN_MACRO = "UNKNOWN_MACRO"
    MACRO_ARGUMENT = "MACRO_ARGUMENT"
    MALFORMED_INVOCATION = "MALFORMED_INVOCATION"
    DUPLICATE_COLUMN_NAME = "DUPLICATE_COLUMN_NAME"
    UNRESOLVED_COLUMN_TYPE = "UNRESOLVED_COLUMN_TYPE"
    CONVERSION_FAILED = "CONVERSION_FAILED"
    EMPTY_FRAME = "EMPTY_FRAME"
    NON_MONOTONIC_TIME = "NON_MONOTONIC_TIME"
    INVALID_QUERY = "INVALID_QUERY"


SAFE_ERROR_MESSAGES = {
    ErrorCode.CONVERSION_FAILED: "A query result value could not be converted.",
    ErrorCode.UNRESOLVED_COLUMN_TYPE: "A query result column has an unsupported type.",
}


class ErrorEnvelope(BaseModel):
    """Serializable error record handed to the upstream caller."""

    model_config = ConfigDict(extra="ignore")

    error_code: ErrorCode
    safe_message: str
    severity: ErrorSeverity = ErrorSeverity.ERROR
    details: Dict[str, Any] = Field(default_factory=dict)


class Sql2FrameError(Exception):
    """Base class for every failure raised by sql2frame.

    Attributes:
        error_code (ErrorCode): The standardized error code.
        severity (ErrorSeverity): The severity of the error.
        details (Dict[str, Any]): Context for rendering a diagnostic
            (macro name, column name, row index...).
    """

    error_code: ErrorCode = ErrorCode.INVALID_QUERY
    severity: ErrorSeverity = ErrorSeverity.ERROR

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details = {k: v for k, v in details.items() if v is not None}

    def get_safe_message(self) -> str:
        """Returns a sanitized message safe for exposure to end users.

        If a safe mapping exists for the error code, it is returned.
        Otherwise, the original message is used.
        """
        return SAFE_ERROR_MESSAGES.get(self.error_code, self.message)

    def to_envelope(self) -> ErrorEnvelope:
        details = {k: (v if isinstance(v, (str, int, float, bool)) else str(v)) for k, v in self.details.items()}
        return ErrorEnvelope(
            error_code=self.error_code,
            safe_message=self.get_safe_message(),
            severity=self.severity,
            details=details,
        )


class InterpolationError(Sql2FrameError):
    """Raised while rewriting macros; no partial SQL is ever returned."""


class UnknownMacroError(InterpolationError):
    error_code = ErrorCode.UNKNOWN_MACRO

    def __init__(self, macro: str, position: Optional[int] = None):
        super().__init__(f"unknown macro '$__{macro}'", macro=macro, position=position)
        self.macro = macro


class MacroArgumentError(InterpolationError):
    error_code = ErrorCode.MACRO_ARGUMENT

    def __init__(self, macro: str, reason: str):
        super().__init__(f"macro '$__{macro}': {reason}", macro=macro)
        self.macro = macro


class MalformedInvocationError(InterpolationError):
    error_code = ErrorCode.MALFORMED_INVOCATION

    def __init__(self, macro: str, position: int):
        super().__init__(
            f"macro '$__{macro}' at position {position} has unbalanced parentheses",
            macro=macro,
            position=position,
        )
        self.macro = macro


class BindingError(Sql2FrameError):
    """Raised before any row is read when columns cannot be bound."""


class DuplicateColumnNameError(BindingError):
    error_code = ErrorCode.DUPLICATE_COLUMN_NAME

    def __init__(self, column: str):
        super().__init__(f"duplicate column name '{column}' in result set", column=column)
        self.column = column


class UnresolvedColumnTypeError(BindingError):
    error_code = ErrorCode.UNRESOLVED_COLUMN_TYPE

    def __init__(self, column: str, type_name: Optional[str] = None):
        super().__init__(
            f"no converter found for column '{column}' (type {type_name or 'unknown'})",
            column=column,
            type_name=type_name,
        )
        self.column = column


class ConversionError(Sql2FrameError):
    """Raised while reading rows; the in-progress frame is discarded."""

    error_code = ErrorCode.CONVERSION_FAILED

    def __init__(
        self,
        column: Optional[str],
        type_name: Optional[str],
        cause: BaseException,
        row: Optional[int] = None,
    ):
        where = f"column '{column}' ({type_name or 'unknown'})" if column else "row source"
        super().__init__(f"failed to convert {where}: {cause}", column=column, type_name=type_name, row=row)
        self.column = column
        self.type_name = type_name
        self.cause = cause
        self.row = row


class ResampleError(Sql2FrameError):
    """Raised while aligning a frame to a time grid."""


class EmptyFrameError(ResampleError):
    error_code = ErrorCode.EMPTY_FRAME


class NonMonotonicTimeError(EmptyFrameError):
    error_code = ErrorCode.NON_MONOTONIC_TIME

    def __init__(self, column: str, row: int):
        super().__init__(f"time column '{column}' is not ascending at row {row}", column=column, row=row)
        self.row = row
