# sql2frame package

from .public_api import (
    FrameBuilder,
    MacroInterpolator,
    build_frame,
    build_frames,
    interpolate,
    resample,
    resolve_columns,
)

# Also expose core models and enums
from .common.errors import (
    ErrorCode,
    ErrorSeverity,
    Sql2FrameError,
    UnknownMacroError,
    MacroArgumentError,
    MalformedInvocationError,
    DuplicateColumnNameError,
    UnresolvedColumnTypeError,
    ConversionError,
    EmptyFrameError,
    NonMonotonicTimeError,
)
from .converters import ColumnBinding, ColumnMeta, Converter, DYNAMIC_CONVERTER, ScanKind, TypeRegistry
from .frame import Field, FieldType, Frame, FrameMeta, Notice, NoticeSeverity
from .query import FillMissing, FillMode, FormatQueryOption, QueryContext, TimeRange
from .sources import DBAPIRowSource, RowSource, SQLAlchemyRowSource

__all__ = [
    "FrameBuilder",
    "MacroInterpolator",
    "build_frame",
    "build_frames",
    "interpolate",
    "resample",
    "resolve_columns",
    "ErrorCode",
    "ErrorSeverity",
    "Sql2FrameError",
    "UnknownMacroError",
    "MacroArgumentError",
    "MalformedInvocationError",
    "DuplicateColumnNameError",
    "UnresolvedColumnTypeError",
    "ConversionError",
    "EmptyFrameError",
    "NonMonotonicTimeError",
    "ColumnBinding",
    "ColumnMeta",
    "Converter",
    "DYNAMIC_CONVERTER",
    "ScanKind",
    "TypeRegistry",
    "Field",
    "FieldType",
    "Frame",
    "FrameMeta",
    "Notice",
    "NoticeSeverity",
    "FillMissing",
    "FillMode",
    "FormatQueryOption",
    "QueryContext",
    "TimeRange",
    "DBAPIRowSource",
    "RowSource",
    "SQLAlchemyRowSource",
]
