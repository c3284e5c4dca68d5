from datetime import datetime, timezone
from decimal import Decimal

import pytest

from sql2frame.builder import ROW_LIMIT_NOTICE, FrameBuilder, build_frame, build_frames
from sql2frame.common.errors import ConversionError, DuplicateColumnNameError
from sql2frame.common.settings import settings
from sql2frame.converters import Converter, ScanKind
from sql2frame.frame import FieldType, NoticeSeverity
from sql2frame.testing import ListRowSource, column

TS = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _numbers(count):
    return ListRowSource([column("n", "INTEGER", ScanKind.INTEGER)], [[i] for i in range(count)])


def test_builds_typed_columns():
    # Arrange
    source = ListRowSource(
        [
            column("id", "INTEGER", ScanKind.INTEGER),
            column("name", "TEXT", ScanKind.TEXT),
            column("score", "NUMERIC", ScanKind.FLOATING),
            column("ts", "TIMESTAMP", ScanKind.TEMPORAL),
        ],
        [[1, "ada", Decimal("1.5"), TS], [2, None, 2.0, TS]],
    )

    # Act
    frame = build_frame(source, row_limit=-1)

    # Assert
    assert [f.type for f in frame.fields] == [
        FieldType.NULLABLE_INT64,
        FieldType.NULLABLE_STRING,
        FieldType.NULLABLE_FLOAT64,
        FieldType.NULLABLE_TIME,
    ]
    assert frame.field_by_name("name").values == ["ada", None]
    assert frame.field_by_name("score").values == [1.5, 2.0]
    assert frame.rows() == 2


@pytest.mark.parametrize(
    "source_rows, row_limit, expected_rows, truncated",
    [
        (5, 3, 3, True),
        (5, 5, 5, False),
        (5, 6, 5, False),
        (5, -1, 5, False),
        (0, 0, 0, False),
        (1, 0, 0, True),
    ],
)
def test_row_cap(source_rows, row_limit, expected_rows, truncated):
    frame = build_frame(_numbers(source_rows), row_limit=row_limit)

    assert frame.rows() == expected_rows
    assert bool(frame.meta.notices) is truncated


def test_truncation_notice_is_a_warning():
    frame = build_frame(_numbers(4), row_limit=2)

    notice = frame.meta.notices[0]
    assert notice.severity is NoticeSeverity.WARNING
    assert notice.text == ROW_LIMIT_NOTICE.format(limit=2)


def test_columns_always_have_equal_length():
    source = ListRowSource(
        [column("a", scan_kind=ScanKind.INTEGER), column("b", scan_kind=ScanKind.TEXT)],
        [[1, None], [None, "x"], [None, None]],
    )

    frame = build_frame(source, row_limit=-1)

    assert {len(f) for f in frame.fields} == {3}


def test_nulls_never_reach_the_conversion_function():
    # Validates null handling because converters only ever see present values.
    # Arrange
    def explode(value):
        raise AssertionError("conversion function must not be called")

    strict = Converter(column_name="v", field_type=FieldType.NULLABLE_FLOAT64, convert=explode)
    source = ListRowSource([column("v")], [[None], [None]])

    # Act
    frame = build_frame(source, row_limit=-1, converters=[strict])

    # Assert
    assert frame.fields[0].values == [None, None]


def test_non_nullable_column_gets_zero_values_for_nulls():
    source = ListRowSource(
        [
            column("n", scan_kind=ScanKind.INTEGER, nullable=False),
            column("s", scan_kind=ScanKind.TEXT, nullable=False),
        ],
        [[None, None], [4, "x"]],
    )

    frame = build_frame(source, row_limit=-1)

    assert frame.fields[0].type is FieldType.INT64
    assert frame.fields[0].values == [0, 4]
    assert frame.fields[1].values == ["", "x"]


def test_undecodable_bytes_do_not_abort_frame():
    # Validates byte columns because any BLOB value must land in the string field.
    # Arrange
    source = ListRowSource([column("b", "BLOB", ScanKind.BYTES)], [[b"\xff\xfe\x00"], [b"ok"]])

    # Act
    frame = build_frame(source, row_limit=-1)

    # Assert
    assert frame.fields[0].type is FieldType.NULLABLE_STRING
    assert frame.fields[0].values == ["\ufffd\ufffd\x00", "ok"]


def test_conversion_failure_aborts_frame():
    # Arrange
    source = ListRowSource([column("amount", "MONEY", ScanKind.TEXT)], [["1.0"], ["oops"]])
    money = Converter(type_name="MONEY", field_type=FieldType.NULLABLE_FLOAT64, convert=float)

    # Act
    with pytest.raises(ConversionError) as exc_info:
        build_frame(source, row_limit=-1, converters=[money])

    # Assert
    err = exc_info.value
    assert err.column == "amount"
    assert err.type_name == "MONEY"
    assert err.row == 1
    assert isinstance(err.cause, ValueError)


def test_column_aware_conversion_is_preferred():
    def explode(value):
        raise AssertionError("column-aware variant must be used")

    tagged = Converter(
        type_name="ENUM",
        field_type=FieldType.NULLABLE_STRING,
        convert=explode,
        convert_with_column=lambda value, col: f"{col.name}={value}",
    )
    source = ListRowSource([column("state", "ENUM", ScanKind.TEXT)], [["on"]])

    frame = build_frame(source, row_limit=-1, converters=[tagged])

    assert frame.fields[0].values == ["state=on"]


def test_cursor_failure_is_a_conversion_error():
    source = ListRowSource([column("n", scan_kind=ScanKind.INTEGER)], [[1], [2], [3]], fail_at=1)

    with pytest.raises(ConversionError) as exc_info:
        build_frame(source, row_limit=-1)

    assert exc_info.value.column is None
    assert exc_info.value.row == 1
    assert isinstance(exc_info.value.cause, IOError)


def test_duplicate_columns_fail_before_reading_rows():
    source = ListRowSource([column("id"), column("id")], [[1, 2]])

    with pytest.raises(DuplicateColumnNameError):
        build_frame(source, row_limit=-1)

    assert source.rows_read == 0


def test_each_result_set_becomes_a_frame():
    # Arrange
    source = ListRowSource(["a"], [[1], [2]])
    source.add_result_set(["b", "c"], [["x", 1.0]])

    # Act
    frames = build_frames(source, row_limit=-1)

    # Assert
    assert [f.field_names() for f in frames] == [["a"], ["b", "c"]]
    assert [f.rows() for f in frames] == [2, 1]


def test_frame_carries_executed_query(query):
    q = query.with_sql("SELECT n FROM numbers")

    frame = build_frame(_numbers(1), row_limit=-1, query=q)

    assert frame.meta.executed_query_string == "SELECT n FROM numbers"
    assert frame.ref_id == "A"


def test_default_row_limit_comes_from_settings():
    assert FrameBuilder().row_limit == settings.row_limit


def test_frame_exports_to_polars():
    source = ListRowSource(
        [column("n", scan_kind=ScanKind.INTEGER), column("s", scan_kind=ScanKind.TEXT)],
        [[1, "a"], [None, "b"]],
    )

    df = build_frame(source, row_limit=-1).to_polars()

    assert df.shape == (2, 2)
    assert df["n"].to_list() == [1, None]
