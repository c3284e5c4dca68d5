import sqlite3
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine, text

from sql2frame import (
    Converter,
    DBAPIRowSource,
    FieldType,
    FillMissing,
    FillMode,
    QueryContext,
    SQLAlchemyRowSource,
    TimeRange,
    build_frame,
    build_frames,
    interpolate,
    resample,
)
from sql2frame.converters.registry import to_time

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)

ROWS = [
    ("2024-01-01T00:00:00Z", "web-1", 1.0),
    ("2024-01-01T00:10:00Z", "web-1", 2.0),
    ("2024-01-01T00:30:00Z", "web-1", 3.0),
    ("2024-01-01T01:00:00Z", "web-1", 9.0),
]

TS_AS_TIME = Converter(column_name="ts", field_type=FieldType.TIME, convert=to_time)


@pytest.fixture
def engine():
    engine = create_engine("sqlite://")
    with engine.begin() as conn:
        conn.execute(text("CREATE TABLE metrics (ts TEXT, host TEXT, value REAL, note TEXT)"))
        for ts, host, value in ROWS:
            conn.execute(
                text("INSERT INTO metrics (ts, host, value) VALUES (:ts, :host, :value)"),
                {"ts": ts, "host": host, "value": value},
            )
    return engine


@pytest.fixture
def metrics_query():
    return QueryContext.from_request(
        {"rawSql": "SELECT ts, value FROM $__table WHERE $__timeFilter(ts) ORDER BY ts", "table": "metrics"},
        time_range=TimeRange(from_=T0, to=T0 + timedelta(minutes=40)),
        interval=timedelta(minutes=10),
    )


def test_query_to_resampled_frame(engine, metrics_query):
    # Validates the whole pipeline: interpolate, execute, convert, align.
    # Arrange
    executed = metrics_query.with_sql(interpolate(metrics_query))

    # Act
    with engine.connect() as conn:
        result = conn.execute(text(executed.raw_sql))
        frame = build_frame(SQLAlchemyRowSource(result), row_limit=-1, converters=[TS_AS_TIME], query=executed)
    aligned = resample(
        frame,
        FillMissing(mode=FillMode.PREVIOUS),
        metrics_query.time_range,
        metrics_query.interval,
    )

    # Assert
    assert frame.meta.executed_query_string.startswith("SELECT ts, value FROM metrics WHERE ts >= ")
    assert frame.field_by_name("ts").type is FieldType.TIME
    assert frame.field_by_name("value").type is FieldType.NULLABLE_FLOAT64
    assert frame.field_by_name("value").values == [1.0, 2.0, 3.0]
    assert aligned.field_by_name("ts").values == [T0 + timedelta(minutes=m) for m in (0, 10, 20, 30, 40)]
    assert aligned.field_by_name("value").values == [1.0, 2.0, 2.0, 3.0, 3.0]


def test_row_limit_against_database(engine):
    with engine.connect() as conn:
        result = conn.execute(text("SELECT host, value FROM metrics ORDER BY ts"))
        frame = build_frame(SQLAlchemyRowSource(result), row_limit=2)

    assert frame.rows() == 2
    assert "limited to 2" in frame.meta.notices[0].text


def test_dbapi_cursor_types_from_first_row():
    # Arrange
    conn = sqlite3.connect(":memory:")
    conn.execute("CREATE TABLE t (id INTEGER, name TEXT, price REAL, note TEXT, raw BLOB)")
    conn.execute("INSERT INTO t VALUES (1, 'a', 1.5, NULL, x'6869')")
    conn.execute("INSERT INTO t VALUES (2, NULL, NULL, 'later', NULL)")
    cursor = conn.execute("SELECT id, name, price, note, raw FROM t ORDER BY id")

    # Act
    frame = build_frame(DBAPIRowSource(cursor), row_limit=-1)
    conn.close()

    # Assert
    assert [f.type for f in frame.fields] == [
        FieldType.NULLABLE_INT64,
        FieldType.NULLABLE_STRING,
        FieldType.NULLABLE_FLOAT64,
        FieldType.NULLABLE_STRING,
        FieldType.NULLABLE_STRING,
    ]
    assert frame.field_by_name("id").values == [1, 2]
    assert frame.field_by_name("note").values == [None, "later"]
    assert frame.field_by_name("raw").values == ["hi", None]


class _MultiSetCursor:
    """DB-API cursor double that serves several result sets."""

    def __init__(self, result_sets):
        self._sets = list(result_sets)
        self._rows = []
        self.description = None
        self._load()

    def _load(self):
        names, rows = self._sets.pop(0)
        self.description = [(n, "INT4", None, None, None, None, False) for n in names]
        self._rows = list(rows)

    def fetchone(self):
        return self._rows.pop(0) if self._rows else None

    def nextset(self):
        if not self._sets:
            return None
        self._load()
        return True


def test_dbapi_multiple_result_sets():
    cursor = _MultiSetCursor([(["a"], [(1,), (2,)]), (["b", "c"], [(3, None)])])

    frames = build_frames(DBAPIRowSource(cursor, type_names={"INT4": "integer"}), row_limit=-1)

    assert [f.field_names() for f in frames] == [["a"], ["b", "c"]]
    assert frames[0].fields[0].type is FieldType.INT64
    assert frames[0].fields[0].values == [1, 2]
    assert frames[1].field_by_name("c").type is FieldType.STRING
    assert frames[1].field_by_name("c").values == [""]
