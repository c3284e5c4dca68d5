from datetime import datetime, timedelta, timezone

import pytest

from sql2frame.query import QueryContext, TimeRange

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def time_range():
    """Six hours starting at midnight UTC on 2024-01-01."""
    return TimeRange(from_=T0, to=T0 + timedelta(hours=6))


@pytest.fixture
def query(time_range):
    """Returns a fully populated query context with no SQL yet."""
    return QueryContext(
        raw_sql="",
        ref_id="A",
        interval=timedelta(seconds=90),
        time_range=time_range,
        max_data_points=500,
        table="metrics",
        column="value",
    )
