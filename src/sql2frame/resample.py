"""
Legacy time-grid alignment for wide time-series frames.

Kept for integrations that still depend on it; the output must stay
exactly as described in :func:`resample`.
"""
from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, List, Optional

from sql2frame.common.errors import EmptyFrameError, NonMonotonicTimeError, ResampleError
from sql2frame.common.logger import get_logger
from sql2frame.common.settings import settings
from sql2frame.converters.registry import to_time
from sql2frame.frame import Field, FieldType, Frame
from sql2frame.query import FillMissing, FillMode, TimeRange

logger = get_logger("resample")


def find_time_field(frame: Frame, name: Optional[str] = None) -> int:
    """Index of the time field: ``name`` if given, else a preferred name, else the first time field."""
    if name is not None:
        for index, field in enumerate(frame.fields):
            if field.name == name and field.type.is_time:
                return index
        raise EmptyFrameError(f"frame has no time field named '{name}'", column=name)

    time_indexes = [i for i, f in enumerate(frame.fields) if f.type.is_time]
    if not time_indexes:
        raise EmptyFrameError("frame has no time field")
    preferred = {n.lower() for n in settings.time_column_names}
    for index in time_indexes:
        if frame.fields[index].name.lower() in preferred:
            return index
    return time_indexes[0]


def resample(
    frame: Frame,
    fill_missing: Optional[FillMissing],
    time_range: TimeRange,
    interval: timedelta,
    time_field: Optional[str] = None,
) -> Frame:
    """Rewrites ``frame`` onto the grid ``from, from+interval, ...`` up to ``to``.

    Each slot takes the values of the last source row in
    ``[slot, slot + interval)``. Slots without a row are filled per
    ``fill_missing`` (null fill when it is None); carry-forward has nothing
    to carry into a leading empty slot, which is null-filled instead. Value
    fields come back nullable. The input must already be sorted by time.

    Raises:
        EmptyFrameError: The frame has no time field.
        NonMonotonicTimeError: The time field is not ascending.
    """
    if interval <= timedelta(0):
        raise ResampleError(f"resample interval must be positive, got {interval}")

    fill = fill_missing or FillMissing(mode=FillMode.NULL)
    time_index = find_time_field(frame, time_field)
    time_name = frame.fields[time_index].name
    times = _source_times(frame.fields[time_index])
    value_fields = [f for i, f in enumerate(frame.fields) if i != time_index]

    out_time = Field(name=time_name, type=FieldType.TIME, labels=dict(frame.fields[time_index].labels))
    out_values = [
        Field(name=f.name, type=f.type.as_nullable(), labels=dict(f.labels))
        for f in value_fields
    ]

    previous: List[Any] = [None] * len(value_fields)
    cursor = 0
    slot = time_range.from_
    slots = 0
    while slot <= time_range.to:
        end = slot + interval
        while cursor < len(times) and (times[cursor] is None or times[cursor] < slot):
            cursor += 1
        last = None
        while cursor < len(times) and (times[cursor] is None or times[cursor] < end):
            if times[cursor] is not None:
                last = cursor
            cursor += 1

        if last is not None:
            row = [f.values[last] for f in value_fields]
        elif fill.mode is FillMode.PREVIOUS:
            row = list(previous)
        elif fill.mode is FillMode.VALUE:
            row = [fill.value_for(f.name) for f in value_fields]
        else:
            row = [None] * len(value_fields)

        out_time.append(slot)
        for field, value in zip(out_values, row):
            field.append(value)
        previous = row
        slot = end
        slots += 1

    logger.debug(f"Resampled {len(times)} rows onto {slots} slots of {interval} ({fill.mode.value} fill)")
    fields = list(out_values)
    fields.insert(time_index, out_time)
    return Frame(
        name=frame.name,
        ref_id=frame.ref_id,
        fields=fields,
        meta=frame.meta.model_copy(deep=True),
    )


def _source_times(field: Field) -> List[Optional[datetime]]:
    times = [None if v is None else to_time(v) for v in field.values]
    last_seen: Optional[datetime] = None
    for row, value in enumerate(times):
        if value is None:
            continue
        if last_seen is not None and value < last_seen:
            raise NonMonotonicTimeError(field.name, row)
        last_seen = value
    return times
