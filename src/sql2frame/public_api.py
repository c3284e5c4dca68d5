"""
Public API for sql2frame

The four pipeline operations, in data-flow order:

    sql = interpolate(query)               # hand ``sql`` to your driver
    frames = build_frames(row_source, ...) # one frame per result set
    aligned = resample(frames[0], ...)     # optional, time-series only

``resolve_columns`` is exposed for callers that want to inspect bindings
without reading rows.
"""

from __future__ import annotations

from sql2frame.builder import FrameBuilder, build_frame, build_frames
from sql2frame.converters.resolver import resolve_columns
from sql2frame.macros import MacroInterpolator, interpolate
from sql2frame.resample import resample

__all__ = [
    "interpolate",
    "resolve_columns",
    "build_frame",
    "build_frames",
    "resample",
    "MacroInterpolator",
    "FrameBuilder",
]
