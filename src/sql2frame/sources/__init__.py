from .base import RowSource, tag_value, to_cell, to_cells
from .dbapi import DBAPIRowSource, SQLAlchemyRowSource

__all__ = [
    "RowSource",
    "tag_value",
    "to_cell",
    "to_cells",
    "DBAPIRowSource",
    "SQLAlchemyRowSource",
]
