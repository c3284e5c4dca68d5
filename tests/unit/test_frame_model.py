import pytest

from sql2frame.frame import EPOCH, Field, FieldType, Frame


@pytest.mark.parametrize(
    "field_type, null",
    [
        (FieldType.INT64, 0),
        (FieldType.FLOAT64, 0.0),
        (FieldType.STRING, ""),
        (FieldType.BOOL, False),
        (FieldType.TIME, EPOCH),
        (FieldType.NULLABLE_INT64, None),
        (FieldType.NULLABLE_TIME, None),
    ],
)
def test_null_representation(field_type, null):
    assert field_type.null_value() == null


def test_nullable_twins():
    assert FieldType.INT64.as_nullable() is FieldType.NULLABLE_INT64
    assert FieldType.NULLABLE_INT64.as_nullable() is FieldType.NULLABLE_INT64
    assert FieldType.NULLABLE_TIME.base is FieldType.TIME
    assert FieldType.NULLABLE_TIME.is_time


def test_append_null_uses_field_type():
    field = Field(name="n", type=FieldType.INT64)

    field.append_null()
    field.append(3)

    assert field.values == [0, 3]


def test_empty_frame():
    frame = Frame()

    assert frame.rows() == 0
    assert frame.field_by_name("missing") is None
    assert frame.to_polars().shape == (0, 0)
