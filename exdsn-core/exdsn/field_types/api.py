from exdsn.constants import (
    FIELD_TYPE_BOOL,
    FIELD_TYPE_INTEGER,
    FIELD_TYPE_MAP,
    FIELD_TYPE_STRING,
)
from exdsn.field_types.bool_field import BoolField  # noqa: F401
from exdsn.field_types.int_field import IntField  # noqa: F401
from exdsn.field_types.map_field import MapField  # noqa: F401
from exdsn.field_types.str_field import StrField  # noqa: F401

field_type_to_class = {
    FIELD_TYPE_BOOL: BoolField,
    FIELD_TYPE_INTEGER: IntField,
    FIELD_TYPE_MAP: MapField,
    FIELD_TYPE_STRING: StrField,
}
