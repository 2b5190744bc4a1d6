from typing import Any

from attrs import define, field

from exdsn.constants import FIELD_TYPE_BOOL
from exdsn.errors import DsnErrCode
from exdsn.field import DsnField


@define(frozen=True)
class BoolField(DsnField):
    """A field that stores boolean values.

    Only `true` and `false` are accepted, in any letter case, and values are
    written back in lower case.
    """

    type_name: str = field(default=FIELD_TYPE_BOOL)

    def __repr__(self) -> str:
        return f"BoolF({self.name})"

    def coerce(self, raw: str) -> bool:
        lowered = raw.lower()
        if lowered == "true":
            return True
        if lowered == "false":
            return False
        raise self.coercion_error(raw, DsnErrCode.INVALID_BOOL_VALUE)

    def to_text(self, value: Any) -> str:
        if value is None:
            return ""
        return "true" if value else "false"
