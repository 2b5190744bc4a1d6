import re

from attrs import define, field

from exdsn.constants import FIELD_TYPE_INTEGER
from exdsn.errors import DsnErrCode
from exdsn.field import DsnField

# Base 10 integers with an optional sign; `int()` alone would also accept
# surrounding whitespace and digit separators.
int_pattern = re.compile(r"[+-]?[0-9]+")


@define(frozen=True)
class IntField(DsnField):
    """A field that stores integers."""

    type_name: str = field(default=FIELD_TYPE_INTEGER)

    def __repr__(self) -> str:
        return f"IntF({self.name})"

    def coerce(self, raw: str) -> int:
        if not int_pattern.fullmatch(raw):
            raise self.coercion_error(raw, DsnErrCode.INVALID_INT_VALUE)
        return int(raw, 10)
