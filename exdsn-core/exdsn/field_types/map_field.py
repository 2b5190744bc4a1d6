from typing import Any, Dict

from attrs import define, field

from exdsn.constants import FIELD_TYPE_MAP
from exdsn.errors import DsnErrCode
from exdsn.field import DsnField
from exdsn.query import parse_query, render_query


@define(frozen=True)
class MapField(DsnField):
    """A field that stores a mapping of strings to strings.

    This is the type of the field that receives the query parameters. When
    such a field is fed from a variable or a default, the text is read as a
    query string (`key=value&other=value`).
    """

    type_name: str = field(default=FIELD_TYPE_MAP)

    def __repr__(self) -> str:
        return f"MapF({self.name})"

    def coerce(self, raw: str) -> Dict[str, str]:
        result = parse_query(raw)
        if raw and not result:
            raise self.coercion_error(raw, DsnErrCode.INVALID_MAP_VALUE)
        return result

    def to_text(self, value: Any) -> str:
        if not value:
            return ""
        return render_query(value)
