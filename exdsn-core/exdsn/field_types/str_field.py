from attrs import define, field

from exdsn.constants import FIELD_TYPE_STRING
from exdsn.field import DsnField


@define(frozen=True)
class StrField(DsnField):
    """A field that stores the captured text as it is."""

    type_name: str = field(default=FIELD_TYPE_STRING)

    def __repr__(self) -> str:
        return f"StrF({self.name})"

    def coerce(self, raw: str) -> str:
        return raw
