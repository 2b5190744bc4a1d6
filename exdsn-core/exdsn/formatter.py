"""Build a DSN from a record.

This is the reverse of `parse_dsn()`: the template of the record is walked
and every variable is replaced by the value of the field that receives it.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from attrs import define, field

from exdsn.constants import QUERY_SEP, SCHEME_SEP
from exdsn.pattern import (
    AlternationSegment,
    LiteralSegment,
    OptionalGroup,
    Segment,
    VariableSegment,
)
from exdsn.schema import DsnSchema, get_schema

logger = logging.getLogger(__name__)


@define
class DsnFormatter:
    """Renders the template of a record with the values of the record.

    Attributes:
        schema: The schema of the record type.
        record: The record.
        texts: The text of each template variable.
        out: The pieces written so far.
    """

    schema: DsnSchema
    record: Any
    texts: Dict[str, str] = field(factory=dict)
    out: List[str] = field(factory=list)

    def __attrs_post_init__(self):
        for fld in self.schema.fields:
            if fld.is_params:
                continue
            text = fld.to_text(getattr(self.record, fld.name, None))
            if text or fld.var_name not in self.texts:
                self.texts[fld.var_name] = text

    @property
    def scheme(self) -> str:
        fld = self.schema.scheme_field
        if fld is None:
            return ""
        return fld.to_text(getattr(self.record, fld.name, None))

    def _pick_option(self, seg: AlternationSegment) -> str:
        """Choose the option of an alternation.

        In the leading part of the template the option that reproduces the
        scheme of the record is preferred. Otherwise the first declared
        option is used.
        """
        scheme = self.scheme
        if scheme and SCHEME_SEP not in "".join(self.out):
            prefix = "".join(self.out)
            for option in seg.ordered:
                if scheme.startswith(prefix + option):
                    return option
        return seg.options[0]

    def _has_value(self, segments: Tuple[Segment, ...]) -> bool:
        for seg in segments:
            if isinstance(seg, VariableSegment) and self.texts.get(seg.name):
                return True
            if isinstance(seg, OptionalGroup) and self._has_value(
                seg.segments
            ):
                return True
        return False

    def _render(self, segments: Tuple[Segment, ...]) -> None:
        for seg in segments:
            if isinstance(seg, LiteralSegment):
                self.out.append(seg.text)
            elif isinstance(seg, AlternationSegment):
                self.out.append(self._pick_option(seg))
            elif isinstance(seg, VariableSegment):
                self.out.append(self.texts.get(seg.name, ""))
            elif isinstance(seg, OptionalGroup):
                if self._has_value(seg.segments):
                    self._render(seg.segments)

    def render(self) -> str:
        self.out = []
        self._render(self.schema.pattern.segments)

        params_fld = self.schema.params_field
        if params_fld is not None:
            query = params_fld.to_text(
                getattr(self.record, params_fld.name, None)
            )
            if query:
                self.out.append(QUERY_SEP + query)
        return "".join(self.out)


def format_dsn(record: Any, schema: Optional[DsnSchema] = None) -> str:
    """Create the DSN that describes a record.

    Args:
        record: The record.
        schema: The schema to use; by default the cached schema of the type
            of the record.

    Returns:
        The DSN.

    Raises:
        BindError: The type of the record is not a valid record.
        PatternSyntaxError: The template of the record is malformed.
    """
    if schema is None:
        schema = get_schema(type(record))
    result = DsnFormatter(schema=schema, record=record).render()
    logger.debug("Formatted a %s record", type(record).__name__)
    return result
