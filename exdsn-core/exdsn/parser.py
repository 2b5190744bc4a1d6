import logging
from typing import Optional, Type, TypeVar

from exdsn.binder import bind
from exdsn.constants import (
    STAGE_BIND,
    STAGE_COERCION,
    STAGE_COMPILE,
    STAGE_MATCH,
    TEMPLATE_ATTR,
)
from exdsn.errors import (
    BindError,
    NoMatchError,
    ParseError,
    PatternSyntaxError,
    TypeCoercionError,
)
from exdsn.matcher import match_pattern
from exdsn.query import extract_query
from exdsn.schema import DsnSchema, get_schema

logger = logging.getLogger(__name__)

R = TypeVar("R")


def _schema_or_raise(record_type: type, text: str) -> DsnSchema:
    try:
        return get_schema(record_type)
    except PatternSyntaxError as e:
        raise ParseError(STAGE_COMPILE, e, text, e.template) from e
    except BindError as e:
        template: Optional[str] = getattr(record_type, TEMPLATE_ATTR, None)
        raise ParseError(STAGE_BIND, e, text, template) from e


def parse_dsn(text: str, record: R) -> R:
    """Parse a DSN into a record.

    The record type provides the template (`__dsn_template__`) and the
    fields that receive the values (see `exdsn.schema`). The schema of the
    record type is built on first use and cached.

    Args:
        text: The DSN.
        record: The record to populate; only the attributes that take part
            in DSN processing are written.

    Returns:
        The record that was passed in.

    Raises:
        ParseError: The DSN could not be parsed; `stage` tells which step
            failed and `error` holds the error raised by that step.
    """
    schema = _schema_or_raise(type(record), text)
    path, query = extract_query(text)

    try:
        result = match_pattern(schema.pattern, path)
    except NoMatchError as e:
        raise ParseError(STAGE_MATCH, e, text, schema.template) from e

    try:
        bind(result, query, schema.fields, record)
    except BindError as e:
        stage = (
            STAGE_COERCION
            if isinstance(e.error, TypeCoercionError)
            else STAGE_BIND
        )
        raise ParseError(stage, e, text, schema.template) from e

    logger.debug("Parsed a DSN into %s", type(record).__name__)
    return record


def parse_dsn_as(record_type: Type[R], text: str) -> R:
    """Create a record and populate it from a DSN.

    The record is created without arguments, so all its attributes need
    defaults.

    Raises:
        ParseError: The DSN could not be parsed.
    """
    return parse_dsn(text, record_type())
