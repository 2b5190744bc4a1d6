import logging
from typing import Any, Dict, Sequence

from exdsn.errors import BindError, DsnErrCode, TypeCoercionError
from exdsn.field import DsnField
from exdsn.matcher import MatchResult

logger = logging.getLogger(__name__)


def _assign(record: Any, fld: DsnField, value: Any) -> None:
    try:
        setattr(record, fld.name, value)
    except AttributeError as e:
        raise BindError(
            f"Cannot set field {fld.name} of {type(record).__name__}: {e}",
            DsnErrCode.READ_ONLY_RECORD,
            field=fld.name,
            error=e,
        ) from e


def _coerce(fld: DsnField, raw: str) -> Any:
    try:
        return fld.coerce(raw)
    except TypeCoercionError as e:
        raise BindError(
            f"Cannot bind field {fld.name}: {e}",
            e.code,
            field=fld.name,
            error=e,
        ) from e


def bind(
    result: MatchResult,
    query: Dict[str, str],
    fields: Sequence[DsnField],
    record: Any,
) -> None:
    """Write the values found in a DSN into a record.

    For each field, in order:

    - the field that receives the query parameters gets a copy of them;
    - the field that receives the scheme gets the matched scheme, if the
      pattern has one;
    - a field whose variable captured a non-empty text gets that text,
      converted to the type of the field;
    - a field with a default gets the converted default;
    - any other field is left untouched.

    Args:
        result: The outcome of the matcher.
        query: The query parameters.
        fields: The descriptors of the fields of the record.
        record: The record to populate. Only the attributes named by the
            descriptors are written.

    Raises:
        BindError: A value could not be converted (the `TypeCoercionError`
            is available in `error`) or the record refused the value.
    """
    for fld in fields:
        if fld.is_params:
            _assign(record, fld, dict(query))
            continue

        if fld.is_scheme and result.scheme:
            _assign(record, fld, _coerce(fld, result.scheme))
            continue

        raw = result.captures.get(fld.var_name, "")
        if raw:
            _assign(record, fld, _coerce(fld, raw))
        elif fld.has_default:
            logger.debug("Field %s gets the default value", fld.name)
            _assign(record, fld, _coerce(fld, fld.default))  # type: ignore
