"""Field descriptor tables for record types.

A record is an `attrs` class with a `__dsn_template__` class attribute:

```
@define
class FtpDsn:
    __dsn_template__: ClassVar[str] = (
        "ftp://$Username:$Password@$Host:$Port/$BasePath"
    )

    username: str = ""
    password: str = ""
    host: str = ""
    port: int = field(default=0, metadata=dsn_meta(default="21"))
    base_path: str = ""
    params: Dict[str, str] = field(factory=dict)
```

The schema of a record type is built once and cached; it holds the compiled
pattern and one `DsnField` for each attribute that can receive a part of
the DSN.
"""

import collections.abc
import logging
import threading
import types
from typing import Any, Dict, List, Optional, Tuple, Union, get_args, get_origin

import attrs
from attrs import define, field
from pydantic import ValidationError

from exdsn.constants import (
    FIELD_TYPE_BOOL,
    FIELD_TYPE_INTEGER,
    FIELD_TYPE_MAP,
    FIELD_TYPE_STRING,
    METADATA_KEY,
    ROLE_PARAMS,
    ROLE_SCHEME,
    TEMPLATE_ATTR,
)
from exdsn.errors import BindError, DsnErrCode
from exdsn.field import DsnField, DsnFieldInfo
from exdsn.field_types.api import field_type_to_class
from exdsn.pattern import Pattern, get_pattern

logger = logging.getLogger(__name__)

map_origins = (
    dict,
    collections.abc.Mapping,
    collections.abc.MutableMapping,
)


def dsn_meta(
    var: Optional[str] = None,
    default: Optional[str] = None,
    role: Optional[str] = None,
    type_name: Optional[str] = None,
    skip: Optional[bool] = None,
) -> Dict[str, Any]:
    """Create the metadata for an `attrs` field of a record.

    Example:

    ```
    port: int = field(default=0, metadata=dsn_meta(default="21"))
    ```

    See `DsnFieldInfo` for the meaning of the arguments.
    """
    info = {
        "var": var,
        "default": default,
        "role": role,
        "type_name": type_name,
        "skip": skip,
    }
    return {METADATA_KEY: {k: v for k, v in info.items() if v is not None}}


def type_name_from_annotation(annotation: Any) -> Optional[str]:
    """Find the semantic type for the annotation of a field.

    `Optional[X]` is treated as `X`.

    Returns:
        One of the `FIELD_TYPE_*` constants or None if the annotation is
        not supported.
    """
    origin = get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        args = [a for a in get_args(annotation) if a is not type(None)]
        if len(args) != 1:
            return None
        return type_name_from_annotation(args[0])

    # bool is a subclass of int so it is checked first.
    if annotation is bool:
        return FIELD_TYPE_BOOL
    if annotation is int:
        return FIELD_TYPE_INTEGER
    if annotation is str:
        return FIELD_TYPE_STRING
    if annotation in map_origins or origin in map_origins:
        return FIELD_TYPE_MAP
    return None


def field_from_attribute(attrib: "attrs.Attribute") -> Optional[DsnField]:
    """Create a field descriptor from an attribute of a record.

    Args:
        attrib: The `attrs` attribute.

    Returns:
        The descriptor or None if the attribute does not take part in
        DSN processing (it is explicitly skipped, or it has no DSN metadata
        and a type that is not supported).

    Raises:
        BindError: The metadata is not valid.
    """
    raw_info = attrib.metadata.get(METADATA_KEY, None)
    try:
        parsed_info = DsnFieldInfo.model_validate(raw_info or {}, strict=True)
    except ValidationError as e:
        raise BindError(
            f"Invalid DSN metadata for field {attrib.name}: {e}",
            DsnErrCode.INVALID_METADATA,
            field=attrib.name,
            error=e,
        ) from e
    if parsed_info.skip:
        return None

    type_name = parsed_info.type_name or type_name_from_annotation(
        attrib.type
    )
    if type_name is None:
        if raw_info is None:
            logger.debug(
                "Field %s of type %r is not part of the DSN",
                attrib.name,
                attrib.type,
            )
            return None
        raise BindError(
            f"Field {attrib.name} has an unsupported type {attrib.type!r}",
            DsnErrCode.UNSUPPORTED_TYPE,
            field=attrib.name,
        )

    role = parsed_info.role
    if role is None:
        if attrib.name == ROLE_SCHEME:
            role = ROLE_SCHEME
        elif attrib.name == ROLE_PARAMS and type_name == FIELD_TYPE_MAP:
            role = ROLE_PARAMS
    if role == ROLE_PARAMS and type_name != FIELD_TYPE_MAP:
        raise BindError(
            f"Field {attrib.name} receives the query parameters so it "
            f"must be a mapping, not {type_name}",
            DsnErrCode.UNSUPPORTED_TYPE,
            field=attrib.name,
        )

    extra: Dict[str, Any] = {
        "name": attrib.name,
        "src": attrib,
        "role": role,
        "default": parsed_info.default,
    }
    if parsed_info.var:
        extra["var_name"] = parsed_info.var

    Ctor = field_type_to_class[type_name]
    logger.debug("Creating field %s for %s", Ctor.__name__, attrib.name)
    return Ctor(**extra)


@define(frozen=True)
class DsnSchema:
    """What a record type expects from a DSN.

    Attributes:
        record_type: The record class.
        template: The template of the record.
        pattern: The compiled template.
        fields: The descriptors of the fields, in the order in which they
            were declared.
    """

    record_type: type
    template: str
    pattern: Pattern
    fields: Tuple[DsnField, ...]

    @property
    def scheme_field(self) -> Optional[DsnField]:
        for fld in self.fields:
            if fld.is_scheme:
                return fld
        return None

    @property
    def params_field(self) -> Optional[DsnField]:
        for fld in self.fields:
            if fld.is_params:
                return fld
        return None

    def fields_for_var(self, var_name: str) -> List[DsnField]:
        """The fields that receive a template variable."""
        return [f for f in self.fields if f.var_name == var_name]


def schema_from_record(record_type: type) -> DsnSchema:
    """Build the schema of a record type.

    Args:
        record_type: An `attrs` class with a `__dsn_template__` attribute.

    Raises:
        BindError: The class is not a valid record.
        PatternSyntaxError: The template is malformed.
    """
    if not isinstance(record_type, type) or not attrs.has(record_type):
        raise BindError(
            f"{record_type!r} is not an attrs class",
            DsnErrCode.NOT_A_RECORD,
        )
    template = getattr(record_type, TEMPLATE_ATTR, None)
    if not isinstance(template, str):
        raise BindError(
            f"{record_type.__name__} has no {TEMPLATE_ATTR} string attribute",
            DsnErrCode.MISSING_TEMPLATE,
        )

    try:
        attrs.resolve_types(record_type)
    except NameError as e:
        raise BindError(
            f"Cannot resolve the annotations of {record_type.__name__}: {e}",
            DsnErrCode.UNSUPPORTED_TYPE,
            error=e,
        ) from e

    pattern = get_pattern(template)

    fields: List[DsnField] = []
    for attrib in attrs.fields(record_type):
        fld = field_from_attribute(attrib)
        if fld is not None:
            fields.append(fld)

    known = {f.var_name for f in fields}
    for var_name in pattern.variables:
        if var_name not in known:
            raise BindError(
                f"Template variable ${var_name} of {record_type.__name__} "
                "has no matching field",
                DsnErrCode.UNKNOWN_VARIABLE,
                field=var_name,
            )

    logger.debug(
        "Built the DSN schema of %s with %d fields",
        record_type.__name__,
        len(fields),
    )
    return DsnSchema(
        record_type=record_type,
        template=template,
        pattern=pattern,
        fields=tuple(fields),
    )


@define
class SchemaCache:
    """Schemas indexed by record type.

    Lookups do not take the lock; it is only held while the schema of a
    type that was not seen before is built.
    """

    _schemas: Dict[type, DsnSchema] = field(factory=dict, init=False)
    _lock: threading.Lock = field(
        factory=threading.Lock, init=False, repr=False
    )

    def get(self, record_type: type) -> DsnSchema:
        """Get the schema of a record type, building it if needed.

        Raises:
            BindError: The class is not a valid record.
            PatternSyntaxError: The template is malformed.
        """
        result = self._schemas.get(record_type)
        if result is not None:
            return result
        with self._lock:
            result = self._schemas.get(record_type)
            if result is None:
                result = schema_from_record(record_type)
                self._schemas[record_type] = result
        return result

    def clear(self) -> None:
        with self._lock:
            self._schemas = {}

    def __contains__(self, record_type: type) -> bool:
        return record_type in self._schemas

    def __len__(self) -> int:
        return len(self._schemas)


# Process-wide cache; starts empty.
default_schema_cache = SchemaCache()


def get_schema(record_type: type) -> DsnSchema:
    """Get the schema of a record type from the process-wide cache."""
    return default_schema_cache.get(record_type)
