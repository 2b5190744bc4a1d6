from typing import Any, Optional

from attrs import define, field
from pydantic import BaseModel, ConfigDict, field_validator

from exdsn.constants import (
    ROLE_PARAMS,
    ROLE_SCHEME,
    FieldTypeName,
    RoleType,
)
from exdsn.errors import DsnErrCode, TypeCoercionError
from exdsn.pattern import ident_pattern


@define(frozen=True)
class DsnField:
    """A field of a record that receives a part of a DSN.

    Instances are immutable, so they can be shared between threads once the
    schema of a record type was built.

    Attributes:
        name: The name of the attribute inside the record.
        var_name: The name of the template variable that feeds this field.
            When not provided the PascalCase form of the name is used, so
            `base_path` receives `$BasePath`.
        type_name: The semantic type of the field; one of the
            `FIELD_TYPE_*` constants defined in `exdsn.constants`.
        default: The text used when the DSN provides no value for the field.
            It is converted using the same rules as captured text.
        role: `scheme` for the field that receives the scheme of the DSN,
            `params` for the field that receives the query parameters.
        src: The source from which this field was derived (the `attrs`
            attribute of the record).
    """

    name: str
    var_name: str = field(default="")
    type_name: str = field(default="")
    default: Optional[str] = field(default=None)
    role: Optional[str] = field(default=None)
    src: Any = field(default=None, eq=False, repr=False)

    def __attrs_post_init__(self):
        if not self.var_name:
            object.__setattr__(self, "var_name", self.pascal_case_name)

    @property
    def pascal_case_name(self) -> str:
        """Return the name of the field in PascalCase."""
        return "".join([c[:1].upper() + c[1:] for c in self.name.split("_")])

    @property
    def is_scheme(self) -> bool:
        return self.role == ROLE_SCHEME

    @property
    def is_params(self) -> bool:
        return self.role == ROLE_PARAMS

    @property
    def has_default(self) -> bool:
        return self.default is not None

    def coerce(self, raw: str) -> Any:
        """Convert raw text to the type of the field.

        Args:
            raw: The text captured from the DSN or the default.

        Returns:
            The converted value.

        Raises:
            TypeCoercionError: The text is not valid for this type.
        """
        raise NotImplementedError

    def to_text(self, value: Any) -> str:
        """Convert a value of the field to the text used in a DSN."""
        if value is None:
            return ""
        return str(value)

    def coercion_error(
        self,
        raw: str,
        code: DsnErrCode = DsnErrCode.COERCION_FAILED,
    ) -> TypeCoercionError:
        return TypeCoercionError(
            field=self.var_name,
            value=raw,
            type_name=self.type_name,
            code=code,
        )


class DsnFieldInfo(BaseModel):
    """Parser for the DSN metadata attached to a field of a record.

    The information is stored in the `metadata` of the `attrs` field under
    the `dsn` key (see `dsn_meta()`).

    Attributes:
        var: The name of the template variable that feeds the field, if it
            is not the PascalCase form of the name of the field.
        default: The text to use when the DSN provides no value.
        role: `scheme` or `params`; by default a field called `scheme`
            receives the scheme and a map field called `params` receives the
            query parameters.
        type_name: The semantic type of the field. If provided, it
            overrides the type derived from the annotation of the field.
        skip: Exclude the field from DSN processing.
    """

    model_config = ConfigDict(extra="forbid")

    var: Optional[str] = None
    default: Optional[str] = None
    role: Optional[RoleType] = None
    type_name: Optional[FieldTypeName] = None
    skip: Optional[bool] = None

    @field_validator("var")
    @classmethod
    def validate_var(cls, v):
        """The variable name must be usable in a template."""
        if v is not None and not ident_pattern.fullmatch(v):
            raise ValueError(f"{v!r} is not a valid variable name")
        return v
