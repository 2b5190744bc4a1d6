from enum import StrEnum
from typing import Any, Optional

from exdsn.constants import StageType


class DsnErrCode(StrEnum):
    INVALID_VARIABLE = "invalid_variable"
    UNTERMINATED_GROUP = "unterminated_group"
    UNEXPECTED_CHAR = "unexpected_char"
    INVALID_ALTERNATION = "invalid_alternation"
    EMPTY_GROUP = "empty_group"
    ADJACENT_VARIABLES = "adjacent_variables"
    LITERAL_MISMATCH = "literal_mismatch"
    NO_ALTERNATIVE = "no_alternative"
    PARTIAL_GROUP = "partial_group"
    TRAILING_INPUT = "trailing_input"
    INVALID_INT_VALUE = "invalid_int_value"
    INVALID_BOOL_VALUE = "invalid_bool_value"
    INVALID_MAP_VALUE = "invalid_map_value"
    UNKNOWN_VARIABLE = "unknown_variable"
    UNSUPPORTED_TYPE = "unsupported_type"
    INVALID_METADATA = "invalid_metadata"
    MISSING_TEMPLATE = "missing_template"
    NOT_A_RECORD = "not_a_record"
    READ_ONLY_RECORD = "read_only_record"
    COERCION_FAILED = "coercion_failed"
    PARSE_FAILED = "parse_failed"
    MISSING_ENV = "missing_env"


class DsnError(Exception):
    """Base class for all the errors raised by this library.

    Attributes:
        code: The error code.
    """

    code: DsnErrCode

    def __init__(self, msg: str, code: DsnErrCode):
        super().__init__(msg)
        self.code = code

    @property
    def message(self) -> str:
        return str(self)

    def as_dict(self) -> dict:
        return {
            "code": self.code,
            "message": self.message,
        }


class PatternSyntaxError(DsnError):
    """The template itself is malformed.

    Attributes:
        template: The template that was being compiled.
        offset: The 0-based offset of the offending character in the
            template.
        value: The offending fragment, if any.
    """

    template: str
    offset: int
    value: Optional[str]

    def __init__(
        self,
        msg: str,
        code: DsnErrCode,
        template: str,
        offset: int,
        value: Optional[str] = None,
    ):
        super().__init__(msg, code)
        self.template = template
        self.offset = offset
        self.value = value

    def as_dict(self) -> dict:
        return {
            **super().as_dict(),
            "template": self.template,
            "offset": self.offset,
            "value": self.value,
        }


class NoMatchError(DsnError):
    """The input does not conform to the required segments of a pattern.

    Attributes:
        template: The template of the pattern.
        text: The input that was matched against the pattern.
        offset: The 0-based position of the cursor in `text` when matching
            failed.
        reason: A short, human readable reason.
    """

    template: str
    text: str
    offset: int
    reason: str

    def __init__(
        self,
        reason: str,
        code: DsnErrCode,
        template: str,
        text: str,
        offset: int,
    ):
        super().__init__(
            f"{reason} at position {offset} of {text!r} "
            f"(template {template!r})",
            code,
        )
        self.reason = reason
        self.template = template
        self.text = text
        self.offset = offset

    def as_dict(self) -> dict:
        return {
            **super().as_dict(),
            "reason": self.reason,
            "template": self.template,
            "text": self.text,
            "offset": self.offset,
        }


class TypeCoercionError(DsnError):
    """A raw string cannot be converted to the type of a field.

    Attributes:
        field: The name of the field.
        value: The raw value that could not be converted.
        type_name: The semantic type of the field.
    """

    field: str
    value: str
    type_name: str

    def __init__(
        self,
        field: str,
        value: str,
        type_name: str,
        code: DsnErrCode = DsnErrCode.COERCION_FAILED,
    ):
        super().__init__(
            f"Cannot convert {value!r} to {type_name} for field {field}",
            code,
        )
        self.field = field
        self.value = value
        self.type_name = type_name

    def as_dict(self) -> dict:
        return {
            **super().as_dict(),
            "field": self.field,
            "value": self.value,
            "type_name": self.type_name,
        }


class BindError(DsnError):
    """The field descriptors and the record or the captures do not agree.

    Attributes:
        field: The name of the field involved, if any.
        error: The wrapped error (a `TypeCoercionError` when the value of a
            field could not be converted).
    """

    field: Optional[str]
    error: Optional[Exception]

    def __init__(
        self,
        msg: str,
        code: DsnErrCode,
        field: Optional[str] = None,
        error: Optional[Exception] = None,
    ):
        super().__init__(msg, code)
        self.field = field
        self.error = error

    def as_dict(self) -> dict:
        result = {
            **super().as_dict(),
            "field": self.field,
        }
        if isinstance(self.error, DsnError):
            result["error"] = self.error.as_dict()
        return result


class ParseError(DsnError):
    """A DSN could not be parsed into a record.

    This is the only error `parse_dsn()` raises; the error of the stage that
    failed is available in `error` (and as the cause of the exception).

    Attributes:
        stage: One of `compile`, `match`, `coercion` or `bind`.
        template: The template of the record, if it was known.
        text: The input string.
        error: The error raised by the failing stage.
    """

    stage: StageType
    template: Optional[str]
    text: str
    error: DsnError

    def __init__(
        self,
        stage: StageType,
        error: DsnError,
        text: str,
        template: Optional[str] = None,
    ):
        super().__init__(
            f"Failed to parse {text!r} ({stage} stage): {error}",
            DsnErrCode.PARSE_FAILED,
        )
        self.stage = stage
        self.error = error
        self.text = text
        self.template = template

    @property
    def origin(self) -> Exception:
        """The innermost wrapped error."""
        result: Any = self.error
        while getattr(result, "error", None) is not None:
            result = result.error
        return result

    def as_dict(self) -> dict:
        return {
            **super().as_dict(),
            "stage": self.stage,
            "template": self.template,
            "text": self.text,
            "error": self.error.as_dict(),
        }


class DsnEnvError(DsnError):
    """No DSN could be found in the environment.

    Attributes:
        name: The name of the environment variable.
    """

    name: str

    def __init__(self, name: str):
        super().__init__(
            f"Environment variable {name} is not set",
            DsnErrCode.MISSING_ENV,
        )
        self.name = name
