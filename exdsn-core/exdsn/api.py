from exdsn.binder import bind  # noqa: F401
from exdsn.env import dsn_from_env, parse_dsn_env  # noqa: F401
from exdsn.errors import (  # noqa: F401
    BindError,
    DsnEnvError,
    DsnErrCode,
    DsnError,
    NoMatchError,
    ParseError,
    PatternSyntaxError,
    TypeCoercionError,
)
from exdsn.field import DsnField, DsnFieldInfo  # noqa: F401
from exdsn.field_types.api import (  # noqa: F401
    BoolField,
    IntField,
    MapField,
    StrField,
)
from exdsn.formatter import format_dsn  # noqa: F401
from exdsn.matcher import MatchResult, match_pattern  # noqa: F401
from exdsn.parser import parse_dsn, parse_dsn_as  # noqa: F401
from exdsn.pattern import (  # noqa: F401
    AlternationSegment,
    LiteralSegment,
    OptionalGroup,
    Pattern,
    PatternCache,
    VariableSegment,
    compile_pattern,
    get_pattern,
)
from exdsn.query import extract_query, parse_query  # noqa: F401
from exdsn.schema import (  # noqa: F401
    DsnSchema,
    SchemaCache,
    dsn_meta,
    get_schema,
    schema_from_record,
)
