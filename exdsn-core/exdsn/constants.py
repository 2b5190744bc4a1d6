# Constants for field types
from typing import Literal

FIELD_TYPE_BOOL = "bool"
FIELD_TYPE_INTEGER = "integer"
FIELD_TYPE_STRING = "string"
FIELD_TYPE_MAP = "map"
FieldTypeName = Literal["bool", "integer", "string", "map"]

# The roles a field can play beside receiving a template variable.
ROLE_SCHEME = "scheme"
ROLE_PARAMS = "params"
RoleType = Literal["scheme", "params"]

# The key under which the field metadata is stored in `attrs` fields.
METADATA_KEY = "dsn"

# The name of the class attribute that holds the template of a record.
TEMPLATE_ATTR = "__dsn_template__"

# Characters with a special meaning inside a template.
SIGIL = "$"
ALT_OPEN = "("
ALT_CLOSE = ")"
ALT_SEP = "|"
OPT_OPEN = "["
OPT_CLOSE = "]"
SPECIAL_CHARS = SIGIL + ALT_OPEN + ALT_CLOSE + OPT_OPEN + OPT_CLOSE

# Separators used in the input string.
SCHEME_SEP = "://"
QUERY_SEP = "?"
PAIR_SEP = "&"
KV_SEP = "="

# The stages reported by a parse error.
StageType = Literal["compile", "match", "coercion", "bind"]
STAGE_COMPILE: StageType = "compile"
STAGE_MATCH: StageType = "match"
STAGE_COERCION: StageType = "coercion"
STAGE_BIND: StageType = "bind"
