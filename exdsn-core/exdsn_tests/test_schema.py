from typing import ClassVar, Dict, List, Mapping, Optional

import pytest
from attrs import define, field

from exdsn.constants import (
    FIELD_TYPE_BOOL,
    FIELD_TYPE_INTEGER,
    FIELD_TYPE_MAP,
    FIELD_TYPE_STRING,
    METADATA_KEY,
)
from exdsn.errors import BindError, DsnErrCode, PatternSyntaxError
from exdsn.field_types.api import IntField, MapField, StrField
from exdsn.schema import (
    SchemaCache,
    dsn_meta,
    get_schema,
    schema_from_record,
    type_name_from_annotation,
)


class TestDsnMeta:
    def test_only_given_values(self):
        assert dsn_meta(default="21") == {METADATA_KEY: {"default": "21"}}

    def test_all_values(self):
        assert dsn_meta(
            var="Port", default="1", role="scheme", type_name="string"
        ) == {
            METADATA_KEY: {
                "var": "Port",
                "default": "1",
                "role": "scheme",
                "type_name": "string",
            }
        }


class TestTypeNameFromAnnotation:
    @pytest.mark.parametrize(
        "annotation, expected",
        [
            (str, FIELD_TYPE_STRING),
            (int, FIELD_TYPE_INTEGER),
            (bool, FIELD_TYPE_BOOL),
            (dict, FIELD_TYPE_MAP),
            (Dict[str, str], FIELD_TYPE_MAP),
            (dict[str, str], FIELD_TYPE_MAP),
            (Mapping[str, str], FIELD_TYPE_MAP),
            (Optional[int], FIELD_TYPE_INTEGER),
            (str | None, FIELD_TYPE_STRING),
        ],
    )
    def test_supported(self, annotation, expected):
        assert type_name_from_annotation(annotation) == expected

    @pytest.mark.parametrize(
        "annotation", [float, List[str], Optional[int | str], None]
    )
    def test_unsupported(self, annotation):
        assert type_name_from_annotation(annotation) is None


class TestSchemaFromRecord:
    def test_ftp(self, ftp_dsn):
        schema = schema_from_record(ftp_dsn)
        assert schema.record_type is ftp_dsn
        assert schema.template == ftp_dsn.__dsn_template__
        assert schema.pattern.variables == (
            "Username",
            "Password",
            "Host",
            "Port",
            "BasePath",
        )
        assert [f.name for f in schema.fields] == [
            "scheme",
            "username",
            "password",
            "host",
            "port",
            "base_path",
            "params",
        ]
        port = schema.fields_for_var("Port")[0]
        assert isinstance(port, IntField)
        assert port.default == "21"

        assert isinstance(schema.scheme_field, StrField)
        assert schema.scheme_field.name == "scheme"
        assert isinstance(schema.params_field, MapField)
        assert schema.params_field.name == "params"

    def test_unrelated_fields_are_ignored(self, pg_dsn):
        schema = schema_from_record(pg_dsn)
        assert "engine" not in [f.name for f in schema.fields]

    def test_explicit_metadata(self):
        @define
        class Rec:
            __dsn_template__: ClassVar[str] = "$Kind://$Db"

            proto: str = field(default="", metadata=dsn_meta(role="scheme"))
            name: str = field(default="", metadata=dsn_meta(var="Db"))
            kind: str = field(default="", metadata=dsn_meta(skip=True))
            extra: Dict[str, str] = field(
                factory=dict, metadata=dsn_meta(role="params")
            )
            port: str = field(
                default="", metadata=dsn_meta(type_name="integer")
            )

        with pytest.raises(BindError) as exc_info:
            schema_from_record(Rec)
        # `kind` is skipped so nothing receives `$Kind`.
        assert exc_info.value.code == DsnErrCode.UNKNOWN_VARIABLE
        assert exc_info.value.field == "Kind"

    def test_roles_and_overrides(self):
        @define
        class Rec:
            __dsn_template__: ClassVar[str] = "$Proto://$Db"

            proto: str = field(default="", metadata=dsn_meta(role="scheme"))
            name: str = field(default="", metadata=dsn_meta(var="Db"))
            extra: Dict[str, str] = field(
                factory=dict, metadata=dsn_meta(role="params")
            )
            port: Optional[str] = field(
                default=None, metadata=dsn_meta(type_name="integer")
            )

        schema = schema_from_record(Rec)
        assert schema.scheme_field.name == "proto"
        assert schema.params_field.name == "extra"
        assert schema.fields_for_var("Db")[0].name == "name"
        assert schema.fields_for_var("Port")[0].type_name == "integer"

    def test_not_attrs(self):
        class Plain:
            __dsn_template__ = "$Host"

        with pytest.raises(BindError) as exc_info:
            schema_from_record(Plain)
        assert exc_info.value.code == DsnErrCode.NOT_A_RECORD

    def test_missing_template(self):
        @define
        class Rec:
            host: str = ""

        with pytest.raises(BindError) as exc_info:
            schema_from_record(Rec)
        assert exc_info.value.code == DsnErrCode.MISSING_TEMPLATE

    def test_bad_template(self):
        @define
        class Rec:
            __dsn_template__: ClassVar[str] = "$A$B"

            a: str = ""
            b: str = ""

        with pytest.raises(PatternSyntaxError):
            schema_from_record(Rec)

    @pytest.mark.parametrize(
        "info",
        [
            {"role": "bogus"},
            {"var": "1abc"},
            {"default": 21},
            {"type_name": "float"},
            {"unknown": "x"},
        ],
    )
    def test_invalid_metadata(self, info):
        @define
        class Rec:
            __dsn_template__: ClassVar[str] = "$Host"

            host: str = field(default="", metadata={METADATA_KEY: info})

        with pytest.raises(BindError) as exc_info:
            schema_from_record(Rec)
        assert exc_info.value.code == DsnErrCode.INVALID_METADATA
        assert exc_info.value.field == "host"

    def test_unsupported_type_with_metadata(self):
        @define
        class Rec:
            __dsn_template__: ClassVar[str] = "$Host/$Items"

            host: str = ""
            items: List[str] = field(
                factory=list, metadata=dsn_meta(var="Items")
            )

        with pytest.raises(BindError) as exc_info:
            schema_from_record(Rec)
        assert exc_info.value.code == DsnErrCode.UNSUPPORTED_TYPE

    def test_params_must_be_a_map(self):
        @define
        class Rec:
            __dsn_template__: ClassVar[str] = "$Host"

            host: str = ""
            params: str = field(default="", metadata=dsn_meta(role="params"))

        with pytest.raises(BindError) as exc_info:
            schema_from_record(Rec)
        assert exc_info.value.code == DsnErrCode.UNSUPPORTED_TYPE
        assert exc_info.value.field == "params"

    def test_str_params_without_metadata_is_a_variable(self):
        @define
        class Rec:
            __dsn_template__: ClassVar[str] = "$Host/$Params"

            host: str = ""
            params: str = ""

        schema = schema_from_record(Rec)
        assert schema.params_field is None
        assert schema.fields_for_var("Params")[0].name == "params"


class TestSchemaCache:
    def test_built_once(self, http_dsn):
        cache = SchemaCache()
        first = cache.get(http_dsn)
        assert cache.get(http_dsn) is first
        assert http_dsn in cache
        assert len(cache) == 1

        cache.clear()
        assert len(cache) == 0

    def test_failures_are_not_cached(self):
        class Plain:
            pass

        cache = SchemaCache()
        with pytest.raises(BindError):
            cache.get(Plain)
        assert Plain not in cache

    def test_default_cache(self, smtp_dsn):
        assert get_schema(smtp_dsn) is get_schema(smtp_dsn)
