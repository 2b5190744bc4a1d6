import logging

import pytest

from exdsn.errors import DsnErrCode, PatternSyntaxError
from exdsn.pattern import (
    AlternationSegment,
    LiteralSegment,
    OptionalGroup,
    PatternCache,
    VariableSegment,
    compile_pattern,
)


class TestCompile:
    def test_literals_and_variables(self):
        pattern = compile_pattern("ftp://$User:$Pass@$Host")
        assert pattern.template == "ftp://$User:$Pass@$Host"
        assert pattern.segments == (
            LiteralSegment("ftp://"),
            VariableSegment("User", (":",)),
            LiteralSegment(":"),
            VariableSegment("Pass", ("@",)),
            LiteralSegment("@"),
            VariableSegment("Host", ()),
        )

    def test_variable_offset(self):
        pattern = compile_pattern("ftp://$User")
        seg = pattern.segments[1]
        assert isinstance(seg, VariableSegment)
        assert seg.offset == 6

    def test_optional_letters(self):
        pattern = compile_pattern("http(s)://$Path")
        assert pattern.segments[0] == LiteralSegment("http")
        alt = pattern.segments[1]
        assert alt == AlternationSegment(("s", ""))
        assert alt.optional is True
        assert alt.ordered == ("s", "")

    def test_alternation(self):
        pattern = compile_pattern("(postgres|postgresql|postgres)://$Host")
        alt = pattern.segments[0]
        assert alt == AlternationSegment(("postgres", "postgresql"))
        assert alt.optional is False
        assert alt.ordered == ("postgresql", "postgres")

    def test_optional_group(self):
        pattern = compile_pattern("$Host[:$Port]/$Db")
        assert pattern.segments == (
            VariableSegment("Host", (":", "/")),
            OptionalGroup(
                (LiteralSegment(":"), VariableSegment("Port", ("/",)))
            ),
            LiteralSegment("/"),
            VariableSegment("Db", ()),
        )

    def test_nested_optional_groups(self):
        pattern = compile_pattern("$Host[:$Port[/$Db]]")
        outer = pattern.segments[1]
        assert isinstance(outer, OptionalGroup)
        assert outer.variables == ("Port", "Db")
        port = outer.segments[1]
        assert port == VariableSegment("Port", ("/",))
        inner = outer.segments[2]
        assert isinstance(inner, OptionalGroup)
        assert inner.segments[1] == VariableSegment("Db", ())

    def test_variables(self):
        pattern = compile_pattern("(a|b)://$User[:$Password]@$Host")
        assert pattern.variables == ("User", "Password", "Host")

    def test_empty_template(self):
        pattern = compile_pattern("")
        assert pattern.segments == ()
        assert pattern.variables == ()

    def test_deterministic(self):
        template = "(postgres|pg)://$User[:$Password]@$Host[:$Port]/$Db"
        assert compile_pattern(template) == compile_pattern(template)

    def test_trailing_query_separator(self):
        pattern = compile_pattern("http(s)://$Path?")
        assert pattern.template == "http(s)://$Path?"
        assert pattern.segments == compile_pattern("http(s)://$Path").segments

    def test_str(self):
        assert str(compile_pattern("x://$Y")) == "x://$Y"


class TestCompileErrors:
    @pytest.mark.parametrize(
        "template, code, offset",
        [
            ("$", DsnErrCode.INVALID_VARIABLE, 0),
            ("ftp://$1abc", DsnErrCode.INVALID_VARIABLE, 6),
            ("http(s://$Path", DsnErrCode.UNTERMINATED_GROUP, 4),
            ("$Host[:$Port", DsnErrCode.UNTERMINATED_GROUP, 5),
            ("$Host]", DsnErrCode.UNEXPECTED_CHAR, 5),
            ("a)$B", DsnErrCode.UNEXPECTED_CHAR, 1),
            ("($x)", DsnErrCode.INVALID_ALTERNATION, 1),
            ("a([b])", DsnErrCode.INVALID_ALTERNATION, 2),
            ("()://$Host", DsnErrCode.INVALID_ALTERNATION, 0),
            ("$Host[]", DsnErrCode.EMPTY_GROUP, 5),
            ("$A$B", DsnErrCode.ADJACENT_VARIABLES, 0),
            ("x/$A[$B]", DsnErrCode.ADJACENT_VARIABLES, 2),
            ("[$A]$B", DsnErrCode.ADJACENT_VARIABLES, 1),
            ("$A(s)$B", DsnErrCode.ADJACENT_VARIABLES, 0),
            ("$Host?x", DsnErrCode.UNEXPECTED_CHAR, 5),
            ("[$Host?]", DsnErrCode.UNEXPECTED_CHAR, 6),
        ],
    )
    def test_errors(self, template, code, offset):
        with pytest.raises(PatternSyntaxError) as exc_info:
            compile_pattern(template)
        assert exc_info.value.code == code
        assert exc_info.value.offset == offset
        assert exc_info.value.template == template

    def test_adjacent_variables_message(self):
        with pytest.raises(PatternSyntaxError) as exc_info:
            compile_pattern("$A$B")
        assert "$A" in str(exc_info.value)
        assert exc_info.value.value == "A"

    def test_as_dict(self):
        with pytest.raises(PatternSyntaxError) as exc_info:
            compile_pattern("$Host]")
        data = exc_info.value.as_dict()
        assert data["code"] == "unexpected_char"
        assert data["template"] == "$Host]"
        assert data["offset"] == 5
        assert data["value"] == "]"

    def test_separated_variables_are_fine(self):
        compile_pattern("$A-$B")
        compile_pattern("$A[-$B]")
        compile_pattern("$A(s|t)$B")


class TestPatternCache:
    def test_get_compiles_once(self):
        cache = PatternCache()
        first = cache.get("$Host:$Port")
        second = cache.get("$Host:$Port")
        assert first is second
        assert len(cache) == 1
        assert "$Host:$Port" in cache

    def test_errors_are_not_cached(self):
        cache = PatternCache()
        with pytest.raises(PatternSyntaxError):
            cache.get("$A$B")
        assert len(cache) == 0

    def test_clear(self):
        cache = PatternCache()
        cache.get("$Host")
        cache.clear()
        assert len(cache) == 0
        assert "$Host" not in cache


def test_compile_logs(caplog):
    caplog.set_level(logging.DEBUG, logger="exdsn.pattern")
    compile_pattern("$Host:$Port")
    assert "Compiled template" in caplog.text
