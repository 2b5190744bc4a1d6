"""Compiler for DSN templates.

A template describes the expected shape of a DSN. It is made of:

- literal text, matched verbatim (`://`, `:`, `@`, `/`, any other text);
- variables, a `$` followed by an identifier, that capture the text between
  the surrounding literals;
- alternations, a parenthesized list of literal options separated by `|`;
  a single option is shorthand for "this text or nothing", so `http(s)`
  matches both `http` and `https`;
- optional groups, a bracketed region that may be missing from the input
  as a whole.

Examples:

```
ftp://$Username:$Password@$Host:$Port/$BasePath
http(s)://$Path
(postgres|postgresql)://$User[:$Password]@$Host[:$Port]/$Database
```

There is no escaping mechanism: a literal can not contain the special
characters `$`, `(`, `)`, `[` and `]`.
The query is removed from the DSN before matching, so a `?` may only appear
as the last character of a template.
"""

import logging
import re
import threading
from typing import Dict, Iterator, List, Optional, Tuple

from attrs import define, evolve, field

from exdsn.constants import (
    ALT_CLOSE,
    ALT_OPEN,
    ALT_SEP,
    OPT_CLOSE,
    OPT_OPEN,
    QUERY_SEP,
    SIGIL,
    SPECIAL_CHARS,
)
from exdsn.errors import DsnErrCode, PatternSyntaxError

logger = logging.getLogger(__name__)

# Variable names follow the rules of Python identifiers (ASCII only).
ident_pattern = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


@define(frozen=True)
class Segment:
    """Base class for the elements of a compiled pattern."""


@define(frozen=True)
class LiteralSegment(Segment):
    """Text that must be present verbatim in the input.

    Attributes:
        text: The text to match.
    """

    text: str


@define(frozen=True)
class VariableSegment(Segment):
    """A named capture.

    Attributes:
        name: The name of the variable (without the sigil).
        stops: The literals that may end the capture, in the order in
            which they appear in the template. An empty tuple means that
            the capture extends to the end of the input.
        offset: The position of the sigil in the template.
    """

    name: str
    stops: Tuple[str, ...] = ()
    offset: int = field(default=0, eq=False, repr=False)


@define(frozen=True)
class AlternationSegment(Segment):
    """Exactly one of several literal options.

    Attributes:
        options: The options, in the order in which they were declared.
            The empty string is an option for the `http(s)` form.
    """

    options: Tuple[str, ...]

    @property
    def ordered(self) -> Tuple[str, ...]:
        """The options in the order in which they are tried (longest first)."""
        return tuple(sorted(self.options, key=len, reverse=True))

    @property
    def optional(self) -> bool:
        """Whether the alternation may match nothing."""
        return "" in self.options


@define(frozen=True)
class OptionalGroup(Segment):
    """A sequence of segments that may be absent from the input as a whole.

    Attributes:
        segments: The enclosed segments.
    """

    segments: Tuple[Segment, ...]

    @property
    def variables(self) -> Tuple[str, ...]:
        """The names of all the variables inside the group."""
        return tuple(iter_variables(self.segments))


@define(frozen=True)
class Pattern:
    """A compiled template.

    Attributes:
        template: The source template.
        segments: The top level segments.
    """

    template: str
    segments: Tuple[Segment, ...]

    @property
    def variables(self) -> Tuple[str, ...]:
        """The names of all the variables, in template order."""
        return tuple(iter_variables(self.segments))

    def __str__(self) -> str:
        return self.template


def iter_variables(segments: Tuple[Segment, ...]) -> Iterator[str]:
    """Yield the names of the variables in a sequence of segments.

    Variables inside optional groups are included.
    """
    for seg in segments:
        if isinstance(seg, VariableSegment):
            yield seg.name
        elif isinstance(seg, OptionalGroup):
            yield from iter_variables(seg.segments)


def _heads(
    segments: Tuple[Segment, ...], start: int = 0
) -> Tuple[List[str], bool, bool]:
    """Find out what can appear first in a sequence of segments.

    Args:
        segments: The sequence.
        start: The index of the first segment to consider.

    Returns:
        The literals that can start the sequence, whether a variable can
        start the sequence and whether the sequence can match nothing at all.
    """
    lits: List[str] = []
    can_be_var = False
    for seg in segments[start:]:
        if isinstance(seg, LiteralSegment):
            lits.append(seg.text)
            return lits, can_be_var, False
        if isinstance(seg, VariableSegment):
            return lits, True, False
        if isinstance(seg, AlternationSegment):
            lits.extend(o for o in seg.options if o)
            if not seg.optional:
                return lits, can_be_var, False
        elif isinstance(seg, OptionalGroup):
            inner_lits, inner_var, _ = _heads(seg.segments)
            lits.extend(inner_lits)
            can_be_var = can_be_var or inner_var
    return lits, can_be_var, True


@define
class PatternCompiler:
    """Turns a template into a pattern.

    Attributes:
        template: The template to compile.
        pos: The current position in the template.
    """

    template: str
    pos: int = 0

    def _error(
        self,
        msg: str,
        code: DsnErrCode,
        offset: int,
        value: Optional[str] = None,
    ) -> PatternSyntaxError:
        return PatternSyntaxError(
            msg=f"{msg} at offset {offset} in template {self.template!r}",
            code=code,
            template=self.template,
            offset=offset,
            value=value,
        )

    def _parse_variable(self) -> VariableSegment:
        """Parse a variable; the current character is the sigil."""
        start = self.pos
        match = ident_pattern.match(self.template, self.pos + 1)
        if not match:
            raise self._error(
                "Expected an identifier after the variable marker",
                DsnErrCode.INVALID_VARIABLE,
                start,
                value=self.template[start : start + 2],  # noqa: E203
            )
        self.pos = match.end()
        return VariableSegment(name=match.group(0), offset=start)

    def _parse_alternation(self) -> AlternationSegment:
        """Parse an alternation; the current character opens it."""
        start = self.pos
        end = self.template.find(ALT_CLOSE, start + 1)
        if end == -1:
            raise self._error(
                "Unterminated alternation",
                DsnErrCode.UNTERMINATED_GROUP,
                start,
                value=self.template[start:],
            )
        body = self.template[start + 1 : end]  # noqa: E203
        for i, ch in enumerate(body):
            if ch in SPECIAL_CHARS:
                raise self._error(
                    f"Alternations can only hold literal options, got {ch!r}",
                    DsnErrCode.INVALID_ALTERNATION,
                    start + 1 + i,
                    value=ch,
                )
        if not body:
            raise self._error(
                "Empty alternation",
                DsnErrCode.INVALID_ALTERNATION,
                start,
                value=self.template[start : end + 1],  # noqa: E203
            )

        options: List[str] = []
        if ALT_SEP in body:
            for option in body.split(ALT_SEP):
                if option not in options:
                    options.append(option)
        else:
            # `http(s)` means `http` or `https`.
            options = [body, ""]

        self.pos = end + 1
        return AlternationSegment(options=tuple(options))

    def _parse_sequence(self, opened_at: int = -1) -> List[Segment]:
        """Parse segments until the end of the template or of a group.

        Args:
            opened_at: The offset of the `[` that opened the group being
                parsed, or -1 at the top level.
        """
        result: List[Segment] = []
        literal: List[str] = []

        def flush():
            if literal:
                result.append(LiteralSegment(text="".join(literal)))
                literal.clear()

        while self.pos < len(self.template):
            ch = self.template[self.pos]
            if ch == SIGIL:
                flush()
                result.append(self._parse_variable())
            elif ch == ALT_OPEN:
                flush()
                result.append(self._parse_alternation())
            elif ch == OPT_OPEN:
                flush()
                start = self.pos
                self.pos += 1
                inner = self._parse_sequence(opened_at=start)
                if not inner:
                    raise self._error(
                        "Empty optional group",
                        DsnErrCode.EMPTY_GROUP,
                        start,
                        value=OPT_OPEN + OPT_CLOSE,
                    )
                result.append(OptionalGroup(segments=tuple(inner)))
            elif ch == OPT_CLOSE and opened_at != -1:
                flush()
                self.pos += 1
                return result
            elif ch in (OPT_CLOSE, ALT_CLOSE):
                raise self._error(
                    f"Unexpected {ch!r}",
                    DsnErrCode.UNEXPECTED_CHAR,
                    self.pos,
                    value=ch,
                )
            elif ch == QUERY_SEP:
                # The query is removed from the input before matching; a
                # trailing `?` only documents that one may follow.
                if opened_at != -1 or self.pos != len(self.template) - 1:
                    raise self._error(
                        "The query separator can only end the template",
                        DsnErrCode.UNEXPECTED_CHAR,
                        self.pos,
                        value=ch,
                    )
                self.pos += 1
            else:
                literal.append(ch)
                self.pos += 1

        if opened_at != -1:
            raise self._error(
                "Unterminated optional group",
                DsnErrCode.UNTERMINATED_GROUP,
                opened_at,
                value=self.template[opened_at:],
            )
        flush()
        return result

    def _resolve(
        self,
        segments: List[Segment],
        follow_lits: List[str],
        follow_var: bool,
    ) -> Tuple[Segment, ...]:
        """Compute the stop literals of the variables.

        Args:
            segments: The sequence to resolve.
            follow_lits: The literals that can follow the sequence.
            follow_var: Whether a variable can follow the sequence.
        """
        result: List[Segment] = []
        for i, seg in enumerate(segments):
            lits, can_be_var, can_be_empty = _heads(tuple(segments), i + 1)
            if can_be_empty:
                lits = lits + follow_lits
                can_be_var = can_be_var or follow_var

            if isinstance(seg, VariableSegment):
                if can_be_var:
                    raise self._error(
                        f"Variable ${seg.name} is followed by another "
                        "variable without a delimiter",
                        DsnErrCode.ADJACENT_VARIABLES,
                        seg.offset,
                        value=seg.name,
                    )
                stops: List[str] = []
                for lit in lits:
                    if lit not in stops:
                        stops.append(lit)
                seg = evolve(seg, stops=tuple(stops))
            elif isinstance(seg, OptionalGroup):
                seg = OptionalGroup(
                    segments=self._resolve(
                        list(seg.segments), lits, can_be_var
                    )
                )
            result.append(seg)
        return tuple(result)

    def compile(self) -> Pattern:
        """Compile the template.

        Returns:
            The compiled pattern.

        Raises:
            PatternSyntaxError: The template is malformed.
        """
        self.pos = 0
        segments = self._parse_sequence()
        return Pattern(
            template=self.template,
            segments=self._resolve(segments, [], False),
        )


def compile_pattern(template: str) -> Pattern:
    """Compile a template into a pattern.

    Args:
        template: The template to compile.

    Returns:
        The compiled pattern.

    Raises:
        PatternSyntaxError: The template is malformed.
    """
    result = PatternCompiler(template).compile()
    logger.debug(
        "Compiled template %r into %d segments",
        template,
        len(result.segments),
    )
    return result


@define
class PatternCache:
    """Compiled patterns indexed by their template.

    Lookups do not take the lock; it is only held while a template that was
    not seen before is compiled.
    """

    _patterns: Dict[str, Pattern] = field(factory=dict, init=False)
    _lock: threading.Lock = field(
        factory=threading.Lock, init=False, repr=False
    )

    def get(self, template: str) -> Pattern:
        """Get the pattern for a template, compiling it if needed.

        Raises:
            PatternSyntaxError: The template is malformed.
        """
        result = self._patterns.get(template)
        if result is not None:
            return result
        with self._lock:
            result = self._patterns.get(template)
            if result is None:
                result = compile_pattern(template)
                self._patterns[template] = result
        return result

    def clear(self) -> None:
        with self._lock:
            self._patterns = {}

    def __contains__(self, template: str) -> bool:
        return template in self._patterns

    def __len__(self) -> int:
        return len(self._patterns)


# Process-wide cache; starts empty.
default_pattern_cache = PatternCache()


def get_pattern(template: str) -> Pattern:
    """Get a compiled pattern from the process-wide cache."""
    return default_pattern_cache.get(template)
