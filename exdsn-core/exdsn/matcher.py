import logging
from typing import Dict, List, Tuple

from attrs import define, field

from exdsn.constants import SCHEME_SEP
from exdsn.errors import DsnErrCode, NoMatchError
from exdsn.pattern import (
    AlternationSegment,
    LiteralSegment,
    OptionalGroup,
    Pattern,
    Segment,
    VariableSegment,
)

logger = logging.getLogger(__name__)


@define
class MatchResult:
    """The outcome of matching a pattern against an input.

    Attributes:
        captures: The raw text captured by each variable. Variables inside
            absent optional groups are present with an empty string.
        scheme: The text matched by the leading literals and alternations of
            the pattern, up to the `://` separator. Empty if the pattern
            does not start with a scheme.
        end: The position in the input where matching ended.
    """

    captures: Dict[str, str] = field(factory=dict)
    scheme: str = ""
    end: int = 0


@define
class Matcher:
    """Walks the segments of a pattern against an input string.

    Matching is a single left-to-right pass. The only look-ahead is the
    forward scan that finds the end of a variable's capture, and the only
    step back is undoing an optional group that captured its leading
    variable but none of its own text.

    Attributes:
        pattern: The compiled pattern.
        text: The input.
        pos: The cursor in the input.
        captures: The captures collected so far.
        anchors: How many literals and non-empty alternation options were
            matched so far. An optional group whose attempt fails before
            this grows was never present in the input.
    """

    pattern: Pattern
    text: str
    pos: int = 0
    captures: Dict[str, str] = field(factory=dict)
    anchors: int = 0

    def _fail(self, reason: str, code: DsnErrCode) -> NoMatchError:
        return NoMatchError(
            reason=reason,
            code=code,
            template=self.pattern.template,
            text=self.text,
            offset=self.pos,
        )

    def _capture_end(self, seg: VariableSegment) -> int:
        """Locate the end of the capture of a variable.

        The capture ends at the first occurrence of any of the stop
        literals of the variable. When none of them can be found the
        capture runs to the end of the input.
        """
        end = len(self.text)
        for stop in seg.stops:
            found = self.text.find(stop, self.pos)
            if found != -1 and found < end:
                end = found
        return end

    def _can_start(self, segments: Tuple[Segment, ...]) -> bool:
        """Tell if a sequence matches something non-empty at the cursor."""
        for seg in segments:
            if isinstance(seg, LiteralSegment):
                return self.text.startswith(seg.text, self.pos)
            if isinstance(seg, VariableSegment):
                return self._capture_end(seg) > self.pos
            if isinstance(seg, AlternationSegment):
                if any(
                    self.text.startswith(o, self.pos) for o in seg.options if o
                ):
                    return True
                if not seg.optional:
                    return False
            elif isinstance(seg, OptionalGroup):
                if self._can_start(seg.segments):
                    return True
        return False

    def _skip_group(self, seg: OptionalGroup):
        for name in seg.variables:
            self.captures.setdefault(name, "")

    def _match_segment(self, seg: Segment) -> str:
        """Match one segment and advance the cursor.

        Returns:
            The text consumed by the segment.
        """
        start = self.pos
        if isinstance(seg, LiteralSegment):
            if not self.text.startswith(seg.text, self.pos):
                raise self._fail(
                    f"literal mismatch, expected {seg.text!r}",
                    DsnErrCode.LITERAL_MISMATCH,
                )
            self.pos += len(seg.text)
            self.anchors += 1

        elif isinstance(seg, AlternationSegment):
            for option in seg.ordered:
                if self.text.startswith(option, self.pos):
                    self.pos += len(option)
                    if option:
                        self.anchors += 1
                    break
            else:
                raise self._fail(
                    "none of the alternatives "
                    f"{', '.join(repr(o) for o in seg.options)} matched",
                    DsnErrCode.NO_ALTERNATIVE,
                )

        elif isinstance(seg, VariableSegment):
            self.pos = self._capture_end(seg)
            self.captures[seg.name] = self.text[start : self.pos]  # noqa: E203

        elif isinstance(seg, OptionalGroup):
            if not self._can_start(seg.segments):
                self._skip_group(seg)
                return ""

            anchors = self.anchors
            captures = dict(self.captures)
            try:
                for inner in seg.segments:
                    self._match_segment(inner)
            except NoMatchError as e:
                if self.anchors == anchors:
                    # Only a leading variable matched; none of the text of
                    # the group itself is in the input.
                    self.pos = start
                    self.captures = captures
                    self._skip_group(seg)
                    return ""
                raise self._fail(
                    f"partial optional group ({e.reason})",
                    DsnErrCode.PARTIAL_GROUP,
                ) from e
        else:
            raise TypeError(f"Unknown segment {seg!r}")

        return self.text[start : self.pos]  # noqa: E203

    def match(self) -> MatchResult:
        """Match the whole input.

        Raises:
            NoMatchError: A required segment did not match or the input has
                extra text after the last segment.
        """
        self.pos = 0
        self.captures = {}
        self.anchors = 0

        # Text consumed by the leading literals and alternations.
        leading: List[str] = []
        in_lead = True
        for seg in self.pattern.segments:
            consumed = self._match_segment(seg)
            if in_lead and isinstance(
                seg, (LiteralSegment, AlternationSegment)
            ):
                leading.append(consumed)
            else:
                in_lead = False

        if self.pos != len(self.text):
            raise self._fail(
                "unexpected trailing input", DsnErrCode.TRAILING_INPUT
            )

        lead_text = "".join(leading)
        scheme = ""
        if SCHEME_SEP in lead_text:
            scheme = lead_text.split(SCHEME_SEP, 1)[0]

        return MatchResult(
            captures=self.captures,
            scheme=scheme,
            end=self.pos,
        )


def match_pattern(pattern: Pattern, text: str) -> MatchResult:
    """Match a pattern against an input.

    Args:
        pattern: The compiled pattern.
        text: The input; it should not contain the query part.

    Returns:
        The captures and the scheme.

    Raises:
        NoMatchError: The input does not conform to the pattern.
    """
    result = Matcher(pattern=pattern, text=text).match()
    logger.debug(
        "Matched against %r, captured %s",
        pattern.template,
        ", ".join(result.captures),
    )
    return result
