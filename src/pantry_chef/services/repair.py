"""Best-effort text repair for JSON produced by language models.

Each rule is a pure ``str -> str`` transformation. Rules run in order; the
scanner-based rules track whether they are inside a string literal so that
punctuation in recipe text is left alone.
"""

import logging
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass

_logger = logging.getLogger(__name__)

_CONTROL_CHARACTERS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]+")
_LINE_BREAKS = re.compile(r"[\r\n\t]+")
_ESCAPE_SEQUENCE = re.compile(r'\\(?:u[0-9a-fA-F]{4}|["\\/bfnrt])|\\')
_TRAILING_COMMA = re.compile(r",(\s*[}\]])")
_DUPLICATE_COMMAS = re.compile(r",(?:\s*,)+")
_STRING_LITERAL = re.compile(r'"((?:[^"\\]|\\.)*)"')
_INNER_WHITESPACE = re.compile(r" {2,}")

# Typographic and fullwidth double quotes.
_FANCY_QUOTES = frozenset("\u201c\u201d\u201e\u201f\uff02")
_FULLWIDTH_PUNCTUATION = {"，": ",", "：": ":"}


@dataclass(frozen=True)
class RepairRule:
    """Named text transformation."""

    name: str
    apply: Callable[[str], str]


def extract_json_object(text: str) -> str | None:
    """Return the span from the first ``{`` to the last ``}``.

    When no closing brace follows the first opening brace the rest of the
    text is returned so truncated output can still be closed.
    """
    start = text.find("{")
    if start == -1:
        return None
    end = text.rfind("}")
    if end < start:
        return text[start:]
    return text[start : end + 1]


def strip_byte_order_marks(text: str) -> str:
    return text.replace("\ufeff", "")


def replace_control_characters(text: str) -> str:
    return _CONTROL_CHARACTERS.sub(" ", text)


def collapse_line_breaks(text: str) -> str:
    return _LINE_BREAKS.sub(" ", text)


def normalize_quotes(text: str) -> str:
    """Turn typographic quote delimiters and fullwidth ``，：`` into ASCII.

    Fancy quotes inside a regular string literal are content and stay as is.
    """
    out: list[str] = []
    in_string = False
    fancy_delimited = False
    escaped = False
    for char in text:
        if in_string:
            if escaped:
                escaped = False
                out.append(char)
            elif char == "\\":
                escaped = True
                out.append(char)
            elif char == '"' or (fancy_delimited and char in _FANCY_QUOTES):
                in_string = False
                out.append('"')
            else:
                out.append(char)
            continue
        if char == '"' or char in _FANCY_QUOTES:
            in_string = True
            fancy_delimited = char != '"'
            out.append('"')
        else:
            out.append(_FULLWIDTH_PUNCTUATION.get(char, char))
    return "".join(out)


def fix_invalid_escapes(text: str) -> str:
    """Double any backslash that does not start a valid JSON escape."""
    return _ESCAPE_SEQUENCE.sub(
        lambda match: match.group(0) if len(match.group(0)) > 1 else "\\\\", text
    )


def close_unterminated(text: str) -> str:
    """Append the quote and closers needed to balance truncated output."""
    closers: list[str] = []
    in_string = False
    escaped = False
    for char in text:
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            closers.append("}")
        elif char == "[":
            closers.append("]")
        elif char in "}]" and closers and closers[-1] == char:
            closers.pop()
    suffix = '"' if in_string else ""
    return text + suffix + "".join(reversed(closers))


def collapse_duplicate_commas(text: str) -> str:
    return _outside_strings(text, lambda segment: _DUPLICATE_COMMAS.sub(",", segment))


def strip_trailing_commas(text: str) -> str:
    return _outside_strings(text, lambda segment: _TRAILING_COMMA.sub(r"\1", segment))


def _outside_strings(text: str, transform: Callable[[str], str]) -> str:
    """Apply a transformation to the text between string literals only."""
    parts: list[str] = []
    start = 0
    in_string = False
    escaped = False
    for index, char in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
                parts.append(text[start : index + 1])
                start = index + 1
            continue
        if char == '"':
            parts.append(transform(text[start:index]))
            start = index
            in_string = True
    tail = text[start:]
    parts.append(tail if in_string else transform(tail))
    return "".join(parts)


def trim_string_literals(text: str) -> str:
    """Strip and squeeze whitespace inside every string literal."""

    def _trim(match: re.Match[str]) -> str:
        inner = _INNER_WHITESPACE.sub(" ", match.group(1)).strip()
        return f'"{inner}"'

    return _STRING_LITERAL.sub(_trim, text)


DEFAULT_REPAIR_RULES: tuple[RepairRule, ...] = (
    RepairRule("strip_byte_order_marks", strip_byte_order_marks),
    RepairRule("replace_control_characters", replace_control_characters),
    RepairRule("collapse_line_breaks", collapse_line_breaks),
    RepairRule("normalize_quotes", normalize_quotes),
    RepairRule("fix_invalid_escapes", fix_invalid_escapes),
    RepairRule("close_unterminated", close_unterminated),
    RepairRule("collapse_duplicate_commas", collapse_duplicate_commas),
    RepairRule("strip_trailing_commas", strip_trailing_commas),
    RepairRule("trim_string_literals", trim_string_literals),
)


def repair_json_text(
    text: str, rules: Sequence[RepairRule] = DEFAULT_REPAIR_RULES
) -> str:
    """Run the repair rules over the text in order."""
    for rule in rules:
        repaired = rule.apply(text)
        if repaired != text:
            _logger.debug("JSON repair rule applied: %s", rule.name)
        text = repaired
    return text.strip()
