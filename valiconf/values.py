"""Parsers for the scalar values found in plugin configuration strings."""

from __future__ import annotations

import re
from datetime import timedelta

__all__ = [
    "ConfigError",
    "parse_duration",
    "parse_bool",
    "parse_int",
    "parse_matchers",
    "is_valid_label_name",
]


class ConfigError(ValueError):
    """Raised when a configuration value cannot be parsed or is not allowed."""


_NANOSECONDS_PER_UNIT = {
    "ns": 1,
    "us": 1_000,
    "\u00b5s": 1_000,
    "\u03bcs": 1_000,
    "ms": 1_000_000,
    "s": 1_000_000_000,
    "m": 60 * 1_000_000_000,
    "h": 3600 * 1_000_000_000,
}

_DURATION_PART = re.compile(r"(?P<whole>[0-9]*)(?:\.(?P<frac>[0-9]*))?(?P<unit>[^0-9.]*)")
_INT64_MAX = 2**63 - 1


def parse_duration(text: str) -> timedelta:
    """Parse a duration such as ``"300ms"``, ``"1.5h"`` or ``"2h45m"``.

    Units are ns, us (or µs), ms, s, m and h. Precision below a microsecond
    is truncated.
    """
    rest = text
    negative = False
    if rest and rest[0] in "+-":
        negative = rest[0] == "-"
        rest = rest[1:]
    if rest == "0":
        return timedelta(0)
    if not rest:
        raise ConfigError(f'time: invalid duration "{text}"')

    limit = _INT64_MAX + 1 if negative else _INT64_MAX
    total = 0
    while rest:
        match = _DURATION_PART.match(rest)
        whole, frac, unit = match["whole"], match["frac"], match["unit"]
        if not whole and not frac:
            raise ConfigError(f'time: invalid duration "{text}"')
        if not unit:
            raise ConfigError(f'time: missing unit in duration "{text}"')
        scale = _NANOSECONDS_PER_UNIT.get(unit)
        if scale is None:
            raise ConfigError(f'time: unknown unit "{unit}" in duration "{text}"')
        value = int(whole or "0") * scale
        if frac:
            value += int(frac) * scale // 10 ** len(frac)
        total += value
        if total > limit:
            raise ConfigError(f'time: invalid duration "{text}"')
        rest = rest[match.end():]

    delta = timedelta(microseconds=total // 1_000)
    return -delta if negative else delta


_TRUE_WORDS = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE_WORDS = frozenset({"0", "f", "F", "FALSE", "false", "False"})


def parse_bool(text: str) -> bool:
    """Parse a boolean written as 1, t, T, TRUE, true, True or their false forms."""
    if text in _TRUE_WORDS:
        return True
    if text in _FALSE_WORDS:
        return False
    raise ConfigError(f'strconv.ParseBool: parsing "{text}": invalid syntax')


_INTEGER = re.compile(r"[+-]?[0-9]+")


def parse_int(text: str) -> int:
    """Parse a signed decimal integer that fits in 64 bits."""
    if not _INTEGER.fullmatch(text):
        raise ConfigError(f'strconv.Atoi: parsing "{text}": invalid syntax')
    value = int(text)
    if not -(2**63) <= value <= _INT64_MAX:
        raise ConfigError(f'strconv.Atoi: parsing "{text}": value out of range')
    return value


_LABEL_NAME = re.compile(r"[a-zA-Z_][a-zA-Z0-9_]*")


def is_valid_label_name(name: str) -> bool:
    """Tell whether ``name`` is a valid label name."""
    return _LABEL_NAME.fullmatch(name) is not None


_SPACE = re.compile(r"\s*")
_OPERATOR = re.compile(r"=~|!~|!=|=")
_STRING = re.compile(r'"(?:[^"\\\n]|\\.)*"|`[^`]*`')
_ESCAPE = re.compile(r"\\(x[0-9a-fA-F]{2}|u[0-9a-fA-F]{4}|U[0-9a-fA-F]{8}|[0-7]{3}|.)")
_SIMPLE_ESCAPES = {
    "a": "\a",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "v": "\v",
    "\\": "\\",
    '"': '"',
}


def _decode_escape(match: re.Match) -> str:
    code = match[1]
    if code in _SIMPLE_ESCAPES:
        return _SIMPLE_ESCAPES[code]
    if code[0] in "xuU":
        return chr(int(code[1:], 16))
    if code[0] in "01234567" and len(code) == 3:
        return chr(int(code, 8))
    raise ConfigError(f"invalid escape sequence \\{code}")


def _unquote(token: str) -> str:
    if token.startswith("`"):
        return token[1:-1]
    return _ESCAPE.sub(_decode_escape, token[1:-1])


def _empty_compatible(operator: str, value: str) -> bool:
    if operator == "=":
        return value == ""
    if operator == "=~":
        return re.fullmatch(value, "") is not None
    return True


def parse_matchers(text: str) -> list[tuple[str, str, str]]:
    """Parse a stream selector such as ``{job="fluent-bit"}``.

    Returns ``(name, operator, value)`` triples in the order written. The
    operator is one of ``=``, ``!=``, ``=~`` and ``!~``.
    """
    pos = _SPACE.match(text).end()

    def fail(reason: str) -> ConfigError:
        return ConfigError(f"parse error at position {pos + 1} in {text!r}: {reason}")

    if not text.startswith("{", pos):
        raise fail("expected '{'")
    pos = _SPACE.match(text, pos + 1).end()

    matchers: list[tuple[str, str, str]] = []
    while True:
        name = _LABEL_NAME.match(text, pos)
        if name is None:
            raise fail("expected a label name")
        pos = _SPACE.match(text, name.end()).end()
        operator = _OPERATOR.match(text, pos)
        if operator is None:
            raise fail("expected a match operator")
        pos = _SPACE.match(text, operator.end()).end()
        literal = _STRING.match(text, pos)
        if literal is None:
            raise fail("expected a quoted string")
        value = _unquote(literal[0])
        if operator[0] in ("=~", "!~"):
            try:
                re.compile(value)
            except re.error as exc:
                raise ConfigError(f"invalid regular expression {value!r}: {exc}") from exc
        matchers.append((name[0], operator[0], value))
        pos = _SPACE.match(text, literal.end()).end()
        if text.startswith(",", pos):
            pos = _SPACE.match(text, pos + 1).end()
            continue
        if text.startswith("}", pos):
            pos = _SPACE.match(text, pos + 1).end()
            break
        raise fail("expected ',' or '}'")

    if pos != len(text):
        raise fail("unexpected trailing input")
    if all(_empty_compatible(op, value) for _, op, value in matchers):
        raise ConfigError(
            "queries require at least one regexp or equality matcher that "
            "does not have an empty-compatible value"
        )
    return matchers