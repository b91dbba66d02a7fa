# esgint/features/patterns.py
"""
Pattern predicates over report text.

Patterns are written in free-form style: whitespace and `#` comments in the
source are layout only, so a rule can be spread over several commented lines.
They are compiled with RE2, which matches in time linear in the text length
and rejects constructs that need backtracking (lookaround, backreferences).
Ordered evidence goes into a single pattern, optionally bounded with `.{0,N}`;
unordered evidence is a conjunction of independent patterns in a Predicate.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Sequence, Tuple

import re2

from esgint.errors import ConfigurationError, PatternError


# Case-insensitive, "." spans newlines. Applied to every pattern.
_FLAGS = "(?is)"


def strip_free_form(source: str) -> str:
    """
    Remove layout from a free-form pattern.

    - unescaped whitespace outside character classes is dropped
    - `#` outside a character class starts a comment running to end of line
    - `\\ ` and `\\#` stand for a literal space / `#`
    - character classes (including `[[:alpha:]]` style items) are copied as-is
    """
    out = []
    i = 0
    n = len(source)
    in_class = False

    while i < n:
        ch = source[i]

        if ch == "\\":
            if i + 1 >= n:
                out.append(ch)  # dangling escape, RE2 reports it
                break
            nxt = source[i + 1]
            if nxt.isspace() or nxt == "#":
                out.append(nxt)
            else:
                out.append(ch + nxt)
            i += 2
            continue

        if in_class:
            if ch == "[" and source.startswith(":", i + 1):
                end = source.find(":]", i + 2)
                if end != -1:
                    out.append(source[i:end + 2])
                    i = end + 2
                    continue
            if ch == "]":
                in_class = False
            out.append(ch)
            i += 1
            continue

        if ch == "[":
            in_class = True
            out.append(ch)
            i += 1
            if source.startswith("^", i):
                out.append("^")
                i += 1
            if source.startswith("]", i):
                out.append("]")
                i += 1
            continue

        if ch == "#":
            end = source.find("\n", i)
            i = n if end == -1 else end + 1
            continue

        if ch.isspace():
            i += 1
            continue

        out.append(ch)
        i += 1

    return "".join(out)


@dataclass(frozen=True)
class Pattern:
    """A single compiled existence check."""
    label: str
    source: str
    expression: str
    regex: Any

    def search(self, text: str) -> bool:
        return self.regex.search(text) is not None


def compile_pattern(source: str, *, label: str = "") -> Pattern:
    """
    Compile a free-form pattern. Fails fast with PatternError.
    """
    if not isinstance(source, str):
        raise PatternError(label or "?", repr(source), "pattern must be a string")
    label = label or source.strip()[:60]

    expression = strip_free_form(source)
    if not expression:
        raise PatternError(label, source, "pattern is empty")

    try:
        regex = re2.compile(_FLAGS + expression)
    except re2.error as e:
        raise PatternError(label, source, str(e)) from e

    return Pattern(label=label, source=source, expression=expression, regex=regex)


@dataclass(frozen=True)
class Predicate:
    """
    Unordered conjunctive evidence: every `all_of` pattern occurs somewhere in
    the text and no `none_of` pattern occurs anywhere.
    """
    all_of: Tuple[Pattern, ...]
    none_of: Tuple[Pattern, ...] = ()

    def __post_init__(self) -> None:
        if not self.all_of:
            raise ConfigurationError("a predicate needs at least one required pattern")

    def matches(self, text: str) -> bool:
        for pat in self.all_of:
            if not pat.search(text):
                return False
        for pat in self.none_of:
            if pat.search(text):
                return False
        return True


def predicate(*all_of: str, unless: Sequence[str] = (), label: str = "") -> Predicate:
    """Authoring helper: compile pattern sources into a Predicate."""
    return Predicate(
        all_of=_compile_all(all_of, f"{label}+" if label else ""),
        none_of=_compile_all(unless, f"{label}-" if label else ""),
    )


def _compile_all(sources: Iterable[str], prefix: str) -> Tuple[Pattern, ...]:
    return tuple(
        compile_pattern(src, label=f"{prefix}{i}" if prefix else "")
        for i, src in enumerate(sources)
    )
