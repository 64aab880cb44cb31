"""Glob matching for repository file paths.

Patterns are compiled once into a token list and matched without building a
regular expression, so special characters in file names are always literal.

Semantics:
- ``*`` matches any sequence of characters, including ``/``
- ``?`` matches exactly one character
- ``**/`` matches zero or more complete path segments
- everything else matches literally (no character classes)
"""

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from ghux.core.models.reference import FileEntry


class TokenKind(str, Enum):
    LITERAL = "literal"
    ANY_CHAR = "any_char"
    ANY_SEQUENCE = "any_sequence"
    ANY_DEPTH = "any_depth"


@dataclass(frozen=True)
class GlobToken:
    kind: TokenKind
    text: str = ""


def compile_glob(pattern: str) -> tuple[GlobToken, ...]:
    """Compile a glob pattern into tokens."""
    tokens: list[GlobToken] = []
    literal: list[str] = []

    def flush() -> None:
        if literal:
            tokens.append(GlobToken(TokenKind.LITERAL, "".join(literal)))
            literal.clear()

    i = 0
    while i < len(pattern):
        if pattern.startswith("**/", i):
            flush()
            tokens.append(GlobToken(TokenKind.ANY_DEPTH))
            i += 3
        elif pattern[i] == "*":
            flush()
            while i < len(pattern) and pattern[i] == "*" and not pattern.startswith("**/", i):
                i += 1
            if not tokens or tokens[-1].kind != TokenKind.ANY_SEQUENCE:
                tokens.append(GlobToken(TokenKind.ANY_SEQUENCE))
        elif pattern[i] == "?":
            flush()
            tokens.append(GlobToken(TokenKind.ANY_CHAR))
            i += 1
        else:
            literal.append(pattern[i])
            i += 1
    flush()
    return tuple(tokens)


class GlobMatcher:
    """A compiled glob pattern."""

    def __init__(self, pattern: str) -> None:
        self.pattern = pattern
        self.tokens = compile_glob(pattern)

    def __repr__(self) -> str:
        return f"GlobMatcher({self.pattern!r})"

    def matches(self, path: str) -> bool:
        tokens = self.tokens
        memo: dict[tuple[int, int], bool] = {}

        def match(ti: int, pi: int) -> bool:
            key = (ti, pi)
            if key in memo:
                return memo[key]

            if ti == len(tokens):
                result = pi == len(path)
            else:
                token = tokens[ti]
                if token.kind == TokenKind.LITERAL:
                    result = path.startswith(token.text, pi) and match(ti + 1, pi + len(token.text))
                elif token.kind == TokenKind.ANY_CHAR:
                    result = pi < len(path) and match(ti + 1, pi + 1)
                elif token.kind == TokenKind.ANY_SEQUENCE:
                    result = any(match(ti + 1, end) for end in range(pi, len(path) + 1))
                else:
                    # zero segments, or up to and including any later '/'
                    result = match(ti + 1, pi) or any(
                        match(ti + 1, end + 1)
                        for end in range(pi, len(path))
                        if path[end] == "/"
                    )

            memo[key] = result
            return result

        return match(0, 0)


class GlobFilter:
    """Include pattern plus optional exclude pattern over relative paths."""

    def __init__(self, include: str, exclude: str | None = None) -> None:
        self.include = GlobMatcher(include)
        self.exclude = GlobMatcher(exclude) if exclude else None

    def matches(self, path: str) -> bool:
        if not self.include.matches(path):
            return False
        return self.exclude is None or not self.exclude.matches(path)

    def apply(self, entries: Iterable[FileEntry]) -> list[FileEntry]:
        """Keep the entries whose relative path passes the filter."""
        return [entry for entry in entries if self.matches(entry.relative_path)]
