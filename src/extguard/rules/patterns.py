"""Shared regex matching helpers used by the detection rules."""

from __future__ import annotations

import bisect
import math
import re
from collections import Counter
from collections.abc import Callable, Iterator, Mapping, Sequence
from dataclasses import dataclass

from extguard.scanner.models import Evidence

# Default code file suffixes examined by most rules
JS_TS_EXTENSIONS = (".js", ".ts")
CODE_EXTENSIONS = (".js", ".ts", ".jsx", ".tsx", ".mjs", ".cjs")

MAX_SNIPPET_LENGTH = 100


@dataclass(frozen=True)
class Pattern:
    """A named detection regex; ``group`` selects the reported capture."""

    name: str
    regex: re.Pattern[str]
    group: int = 0


def line_number(content: str, index: int) -> int:
    """1-based line number of a character offset."""
    return content.count("\n", 0, index) + 1


def line_at(content: str, index: int) -> str:
    start = content.rfind("\n", 0, index) + 1
    end = content.find("\n", index)
    if end == -1:
        end = len(content)
    return content[start:end].strip()


def truncate(text: str, limit: int = MAX_SNIPPET_LENGTH) -> str:
    if len(text) > limit:
        return text[:limit] + "..."
    return text


# Comments and string literals in one left-to-right pass; a literal such as
# 'https://x' or 'src/**/*.js' is consumed before its slashes can open a comment
_COMMENT_OR_STRING = re.compile(
    r"//[^\n]*"
    r"|/\*.*?(?:\*/|\Z)"
    r"|'(?:\\.|[^'\\\n])*'?"
    r'|"(?:\\.|[^"\\\n])*"?'
    r"|`(?:\\.|[^`\\])*`?",
    re.DOTALL,
)


def comment_spans(content: str) -> list[tuple[int, int]]:
    """Sorted ``(start, end)`` offsets of every ``//`` and ``/* */`` comment."""
    return [
        m.span()
        for m in _COMMENT_OR_STRING.finditer(content)
        if m.group().startswith("/")
    ]


def is_in_comment(
    content: str, index: int, spans: list[tuple[int, int]] | None = None
) -> bool:
    """Whether ``index`` sits inside a comment.

    Pass ``spans`` from :func:`comment_spans` when checking many offsets of
    the same file.
    """
    if spans is None:
        spans = comment_spans(content)
    pos = bisect.bisect_right(spans, (index, math.inf)) - 1
    return pos >= 0 and spans[pos][0] <= index < spans[pos][1]


def shannon_entropy(text: str) -> float:
    """Shannon entropy in bits per character."""
    if not text:
        return 0.0
    length = len(text)
    return -sum(
        (count / length) * math.log2(count / length)
        for count in Counter(text).values()
    )


def has_pattern_in_context(
    content: str,
    start: int,
    end: int,
    context: re.Pattern[str],
    window: int = 200,
) -> bool:
    """Search ``window`` characters either side of ``content[start:end]``."""
    lo = max(0, start - window)
    hi = min(len(content), end + window)
    return context.search(content, lo, hi) is not None


def iter_source_files(
    files: Mapping[str, str],
    extensions: Sequence[str] = JS_TS_EXTENSIONS,
    exclude: Sequence[re.Pattern[str]] = (),
) -> Iterator[tuple[str, str]]:
    """Yield non-empty files whose path ends with one of ``extensions``."""
    for path, content in files.items():
        if not path.endswith(tuple(extensions)):
            continue
        if any(p.search(path) for p in exclude):
            continue
        if not content or not content.strip():
            continue
        yield path, content


def match_patterns(
    file_path: str,
    content: str,
    patterns: Sequence[Pattern],
    validate: Callable[[Pattern, str, re.Match[str]], bool] | None = None,
) -> list[Evidence]:
    """Run every pattern over one file and turn each hit into Evidence."""
    evidences: list[Evidence] = []
    for pattern in patterns:
        for match in pattern.regex.finditer(content):
            value = match.group(pattern.group)
            if not value:
                continue
            if validate is not None and not validate(pattern, value, match):
                continue
            index = match.start()
            evidences.append(
                Evidence(
                    file_path=file_path,
                    line=line_number(content, index),
                    line_content=truncate(line_at(content, index)),
                    matched_pattern=pattern.name,
                    snippet=truncate(value),
                )
            )
    return evidences
