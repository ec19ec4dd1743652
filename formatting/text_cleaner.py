"""
text_cleaner.py

Text utilities shared by the builders and the step coordinator:

* `clean_problem_text` turns LaTeX-flavoured problem text into the plain
  Unicode form the extractors understand (`7248 \\div 8` -> `7248 ÷ 8`).
* `format_number` renders quantities for step labels without float noise.
* `find_ascii_fragments` / `strip_fragments` locate and remove hand-drawn
  long-division layouts that a dialogue reply typed out instead of emitting
  a structured diagram.
"""

from __future__ import annotations

import re
from typing import List, Tuple

Span = Tuple[int, int]


# =============================================================================
# PROBLEM TEXT
# =============================================================================

UNICODE_FIXES = {
    "u00f7": "÷",
    "u00d7": "×",
    "u2212": "−",
    "u00b2": "²",
    "u00b3": "³",
    "u00b0": "°",
    "u03bc": "μ",
    "u03b8": "θ",
}

LATEX_TO_UNICODE = {
    r"\\div": "÷",
    r"\\times": "×",
    r"\\cdot": "·",
    r"\\degree": "°",
    r"\\circ": "°",
    r"\\mu": "μ",
    r"\\theta": "θ",
    r"\\pi": "π",
}


def clean_problem_text(text: str) -> str:
    """
    Normalise a problem statement before extraction.

    Escaped Unicode sequences that lost their backslash are repaired, LaTeX
    delimiters are dropped and common commands become their Unicode symbol.
    `\\frac{a}{b}` becomes `a/b` so the fraction rules can see it.
    """
    if not text:
        return ""

    for escaped, char in UNICODE_FIXES.items():
        text = text.replace(f"\\{escaped}", char)
        text = text.replace(escaped, char)

    text = re.sub(r"\\\(|\\\)|\\\[|\\\]|\$", "", text)
    text = re.sub(r"\^\{?\\circ\}?", "°", text)

    for latex, unicode_char in LATEX_TO_UNICODE.items():
        text = re.sub(latex + r"(?![a-zA-Z])", unicode_char, text)

    text = re.sub(r"\\[dt]?frac\{([^}]+)\}\{([^}]+)\}", r"\1/\2", text)
    text = re.sub(r"\\text\{([^}]*)\}", r"\1", text)
    text = re.sub(r"[ \t]+", " ", text)
    return text.strip()


def excerpt(text: str, limit: int = 80) -> str:
    """Single-line prefix of `text` for log messages."""
    flat = " ".join((text or "").split())
    return flat if len(flat) <= limit else flat[: limit - 3] + "..."


def format_number(value: float, places: int = 2) -> str:
    """50.0 -> "50", 43.30127 -> "43.3", 0.5 -> "0.5"."""
    rounded = round(float(value), places)
    if rounded == int(rounded):
        return str(int(rounded))
    return f"{rounded:.{places}f}".rstrip("0").rstrip(".")


# =============================================================================
# ASCII LONG-DIVISION FRAGMENTS
# =============================================================================

CODE_BLOCK = re.compile(r"```[^\n`]*\n(?P<body>.*?)```", re.DOTALL)

# Nothing but digits, whitespace and the strokes used to draw a division bracket.
_LAYOUT_LINE = re.compile(r"^[\d\s_\-|)⟌─‾,.÷×=R]+$")
_NUMERIC_BLOCK = re.compile(r"^[\d\s_\-|)⟌─‾,.÷×=R+*/]+$")
_RULE = re.compile(r"[_\-─‾]{3,}")
BRACKET_NOTATION = re.compile(r"(?<![\d,.|])(?<!\|\s)\d[\d,]*\s*(?:\||\)|⟌)\s*\d[\d,]*")


def has_bracket_notation(text: str) -> bool:
    """True for `8 | 7248`, `8 ) 7248` or `8⟌7248`."""
    return BRACKET_NOTATION.search(text) is not None


def _layout_runs(message: str, skip: List[Span]) -> List[Span]:
    """Spans of consecutive layout lines that contain a rule or bracket."""
    runs: List[Span] = []
    run_start = None
    run_end = 0
    run_qualifies = False
    offset = 0

    def close() -> None:
        if run_start is not None and run_qualifies:
            runs.append((run_start, run_end))

    for line in message.splitlines(keepends=True):
        start, end = offset, offset + len(line)
        offset = end
        body = line.strip()
        inside_block = any(s <= start < e for s, e in skip)
        is_layout = bool(body) and not inside_block and _LAYOUT_LINE.match(body) is not None

        if not is_layout:
            close()
            run_start, run_qualifies = None, False
            continue

        if run_start is None:
            run_start = start
        run_end = end
        if _RULE.search(body) or has_bracket_notation(body):
            run_qualifies = True

    close()
    return runs


def find_ascii_fragments(message: str) -> List[Span]:
    """
    Return (start, end) spans of hand-drawn division layouts in `message`.

    A fragment is either a fenced code block whose body is purely numeric
    layout, or a run of layout-only lines containing a long rule of
    underscores/dashes or bracket notation.
    """
    if not message:
        return []

    blocks: List[Span] = []
    for match in CODE_BLOCK.finditer(message):
        body = match.group("body").strip()
        if body and _NUMERIC_BLOCK.match(body) and re.search(r"\d", body):
            blocks.append(match.span())

    all_code = [match.span() for match in CODE_BLOCK.finditer(message)]
    spans = blocks + _layout_runs(message, all_code)
    return sorted(spans)


def strip_fragments(message: str, spans: List[Span]) -> str:
    """Remove `spans` from `message` and tidy the blank lines left behind."""
    if not spans:
        return message
    pieces: List[str] = []
    cursor = 0
    for start, end in sorted(spans):
        if start < cursor:
            continue
        pieces.append(message[cursor:start])
        cursor = end
    pieces.append(message[cursor:])
    stripped = "".join(pieces)
    stripped = re.sub(r"\n{3,}", "\n\n", stripped)
    return stripped.strip()
