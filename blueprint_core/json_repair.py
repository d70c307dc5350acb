"""Deterministic JSON cleanup helpers.

Models asked for a blueprint sometimes wrap the JSON in prose or markdown
fences, append commentary after it, or emit literal newlines inside strings.

These helpers are intentionally conservative and deterministic:
- They never execute any content.
- They only attempt to *locate*, *extract* and *sanitize* JSON text.

Used by the response parser before `json.loads`.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from blueprint_core import product_config
from blueprint_core.diagnostics import DiagnosticSink, emit

_OPENING_FENCE_RE = re.compile(r"^```[a-z0-9_+-]*[ \t]*\n?", re.IGNORECASE)
_CLOSING_FENCE_RE = re.compile(r"\n?```\s*$")
_ANY_FENCE_RE = re.compile(r"```[ \t]*\n?")
_DESPERATE_RE = re.compile(r"(\{[\s\S]*\}|\[[\s\S]*\])")


def has_code_fences(text: str) -> bool:
    """True if the trimmed text starts or ends with a triple-backtick fence."""
    s = (text or "").strip()
    return s.startswith("```") or s.endswith("```")


def strip_markdown_code_fences(text: str) -> str:
    """Remove markdown fences from model output.

    Supports:
      ```json\n...\n```
      ```JSON\n...\n```
      ```\n...\n```

    Fences left anywhere else in the text (duplicated or nested fences some
    models emit) are removed as well. Always returns a trimmed string.
    """
    if not text:
        return ""

    s = text.strip()
    s = _OPENING_FENCE_RE.sub("", s, count=1)
    s = _CLOSING_FENCE_RE.sub("", s, count=1)
    s = _ANY_FENCE_RE.sub("", s)
    return s.strip()


def find_json_start(text: str) -> int:
    """Index of the first '{' or '[' in text, or -1 if there is none."""
    for i, ch in enumerate(text or ""):
        if ch in ("{", "["):
            return i
    return -1


class _ScanState(Enum):
    NORMAL = "normal"
    IN_STRING = "in_string"
    ESCAPED = "escaped"


def find_json_end(text: str) -> int:
    """Return the index one past the last balanced top-level closure.

    Scans the whole string tracking string/escape state and brace/bracket
    depth. Every time a closing '}' or ']' brings both counters back to zero
    the position is recorded; the last one recorded wins, so two sibling
    blocks separated by prose are kept together.

    Only '"' delimits strings. Returns -1 if no balanced closure was seen.
    """
    state = _ScanState.NORMAL
    brace_count = 0
    bracket_count = 0
    json_end = -1

    for i, ch in enumerate(text or ""):
        if state is _ScanState.ESCAPED:
            state = _ScanState.IN_STRING
            continue

        if state is _ScanState.IN_STRING:
            if ch == "\\":
                state = _ScanState.ESCAPED
            elif ch == '"':
                state = _ScanState.NORMAL
            continue

        if ch == '"':
            state = _ScanState.IN_STRING
        elif ch == "{":
            brace_count += 1
        elif ch == "[":
            bracket_count += 1
        elif ch in ("}", "]"):
            if ch == "}":
                brace_count -= 1
            else:
                bracket_count -= 1
            if brace_count == 0 and bracket_count == 0:
                json_end = i + 1

    return json_end


@dataclass(frozen=True)
class JsonExtraction:
    """Outcome of the fence/preamble/trailing cleanup of a model response."""

    text: str
    original: str
    has_code_fences: bool = False
    preamble_removed: bool = False
    trailing_removed: bool = False
    removed_preamble: str = ""
    removed_trailing: str = ""

    @property
    def untouched(self) -> bool:
        """True when no cleanup step changed anything."""
        return not (self.has_code_fences or self.preamble_removed or self.trailing_removed)


def extract_json_text(text: str, sink: Optional[DiagnosticSink] = None) -> JsonExtraction:
    """Cut the top-level JSON value out of a model response.

    Steps: trim, strip fences (only when the text starts or ends with one),
    drop everything before the first '{'/'[', drop everything after the last
    balanced closure. If no balanced structure exists the text is returned
    trimmed and will fail at parse time.
    """
    original = text or ""
    preview = product_config.LOG_PREVIEW_CHARS
    s = original.strip()

    fenced = has_code_fences(s)
    if fenced:
        emit(sink, logging.WARNING, "blueprint.json.markdown_detected", text_preview=s[:preview])
        s = strip_markdown_code_fences(s)
        emit(sink, logging.DEBUG, "blueprint.json.fences_stripped", cleaned_preview=s[:preview])

    removed_preamble = ""
    start = find_json_start(s)
    if start > 0:
        removed_preamble = s[:start]
        emit(
            sink,
            logging.WARNING,
            "blueprint.json.removing_preamble",
            removed_text=removed_preamble[:preview],
            preamble_length=len(removed_preamble),
        )
        s = s[start:]

    removed_trailing = ""
    end = find_json_end(s)
    if -1 < end < len(s):
        trailing = s[end:].strip()
        if trailing:
            removed_trailing = trailing
            emit(
                sink,
                logging.WARNING,
                "blueprint.json.removing_trailing",
                removed_text=trailing[:preview],
                trailing_length=len(trailing),
            )
            s = s[:end]

    return JsonExtraction(
        text=s.strip(),
        original=original,
        has_code_fences=fenced,
        preamble_removed=bool(removed_preamble),
        trailing_removed=bool(removed_trailing),
        removed_preamble=removed_preamble,
        removed_trailing=removed_trailing,
    )


def desperate_extract(text: str) -> Optional[str]:
    """Greedy last resort: the widest {...} or [...] span in text, or None."""
    if not text:
        return None
    match = _DESPERATE_RE.search(text)
    if not match:
        return None
    return match.group(1)


def sanitize_json_text(raw: str) -> str:
    """Escape unescaped newlines inside JSON strings.

    JSON strings cannot contain literal newline characters; they must be escaped
    as "\\n". Models sometimes emit literal newlines, which causes parse errors.

    This function preserves all other characters and only converts \\n and \\r
    when they occur inside a JSON string.
    """
    if not raw:
        return ""

    out: list[str] = []
    in_string = False
    escape = False

    for ch in raw:
        if in_string:
            if escape:
                out.append(ch)
                escape = False
                continue
            if ch == "\\":
                out.append(ch)
                escape = True
                continue
            if ch == '"':
                in_string = False
                out.append(ch)
                continue
            if ch == "\n":
                out.append("\\n")
                continue
            if ch == "\r":
                out.append("\\r")
                continue
            out.append(ch)
            continue

        if ch == '"':
            in_string = True
        out.append(ch)

    return "".join(out)
