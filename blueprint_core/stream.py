"""Assemble streamed completions into full text.

The recovery pipeline runs once on the fully accumulated completion; these
helpers only collect the chunks a streaming transport delivers.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple, Union


class StreamError(Exception):
    """An error event was received in the middle of a stream."""

    def __init__(self, message: str, error_type: Optional[str] = None):
        super().__init__(message)
        self.error_type = error_type


def iter_sse_events(lines: Iterable[Union[str, bytes]]) -> Iterator[Tuple[str, str]]:
    """Yield (event, data) pairs from server-sent-event lines.

    Multi-line `data:` fields are joined with newlines; comment lines are ignored.
    """
    event = "message"
    data: List[str] = []

    for raw in lines:
        line = raw.decode("utf-8", errors="replace") if isinstance(raw, bytes) else raw
        line = line.rstrip("\r\n")

        if not line:
            if data:
                yield event, "\n".join(data)
            event = "message"
            data = []
            continue
        if line.startswith(":"):
            continue

        name, _, value = line.partition(":")
        if value.startswith(" "):
            value = value[1:]
        if name == "event":
            event = value
        elif name == "data":
            data.append(value)

    if data:
        yield event, "\n".join(data)


@dataclass
class StreamedMessage:
    """A Claude message rebuilt from its stream events."""

    id: str = ""
    model: str = ""
    text_parts: List[str] = field(default_factory=list)
    stop_reason: Optional[str] = None
    input_tokens: int = 0
    output_tokens: int = 0

    @property
    def text(self) -> str:
        return "".join(self.text_parts)

    def to_response(self) -> Dict[str, Any]:
        """Same shape as a non-streaming Messages API response."""
        return {
            "id": self.id,
            "type": "message",
            "role": "assistant",
            "model": self.model,
            "content": [{"type": "text", "text": self.text}],
            "stop_reason": self.stop_reason,
            "stop_sequence": None,
            "usage": {"input_tokens": self.input_tokens, "output_tokens": self.output_tokens},
        }


def accumulate_claude_stream(lines: Iterable[Union[str, bytes]]) -> StreamedMessage:
    """Fold Messages API stream events into one message.

    Raises:
        StreamError: on an `error` event or undecodable event data.
    """
    message = StreamedMessage()

    for event, data in iter_sse_events(lines):
        try:
            payload = json.loads(data)
        except ValueError as e:
            raise StreamError(f"Undecodable stream event {event!r}: {e}", "parse_error") from e
        if not isinstance(payload, dict):
            continue

        kind = payload.get("type") or event
        if kind == "message_start":
            start = payload.get("message") or {}
            message.id = str(start.get("id") or "")
            message.model = str(start.get("model") or "")
            usage = start.get("usage") or {}
            message.input_tokens = int(usage.get("input_tokens") or 0)
            message.output_tokens = int(usage.get("output_tokens") or 0)
        elif kind == "content_block_delta":
            delta = payload.get("delta") or {}
            if delta.get("type") == "text_delta":
                message.text_parts.append(str(delta.get("text") or ""))
        elif kind == "message_delta":
            delta = payload.get("delta") or {}
            if delta.get("stop_reason"):
                message.stop_reason = delta["stop_reason"]
            usage = payload.get("usage") or {}
            if usage.get("output_tokens") is not None:
                message.output_tokens = int(usage["output_tokens"])
        elif kind == "error":
            err = payload.get("error") or {}
            raise StreamError(str(err.get("message") or "Stream error"), err.get("type"))

    logging.debug(
        "Claude stream assembled id=%s chars=%s stop_reason=%s",
        message.id,
        len(message.text),
        message.stop_reason,
    )
    return message


def accumulate_chat_chunks(chunks: Iterable[Any]) -> str:
    """Join the delta contents of OpenAI-compatible chat completion chunks."""
    parts: List[str] = []
    for chunk in chunks:
        choices = getattr(chunk, "choices", None) or []
        if not choices:
            continue
        delta = getattr(choices[0], "delta", None)
        content = getattr(delta, "content", None)
        if content:
            parts.append(content)
    return "".join(parts)
