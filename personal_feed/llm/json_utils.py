"""Shared JSON parsing utilities for LLM response handling.

Models asked for JSON still wrap it in markdown fences or append prose.
These helpers recover the payload without trusting its shape.
"""

from __future__ import annotations

import json
import re


def fix_escape_sequences(text: str) -> str:
    """Fix invalid JSON escape sequences in LLM output.

    Args:
        text: Raw text potentially containing invalid escapes.

    Returns:
        Text with lone backslashes doubled.
    """
    return re.sub(r'(?<!\\)\\(?!["\\/bfnrtu])', r"\\\\", text)


def try_parse_json(text: str) -> object | None:
    """Try to parse text as JSON, with escape-sequence fallback.

    Args:
        text: Raw JSON text.

    Returns:
        Parsed value, or None if both attempts fail.
    """
    for candidate in (text, fix_escape_sequences(text)):
        try:
            return json.loads(candidate)
        except json.JSONDecodeError:
            continue
    return None


def extract_first_json_block(text: str) -> str | None:
    """Extract the first balanced ``{...}`` or ``[...]`` block from text.

    Args:
        text: Raw text potentially containing JSON.

    Returns:
        Extracted block, or None if no balanced block is found.
    """
    starts = [i for i in (text.find("{"), text.find("[")) if i != -1]
    if not starts:
        return None
    start = min(starts)
    opener = text[start]
    closer = "}" if opener == "{" else "]"

    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == opener:
            depth += 1
        elif ch == closer:
            depth -= 1
            if depth == 0:
                return text[start : i + 1]
    return None


def strip_markdown_fences(text: str) -> str:
    """Strip markdown code fences from LLM response text.

    Args:
        text: Raw text potentially wrapped in code fences.

    Returns:
        Text with code fences removed.
    """
    text = text.strip()
    if text.startswith("```"):
        first_newline = text.find("\n")
        if first_newline != -1:
            text = text[first_newline + 1 :]
        if text.endswith("```"):
            text = text[: -len("```")]
        text = text.strip()
    return text


def parse_llm_json(text: str) -> object | None:
    """Parse the JSON payload of an LLM response.

    Tries the whole (fence-stripped) text first, then the first balanced
    block inside it.

    Args:
        text: Raw response text.

    Returns:
        Parsed value, or None if nothing parses.
    """
    cleaned = strip_markdown_fences(text)
    parsed = try_parse_json(cleaned)
    if parsed is not None:
        return parsed
    block = extract_first_json_block(cleaned)
    if block and block != cleaned:
        return try_parse_json(block)
    return None
