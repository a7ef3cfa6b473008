"""
Tiered JSON recovery for untrusted model output.

Tiers, tried in order until one parses:
    1. direct      json.loads on the raw text, then on the fenced payload
    2. cleanup     trailing commas, bare keys, single quotes, missing separators
    3. structural  cleanup + bare-token values + bracket/brace balancing
    4. pattern     first balanced ``{...}`` span, as is, then structurally repaired

Every tier is a pure ``str -> str`` function so it can be tested on its own.
Well-formed JSON is always returned by tier 1 untouched. Repairs only touch
text outside double-quoted strings, so string values survive every tier.
"""

import json
import re
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from utils.logger import get_logger

logger = get_logger(__name__)

_TRIPLE_FENCE = re.compile(r"```(?:json|JSON)?\s*([\s\S]*?)```")
_SINGLE_FENCE = re.compile(r"`([\s\S]*?)`")
_TRAILING_COMMA = re.compile(r",\s*([}\]])")
_ELLIPSIS_VALUE = re.compile(r"([\[,:]\s*)\.{3,}(?=\s*[,\]}])")
_BARE_KEY = re.compile(r"([{,]\s*)([A-Za-z0-9_$]+)\s*:")
_SINGLE_QUOTED = re.compile(r"([\[{:,]\s*)'((?:[^'\\]|\\.)*)'")
_ADJACENT_OBJECTS = re.compile(r"}\s*{")
_ADJACENT_ARRAYS = re.compile(r"]\s*\[")
# applied to the run that follows a key string
_BARE_VALUE = re.compile(r'^(\s*:\s*)([^\s\[{"\d\-][^,}\]\n]*?)(?=\s*[,}\n])')
_NUMBER = re.compile(r"-?\d+(?:\.\d+)?(?:[eE][+-]?\d+)?")

_JSON_LITERALS = {"true", "false", "null"}
_VALUE_START = frozenset('"{[-0123456789tfn')


class RepairTier(str, Enum):
    DIRECT = "direct"
    CLEANUP = "cleanup"
    STRUCTURAL = "structural"
    PATTERN = "pattern"


@dataclass(frozen=True)
class ParsedJson:
    value: Any
    tier: RepairTier


def strip_code_fences(text: str) -> str:
    """Return the payload of the first fenced block (``` or `), else the text itself."""
    match = _TRIPLE_FENCE.search(text)
    if match and match.group(1).strip():
        return match.group(1).strip()
    match = _SINGLE_FENCE.search(text)
    if match and match.group(1).strip():
        return match.group(1).strip()
    return text.strip()


def split_strings(text: str) -> list[tuple[str, bool]]:
    """
    Split ``text`` into ``(run, is_string)`` pairs.

    String runs keep their quotes; an unterminated trailing string is
    reported as a string run.
    """
    runs: list[tuple[str, bool]] = []
    start = 0
    in_string = False
    escaped = False
    for idx, ch in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                runs.append((text[start : idx + 1], True))
                start = idx + 1
                in_string = False
            continue
        if ch == '"':
            if idx > start:
                runs.append((text[start:idx], False))
            start = idx
            in_string = True
    if start < len(text):
        runs.append((text[start:], in_string))
    return runs


def _outside_strings(text: str, fn: Callable[[str], str]) -> str:
    return "".join(run if is_string else fn(run) for run, is_string in split_strings(text))


def _quote_single(run: str) -> str:
    return _SINGLE_QUOTED.sub(
        lambda m: m.group(1) + json.dumps(m.group(2).replace("\\'", "'")), run
    )


def _strip_trailing_commas(run: str) -> str:
    return _TRAILING_COMMA.sub(r"\1", run)


def _cleanup_run(run: str) -> str:
    run = _strip_trailing_commas(run)
    run = _ELLIPSIS_VALUE.sub(r'\1""', run)
    run = _BARE_KEY.sub(r'\1"\2":', run)
    run = _ADJACENT_OBJECTS.sub("}, {", run)
    return _ADJACENT_ARRAYS.sub("], [", run)


def _ends_value(prev: str, token: str, gap: bool) -> bool:
    if prev in ('"', "}", "]"):
        return True
    return gap and (token in _JSON_LITERALS or bool(_NUMBER.fullmatch(token)))


def join_array_items(text: str) -> str:
    """Insert the comma between array items separated only by whitespace."""
    out: list[str] = []
    stack: list[str] = []
    in_string = False
    escaped = False
    prev = ""
    token = ""
    gap = False
    for ch in text:
        if in_string:
            out.append(ch)
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
                prev, token, gap = '"', "", False
            continue
        if ch.isspace():
            out.append(ch)
            gap = True
            continue

        if stack and stack[-1] == "[" and ch in _VALUE_START and _ends_value(prev, token, gap):
            out.append(",")
        out.append(ch)

        if ch == '"':
            in_string = True
        elif ch in "{[":
            stack.append(ch)
        elif ch in "}]" and stack:
            stack.pop()

        if ch.isalnum() or ch in ".+-":
            token = ch if gap or not token else token + ch
        else:
            token = ""
        prev, gap = ch, False
    return "".join(out)


def cleanup_json(text: str) -> str:
    """
    Conservative syntactic cleanup.

    Removes trailing commas, replaces ``...`` placeholders, quotes bare
    keys, converts single-quoted strings and inserts missing separators
    between adjacent objects, arrays and array items.
    """
    if not text:
        return text

    cleaned = _outside_strings(text, _quote_single)
    cleaned = _outside_strings(cleaned, _cleanup_run)
    cleaned = join_array_items(cleaned)
    # separators inserted above can expose new trailing commas
    return _outside_strings(cleaned, _strip_trailing_commas)


def _coerce_bare_value(match: re.Match) -> str:
    prefix, value = match.group(1), match.group(2).strip()
    if not value or value in _JSON_LITERALS:
        return match.group(0)
    tokens = value.split()
    if len(tokens) > 1:
        items = ", ".join(json.dumps(t.strip("\"'")) for t in tokens)
        return f"{prefix}[{items}]"
    return f"{prefix}{json.dumps(value.strip(chr(39)))}"


def _coerce_bare_values(text: str) -> str:
    out: list[str] = []
    after_string = False
    for run, is_string in split_strings(text):
        if not is_string and after_string:
            run = _BARE_VALUE.sub(_coerce_bare_value, run, count=1)
        out.append(run)
        after_string = is_string
    return "".join(out)


def balance_brackets(text: str) -> str:
    """
    Close unterminated strings, arrays and objects in nesting order.

    Text with more closers than openers is returned unchanged.
    """
    stack: list[str] = []
    in_string = False
    escaped = False
    for ch in text:
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
        elif ch in "{[":
            stack.append("}" if ch == "{" else "]")
        elif ch in "}]":
            if not stack or stack[-1] != ch:
                return text
            stack.pop()

    if not stack and not in_string:
        return text

    repaired = text + ('"' if in_string else "")
    repaired = re.sub(r",\s*$", "", repaired.rstrip())
    repaired = re.sub(r":\s*$", ": null", repaired)
    return repaired + "".join(reversed(stack))


def repair_structure(text: str) -> str:
    """Aggressive structural repair, applied on top of ``cleanup_json``."""
    if not text:
        return text
    repaired = cleanup_json(text)
    repaired = _coerce_bare_values(repaired)
    repaired = balance_brackets(repaired)
    return _outside_strings(repaired, _strip_trailing_commas)


def extract_object_span(text: str) -> str | None:
    """First balanced ``{...}`` span in the text; an unclosed tail if none balances."""
    start = text.find("{")
    if start == -1:
        return None
    depth = 0
    in_string = False
    escaped = False
    for idx in range(start, len(text)):
        ch = text[idx]
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
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start : idx + 1]
    return text[start:]


def _try_load(candidate: str | None) -> tuple[bool, Any]:
    if candidate is None:
        return False, None
    try:
        return True, json.loads(candidate)
    except (ValueError, TypeError):
        return False, None


def parse_json_tiered(text: str | None) -> ParsedJson | None:
    """
    Parse model output with escalating repair.

    Returns:
        ParsedJson with the value and the tier that produced it, or None
    """
    if not text or not text.strip():
        return None

    ok, value = _try_load(text.strip())
    if ok:
        return ParsedJson(value, RepairTier.DIRECT)

    payload = strip_code_fences(text)
    ok, value = _try_load(payload)
    if ok:
        return ParsedJson(value, RepairTier.DIRECT)

    ok, value = _try_load(cleanup_json(payload))
    if ok:
        return ParsedJson(value, RepairTier.CLEANUP)

    ok, value = _try_load(repair_structure(payload))
    if ok:
        return ParsedJson(value, RepairTier.STRUCTURAL)

    span = extract_object_span(text)
    if span is not None:
        for candidate in (span, repair_structure(span)):
            ok, value = _try_load(candidate)
            if ok:
                return ParsedJson(value, RepairTier.PATTERN)

    return None


def extract_json(text: str | None) -> Any | None:
    """Parsed JSON value from model output, or None if every tier fails."""
    parsed = parse_json_tiered(text)
    if parsed is None:
        logger.warning(
            "Failed to extract JSON from model output",
            extra={"extra_fields": {"text_length": len(text or "")}},
        )
        return None
    if parsed.tier is not RepairTier.DIRECT:
        logger.info(
            "Model output required JSON repair",
            extra={"extra_fields": {"tier": parsed.tier.value}},
        )
    return parsed.value
