import logging
import re
from json import JSONDecodeError, JSONDecoder
from typing import Any

logger = logging.getLogger(__name__)

_CODE_FENCE_RE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)
_INVALID_ESCAPE_RE = re.compile(r'\\([^"\\/bfnrtu])')
_THOUGHT_KEYS = {
    "thought",
    "thoughts",
    "thought_signature",
    "thought-signature",
    "thoughtSignature",
}
_LINE_SEPARATORS = {
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}


def _strip_code_fence(text: str) -> str:
    stripped = text.strip()
    match = _CODE_FENCE_RE.match(stripped)
    return match.group(1) if match else stripped


def _escape_invalid_backslashes(text: str) -> str:
    return _INVALID_ESCAPE_RE.sub(lambda match: "\\\\" + match.group(1), text)


def _normalize_line_separators(text: str) -> str:
    for needle, replacement in _LINE_SEPARATORS.items():
        text = text.replace(needle, replacement)
    return text


def _drop_thoughts(payload: Any):
    if isinstance(payload, dict):
        return {
            key: _drop_thoughts(value)
            for key, value in payload.items()
            if key not in _THOUGHT_KEYS
        }
    if isinstance(payload, list):
        return [_drop_thoughts(item) for item in payload]
    return payload


def parse_structured_payload(raw_text: str) -> dict[str, Any]:
    """
    Decode the JSON object emitted by a structured-output call.

    The text may be wrapped in a markdown code fence or carry stray backslashes
    in free-text fields; both are repaired before giving up. Raises
    ``JSONDecodeError`` when no candidate decodes, and ``ValueError`` when the
    decoded value is not a JSON object.
    """
    cleaned = _strip_code_fence(raw_text or "").lstrip("\ufeff")
    if not cleaned.strip():
        raise JSONDecodeError("AI response payload is empty", raw_text or "", 0)
    cleaned = _normalize_line_separators(cleaned)

    candidates = [cleaned]
    repaired = _escape_invalid_backslashes(cleaned)
    if repaired != cleaned:
        candidates.append(repaired)

    last_error: JSONDecodeError | None = None
    for candidate in candidates:
        for decoder in (JSONDecoder(), JSONDecoder(strict=False)):
            try:
                parsed = decoder.decode(candidate)
            except JSONDecodeError as exc:
                last_error = exc
                continue
            if not isinstance(parsed, dict):
                raise ValueError(f"Expected a JSON object, got {type(parsed).__name__}.")
            return _drop_thoughts(parsed)

    logger.error("Failed to parse AI response after sanitization attempts: %s", last_error)
    raise last_error
