# services/parser.py
"""
Turns raw LLM completions into QuestionSet / GradeResult objects.

Models wrap JSON in markdown fences and get cut off at the token limit, so
question sets get one best-effort repair pass: strip fences, parse, and on
failure trim back to the last closer that completes an element and close
whatever is still open. It is a heuristic, not a recovery parser; output
that breaks its assumptions (e.g. nested triple backticks inside a fence)
ends in UnparseableResponse.
"""
import json
import logging
import math
import re

from ai_providers.errors import UnparseableResponse
from services.schema import GradeResult, Question, QuestionSet

logger = logging.getLogger(__name__)

_FENCE_OPEN = re.compile(r"^```[A-Za-z0-9_-]*[ \t]*\n?")
_CLOSERS = {"{": "}", "[": "]"}


def strip_code_fences(raw: str) -> str:
    t = (raw or "").strip()
    if t.startswith("```"):
        t = _FENCE_OPEN.sub("", t, count=1)
    if t.endswith("```"):
        t = t[:-3]
    return t.strip()


def repair_truncated(text: str):
    """
    Cut `text` after the last `}`/`]` that completed a value and append closers
    for the containers still open there. None when nothing can be salvaged.
    """
    start = text.find("{")
    if start == -1:
        return None

    stack = []
    in_string = escaped = False
    cut, still_open = None, []
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
        elif ch in _CLOSERS:
            stack.append(ch)
        elif ch in "}]":
            if not stack:
                break
            stack.pop()
            cut, still_open = i + 1, list(stack)
            if not stack:
                break  # top-level value is complete

    if cut is None:
        return None
    return text[start:cut] + "".join(_CLOSERS[c] for c in reversed(still_open))


def parse_question_set(raw: str) -> QuestionSet:
    text = strip_code_fences(raw)
    try:
        data = json.loads(text)
    except ValueError:
        repaired = repair_truncated(text)
        if repaired is None:
            raise UnparseableResponse("Failed to parse JSON response for test questions", raw) from None
        try:
            data = json.loads(repaired)
        except ValueError:
            raise UnparseableResponse("Failed to parse JSON response for test questions", raw) from None
        logger.info("Recovered question set from truncated response (%d -> %d chars)", len(text), len(repaired))
    return _question_set(data, raw)


def _question_set(data, raw: str) -> QuestionSet:
    if not isinstance(data, dict):
        raise UnparseableResponse("Expected a JSON object with 'description' and 'questions'", raw)
    items = data.get("questions")
    if items is None:
        items = []
    if not isinstance(items, list):
        raise UnparseableResponse("'questions' is not a list", raw)

    questions = []
    for it in items:
        if isinstance(it, dict):
            kind = it.get("type")
            questions.append(Question(text=str(it.get("question") or ""),
                                      kind=str(kind) if kind is not None else None))
        elif isinstance(it, str):
            questions.append(Question(text=it))
        else:
            raise UnparseableResponse(f"Unexpected question entry: {it!r}", raw)
    return QuestionSet(description=str(data.get("description") or ""), questions=questions)


def _number(value):
    if isinstance(value, bool):
        raise TypeError("boolean is not a mark")
    number = value if isinstance(value, (int, float)) else float(value)
    if not math.isfinite(number):
        raise ValueError(f"mark is not a finite number: {value!r}")
    return number


def parse_grade_results(raw: str) -> list:
    text = strip_code_fences(raw)
    try:
        data = json.loads(text)
    except ValueError:
        raise UnparseableResponse("Failed to parse LLM marking JSON output.", raw) from None

    # some models wrap the array in an object
    if isinstance(data, dict):
        data = data.get("results", data.get("grades"))
    if not isinstance(data, list):
        raise UnparseableResponse("Expected a JSON array of grading objects", raw)

    results = []
    for pos, item in enumerate(data):
        if not isinstance(item, dict):
            raise UnparseableResponse(f"Unexpected grading entry: {item!r}", raw)
        try:
            number = item.get("questionNumber")
            index = int(number) - 1 if number is not None else pos
            earned = _number(item["marks"])
            possible = _number(item["maxMarks"])
        except (KeyError, TypeError, ValueError) as e:
            raise UnparseableResponse(f"Malformed grading entry {pos + 1}: {e}", raw) from None
        # out-of-range marks are passed through as the model reported them
        results.append(GradeResult(index, earned, possible, str(item.get("feedback") or "")))
    return results
