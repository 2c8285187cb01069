# services/grader.py
import logging
import os

from ai_providers.registry import call_provider
from services.parser import parse_grade_results

logger = logging.getLogger(__name__)

GRADING_MAX_TOKENS = int(os.getenv("QUIZ_GRADING_MAX_TOKENS", "1000"))
NO_ANSWER = "[No answer provided]"

SYSTEM_GRADER = """
You are a helpful AI that grades user answers based on the provided source text.
A question might have (1), (2), or (3) to indicate mark weighting. For each answer, you need to return:
  - questionNumber: The question number (starting from 1)
  - marks: How many marks earned (0 to maxMarks)
  - maxMarks: Maximum possible marks for this question (1, 2, or 3)
  - feedback: A brief explanation of the grading, written in the same language as the source text

Output must be a JSON array with these fields only.
""".strip()


def build_grading_prompt(source_text: str, answered) -> str:
    lines = [f"SOURCE DOCUMENT:\n{source_text}\n\nUSER ANSWERS:\n"]
    for i, item in enumerate(answered, start=1):
        q = item.question
        answer = (item.answer or "").strip() or NO_ANSWER
        lines.append(f"Q{i} (maxMarks={q.weight}): {q.text}\nAnswer: {answer}\n\n")
    lines.append(
        'Please return a JSON array of objects, each with { "questionNumber", "marks", "maxMarks", "feedback" }.\n'
        "Marks should reflect the quality of the answer (0 = no credit, maxMarks = full credit, "
        "with partial marks possible).\n"
        "Write the feedback in the same language as the source document.\n"
        "No extra fields, no markdown code blocks."
    )
    return "".join(lines)


def grade(source_text: str, answered, config) -> list:
    """Grade `answered` (AnsweredQuestion items) against `source_text`."""
    answered = list(answered)
    prompt = build_grading_prompt(source_text, answered)
    raw = call_provider(config, SYSTEM_GRADER, prompt, GRADING_MAX_TOKENS, temperature=0.0)
    results = parse_grade_results(raw)
    logger.info("Graded %d answer(s) via %s", len(results), config.provider)
    return results
