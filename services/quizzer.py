# services/quizzer.py
import logging
import os

from ai_providers.registry import call_provider
from services.formatter import format_documents
from services.parser import parse_question_set
from services.schema import QuestionSet

logger = logging.getLogger(__name__)

GENERATION_MAX_TOKENS = int(os.getenv("QUIZ_GENERATION_MAX_TOKENS", "500"))
GENERATION_TEMPERATURE = 0.7

SYSTEM_QUIZ = """
You are a helpful AI that generates test questions from user study notes.
We want each question to end with "(1)", "(2)", or "(3)" to show how many marks it is worth.
Correspondingly, the "type" field is "short" (1 mark), "long" (2 marks), or "extended" (3 marks).
Write the questions in the same language as the notes.

Return JSON in this shape (no extra keys, no markdown fences):
{
  "description": string,
  "questions": [
    { "question": "What is X? (1)", "type": "short" },
    { "question": "Explain Y in detail. (2)", "type": "long" },
    { "question": "Discuss Z thoroughly with examples. (3)", "type": "extended" }
  ]
}
""".strip()


def generate(documents, config) -> QuestionSet:
    """Ask the configured provider for a question set covering `documents`."""
    documents = list(documents)
    prompt = format_documents(documents)
    raw = call_provider(config, SYSTEM_QUIZ, prompt, GENERATION_MAX_TOKENS,
                        temperature=GENERATION_TEMPERATURE)
    qs = parse_question_set(raw)
    logger.info("Generated %d questions from %d document(s) via %s",
                len(qs.questions), len(documents), config.provider)
    return qs
