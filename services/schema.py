# services/schema.py
import re
from dataclasses import dataclass, field
from typing import List, Optional

# "Explain X. (2)" -> 2
_WEIGHT_SUFFIX = re.compile(r"\((\d)\)\s*$")

KIND_WEIGHTS = {"short": 1, "long": 2, "extended": 3}
WEIGHT_KINDS = {w: k for k, w in KIND_WEIGHTS.items()}
VALID_WEIGHTS = (1, 2, 3)


def resolve_weight(text: str, kind: Optional[str] = None) -> int:
    """
    Mark weight of a question. The trailing "(n)" wins when it is 1-3,
    the categorical kind is the fallback, 1 when neither resolves.
    """
    m = _WEIGHT_SUFFIX.search(text or "")
    if m and int(m.group(1)) in VALID_WEIGHTS:
        return int(m.group(1))
    return KIND_WEIGHTS.get((kind or "").strip().lower(), 1)


@dataclass(frozen=True)
class Document:
    path: str
    content: str


@dataclass(frozen=True)
class Question:
    text: str
    kind: Optional[str] = None  # short|long|extended

    @property
    def weight(self) -> int:
        return resolve_weight(self.text, self.kind)

    def to_dict(self) -> dict:
        return {"question": self.text, "type": self.kind}

    @classmethod
    def from_dict(cls, data: dict) -> "Question":
        return cls(text=data.get("question", ""), kind=data.get("type"))


@dataclass(frozen=True)
class QuestionSet:
    description: str
    questions: List[Question] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"description": self.description, "questions": [q.to_dict() for q in self.questions]}

    @classmethod
    def from_dict(cls, data: dict) -> "QuestionSet":
        return cls(
            description=data.get("description", ""),
            questions=[Question.from_dict(q) for q in data.get("questions", [])],
        )


@dataclass(frozen=True)
class AnsweredQuestion:
    question: Question
    answer: str = ""


@dataclass(frozen=True)
class GradeResult:
    question_index: int
    earned_marks: float
    max_marks: float
    feedback: str = ""

    def to_dict(self) -> dict:
        return {
            "questionIndex": self.question_index,
            "marks": self.earned_marks,
            "maxMarks": self.max_marks,
            "feedback": self.feedback,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "GradeResult":
        return cls(data["questionIndex"], data["marks"], data["maxMarks"], data.get("feedback", ""))


@dataclass(frozen=True)
class ProviderConfig:
    provider: str
    api_key: Optional[str] = None
    model: Optional[str] = None
    endpoint: Optional[str] = None  # local provider only


def aggregate_percentage(results) -> float:
    earned = sum(r.earned_marks for r in results)
    possible = sum(r.max_marks for r in results)
    if possible <= 0:
        return 0.0
    return earned / possible * 100
