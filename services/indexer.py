# services/indexer.py
import logging
import os
import re
from dataclasses import dataclass
from datetime import datetime
from typing import List

from models import Note
from services.extract_text import read_note
from services.schema import Document

logger = logging.getLogger(__name__)

NOTE_SUFFIXES = ('.md', '.txt', '.pdf')
# "- [ ]" open item, "- [x]" done item
CHECKBOX = re.compile(r"- \[( |x)\]")


@dataclass(frozen=True)
class ChecklistStatus:
    tests_ready: bool
    passed: int
    total: int


@dataclass(frozen=True)
class IndexedNote:
    path: str
    content: str
    status: ChecklistStatus


def checklist_status(content: str) -> ChecklistStatus:
    marks = CHECKBOX.findall(content or '')
    passed = sum(1 for m in marks if m == 'x')
    return ChecklistStatus(tests_ready=bool(marks), passed=passed, total=len(marks))


def index_notes(notes_dir: str) -> List[IndexedNote]:
    """Read every note under `notes_dir`; paths are relative, '/'-separated and sorted."""
    notes = []
    for root, dirs, files in os.walk(notes_dir):
        dirs[:] = sorted(d for d in dirs if not d.startswith('.'))
        for fname in sorted(files):
            if not fname.lower().endswith(NOTE_SUFFIXES):
                continue
            full = os.path.join(root, fname)
            rel = os.path.relpath(full, notes_dir).replace(os.sep, '/')
            content = read_note(full)
            notes.append(IndexedNote(rel, content, checklist_status(content)))
    logger.info("Indexed %d notes from %s", len(notes), notes_dir)
    return notes


class DocumentStore:
    """Indexed notes persisted in the database; the core only sees path -> text."""

    def __init__(self, session):
        self.session = session

    def sync(self, notes: List[IndexedNote]):
        existing = {n.path: n for n in self.session.query(Note).all()}
        seen = set()
        for it in notes:
            seen.add(it.path)
            row = existing.get(it.path)
            if row is None:
                row = Note(path=it.path)
                self.session.add(row)
            row.content = it.content
            row.tests_ready = it.status.tests_ready
            row.passed = it.status.passed
            row.total = it.status.total
            row.indexed_at = datetime.utcnow()
        for path, row in existing.items():
            if path not in seen:
                self.session.delete(row)
        self.session.commit()

    def get(self, path: str):
        return self.session.query(Note).filter_by(path=path).first()

    def list_documents(self) -> List[Document]:
        rows = self.session.query(Note).order_by(Note.path.asc()).all()
        return [Document(r.path, r.content) for r in rows]

    def read(self, path: str) -> str:
        row = self.get(path)
        if row is None:
            raise KeyError(path)
        return row.content
