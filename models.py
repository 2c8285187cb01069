from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Boolean, Float, JSON
from sqlalchemy.orm import declarative_base, relationship
from datetime import datetime

Base = declarative_base()


class Note(Base):
    __tablename__ = 'notes'
    id = Column(Integer, primary_key=True)
    path = Column(String(1024), nullable=False, unique=True)
    content = Column(Text, nullable=False)
    # checklist items found in the note: "- [ ]" / "- [x]"
    tests_ready = Column(Boolean, default=False)
    passed = Column(Integer, default=0)
    total = Column(Integer, default=0)
    indexed_at = Column(DateTime, default=datetime.utcnow)

    quiz = relationship('Quiz', back_populates='note', uselist=False, cascade='all,delete')


# ===== QUIZ =====

class Quiz(Base):
    __tablename__ = 'quizzes'
    id = Column(Integer, primary_key=True)
    note_id = Column(Integer, ForeignKey('notes.id'), nullable=False, unique=True)
    description = Column(Text, default='')
    questions = Column(JSON, nullable=False)   # [{"question": "... (2)", "type": "long"}]
    answers = Column(JSON, default=dict)       # {"0": "answer text"}
    results = Column(JSON)                     # [{"questionIndex", "marks", "maxMarks", "feedback"}]
    score = Column(Float)                      # percentage, None until marked
    earned_marks = Column(Float)
    possible_marks = Column(Float)
    provider = Column(String(32))
    model = Column(String(128))
    created_at = Column(DateTime, default=datetime.utcnow)

    note = relationship('Note', back_populates='quiz')


# ===== SETTINGS =====

class Setting(Base):
    __tablename__ = 'settings'
    key = Column(String(64), primary_key=True)
    value = Column(Text)
