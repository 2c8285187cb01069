import os
import logging
from concurrent.futures import ThreadPoolExecutor
from dotenv import load_dotenv

# load .env before anything reads the environment
BASE_DIR = os.path.dirname(__file__)
load_dotenv(dotenv_path=os.path.join(BASE_DIR, '.env'))

from flask import Flask, jsonify, request, abort
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, scoped_session
from sqlalchemy.pool import StaticPool

from ai_providers.errors import (
    QuizError, MissingCredentials, UnknownProvider, ContextLengthExceeded,
    UnparseableResponse, ProviderUnreachable, ProviderCallFailed,
)
from ai_providers.registry import check_credentials
from models import Base, Note, Quiz
from services import quizzer, grader
from services.indexer import DocumentStore, index_notes
from services.schema import AnsweredQuestion, Document, QuestionSet, aggregate_percentage
from services.settings import SettingsStore

logger = logging.getLogger(__name__)

RUNTIME_DIR = os.path.join(BASE_DIR, "runtime")
NOTES_DIR = os.getenv('NOTES_DIR', os.path.join(BASE_DIR, 'notes'))
DATABASE_URL = os.getenv('DATABASE_URL', f"sqlite:///{os.path.join(RUNTIME_DIR, 'quizzer.db')}")
MAX_PARALLEL = int(os.getenv('QUIZ_MAX_PARALLEL', '4'))

ERROR_STATUS = (
    (MissingCredentials, 400),
    (UnknownProvider, 400),
    (ContextLengthExceeded, 413),
    (UnparseableResponse, 502),
    (ProviderUnreachable, 503),
    (ProviderCallFailed, 502),
)


def _unwrap(err: Exception) -> Exception:
    # an unreachable local server needs its own status and notice
    if isinstance(err, ProviderCallFailed) and isinstance(err.cause, ProviderUnreachable):
        return err.cause
    return err


def _status_for(err: QuizError) -> int:
    err = _unwrap(err)
    for kind, status in ERROR_STATUS:
        if isinstance(err, kind):
            return status
    return 500


def describe_error(err: Exception, path: str, model: str) -> str:
    """User-facing message for one failed note."""
    if isinstance(err, ContextLengthExceeded):
        return f"{path}: {err}"
    if isinstance(err, UnparseableResponse):
        return f'{path}: Model "{model}" failed to generate proper JSON. Please try a more capable model.'
    cause = _unwrap(err)
    if isinstance(cause, ProviderUnreachable):
        return f"{path}: {cause}"
    return f"Error generating tests for {path}: {err}"


def _quiz_json(note: Note) -> dict:
    quiz = note.quiz
    out = {'id': note.id, 'path': note.path,
           'checklist': {'testsReady': note.tests_ready, 'passed': note.passed, 'total': note.total},
           'quiz': None}
    if quiz is not None:
        out['quiz'] = {
            'description': quiz.description,
            'questions': quiz.questions,
            'answers': quiz.answers or {},
            'results': quiz.results,
            'score': quiz.score,
            'earnedMarks': quiz.earned_marks,
            'possibleMarks': quiz.possible_marks,
            'provider': quiz.provider,
            'model': quiz.model,
        }
    return out


def create_app(database_url: str = None, notes_dir: str = None) -> Flask:
    database_url = database_url or DATABASE_URL
    notes_dir = notes_dir or NOTES_DIR

    app = Flask(__name__)
    app.secret_key = os.getenv('SECRET_KEY', 'dev')

    if database_url.startswith('sqlite:///') and ':memory:' not in database_url:
        os.makedirs(os.path.dirname(database_url[len('sqlite:///'):]) or '.', exist_ok=True)
    if ':memory:' in database_url:
        engine = create_engine(database_url, future=True, poolclass=StaticPool,
                               connect_args={'check_same_thread': False})
    else:
        engine = create_engine(database_url, future=True)
    Session = scoped_session(sessionmaker(bind=engine))
    Base.metadata.create_all(engine)
    app.extensions['quizzer.session'] = Session

    @app.teardown_appcontext
    def remove_session(exc=None):
        Session.remove()

    @app.errorhandler(QuizError)
    def quiz_error(err):
        shown = _unwrap(err)
        return jsonify({'error': str(shown), 'kind': type(shown).__name__}), _status_for(err)

    @app.errorhandler(400)
    def bad_request(err):
        return jsonify({'error': err.description, 'kind': 'BadRequest'}), 400

    @app.errorhandler(404)
    def not_found(err):
        return jsonify({'error': 'Not found', 'kind': 'NotFound'}), 404

    def _note_or_404(note_id):
        note = Session().get(Note, note_id)
        if note is None:
            abort(404)
        return note

    # ============== INDEX ==============

    @app.post('/index')
    def reindex():
        notes = index_notes(notes_dir)
        DocumentStore(Session()).sync(notes)
        return jsonify({'indexed': len(notes)})

    @app.get('/documents')
    def documents():
        s = Session()
        rows = s.query(Note).order_by(Note.path.asc()).all()
        return jsonify([_quiz_json(n) for n in rows])

    # ============== QUIZ ==============

    @app.post('/tests')
    def create_tests():
        s = Session()
        config = SettingsStore(s).get().provider_config()
        check_credentials(config)

        ids = (request.get_json(silent=True) or {}).get('note_ids') or []
        notes = [n for n in (s.get(Note, i) for i in ids) if n is not None]
        docs = [Document(n.path, n.content) for n in notes]

        def run(doc):
            try:
                return quizzer.generate([doc], config), None
            except QuizError as e:
                logger.warning("Test generation failed for %s: %s", doc.path, e)
                return None, e

        with ThreadPoolExecutor(max_workers=MAX_PARALLEL) as pool:
            outcomes = list(pool.map(run, docs))

        created, errors = [], []
        for note, (qs, err) in zip(notes, outcomes):
            if err is not None:
                errors.append({'id': note.id, 'path': note.path, 'kind': type(_unwrap(err)).__name__,
                               'error': describe_error(err, note.path, config.model or config.provider)})
                continue
            quiz = note.quiz
            if quiz is None:
                quiz = Quiz(note=note)
                s.add(quiz)
            quiz.description = qs.description
            quiz.questions = qs.to_dict()['questions']
            quiz.answers = {}
            quiz.results = None
            quiz.score = quiz.earned_marks = quiz.possible_marks = None
            quiz.provider, quiz.model = config.provider, config.model
            created.append(note.id)
        s.commit()
        return jsonify({'created': created, 'errors': errors})

    @app.get('/tests/<int:note_id>')
    def quiz_view(note_id):
        return jsonify(_quiz_json(_note_or_404(note_id)))

    @app.put('/tests/<int:note_id>/answers')
    def save_answers(note_id):
        s = Session()
        note = _note_or_404(note_id)
        if note.quiz is None:
            abort(404)
        data = request.get_json(silent=True) or {}
        answers = data.get('answers') if isinstance(data, dict) else None
        if not isinstance(answers, dict):
            abort(400, description="'answers' must be an object keyed by question index")
        merged = dict(note.quiz.answers or {})
        merged.update({str(k): str(v) for k, v in answers.items()})
        note.quiz.answers = merged
        s.commit()
        return jsonify(_quiz_json(note))

    @app.delete('/tests/<int:note_id>/answers')
    def reset_answers(note_id):
        s = Session()
        note = _note_or_404(note_id)
        if note.quiz is None:
            abort(404)
        quiz = note.quiz
        quiz.answers = {}
        quiz.results = None
        quiz.score = quiz.earned_marks = quiz.possible_marks = None
        s.commit()
        return jsonify(_quiz_json(note))

    @app.post('/tests/<int:note_id>/mark')
    def mark(note_id):
        s = Session()
        note = _note_or_404(note_id)
        if note.quiz is None:
            abort(404)
        quiz = note.quiz
        qs = QuestionSet.from_dict({'description': quiz.description, 'questions': quiz.questions})
        answers = quiz.answers or {}
        answered = [AnsweredQuestion(q, answers.get(str(i), '')) for i, q in enumerate(qs.questions)]

        config = SettingsStore(s).get().provider_config()
        results = grader.grade(note.content, answered, config)

        quiz.results = [r.to_dict() for r in results]
        quiz.earned_marks = sum(r.earned_marks for r in results)
        quiz.possible_marks = sum(r.max_marks for r in results)
        quiz.score = aggregate_percentage(results)
        s.commit()
        return jsonify(_quiz_json(note))

    # ============== SETTINGS ==============

    @app.get('/settings')
    def settings_view():
        return jsonify(SettingsStore(Session()).get().masked())

    @app.put('/settings')
    def settings_update():
        data = request.get_json(silent=True) or {}
        updated = SettingsStore(Session()).set(
            provider=data.get('provider'),
            api_keys=data.get('api_keys'),
            models=data.get('models'),
            ollama_url=data.get('ollama_url'),
        )
        return jsonify(updated.masked())

    return app


if __name__ == '__main__':
    logging.basicConfig(level=os.getenv('LOG_LEVEL', 'INFO'))
    print("NOTES_DIR   :", NOTES_DIR)
    print("DATABASE_URL:", DATABASE_URL)
    print("LLM_PROVIDER ->", os.getenv("LLM_PROVIDER", "openai"))
    create_app().run(debug=True)
