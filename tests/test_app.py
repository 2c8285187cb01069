"""
JSON API over the notes index, quizzes and settings.
"""

import json
from unittest.mock import patch

import pytest
import requests

from app import create_app

QUESTIONS = json.dumps({
    "description": "Biology basics",
    "questions": [
        {"question": "What does photosynthesis convert? (1)", "type": "short"},
        {"question": "Explain where it happens.", "type": "long"},
    ],
})
GRADES = json.dumps([
    {"questionNumber": 1, "marks": 1, "maxMarks": 1, "feedback": "Correct"},
    {"questionNumber": 2, "marks": 0, "maxMarks": 2, "feedback": "No answer"},
])


@pytest.fixture
def client(tmp_path, clean_env):
    (tmp_path / "biology.md").write_text("Photosynthesis converts light to energy.\n- [ ] revise\n",
                                         encoding="utf-8")
    (tmp_path / "history.md").write_text("The war ended in 1945.", encoding="utf-8")
    app = create_app("sqlite:///:memory:", notes_dir=str(tmp_path))
    app.config['TESTING'] = True
    return app.test_client()


def _indexed(client):
    client.post('/index')
    return {d['path']: d['id'] for d in client.get('/documents').get_json()}


def _use_fake(client, fake_provider, reply):
    stub = fake_provider(reply)
    assert client.put('/settings', json={'provider': 'fake'}).status_code == 200
    return stub


class TestIndexRoutes:

    def test_index_then_documents_listed_with_checklist(self, client):
        assert client.post('/index').get_json() == {'indexed': 2}

        docs = client.get('/documents').get_json()

        assert [d['path'] for d in docs] == ['biology.md', 'history.md']
        assert docs[0]['checklist'] == {'testsReady': True, 'passed': 0, 'total': 1}
        assert docs[0]['quiz'] is None


class TestQuizRoutes:

    def test_generate_answer_mark_then_score_saved(self, client, fake_provider):
        ids = _indexed(client)
        stub = _use_fake(client, fake_provider, QUESTIONS)

        created = client.post('/tests', json={'note_ids': [ids['biology.md']]}).get_json()
        assert created == {'created': [ids['biology.md']], 'errors': []}

        quiz = client.get(f"/tests/{ids['biology.md']}").get_json()['quiz']
        assert quiz['description'] == 'Biology basics'
        assert len(quiz['questions']) == 2

        resp = client.put(f"/tests/{ids['biology.md']}/answers", json={'answers': {'0': 'light into energy'}})
        assert resp.get_json()['quiz']['answers'] == {'0': 'light into energy'}

        stub.reply = GRADES
        marked = client.post(f"/tests/{ids['biology.md']}/mark").get_json()['quiz']

        assert marked['earnedMarks'] == 1
        assert marked['possibleMarks'] == 3
        assert marked['score'] == pytest.approx(100 / 3)
        assert marked['results'][0]['feedback'] == 'Correct'
        grading_prompt = stub.calls[-1]['user']
        assert 'Answer: light into energy' in grading_prompt
        assert 'Answer: [No answer provided]' in grading_prompt

    def test_reset_answers_then_results_cleared(self, client, fake_provider):
        ids = _indexed(client)
        stub = _use_fake(client, fake_provider, QUESTIONS)
        note_id = ids['biology.md']
        client.post('/tests', json={'note_ids': [note_id]})
        client.put(f"/tests/{note_id}/answers", json={'answers': {'0': 'x'}})
        stub.reply = GRADES
        client.post(f"/tests/{note_id}/mark")

        quiz = client.delete(f"/tests/{note_id}/answers").get_json()['quiz']

        assert quiz['answers'] == {}
        assert quiz['results'] is None
        assert quiz['score'] is None

    def test_generate_when_model_returns_garbage_then_error_per_note(self, client, fake_provider):
        ids = _indexed(client)
        _use_fake(client, fake_provider, "not json at all")

        out = client.post('/tests', json={'note_ids': list(ids.values())}).get_json()

        assert out['created'] == []
        assert {e['path'] for e in out['errors']} == {'biology.md', 'history.md'}
        assert all(e['kind'] == 'UnparseableResponse' for e in out['errors'])
        assert 'failed to generate proper JSON' in out['errors'][0]['error']

    def test_generate_when_key_missing_then_400(self, client):
        ids = _indexed(client)
        client.put('/settings', json={'provider': 'openai'})

        resp = client.post('/tests', json={'note_ids': [ids['biology.md']]})

        assert resp.status_code == 400
        assert resp.get_json()['kind'] == 'MissingCredentials'

    def test_generate_when_local_server_down_then_start_server_notice(self, client):
        ids = _indexed(client)
        client.put('/settings', json={'provider': 'ollama'})

        with patch("ai_providers.base.requests.post", side_effect=requests.exceptions.ConnectionError()):
            out = client.post('/tests', json={'note_ids': [ids['biology.md']]}).get_json()

        err = out['errors'][0]
        assert err['kind'] == 'ProviderUnreachable'
        assert err['error'].startswith('biology.md: Could not connect')
        assert 'ollama serve' in err['error']

    def test_mark_when_local_server_down_then_503(self, client, fake_provider):
        ids = _indexed(client)
        _use_fake(client, fake_provider, QUESTIONS)
        client.post('/tests', json={'note_ids': [ids['biology.md']]})
        client.put('/settings', json={'provider': 'ollama'})

        with patch("ai_providers.base.requests.post", side_effect=requests.exceptions.ConnectionError()):
            resp = client.post(f"/tests/{ids['biology.md']}/mark")

        assert resp.status_code == 503
        assert resp.get_json()['kind'] == 'ProviderUnreachable'

    @pytest.mark.parametrize("body", [{'answers': ['light']}, {'answers': 'light'}, ['light'], {}])
    def test_save_answers_when_not_an_object_then_400(self, client, fake_provider, body):
        ids = _indexed(client)
        _use_fake(client, fake_provider, QUESTIONS)
        client.post('/tests', json={'note_ids': [ids['biology.md']]})

        resp = client.put(f"/tests/{ids['biology.md']}/answers", json=body)

        assert resp.status_code == 400
        assert resp.get_json()['kind'] == 'BadRequest'

    def test_quiz_when_note_missing_then_404(self, client):
        resp = client.get('/tests/999')
        assert resp.status_code == 404
        assert resp.get_json()['kind'] == 'NotFound'

    def test_mark_when_no_quiz_yet_then_404(self, client):
        ids = _indexed(client)
        assert client.post(f"/tests/{ids['history.md']}/mark").status_code == 404


class TestSettingsRoutes:

    def test_put_then_keys_masked_on_read(self, client):
        client.put('/settings', json={'provider': 'anthropic', 'api_keys': {'anthropic': 'sk-ant-secret-9876'}})

        s = client.get('/settings').get_json()

        assert s['provider'] == 'anthropic'
        assert s['api_keys']['anthropic'] == '...9876'

    def test_put_when_unknown_provider_then_400(self, client):
        resp = client.put('/settings', json={'provider': 'skynet'})
        assert resp.status_code == 400
        assert resp.get_json()['kind'] == 'UnknownProvider'
