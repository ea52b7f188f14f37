import pytest

from careerguide.services import ai_chat


def test_ask_ai_returns_upstream_answer(client, student_headers, monkeypatch: pytest.MonkeyPatch) -> None:
    async def fake_ask(prompt: str) -> str:
        return f'Advice about {prompt}'

    monkeypatch.setattr(ai_chat, 'ask', fake_ask)

    response = client.post('/ai/ask', json={'message': ' resumes '}, headers=student_headers)

    assert response.status_code == 200
    assert response.json() == {'success': True, 'response': 'Advice about resumes'}


def test_ask_ai_reports_bad_gateway_when_unconfigured(client, student_headers, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(ai_chat.config, 'AI_API_URL', '')

    response = client.post('/ai/ask', json={'message': 'Hello'}, headers=student_headers)

    assert response.status_code == 502
    assert response.json() == {'success': False, 'error': 'AI service is not configured.'}


def test_ask_ai_requires_authentication(client) -> None:
    response = client.post('/ai/ask', json={'message': 'Hello'})

    assert response.status_code == 401
