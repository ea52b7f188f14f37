import asyncio
import json

import httpx
import pytest

from careerguide.services import ai_chat


@pytest.fixture
def configured(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(ai_chat.config, 'AI_API_URL', 'https://ai.example.com/v1/chat/completions')
    monkeypatch.setattr(ai_chat.config, 'AI_API_KEY', 'sk-test')
    monkeypatch.setattr(ai_chat.config, 'AI_MODEL', 'test-model')


def _ask_with(handler, prompt: str = 'How do I pick a career?') -> str:
    async def run() -> str:
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await ai_chat.ask(prompt, client=client)

    return asyncio.run(run())


def test_ask_forwards_prompt_and_returns_content(configured) -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen['auth'] = request.headers['Authorization']
        seen['body'] = json.loads(request.content)
        return httpx.Response(200, json={'choices': [{'message': {'content': '  Follow your strengths.  '}}]})

    assert _ask_with(handler) == 'Follow your strengths.'
    assert seen['auth'] == 'Bearer sk-test'
    assert seen['body']['model'] == 'test-model'
    assert seen['body']['messages'][-1] == {'role': 'user', 'content': 'How do I pick a career?'}


def test_ask_wraps_upstream_errors(configured) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, json={'error': 'overloaded'})

    with pytest.raises(ai_chat.AIServiceError):
        _ask_with(handler)


def test_ask_rejects_unexpected_payload(configured) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={'choices': []})

    with pytest.raises(ai_chat.AIServiceError, match='unexpected response'):
        _ask_with(handler)


def test_ask_requires_configuration(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(ai_chat.config, 'AI_API_URL', '')

    with pytest.raises(ai_chat.AIServiceError, match='not configured'):
        asyncio.run(ai_chat.ask('hello'))
