import logging

import httpx

from careerguide.core import config

logger = logging.getLogger(__name__)


class AIServiceError(RuntimeError):
    """Raised when the upstream AI endpoint cannot produce an answer."""


def build_payload(prompt: str) -> dict:
    return {
        'model': config.AI_MODEL,
        'messages': [
            {'role': 'system', 'content': config.AI_SYSTEM_PROMPT},
            {'role': 'user', 'content': prompt},
        ],
    }


def extract_reply(data: dict) -> str:
    try:
        content = data['choices'][0]['message']['content']
    except (KeyError, IndexError, TypeError) as exc:
        raise AIServiceError('AI service returned an unexpected response.') from exc
    if not isinstance(content, str) or not content.strip():
        raise AIServiceError('AI service returned an empty response.')
    return content.strip()


async def ask(prompt: str, client: httpx.AsyncClient | None = None) -> str:
    """Forward a prompt to the chat-completions endpoint and return the answer.

    No timeout is applied; long generations are allowed to finish.
    """
    if not config.AI_API_URL:
        raise AIServiceError('AI service is not configured.')

    headers = {'Content-Type': 'application/json'}
    if config.AI_API_KEY:
        headers['Authorization'] = f'Bearer {config.AI_API_KEY}'

    owns_client = client is None
    client = client or httpx.AsyncClient(timeout=None)
    try:
        response = await client.post(config.AI_API_URL, json=build_payload(prompt), headers=headers)
        response.raise_for_status()
        return extract_reply(response.json())
    except httpx.HTTPStatusError as exc:
        logger.warning('AI service responded with %s', exc.response.status_code)
        raise AIServiceError('AI service request failed.') from exc
    except (httpx.HTTPError, ValueError) as exc:
        logger.warning('AI service unreachable: %s', exc)
        raise AIServiceError('AI service request failed.') from exc
    finally:
        if owns_client:
            await client.aclose()
