from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, field_validator

from careerguide.auth.dependencies import Identity, get_current_identity
from careerguide.services import ai_chat

router = APIRouter(tags=['ai'])

MAX_PROMPT_LENGTH = 4000


class AskAIRequest(BaseModel):
    message: str

    @field_validator('message')
    @classmethod
    def validate_message(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Message cannot be empty.')
        if len(normalized) > MAX_PROMPT_LENGTH:
            raise ValueError(f'Messages must be {MAX_PROMPT_LENGTH} characters or fewer.')
        return normalized


@router.post('/ask')
async def ask_ai(data: AskAIRequest, identity: Identity = Depends(get_current_identity)):
    try:
        answer = await ai_chat.ask(data.message)
    except ai_chat.AIServiceError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc

    return {'success': True, 'response': answer}
