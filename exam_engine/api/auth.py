from typing import List

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from exam_engine.core.auth import create_token
from exam_engine.core.config import settings

router = APIRouter()


class MockLogin(BaseModel):
    user_id: str = Field(min_length=1)
    roles: List[str]


@router.post("/mock-login")
def mock_login(payload: MockLogin):
    if not settings.ENABLE_MOCK_LOGIN:
        raise HTTPException(404, "Not found")
    token = create_token(payload.user_id, payload.roles)
    return {"access_token": token, "token_type": "bearer", "roles": payload.roles}
