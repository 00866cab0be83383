from fastapi import APIRouter

from app.api.endpoints import resumes, chat

api_router = APIRouter(prefix="/api")
api_router.include_router(resumes.router, prefix="/resumes", tags=["resumes"])
api_router.include_router(chat.router, prefix="/chat", tags=["chat"])
