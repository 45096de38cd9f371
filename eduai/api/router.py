from fastapi import APIRouter
from eduai.api.tutor import router as tutor_router

api_router = APIRouter()

# Include all route modules
api_router.include_router(tutor_router)
