from fastapi import APIRouter

from app.modules.admissions import router as admissions_router

api_router = APIRouter()

api_router.include_router(admissions_router)
