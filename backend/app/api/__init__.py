from fastapi import APIRouter
from app.api import matching, studios

api_router = APIRouter()
api_router.include_router(matching.router, prefix="/matching", tags=["matching"])
api_router.include_router(studios.router, prefix="/studios", tags=["studios"])
