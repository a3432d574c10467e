from fastapi import APIRouter

from app.api.v1.endpoints import ingest

api_router = APIRouter()
api_router.include_router(ingest.router, tags=["ingest"])
