# taskminder/api/v1.py
from fastapi import APIRouter

from taskminder.api.endpoints import auth
from taskminder.modules.tasks.routers import tasks_router

api_router = APIRouter()

api_router.include_router(auth.router)
api_router.include_router(tasks_router)
