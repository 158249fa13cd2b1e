from fastapi import APIRouter

from soot.api.v1.auth import router as auth_router
from soot.api.v1.budgets import router as budgets_router
from soot.api.v1.calendar import router as calendar_router
from soot.api.v1.equipment import router as equipment_router
from soot.api.v1.houses import router as houses_router
from soot.api.v1.important_dates import router as important_dates_router
from soot.api.v1.notifications import router as notifications_router
from soot.api.v1.projects import router as projects_router
from soot.api.v1.tasks import router as tasks_router

v1_router = APIRouter()

v1_router.include_router(auth_router)
v1_router.include_router(houses_router)
v1_router.include_router(tasks_router)
v1_router.include_router(important_dates_router)
v1_router.include_router(calendar_router)
v1_router.include_router(projects_router)
v1_router.include_router(equipment_router)
v1_router.include_router(notifications_router)
v1_router.include_router(budgets_router)
