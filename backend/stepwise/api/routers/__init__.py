from fastapi import APIRouter

from stepwise.api.routers.categories import router as categories_router
from stepwise.api.routers.checklists import router as checklists_router
from stepwise.api.routers.steps import router as steps_router


api_router = APIRouter()
api_router.include_router(categories_router, prefix="/categories", tags=["categories"])
api_router.include_router(checklists_router, prefix="/checklists", tags=["checklists"])
api_router.include_router(steps_router, prefix="/steps", tags=["steps"])
