from fastapi import APIRouter

from crm.app.api.api_v1.routers.analytics import router as analytics_router
from crm.app.api.api_v1.routers.auth import router as auth_router
from crm.app.api.api_v1.routers.deals import router as deals_router
from crm.app.api.api_v1.routers.leads import router as leads_router
from crm.app.api.api_v1.routers.quizzes import router as quizzes_router

api_router = APIRouter()
api_router.include_router(auth_router)
api_router.include_router(quizzes_router)
api_router.include_router(leads_router)
api_router.include_router(deals_router)
api_router.include_router(analytics_router)
