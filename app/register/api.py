from fastapi import APIRouter

from app.register.core.config import settings
from app.register.routers.cart import router as cart_router
from app.register.routers.catalog import router as catalog_router
from app.register.routers.coupons import router as coupons_router
from app.register.routers.health import router as health_router
from app.register.routers.metrics import router as metrics_router
from app.register.routers.register_sessions import router as register_sessions_router
from app.register.routers.register_transactions import router as register_transactions_router

api_router = APIRouter()
api_router.include_router(health_router)
api_router.include_router(catalog_router, tags=["catalog"])
api_router.include_router(coupons_router, tags=["coupons"])
api_router.include_router(cart_router, tags=["cart"])
api_router.include_router(register_sessions_router, tags=["register-sessions"])
api_router.include_router(register_transactions_router, tags=["register-transactions"])
if settings.METRICS_ENABLED:
    api_router.include_router(metrics_router, tags=["ops"])
