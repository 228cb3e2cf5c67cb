from fastapi import APIRouter
from push_service.api.v1.endpoints import notifications, subscriptions

api_router = APIRouter()
api_router.include_router(subscriptions.router, tags=["subscriptions"])

internal_api_router = APIRouter()
internal_api_router.include_router(notifications.router, tags=["notifications"])
