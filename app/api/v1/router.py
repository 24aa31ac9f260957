# app/api/v1/router.py
from fastapi import APIRouter
from app.modules.delivery.router import router as delivery_router

# Crear router principal de la API v1
api_router = APIRouter()

# ==================== MÓDULOS ====================

api_router.include_router(
    delivery_router,
    prefix="/delivery",
    tags=["Delivery Management"]
)

@api_router.get("/")
async def api_info():
    """Información de la API v1"""
    return {
        "version": "v1",
        "modules": [
            {
                "name": "delivery",
                "prefix": "/delivery",
                "status": "active"
            }
        ]
    }
