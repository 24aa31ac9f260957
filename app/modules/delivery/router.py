# app/modules/delivery/router.py
from fastapi import APIRouter, Depends, Path, Query
from typing import Optional

from app.shared.enums import DeliveryStatus
from app.shared.schemas.common import BaseResponse
from .dependencies import get_delivery_service
from .service import DeliveryService
from .schemas import (
    CreateDeliveryRequest, UpdateDeliveryStatusRequest, UpdateDeliveryDroneRequest,
    PickupPackageRequest, ConfirmDeliveryRequest,
    DeliveryResponse, DeliveryListResponse, PickupPackageResponse, ConfirmDeliveryResponse
)

router = APIRouter()

ERROR_PLACEHOLDER = "error"

@router.post("/create-delivery", response_model=DeliveryResponse)
async def create_delivery(
    request: CreateDeliveryRequest,
    service: DeliveryService = Depends(get_delivery_service)
):
    """
    createDelivery: Crear solicitud de entrega

    **Validaciones:**
    - Coordenadas de recolección y entrega obligatorias
    - Cuenta (username) obligatoria
    - La entrega inicia en DELIVERY_STATUS_CREATED
    """
    return await service.create_delivery(request)

@router.put("/update-status/{delivery_id}", response_model=BaseResponse)
async def update_delivery_status(
    request: UpdateDeliveryStatusRequest,
    delivery_id: str = Path(..., description="ID de la entrega"),
    service: DeliveryService = Depends(get_delivery_service)
):
    """
    updateDeliveryStatus: Cambiar estado de una entrega

    Solo se aceptan transiciones válidas del ciclo de vida:
    CREATED -> HEADED_TO_DROP_OFF -> COMPLETED, CREATED -> CANCELED
    """
    await service.partially_update_delivery(delivery_id, {"status": request.status})
    return BaseResponse(success=True, message="Estado actualizado")

@router.put("/update-drone/{delivery_id}", response_model=BaseResponse)
async def update_delivery_drone(
    request: UpdateDeliveryDroneRequest,
    delivery_id: str = Path(..., description="ID de la entrega"),
    service: DeliveryService = Depends(get_delivery_service)
):
    """updateDeliveryDrone: Asignar dron a una entrega"""
    await service.partially_update_delivery(delivery_id, {"drone": request.drone})
    return BaseResponse(success=True, message="Dron actualizado")

@router.post("/pickup-package", response_model=PickupPackageResponse)
async def pickup_package(
    request: PickupPackageRequest,
    service: DeliveryService = Depends(get_delivery_service)
):
    """
    pickupPackage: El dron toma la entrega lista más antigua

    **Respuesta:**
    - Entrega asignada con estado DELIVERY_STATUS_HEADED_TO_DROP_OFF
    - Si no hay entregas disponibles: centinela con delivery="error"
      y estado DELIVERY_STATUS_ERROR (no es un error HTTP)
    """
    assignment = await service.ready_for_pickup(request.drone)

    if assignment is None:
        return PickupPackageResponse(
            success=False,
            message="No hay entregas disponibles para recolección",
            delivery=ERROR_PLACEHOLDER,
            drone=request.drone,
            status=DeliveryStatus.DELIVERY_STATUS_ERROR
        )

    return PickupPackageResponse(
        success=True,
        message="Entrega asignada al dron",
        **assignment.model_dump()
    )

@router.post("/complete-delivery/{delivery_id}", response_model=BaseResponse)
async def complete_delivery(
    delivery_id: str = Path(..., description="ID de la entrega"),
    service: DeliveryService = Depends(get_delivery_service)
):
    """
    completeDelivery: Marcar entrega como completada

    - Registra una notificación de entrega completada
    - Cambia estado a DELIVERY_STATUS_COMPLETED
    """
    await service.complete_delivery(delivery_id)
    return BaseResponse(success=True, message="Entrega completada")

@router.get("/deliveries/{delivery_id}", response_model=DeliveryResponse)
async def get_delivery(
    delivery_id: str = Path(..., description="ID de la entrega"),
    service: DeliveryService = Depends(get_delivery_service)
):
    """getDelivery: Obtener entrega por id"""
    return await service.get_delivery(delivery_id)

@router.post("/cancel-delivery/{delivery_id}", response_model=BaseResponse)
async def cancel_delivery(
    delivery_id: str = Path(..., description="ID de la entrega"),
    service: DeliveryService = Depends(get_delivery_service)
):
    """cancelDelivery: Cancelar entrega (solo en estado CREATED)"""
    await service.cancel_delivery(delivery_id)
    return BaseResponse(success=True, message="Entrega cancelada")

@router.post("/confirm-delivery/{delivery_id}", response_model=ConfirmDeliveryResponse)
async def confirm_delivery(
    request: ConfirmDeliveryRequest,
    delivery_id: str = Path(..., description="ID de la entrega"),
    service: DeliveryService = Depends(get_delivery_service)
):
    """
    confirmDelivery: Registrar prueba de entrega

    **Validaciones:**
    - Se requiere firma o huella (al menos una)
    - Una sola confirmación por entrega
    """
    return await service.confirm_delivery(delivery_id, request)

@router.get("/deliveries", response_model=DeliveryListResponse)
async def list_deliveries(
    username: Optional[str] = Query(None, description="Cuenta dueña de las entregas"),
    service: DeliveryService = Depends(get_delivery_service)
):
    """listDeliveries: Entregas de una cuenta"""
    return await service.list_deliveries(username)

@router.get("/health")
async def delivery_health():
    """Health check del módulo delivery"""
    return {
        "service": "delivery",
        "status": "healthy",
        "version": "1.0.0",
        "features": [
            "createDelivery",
            "updateDeliveryStatus",
            "updateDeliveryDrone",
            "pickupPackage",
            "completeDelivery",
            "getDelivery",
            "cancelDelivery",
            "confirmDelivery",
            "listDeliveries"
        ]
    }
