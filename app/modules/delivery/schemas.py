# app/modules/delivery/schemas.py
from pydantic import BaseModel, Field
from typing import Optional, List
from app.shared.enums import DeliveryStatus
from app.shared.schemas.common import BaseResponse

# ==================== REQUESTS ====================

class CreateDeliveryRequest(BaseModel):
    # La obligatoriedad se valida en el servicio (BadRequest), no aquí
    pickup_latitude: Optional[float] = Field(None, allow_inf_nan=False, description="Latitud del punto de recolección")
    pickup_longitude: Optional[float] = Field(None, allow_inf_nan=False, description="Longitud del punto de recolección")
    dropOff_latitude: Optional[float] = Field(None, allow_inf_nan=False, description="Latitud del punto de entrega")
    dropOff_longitude: Optional[float] = Field(None, allow_inf_nan=False, description="Longitud del punto de entrega")
    username: Optional[str] = Field(None, description="Cuenta dueña de la entrega")

class UpdateDeliveryStatusRequest(BaseModel):
    status: Optional[str] = Field(None, description="Nuevo estado (DELIVERY_STATUS_*)")

class UpdateDeliveryDroneRequest(BaseModel):
    drone: Optional[str] = Field(None, description="Identificador del dron")

class PickupPackageRequest(BaseModel):
    drone: Optional[str] = Field(None, description="Dron que solicita un paquete")

class ConfirmDeliveryRequest(BaseModel):
    finger_print: Optional[str] = Field(None, description="Huella del receptor")
    signature: Optional[str] = Field(None, description="Firma del receptor")

# ==================== RESPONSES ====================

class DeliveryResponse(BaseResponse):
    delivery: str
    pickup_latitude: float
    pickup_longitude: float
    dropOff_latitude: float
    dropOff_longitude: float
    account: str
    drone: Optional[str] = None
    status: DeliveryStatus

class DeliveryListResponse(BaseResponse):
    deliveries: List[DeliveryResponse]
    count: int

class PickupAssignment(BaseModel):
    """Asignación real de una entrega a un dron"""
    delivery: str
    drone: str
    pickup_latitude: float
    pickup_longitude: float
    dropOff_latitude: float
    dropOff_longitude: float
    status: DeliveryStatus

class PickupPackageResponse(BaseResponse):
    # Con status DELIVERY_STATUS_ERROR es el centinela "sin entregas disponibles"
    delivery: str
    drone: Optional[str] = None
    pickup_latitude: Optional[float] = None
    pickup_longitude: Optional[float] = None
    dropOff_latitude: Optional[float] = None
    dropOff_longitude: Optional[float] = None
    status: DeliveryStatus

class ConfirmDeliveryResponse(BaseResponse):
    confirmation: str
    delivery: str
    signature: Optional[str] = None
    finger_print: Optional[str] = None
