# app/modules/delivery/dependencies.py
from fastapi import Depends
from sqlalchemy.orm import Session

from app.config.database import get_db
from .repository import DeliveryRepository, ConfirmationRepository, NotificationRepository
from .service import DeliveryService


def get_delivery_service(db: Session = Depends(get_db)) -> DeliveryService:
    """Construye el servicio con sus repositorios sobre la sesión de la petición"""
    return DeliveryService(
        delivery_repository=DeliveryRepository(db),
        confirmation_repository=ConfirmationRepository(db),
        notification_repository=NotificationRepository(db)
    )
