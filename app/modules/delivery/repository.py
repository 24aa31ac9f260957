# app/modules/delivery/repository.py
from sqlalchemy.orm import Session
from sqlalchemy import and_
from typing import List, Dict, Any, Optional
import logging

from app.shared.database.models import Delivery, DeliveryConfirmation, Notification
from app.shared.enums import DeliveryStatus

logger = logging.getLogger(__name__)


MAX_ID = 2 ** 63


def parse_id(value: Any) -> Optional[int]:
    """Los ids viajan como texto opaco; un id no numérico o fuera de BIGINT no existe"""
    if isinstance(value, bool):
        return None
    try:
        parsed = int(str(value).strip())
    except (TypeError, ValueError):
        return None
    if not -MAX_ID <= parsed < MAX_ID:
        return None
    return parsed


class DeliveryRepository:
    def __init__(self, db: Session):
        self.db = db

    def find_by_id(self, delivery_id: Any) -> Optional[Delivery]:
        """Buscar entrega por id"""
        parsed = parse_id(delivery_id)
        if parsed is None:
            return None
        return self.db.query(Delivery).filter(Delivery.id == parsed).first()

    def find_by_owner(self, account: str) -> List[Delivery]:
        """Entregas de una cuenta, de la más antigua a la más reciente"""
        return self.db.query(Delivery).filter(
            Delivery.account == account
        ).order_by(Delivery.created_at.asc(), Delivery.id.asc()).all()

    def find_oldest_ready_by_drone(self, drone: str, exclude_ids: Optional[List[int]] = None) -> Optional[Delivery]:
        """Entrega más antigua lista para recolección y sin dron asignado"""
        query = self.db.query(Delivery).filter(
            and_(
                Delivery.status == DeliveryStatus.DELIVERY_STATUS_CREATED.value,
                Delivery.drone.is_(None)
            )
        )
        if exclude_ids:
            query = query.filter(Delivery.id.notin_(exclude_ids))
        return query.order_by(Delivery.created_at.asc(), Delivery.id.asc()).first()

    def claim_for_drone(self, delivery_id: int, drone: str) -> bool:
        """
        Asignar dron con actualización condicional (prevenir race conditions).

        Solo tiene efecto si la entrega sigue en CREATED y sin dron;
        retorna False si otro dron la tomó primero.
        """
        try:
            claimed = self.db.query(Delivery).filter(
                and_(
                    Delivery.id == delivery_id,
                    Delivery.status == DeliveryStatus.DELIVERY_STATUS_CREATED.value,
                    Delivery.drone.is_(None)
                )
            ).update(
                {
                    Delivery.drone: drone,
                    Delivery.status: DeliveryStatus.DELIVERY_STATUS_HEADED_TO_DROP_OFF.value
                },
                synchronize_session=False
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return claimed == 1

    def transition(self, delivery_id: int, from_status: str, patch: Dict[str, Any]) -> Optional[Delivery]:
        """
        Actualización condicionada al estado leído por el servicio.

        Retorna None si la entrega ya no está en `from_status` (otra petición
        la modificó entre la lectura y la escritura).
        """
        try:
            updated = self.db.query(Delivery).filter(
                and_(
                    Delivery.id == delivery_id,
                    Delivery.status == from_status
                )
            ).update(
                {getattr(Delivery, field): value for field, value in patch.items()},
                synchronize_session=False
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        if updated != 1:
            return None
        return self.find_by_id(delivery_id)

    def save(self, delivery_data: Dict[str, Any]) -> Delivery:
        """Crear nueva entrega; el estado inicial es CREATED"""
        delivery = Delivery(
            pickup_latitude=delivery_data["pickup"]["latitude"],
            pickup_longitude=delivery_data["pickup"]["longitude"],
            drop_off_latitude=delivery_data["drop_off"]["latitude"],
            drop_off_longitude=delivery_data["drop_off"]["longitude"],
            account=delivery_data["account"],
            drone=delivery_data.get("drone"),
            status=delivery_data.get("status", DeliveryStatus.DELIVERY_STATUS_CREATED.value)
        )

        try:
            self.db.add(delivery)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(delivery)
        return delivery

    def update(self, delivery_id: Any, patch: Dict[str, Any]) -> Optional[Delivery]:
        """Actualización parcial; retorna la entrega actualizada o None si no existe"""
        delivery = self.find_by_id(delivery_id)
        if not delivery:
            return None

        for field, value in patch.items():
            setattr(delivery, field, value)

        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(delivery)
        return delivery


class ConfirmationRepository:
    def __init__(self, db: Session):
        self.db = db

    def find_by_id(self, confirmation_id: Any) -> Optional[DeliveryConfirmation]:
        parsed = parse_id(confirmation_id)
        if parsed is None:
            return None
        return self.db.query(DeliveryConfirmation).filter(DeliveryConfirmation.id == parsed).first()

    def find_by_owner(self, delivery_id: Any) -> List[DeliveryConfirmation]:
        """Confirmaciones de una entrega (como máximo una)"""
        parsed = parse_id(delivery_id)
        if parsed is None:
            return []
        return self.db.query(DeliveryConfirmation).filter(
            DeliveryConfirmation.delivery_id == parsed
        ).all()

    def save(self, confirmation_data: Dict[str, Any]) -> DeliveryConfirmation:
        confirmation = DeliveryConfirmation(
            delivery_id=confirmation_data["delivery"],
            signature=confirmation_data.get("signature"),
            finger_print=confirmation_data.get("finger_print")
        )

        try:
            self.db.add(confirmation)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(confirmation)
        return confirmation


class NotificationRepository:
    def __init__(self, db: Session):
        self.db = db

    def find_by_id(self, notification_id: Any) -> Optional[Notification]:
        parsed = parse_id(notification_id)
        if parsed is None:
            return None
        return self.db.query(Notification).filter(Notification.id == parsed).first()

    def find_by_owner(self, delivery_id: Any) -> List[Notification]:
        parsed = parse_id(delivery_id)
        if parsed is None:
            return []
        return self.db.query(Notification).filter(
            Notification.delivery_id == parsed
        ).order_by(Notification.id.asc()).all()

    def save(self, notification_data: Dict[str, Any]) -> Notification:
        notification = Notification(
            delivery_id=notification_data["delivery"],
            message=notification_data["message"]
        )

        try:
            self.db.add(notification)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(notification)
        return notification
