# app/shared/database/models.py
from sqlalchemy import (
    Column, Integer, String, DateTime, Float, Text, ForeignKey, CheckConstraint, func
)
from sqlalchemy.orm import relationship, declarative_base

from app.shared.enums import DeliveryStatus

Base = declarative_base()

# =====================================================
# MIXIN PARA TIMESTAMPS
# =====================================================
class TimestampMixin:
    """Mixin que agrega campos created_at y updated_at"""
    created_at = Column(DateTime, nullable=False, server_default=func.current_timestamp())
    updated_at = Column(DateTime, nullable=False, server_default=func.current_timestamp(), onupdate=func.current_timestamp())


PERSISTABLE_STATUSES = (
    DeliveryStatus.DELIVERY_STATUS_CREATED.value,
    DeliveryStatus.DELIVERY_STATUS_HEADED_TO_DROP_OFF.value,
    DeliveryStatus.DELIVERY_STATUS_COMPLETED.value,
    DeliveryStatus.DELIVERY_STATUS_CANCELED.value,
)


# =====================================================
# ENTREGAS
# =====================================================

class Delivery(Base, TimestampMixin):
    """Entrega: recolección -> punto de entrega, asignada a un dron"""
    __tablename__ = "deliveries"

    id = Column(Integer, primary_key=True, index=True)

    # Coordenadas (inmutables después de la creación)
    pickup_latitude = Column(Float, nullable=False)
    pickup_longitude = Column(Float, nullable=False)
    drop_off_latitude = Column(Float, nullable=False)
    drop_off_longitude = Column(Float, nullable=False)

    account = Column(String(255), nullable=False, index=True)
    drone = Column(String(255), nullable=True, index=True)
    status = Column(
        String(50), nullable=False, index=True,
        default=DeliveryStatus.DELIVERY_STATUS_CREATED.value
    )

    # Relationships
    confirmation = relationship("DeliveryConfirmation", back_populates="delivery", uselist=False)
    notifications = relationship("Notification", back_populates="delivery")

    __table_args__ = (
        CheckConstraint(
            "status IN ({})".format(", ".join(f"'{s}'" for s in PERSISTABLE_STATUSES)),
            name="check_delivery_status"
        ),
    )

    @property
    def pickup(self) -> dict:
        return {"latitude": self.pickup_latitude, "longitude": self.pickup_longitude}

    @property
    def drop_off(self) -> dict:
        return {"latitude": self.drop_off_latitude, "longitude": self.drop_off_longitude}


class DeliveryConfirmation(Base, TimestampMixin):
    """Prueba de entrega: firma o huella"""
    __tablename__ = "delivery_confirmations"

    id = Column(Integer, primary_key=True, index=True)
    delivery_id = Column(Integer, ForeignKey("deliveries.id"), nullable=False, unique=True, index=True)
    signature = Column(Text, nullable=True)
    finger_print = Column(Text, nullable=True)

    delivery = relationship("Delivery", back_populates="confirmation")

    __table_args__ = (
        CheckConstraint(
            "signature IS NOT NULL OR finger_print IS NOT NULL",
            name="check_confirmation_proof"
        ),
    )


class Notification(Base, TimestampMixin):
    """Notificación generada al completar una entrega"""
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    delivery_id = Column(Integer, ForeignKey("deliveries.id"), nullable=False, index=True)
    message = Column(Text, nullable=False)

    delivery = relationship("Delivery", back_populates="notifications")
