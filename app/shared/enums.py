# app/shared/enums.py
from enum import Enum


class DeliveryStatus(str, Enum):
    """Estados de una entrega (valores de wire)"""
    DELIVERY_STATUS_CREATED = "DELIVERY_STATUS_CREATED"
    DELIVERY_STATUS_HEADED_TO_DROP_OFF = "DELIVERY_STATUS_HEADED_TO_DROP_OFF"
    DELIVERY_STATUS_COMPLETED = "DELIVERY_STATUS_COMPLETED"
    DELIVERY_STATUS_CANCELED = "DELIVERY_STATUS_CANCELED"
    # Solo se usa en respuestas, nunca se persiste
    DELIVERY_STATUS_ERROR = "DELIVERY_STATUS_ERROR"


class RequestStatus(str, Enum):
    """Estados de solicitudes de transporte de terceros"""
    REQUEST_STATUS_WAITING = "WAITING"
    REQUEST_STATUS_CANCELED = "CANCELED"
    REQUEST_STATUS_COMPLETED = "COMPLETED"


# Transiciones válidas del ciclo de vida de una entrega
DELIVERY_STATUS_TRANSITIONS = {
    DeliveryStatus.DELIVERY_STATUS_CREATED: {
        DeliveryStatus.DELIVERY_STATUS_HEADED_TO_DROP_OFF,
        DeliveryStatus.DELIVERY_STATUS_CANCELED,
    },
    DeliveryStatus.DELIVERY_STATUS_HEADED_TO_DROP_OFF: {
        DeliveryStatus.DELIVERY_STATUS_COMPLETED,
    },
    DeliveryStatus.DELIVERY_STATUS_COMPLETED: set(),
    DeliveryStatus.DELIVERY_STATUS_CANCELED: set(),
}


def can_transition(current: str, target: str) -> bool:
    """Indica si una entrega puede pasar de `current` a `target`"""
    try:
        current_status = DeliveryStatus(current)
        target_status = DeliveryStatus(target)
    except ValueError:
        return False
    return target_status in DELIVERY_STATUS_TRANSITIONS.get(current_status, set())
