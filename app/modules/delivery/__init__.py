# app/modules/delivery/__init__.py
"""
Módulo Delivery - Gestión de Entregas con Drones

Este módulo implementa el ciclo de vida de una entrega:
- createDelivery: Crear solicitud con coordenadas de recolección y entrega
- pickupPackage: Asignar al dron la entrega lista más antigua
- updateDeliveryStatus / updateDeliveryDrone: Actualizaciones parciales
- completeDelivery: Completar entrega y registrar notificación
- cancelDelivery: Cancelar entregas aún no asignadas
- confirmDelivery: Prueba de entrega (firma o huella)
- getDelivery / listDeliveries: Consultas

Arquitectura:
- router.py: Endpoints de entregas
- service.py: Reglas del ciclo de vida y validaciones
- repository.py: Acceso a datos (entregas, confirmaciones, notificaciones)
- schemas.py: Modelos de request/response
- dependencies.py: Construcción del servicio por petición
"""

from .router import router
from .service import DeliveryService
from .repository import DeliveryRepository, ConfirmationRepository, NotificationRepository

__all__ = [
    "router",
    "DeliveryService",
    "DeliveryRepository",
    "ConfirmationRepository",
    "NotificationRepository"
]
