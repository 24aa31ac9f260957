# app/modules/delivery/service.py
from typing import Dict, Any, Optional
import logging
import math
from sqlalchemy.exc import IntegrityError

from app.config.settings import settings
from app.core.exceptions import (
    BadRequestException, ConflictException, DeliveryNotFoundException, InvalidStatusChangeException
)
from app.shared.database.models import Delivery
from app.shared.enums import DeliveryStatus, can_transition
from .repository import DeliveryRepository, ConfirmationRepository, NotificationRepository
from .schemas import (
    CreateDeliveryRequest, ConfirmDeliveryRequest,
    DeliveryResponse, DeliveryListResponse, PickupAssignment, ConfirmDeliveryResponse
)

logger = logging.getLogger(__name__)

COMPLETION_MESSAGE = "Delivery with id = {delivery_id} has been completed"

PATCHABLE_FIELDS = {"status", "drone"}


def _is_valid_coordinate(value: Optional[float]) -> bool:
    # 0 cuenta como ausente; NaN e infinitos no se pueden persistir
    return bool(value) and math.isfinite(value)


class DeliveryService:
    def __init__(
        self,
        delivery_repository: DeliveryRepository,
        confirmation_repository: ConfirmationRepository,
        notification_repository: NotificationRepository,
        require_completed_for_confirmation: Optional[bool] = None,
        pickup_claim_attempts: Optional[int] = None
    ):
        self.delivery_repository = delivery_repository
        self.confirmation_repository = confirmation_repository
        self.notification_repository = notification_repository
        self.require_completed_for_confirmation = (
            settings.require_completed_for_confirmation
            if require_completed_for_confirmation is None
            else require_completed_for_confirmation
        )
        self.pickup_claim_attempts = max(
            1, settings.pickup_claim_attempts if pickup_claim_attempts is None else pickup_claim_attempts
        )

    # ==================== CONSULTAS ====================

    async def get_delivery(self, delivery_id: str) -> DeliveryResponse:
        """Obtener entrega por id"""
        delivery = self._get_existing(delivery_id)
        return self._to_response(delivery, "Entrega encontrada")

    async def list_deliveries(self, username: Optional[str]) -> DeliveryListResponse:
        """Entregas de una cuenta; lista vacía si no tiene"""
        deliveries = self.delivery_repository.find_by_owner(username) if username else []

        return DeliveryListResponse(
            success=True,
            message=f"Entregas de {username}" if username else "Sin cuenta indicada",
            deliveries=[self._to_response(d) for d in deliveries],
            count=len(deliveries)
        )

    # ==================== CICLO DE VIDA ====================

    async def create_delivery(self, request: CreateDeliveryRequest) -> DeliveryResponse:
        """Crear entrega en estado CREATED"""
        coordinates = (
            request.pickup_latitude,
            request.pickup_longitude,
            request.dropOff_latitude,
            request.dropOff_longitude
        )
        if not request.username or not all(_is_valid_coordinate(c) for c in coordinates):
            raise BadRequestException("Username and pickup/dropOff coordinates are required")

        delivery = self.delivery_repository.save({
            "pickup": {
                "latitude": request.pickup_latitude,
                "longitude": request.pickup_longitude
            },
            "drop_off": {
                "latitude": request.dropOff_latitude,
                "longitude": request.dropOff_longitude
            },
            "account": request.username
        })

        logger.info("Delivery %s created for account %s", delivery.id, delivery.account)
        return self._to_response(delivery, "Entrega creada exitosamente")

    async def partially_update_delivery(self, delivery_id: str, patch: Dict[str, Any]) -> DeliveryResponse:
        """
        Actualización parcial de estado y/o dron.

        Todo cambio de estado pasa por la tabla de transiciones; un estado
        desconocido es BadRequest y una transición no permitida es
        InvalidStatusChange.
        """
        if not patch:
            raise BadRequestException("Nothing to update")

        unknown = set(patch) - PATCHABLE_FIELDS
        if unknown:
            raise BadRequestException(f"Fields cannot be updated: {', '.join(sorted(unknown))}")

        delivery = self._get_existing(delivery_id)

        if "status" in patch:
            target = self._parse_status(patch["status"])
            self._check_transition(delivery, target)
            patch = {**patch, "status": target.value}

        if "drone" in patch and not patch["drone"]:
            raise BadRequestException("Drone is required")

        if "status" in patch:
            updated = self._apply_transition(delivery.id, delivery.status, patch)
        else:
            updated = self.delivery_repository.update(delivery.id, patch)
        logger.info("Delivery %s updated: %s", delivery.id, patch)
        return self._to_response(updated, "Entrega actualizada")

    async def ready_for_pickup(self, drone: Optional[str]) -> Optional[PickupAssignment]:
        """
        Asignar al dron la entrega lista más antigua.

        Retorna None cuando no hay entregas disponibles. La asignación es una
        actualización condicional; si otro dron gana la carrera se intenta con
        la siguiente candidata.
        """
        if not drone:
            raise BadRequestException("Drone is required")

        lost_ids = []
        for _ in range(self.pickup_claim_attempts):
            candidate = self.delivery_repository.find_oldest_ready_by_drone(drone, exclude_ids=lost_ids)
            if not candidate:
                logger.info("No deliveries ready for drone %s", drone)
                return None

            candidate_id = candidate.id
            if self.delivery_repository.claim_for_drone(candidate_id, drone):
                delivery = self.delivery_repository.find_by_id(candidate_id)
                logger.info("Delivery %s assigned to drone %s", candidate_id, drone)
                return PickupAssignment(
                    delivery=str(delivery.id),
                    drone=delivery.drone,
                    pickup_latitude=delivery.pickup_latitude,
                    pickup_longitude=delivery.pickup_longitude,
                    dropOff_latitude=delivery.drop_off_latitude,
                    dropOff_longitude=delivery.drop_off_longitude,
                    status=DeliveryStatus(delivery.status)
                )

            logger.info("Delivery %s was claimed by another drone, retrying", candidate_id)
            lost_ids.append(candidate_id)

        logger.warning("Drone %s could not claim a delivery after %s attempts", drone, self.pickup_claim_attempts)
        return None

    async def complete_delivery(self, delivery_id: str) -> DeliveryResponse:
        """Registrar notificación y marcar la entrega como COMPLETED"""
        delivery = self._get_existing(delivery_id)
        self._check_transition(delivery, DeliveryStatus.DELIVERY_STATUS_COMPLETED)
        from_status = delivery.status

        # La notificación se escribe antes que el estado; no hay rollback si falla el segundo paso
        self.notification_repository.save({
            "delivery": delivery.id,
            "message": COMPLETION_MESSAGE.format(delivery_id=delivery.id)
        })

        updated = self._apply_transition(
            delivery.id, from_status, {"status": DeliveryStatus.DELIVERY_STATUS_COMPLETED.value}
        )
        logger.info("Delivery %s completed", delivery.id)
        return self._to_response(updated, "Entrega completada")

    async def cancel_delivery(self, delivery_id: str) -> DeliveryResponse:
        """Cancelar entrega; solo desde CREATED"""
        delivery = self._get_existing(delivery_id)

        if delivery.status != DeliveryStatus.DELIVERY_STATUS_CREATED.value:
            raise InvalidStatusChangeException(delivery.status, DeliveryStatus.DELIVERY_STATUS_CANCELED.value)

        updated = self._apply_transition(
            delivery.id, delivery.status, {"status": DeliveryStatus.DELIVERY_STATUS_CANCELED.value}
        )
        logger.info("Delivery %s canceled", delivery.id)
        return self._to_response(updated, "Entrega cancelada")

    async def confirm_delivery(self, delivery_id: Optional[str], confirmation: ConfirmDeliveryRequest) -> ConfirmDeliveryResponse:
        """Registrar la prueba de entrega (firma y/o huella)"""
        if not delivery_id or (not confirmation.signature and not confirmation.finger_print):
            raise BadRequestException(
                "The request is invalid. Confirm that both delivery and signature/fingerprint are defined."
            )

        delivery = self._get_existing(delivery_id)

        if self.confirmation_repository.find_by_owner(delivery.id):
            raise ConflictException(f"Delivery with id = {delivery.id} is already confirmed")

        if (
            self.require_completed_for_confirmation
            and delivery.status != DeliveryStatus.DELIVERY_STATUS_COMPLETED.value
        ):
            raise ConflictException(f"Delivery with id = {delivery.id} is not completed yet")

        try:
            saved = self.confirmation_repository.save({
                "delivery": delivery.id,
                "signature": confirmation.signature or None,
                "finger_print": confirmation.finger_print or None
            })
        except IntegrityError:
            # Otra confirmación concurrente ganó el índice único
            raise ConflictException(f"Delivery with id = {delivery.id} is already confirmed")

        logger.info("Delivery %s confirmed (confirmation %s)", delivery.id, saved.id)
        return ConfirmDeliveryResponse(
            success=True,
            message="Entrega confirmada",
            confirmation=str(saved.id),
            delivery=str(saved.delivery_id),
            signature=saved.signature,
            finger_print=saved.finger_print
        )

    # ==================== HELPERS ====================

    def _get_existing(self, delivery_id: Any) -> Delivery:
        delivery = self.delivery_repository.find_by_id(delivery_id)
        if not delivery:
            raise DeliveryNotFoundException(delivery_id)
        return delivery

    def _parse_status(self, value: Any) -> DeliveryStatus:
        try:
            return DeliveryStatus(value)
        except ValueError:
            raise BadRequestException(f"Unknown delivery status: {value}")

    def _check_transition(self, delivery: Delivery, target: DeliveryStatus):
        if not can_transition(delivery.status, target.value):
            raise InvalidStatusChangeException(delivery.status, target.value)

    def _apply_transition(self, delivery_id: int, from_status: str, patch: Dict[str, Any]) -> Delivery:
        """Escritura condicionada al estado leído; si cambió entre medias es InvalidStatusChange"""
        updated = self.delivery_repository.transition(delivery_id, from_status, patch)
        if updated is None:
            current = self.delivery_repository.find_by_id(delivery_id)
            raise InvalidStatusChangeException(
                current.status if current else from_status, patch.get("status")
            )
        return updated

    def _to_response(self, delivery: Delivery, message: str = "") -> DeliveryResponse:
        return DeliveryResponse(
            success=True,
            message=message,
            delivery=str(delivery.id),
            pickup_latitude=delivery.pickup_latitude,
            pickup_longitude=delivery.pickup_longitude,
            dropOff_latitude=delivery.drop_off_latitude,
            dropOff_longitude=delivery.drop_off_longitude,
            account=delivery.account,
            drone=delivery.drone,
            status=DeliveryStatus(delivery.status)
        )
