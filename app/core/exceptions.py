# app/core/exceptions.py
from typing import Any, Optional
from fastapi import HTTPException, status


class DeliveryServiceError(HTTPException):
    """Base de los errores de dominio; cada uno conoce su código HTTP y su error_code"""
    error_code = "INTERNAL_ERROR"

    def __init__(self, status_code: int, detail: str):
        super().__init__(status_code=status_code, detail=detail)


class BadRequestException(DeliveryServiceError):
    error_code = "BAD_REQUEST"

    def __init__(self, detail: str = "The request is invalid"):
        super().__init__(status.HTTP_400_BAD_REQUEST, detail)


class DeliveryNotFoundException(DeliveryServiceError):
    error_code = "NOT_FOUND"

    def __init__(self, delivery_id: Any = None):
        self.delivery_id = delivery_id
        super().__init__(status.HTTP_404_NOT_FOUND, f"Delivery with id = {delivery_id} not found")


class ConflictException(DeliveryServiceError):
    error_code = "CONFLICT"

    def __init__(self, detail: str = "The request conflicts with the current state"):
        super().__init__(status.HTTP_409_CONFLICT, detail)


class InvalidStatusChangeException(DeliveryServiceError):
    error_code = "INVALID_STATUS_CHANGE"

    def __init__(self, current: Optional[str] = None, target: Optional[str] = None):
        self.current = current
        self.target = target
        if current and target:
            detail = f"Delivery status cannot change from '{current}' to '{target}'"
        else:
            detail = "Invalid delivery status change"
        super().__init__(status.HTTP_409_CONFLICT, detail)
