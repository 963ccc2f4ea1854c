"""Error taxonomy shared by the services and the HTTP layer."""
import enum


class ErrorKind(enum.Enum):
    VALIDATION = 400
    NOT_FOUND = 404
    CONFLICT = 409
    INTERNAL = 500

    @property
    def status_code(self) -> int:
        return self.value


class ServiceError(Exception):
    kind = ErrorKind.INTERNAL

    def __init__(self, message: str, detail: dict | None = None, kind: ErrorKind | None = None):
        super().__init__(message)
        self.message = message
        self.detail = detail or {}
        if kind is not None:
            self.kind = kind

    @property
    def status_code(self) -> int:
        return self.kind.status_code

    def to_dict(self) -> dict:
        body = {"message": self.message}
        if self.detail:
            body["detail"] = self.detail
        return body


class ValidationError(ServiceError):
    kind = ErrorKind.VALIDATION


class NotFoundError(ServiceError):
    kind = ErrorKind.NOT_FOUND

    def __init__(self, label: str, entity_id, message: str | None = None):
        super().__init__(
            message or f"{label} with id {entity_id} not found.",
            {"entity": label, "id": entity_id},
        )
        self.entity_id = entity_id


class ConflictError(ServiceError):
    kind = ErrorKind.CONFLICT


class InsufficientStockError(ConflictError):
    def __init__(self, product_id: int, product_name: str, available: int, requested: int):
        super().__init__(
            f'Insufficient stock for product "{product_name}". '
            f"Available: {available}, requested: {requested}.",
            {"productId": product_id, "available": available, "requested": requested},
        )
        self.product_id = product_id
        self.available = available
        self.requested = requested


class DeleteBlockedError(ConflictError):
    def __init__(self, label: str, count: int, relation: str):
        super().__init__(
            f"Cannot delete the {label} because it has {count} associated {relation}.",
            {"count": count, "relation": relation},
        )
        self.count = count
        self.relation = relation


class MissingProductError(ConflictError):
    """A sale or purchase line names a product that does not exist."""

    def __init__(self, product_id):
        super().__init__(f"Product with ID {product_id} not found.", {"productId": product_id})
        self.product_id = product_id
