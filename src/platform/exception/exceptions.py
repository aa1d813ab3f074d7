class CustomBaseError(Exception):
    """Base class for all custom exceptions - controls logging behavior in @Logger.io"""

    code: str = 'DOMAIN_ERROR'

    def __init__(self, message: str, status_code: int) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)

    def to_content(self) -> dict:
        return {'detail': self.message, 'code': self.code}


class DomainError(CustomBaseError):
    def __init__(self, message: str, status_code: int = 400) -> None:
        super().__init__(message, status_code)


class AuthenticationError(CustomBaseError):
    code = 'UNAUTHORIZED'

    def __init__(self, message: str) -> None:
        super().__init__(message, 401)


class ForbiddenError(CustomBaseError):
    code = 'FORBIDDEN'

    def __init__(self, message: str) -> None:
        super().__init__(message, 403)


class EntityNotFoundError(CustomBaseError):
    code = 'NOT_FOUND'

    def __init__(self, entity: str, entity_id: object) -> None:
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f'{entity} with id {entity_id} not found', 404)


class UnauthorizedAccessError(CustomBaseError):
    code = 'UNAUTHORIZED_ACCESS'

    def __init__(self, resource: str) -> None:
        self.resource = resource
        super().__init__(f'Unauthorized access to {resource}', 403)


class InvalidStateTransitionError(CustomBaseError):
    code = 'INVALID_STATE_TRANSITION'

    def __init__(self, entity: str, from_state: str, to_state: str) -> None:
        self.entity = entity
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(f'Cannot transition {entity} from {from_state} to {to_state}', 409)


class InsufficientStockError(CustomBaseError):
    code = 'INSUFFICIENT_STOCK'

    def __init__(self, product_id: object, requested: int, available: int) -> None:
        self.product_id = product_id
        self.requested = requested
        self.available = available
        super().__init__(
            f'Insufficient stock for product {product_id}. '
            f'Requested: {requested}, Available: {available}',
            409,
        )

    def to_content(self) -> dict:
        return super().to_content() | {'requested': self.requested, 'available': self.available}


class ProductExpiredError(CustomBaseError):
    code = 'PRODUCT_EXPIRED'

    def __init__(self, product_id: object) -> None:
        self.product_id = product_id
        super().__init__(f'Product {product_id} pickup window has expired', 409)


class PaymentFailedError(CustomBaseError):
    code = 'PAYMENT_FAILED'

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f'Payment failed: {reason}', 422)


class DuplicateBookingError(CustomBaseError):
    code = 'DUPLICATE_BOOKING'

    def __init__(self, idempotency_key: str) -> None:
        self.idempotency_key = idempotency_key
        super().__init__(
            f'Booking with idempotency key {idempotency_key} already exists', 409
        )


class InvalidQrCodeError(CustomBaseError):
    code = 'INVALID_QR_CODE'

    def __init__(self, message: str = 'Invalid QR code format') -> None:
        super().__init__(message, 400)


class MissingIdempotencyKeyError(CustomBaseError):
    code = 'MISSING_IDEMPOTENCY_KEY'

    def __init__(self) -> None:
        super().__init__('Idempotency-Key header is required for this request', 400)


class OrderNumberCollisionError(CustomBaseError):
    """Raised by the persistence layer when an allocated order number is already taken."""

    code = 'ORDER_NUMBER_COLLISION'

    def __init__(self, order_number: str) -> None:
        self.order_number = order_number
        super().__init__(f'Order number {order_number} is already in use', 409)


class IdempotencyKeyConflictError(CustomBaseError):
    """Raised when a concurrent request committed a booking with the same idempotency key."""

    code = 'IDEMPOTENCY_KEY_CONFLICT'

    def __init__(self, idempotency_key: str) -> None:
        self.idempotency_key = idempotency_key
        super().__init__(f'Idempotency key {idempotency_key} was claimed concurrently', 409)
