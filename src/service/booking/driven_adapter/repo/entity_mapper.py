"""Translation between ORM rows and domain entities."""

from typing import Any

from src.service.booking.domain.entity.booking_entity import Booking
from src.service.booking.domain.entity.payment_entity import Payment
from src.service.booking.domain.entity.product_entity import Product
from src.service.booking.domain.enum.booking_status import BookingStatus
from src.service.booking.domain.enum.payment_status import PaymentStatus
from src.service.booking.domain.enum.product_status import ProductStatus
from src.service.booking.domain.value_object.pickup_window import PickupWindow
from src.service.booking.driven_adapter.model.booking_model import BookingModel
from src.service.booking.driven_adapter.model.payment_model import PaymentModel
from src.service.booking.driven_adapter.model.product_model import ProductModel


def product_to_entity(row: ProductModel) -> Product:
    return Product(
        id=row.id,
        store_id=row.store_id,
        name=row.name,
        original_price=row.original_price,
        discounted_price=row.discounted_price,
        quantity_total=row.quantity,
        quantity_reserved=row.quantity_reserved,
        pickup_window=PickupWindow(start=row.pickup_window_start, end=row.pickup_window_end),
        expires_at=row.expires_at,
        status=ProductStatus(row.status),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def product_ledger_values(product: Product) -> dict[str, Any]:
    return {
        'quantity': product.quantity_total,
        'quantity_reserved': product.quantity_reserved,
        'status': product.status.value,
    }


def booking_to_entity(row: BookingModel) -> Booking:
    return Booking(
        id=row.id,
        order_number=row.order_number,
        user_id=row.user_id,
        product_id=row.product_id,
        store_id=row.store_id,
        quantity=row.quantity,
        unit_price=row.unit_price,
        total_price=row.total_price,
        pickup_window=PickupWindow(start=row.pickup_window_start, end=row.pickup_window_end),
        idempotency_key=row.idempotency_key,
        status=BookingStatus(row.status),
        qr_code_data=row.qr_code_data,
        cancellation_reason=row.cancellation_reason,
        created_at=row.created_at,
        updated_at=row.updated_at,
        confirmed_at=row.confirmed_at,
        ready_at=row.ready_at,
        completed_at=row.completed_at,
        cancelled_at=row.cancelled_at,
        expired_at=row.expired_at,
    )


def booking_values(booking: Booking) -> dict[str, Any]:
    return {
        'order_number': booking.order_number,
        'user_id': booking.user_id,
        'product_id': booking.product_id,
        'store_id': booking.store_id,
        'quantity': booking.quantity,
        'unit_price': booking.unit_price,
        'total_price': booking.total_price,
        'status': booking.status.value,
        'qr_code_data': booking.qr_code_data,
        'pickup_window_start': booking.pickup_window.start,
        'pickup_window_end': booking.pickup_window.end,
        'idempotency_key': booking.idempotency_key,
        'cancellation_reason': booking.cancellation_reason,
        'confirmed_at': booking.confirmed_at,
        'ready_at': booking.ready_at,
        'completed_at': booking.completed_at,
        'cancelled_at': booking.cancelled_at,
        'expired_at': booking.expired_at,
    }


def payment_to_entity(row: PaymentModel) -> Payment:
    return Payment(
        id=row.id,
        booking_id=row.booking_id,
        amount=row.amount,
        currency=row.currency,
        idempotency_key=row.idempotency_key,
        status=PaymentStatus(row.status),
        provider_payment_method_id=row.provider_payment_method_id,
        provider_tx_id=row.provider_tx_id,
        refunded_amount=row.refunded_amount,
        refund_tx_id=row.refund_tx_id,
        last4=row.last4,
        card_brand=row.card_brand,
        failure_reason=row.failure_reason,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def payment_values(payment: Payment) -> dict[str, Any]:
    return {
        'booking_id': payment.booking_id,
        'amount': payment.amount,
        'currency': payment.currency,
        'status': payment.status.value,
        'provider_tx_id': payment.provider_tx_id,
        'provider_payment_method_id': payment.provider_payment_method_id,
        'idempotency_key': payment.idempotency_key,
        'refunded_amount': payment.refunded_amount,
        'refund_tx_id': payment.refund_tx_id,
        'last4': payment.last4,
        'card_brand': payment.card_brand,
        'failure_reason': payment.failure_reason,
    }
