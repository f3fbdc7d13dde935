"""
Storefront events

Fired when catalogue, order and inquiry data change so that listeners
(cache invalidation, logging, notifications) can react.
"""
import logging

from django.dispatch import Signal, receiver

logger = logging.getLogger(__name__)

# sender: view function; kwargs: product, action ('created', 'updated', 'deleted')
product_updated = Signal()
# sender: view function; kwargs: order
order_created = Signal()
# sender: view function; kwargs: inquiry
inquiry_received = Signal()


@receiver(product_updated)
def log_product_updated(sender, product=None, action='updated', **kwargs):
    if product is not None:
        logger.info(f"Product {action}: {product.pk} ({product.name})")


@receiver(order_created)
def log_order_created(sender, order=None, **kwargs):
    if order is not None:
        logger.info(f"New order {order.pk} for {order.total_amount} ({order.customer_email})")


@receiver(inquiry_received)
def log_inquiry_received(sender, inquiry=None, **kwargs):
    if inquiry is not None:
        logger.info(f"New inquiry {inquiry.pk} from {inquiry.email}")
