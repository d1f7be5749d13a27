"""Best-effort fan-out of an announcement to every registered channel."""
import logging
from typing import Any, Callable, Iterable

from processor.models import DeliveryResult

logger = logging.getLogger(__name__)

Sender = Callable[[str, str], Any]


def deliver(destinations: Iterable[str], payload: str, send: Sender) -> DeliveryResult:
    """
    Send the payload to each destination independently.

    A failure for one destination is logged and recorded but does not stop
    the remaining sends.

    Args:
        destinations: Channel ids to deliver to
        payload: Message text
        send: Callable taking (channel_id, payload)

    Returns:
        DeliveryResult with per-destination outcome counts
    """
    result = DeliveryResult()

    for destination in destinations:
        result.attempted += 1
        try:
            send(destination, payload)
            result.sent += 1
        except Exception as e:
            error_msg = f"Delivery to {destination} failed: {e}"
            logger.error(error_msg, extra={'error_type': type(e).__name__})
            result.failed += 1
            result.errors.append(error_msg)

    logger.info(
        f"Delivered announcement to {result.sent} of {result.attempted} channels"
    )
    return result
