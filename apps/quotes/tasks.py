"""Celery tasks for quoting."""

import logging
from celery import shared_task

logger = logging.getLogger("freightlink.tasks")


@shared_task
def generate_auto_quotes_task(order_id: str):
    """Run the automatic carrier matcher for an order outside the request."""
    from apps.core.exceptions import FreightError
    from apps.quotes.service import QuoteWorkflow

    try:
        quotes = QuoteWorkflow().generate_auto_quotes(order_id)
    except FreightError as exc:
        logger.warning("Automatic quoting skipped for order %s: %s", order_id, exc.message)
        return 0
    return len(quotes)
