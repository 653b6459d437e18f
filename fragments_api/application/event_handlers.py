"""Event handlers for domain events."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from fragments_api.domain.events import FragmentsStored, FragmentsRejected

logger = logging.getLogger(__name__)


class AuditLogHandler:
    """Logs all domain events for audit trail."""
    
    def handle_fragments_stored(self, event: FragmentsStored) -> None:
        logger.info(
            f"[AUDIT] Fragments stored: {event.aggregate_id} from {event.original_filename or '<unnamed>'} "
            f"({event.file_size} -> {event.data_size} bytes, fragments={event.fragments_count})"
        )
    
    def handle_fragments_rejected(self, event: FragmentsRejected) -> None:
        logger.warning(f"[AUDIT] Upload rejected: {event.original_filename or '<unnamed>'} - {event.reason}")


def register_event_handlers():
    """Register all event handlers with the publisher.

    Safe to call on every application start; previous subscriptions are dropped.
    """
    from fragments_api.domain.events import event_publisher, FragmentsStored, FragmentsRejected
    
    event_publisher.clear_subscribers()
    audit = AuditLogHandler()
    
    event_publisher.subscribe(FragmentsStored, audit.handle_fragments_stored)
    event_publisher.subscribe(FragmentsRejected, audit.handle_fragments_rejected)
