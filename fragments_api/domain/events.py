"""Domain events for decoupled side effects and integrations."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, List, Optional
from uuid import uuid4

logger = logging.getLogger(__name__)


@dataclass
class DomainEvent:
    """Base class for all domain events."""
    event_id: str
    timestamp: datetime
    aggregate_id: str
    
    def __post_init__(self):
        if not self.event_id:
            object.__setattr__(self, 'event_id', str(uuid4()))
        if not self.timestamp:
            object.__setattr__(self, 'timestamp', datetime.now())


@dataclass
class FragmentsStored(DomainEvent):
    """Raised when a converted artifact has been persisted."""
    original_filename: Optional[str]
    file_size: int
    data_size: int
    fragments_count: Optional[int]


@dataclass
class FragmentsRejected(DomainEvent):
    """Raised when an upload did not lead to a stored artifact."""
    original_filename: Optional[str]
    reason: str


class DomainEventPublisher:
    """Singleton publisher for domain events."""
    
    _instance: DomainEventPublisher | None = None
    _subscribers: Dict[type, List[Callable[[DomainEvent], None]]]
    
    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._subscribers = {}
        return cls._instance
    
    def subscribe(self, event_type: type[DomainEvent], handler: Callable[[DomainEvent], None]) -> None:
        """Subscribe a handler to an event type."""
        if event_type not in self._subscribers:
            self._subscribers[event_type] = []
        self._subscribers[event_type].append(handler)
    
    def publish(self, event: DomainEvent) -> None:
        """Publish an event to all subscribers."""
        for handler in self._subscribers.get(type(event), []):
            try:
                handler(event)
            except Exception:
                # Log error but don't fail the main operation
                logger.exception(f"Event handler error for {type(event).__name__}")
    
    def clear_subscribers(self) -> None:
        """Clear all subscribers (useful for testing)."""
        self._subscribers = {}


# Singleton instance
event_publisher = DomainEventPublisher()
