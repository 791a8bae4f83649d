"""
Base class for feature services.

A service owns one CachingRepository and is the only code that
mutates it. Each public operation makes all of its cache changes,
calls persist() once, then tells listeners what happened.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from savekit.core.events import EventBus
    from savekit.store.repository import CachingRepository

logger = logging.getLogger(__name__)


class FeatureService:
    """Business-logic layer over one feature's repository."""

    def __init__(
        self,
        repository: CachingRepository,
        event_bus: Optional[EventBus] = None,
    ):
        self.repository = repository
        self.event_bus = event_bus

    @property
    def feature(self) -> str:
        return self.repository.descriptor.name

    def _commit(self, event: Enum, **data: Any) -> None:
        """Persist the repository, then publish event."""
        self.repository.persist()
        self._notify(event, **data)

    def _notify(self, event: Enum, **data: Any) -> None:
        logger.debug(f"[{self.feature}] {event.name} {data}")
        if self.event_bus:
            self.event_bus.publish(event, feature=self.feature, **data)
