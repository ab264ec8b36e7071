"""Abstract route provider contract consumed by cluster route controllers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from threading import Event
from typing import List, Optional

from pod_routes.model import Route


class RoutesProvider(ABC):
    """Base class for cloud route providers driven by a route controller."""

    @abstractmethod
    def list_routes(
        self, cluster_name: str, cancel_event: Optional[Event] = None
    ) -> List[Route]:
        """Return every managed route belonging to ``cluster_name``."""

    @abstractmethod
    def create_route(
        self,
        cluster_name: str,
        name_hint: str,
        route: Route,
        cancel_event: Optional[Event] = None,
    ) -> None:
        """Create ``route``; succeeds without change if it already exists."""

    @abstractmethod
    def delete_route(
        self, cluster_name: str, route: Route, cancel_event: Optional[Event] = None
    ) -> None:
        """Delete ``route``; succeeds without change if it is absent."""
