from abc import ABC, abstractmethod

from soot.common.logging import get_logger


class BaseIntegration(ABC):
    """Base class for the outbound service clients (email, image provider).

    Each client gets a namespaced logger and must report whether the remote
    service is reachable.
    """

    def __init__(self, name: str):
        self.name = name
        self.logger = get_logger(f"integrations.{name}")

    @abstractmethod
    async def health_check(self) -> bool:
        """Return True when the integration is reachable and functional."""
        ...
