from abc import ABC, abstractmethod

from projectmaster.common.logging import get_logger


class BaseIntegration(ABC):
    """Base class for every external service the app talks to.

    Subclasses get a logger namespaced under ``integrations.<name>`` and must
    say how to tell whether they are reachable.
    """

    def __init__(self, name: str):
        self.name = name
        self.logger = get_logger(f"integrations.{name}")

    @abstractmethod
    async def health_check(self) -> bool:
        """Return True when the integration is reachable and functional."""
        ...

    async def probe(self) -> dict[str, object]:
        """Health report for status endpoints; never raises."""
        try:
            healthy = await self.health_check()
        except Exception as e:
            self.logger.error("%s health check raised: %s", self.name, e)
            healthy = False
        return {"name": self.name, "healthy": healthy}
