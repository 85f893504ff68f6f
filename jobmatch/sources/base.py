from abc import ABC, abstractmethod


class JobSource(ABC):
    @abstractmethod
    def fetch(self, query: str, location: str) -> list[dict]:
        """Raw job records for *query* in *location*."""
