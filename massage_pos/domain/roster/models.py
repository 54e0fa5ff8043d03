"""Roster domain objects - therapists and the service catalog"""

from dataclasses import dataclass, field


@dataclass
class Therapist:
    name: str
    certified_services: list[str] = field(default_factory=list)
    commission_rate: float = 50.0
    clocked_in: bool = False
    clocked_in_at: str | None = None
    clock_out_comment: str | None = None

    def is_certified(self, service_id: str) -> bool:
        return service_id in self.certified_services


@dataclass(frozen=True)
class ServiceCatalogEntry:
    id: str
    name: str
    price: int
    duration: int = 60

    @property
    def label(self) -> str:
        """Composite label shown on the matrix, e.g. "Thai 400\""""
        return f"{self.name} {self.price}"
