from .billing import (
    ACTIONS,
    ExplorerStillRestingError,
    Outcome,
    ReconciliationResult,
    SponsorshipBillingService,
)
from .scheduler import RestingBillingScheduler, ScanResult
from .store import SponsorshipStore

__all__ = [
    "ACTIONS",
    "ExplorerStillRestingError",
    "Outcome",
    "ReconciliationResult",
    "RestingBillingScheduler",
    "ScanResult",
    "SponsorshipBillingService",
    "SponsorshipStore",
]
