from booktracker.services.batch_ledger import BatchLedgerService
from booktracker.services.distribution import DistributionService
from booktracker.services.lifecycle import BookLifecycleService
from booktracker.services.importer import BulkImportService, reconcile
from booktracker.services.locations import LocationService
from booktracker.services.stats import StatsService

__all__ = [
    "BatchLedgerService",
    "DistributionService",
    "BookLifecycleService",
    "BulkImportService",
    "reconcile",
    "LocationService",
    "StatsService",
]
