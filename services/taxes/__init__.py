"""Tax data refresh cache package."""

from services.taxes.collector import TaxDataCollector
from services.taxes.initializer import StartupInitializer, get_initializer
from services.taxes.scheduler import RefreshScheduler
from services.taxes.service import TaxDataService
from services.taxes.store import TaxDataStore
from services.taxes.types import CountryTaxRecord, JobResult, TaxSnapshot
from services.taxes.vat import VATCalculator, VATValidator

__all__ = [
    "CountryTaxRecord",
    "JobResult",
    "RefreshScheduler",
    "StartupInitializer",
    "TaxDataCollector",
    "TaxDataService",
    "TaxDataStore",
    "TaxSnapshot",
    "VATCalculator",
    "VATValidator",
    "get_initializer",
]
