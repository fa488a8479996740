from .batcher import BatchOutcome, ConcurrencyBatcher
from .client import Scrapely
from .paginator import Paginator

__all__ = ["BatchOutcome", "ConcurrencyBatcher", "Paginator", "Scrapely"]
