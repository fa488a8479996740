from .logging import configure_logging
from .metrics import METRICS, MetricsObserver

__all__ = ["METRICS", "MetricsObserver", "configure_logging"]
