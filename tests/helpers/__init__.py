from .metric_delta import histogram_observes, metric_delta
from .stubs import RecordingSleep, StubHttpClient, no_sleep, page_with_next

__all__ = ["RecordingSleep", "StubHttpClient", "histogram_observes", "metric_delta", "no_sleep", "page_with_next"]
