"""
Scrapely crawler: transport, rate gate, user-agent rotation, response cache
and the retrying fetch pipeline built on them.
"""

from .cache import ResponseCache
from .downloader import Downloader
from .events import CallbackObserver, FetchObserver, ObserverHub
from .fetcher import RetryingFetcher
from .http_client import AiohttpClient, HttpClient, HttpResponse
from .rate_limiter import RateGate
from .user_agents import DEFAULT_USER_AGENTS, UserAgentRotator

__all__ = [
    "AiohttpClient",
    "CallbackObserver",
    "DEFAULT_USER_AGENTS",
    "Downloader",
    "FetchObserver",
    "HttpClient",
    "HttpResponse",
    "ObserverHub",
    "RateGate",
    "ResponseCache",
    "RetryingFetcher",
    "UserAgentRotator",
]
