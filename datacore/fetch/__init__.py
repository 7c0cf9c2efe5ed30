"""
Fetching with cache, request deduplication and exponential-backoff retries.
"""
from .retry import RetryingFetcher
from .orchestrator import DataFetchOrchestrator, FetchOptions, FetchState, with_cache

__all__ = [
    "RetryingFetcher",
    "DataFetchOrchestrator",
    "FetchOptions",
    "FetchState",
    "with_cache",
]
