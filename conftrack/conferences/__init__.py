"""Conference metadata: models, remote fetcher and TTL cache."""
from .cache import CACHE_KEY, ConferenceCache
from .fetcher import DataFetcher, GitHubConferenceFetcher, parse_conference_document
from .models import CacheEntry, ConferenceInstance, ConferenceRecord, TimelineItem

__all__ = [
    "CACHE_KEY",
    "CacheEntry",
    "ConferenceCache",
    "ConferenceInstance",
    "ConferenceRecord",
    "DataFetcher",
    "GitHubConferenceFetcher",
    "TimelineItem",
    "parse_conference_document",
]
