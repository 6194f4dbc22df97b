"""esm_vendor.crawler: обход графа зависимостей модулей."""

from esm_vendor.crawler.channel import ResultChannel
from esm_vendor.crawler.crawler import DependencyCrawler, VisitedSet, fetch_dependencies
from esm_vendor.crawler.fetcher import BaseFetcher, HttpFetcher
from esm_vendor.crawler.models import FetchedResource

__all__ = [
    "ResultChannel",
    "DependencyCrawler",
    "VisitedSet",
    "fetch_dependencies",
    "BaseFetcher",
    "HttpFetcher",
    "FetchedResource",
]
