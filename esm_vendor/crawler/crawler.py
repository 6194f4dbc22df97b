from __future__ import annotations

import asyncio
import time
from typing import List, Optional, Sequence, Set

from esm_vendor.crawler.channel import ResultChannel
from esm_vendor.crawler.fetcher import BaseFetcher, HttpFetcher
from esm_vendor.crawler.models import FetchedResource, FetchErrorPolicy
from esm_vendor.exceptions import FetchError, ParseError
from esm_vendor.logger import logger
from esm_vendor.parser.import_map import (
    ImportMap,
    cwd_base_url,
    normalize_url,
    parse_import_map,
    resolve_module_specifier,
)
from esm_vendor.parser.specifiers import extract_specifiers

__all__ = ("VisitedSet", "DependencyCrawler", "fetch_dependencies")

# strong references to running supervisors, the event loop only keeps weak ones
_SUPERVISORS: Set[asyncio.Task] = set()


class VisitedSet:
    """Crawl-scoped set of URLs that already have a traversal."""

    def __init__(self) -> None:
        self._seen: Set[str] = set()

    def add_if_absent(self, url: str) -> bool:
        """Mark *url* visited; return False if it already was.

        Check and insert happen without an await in between, so no other
        task can interleave.
        """
        if url in self._seen:
            return False
        self._seen.add(url)
        return True

    def __contains__(self, url: object) -> bool:
        return url in self._seen

    def __len__(self) -> int:
        return len(self._seen)


def _first_error(exc: BaseException) -> BaseException:
    while isinstance(exc, BaseExceptionGroup):
        exc = exc.exceptions[0]
    return exc


class DependencyCrawler:
    """Асинхронный обход графа импортов: каждый достижимый модуль загружается ровно один раз."""

    def __init__(
        self,
        fetcher: Optional[BaseFetcher] = None,
        *,
        base_url: Optional[str] = None,
        import_map: Optional[dict] = None,
        include_type_imports: bool = False,
        on_fetch_error: FetchErrorPolicy = "error",
    ) -> None:
        if not callable(on_fetch_error) and on_fetch_error not in ("error", "none"):
            raise ValueError(f"on_fetch_error must be 'error', 'none' or a callable, got {on_fetch_error!r}")
        self.base_url: str = normalize_url(base_url) if base_url else cwd_base_url()
        self.import_map: ImportMap = parse_import_map(import_map or {}, self.base_url)
        self.fetcher: BaseFetcher = fetcher if fetcher is not None else HttpFetcher()
        self.include_type_imports = include_type_imports
        self.on_fetch_error = on_fetch_error
        self.visited = VisitedSet()
        self.emitted = 0
        self.failed: List[str] = []
        self._supervisor: Optional[asyncio.Task] = None

    def crawl(self, entry_points: Sequence[str]) -> ResultChannel[FetchedResource]:
        """Start crawling and return the stream of fetched modules.

        Entry points are resolved before anything is scheduled, so a
        ResolutionError is raised right here.  Must be called with a
        running event loop.
        """
        if self._supervisor is not None:
            raise RuntimeError("DependencyCrawler.crawl() may only be called once")
        locators = [resolve_module_specifier(self.import_map, self.base_url, ep) for ep in entry_points]
        channel: ResultChannel[FetchedResource] = ResultChannel()
        task = asyncio.get_running_loop().create_task(self._run(locators, channel))
        _SUPERVISORS.add(task)
        task.add_done_callback(_SUPERVISORS.discard)

        def _cancelled_before_start(t: asyncio.Task) -> None:
            if t.cancelled() and not channel.closed:
                channel.fail(asyncio.CancelledError("crawl cancelled"))

        task.add_done_callback(_cancelled_before_start)
        self._supervisor = task
        return channel

    async def wait_finished(self) -> None:
        """Wait until every traversal has settled (the stream itself may be unread)."""
        if self._supervisor is not None:
            await asyncio.wait([self._supervisor])

    def cancel(self) -> None:
        """Stop the crawl; a pending or later pull raises CancelledError."""
        if self._supervisor is not None:
            self._supervisor.cancel()

    async def _run(self, locators: List[str], channel: ResultChannel[FetchedResource]) -> None:
        logger.info("Crawl started: %d entry point(s), base %s", len(locators), self.base_url)
        start = time.monotonic()
        try:
            async with self.fetcher:
                async with asyncio.TaskGroup() as tg:
                    for url in locators:
                        tg.create_task(self._traverse(url, channel))
        except Exception as exc:
            error = _first_error(exc)
            logger.error("Crawl aborted after %d module(s): %s", self.emitted, error)
            channel.fail(error)
            return
        except BaseException as exc:
            # cancellation, KeyboardInterrupt: the consumer must not wait forever
            logger.warning("Crawl interrupted after %d module(s): %r", self.emitted, exc)
            channel.fail(_first_error(exc))
            raise
        duration = time.monotonic() - start
        logger.info(
            "Crawl finished: %d module(s), %d failed fetch(es) in %.2f s",
            self.emitted,
            len(self.failed),
            duration,
        )
        channel.complete()

    async def _traverse(self, url: str, channel: ResultChannel[FetchedResource]) -> None:
        if not self.visited.add_if_absent(url):
            return
        try:
            content = await self.fetcher.fetch(url)
        except FetchError as error:
            self._handle_fetch_error(error)
            return

        channel.publish(FetchedResource(url, content))
        self.emitted += 1

        try:
            specifiers = extract_specifiers(content, self.include_type_imports)
        except ParseError as exc:
            raise ParseError(exc.message, exc.line, exc.column, url=url) from exc
        children = [resolve_module_specifier(self.import_map, url, s) for s in specifiers]
        if not children:
            return
        async with asyncio.TaskGroup() as tg:
            for child in children:
                tg.create_task(self._traverse(child, channel))

    def _handle_fetch_error(self, error: FetchError) -> None:
        self.failed.append(error.locator)
        policy = self.on_fetch_error
        if policy == "error":
            raise error
        if policy == "none":
            logger.debug("Discarding %s: %s", error.locator, error.cause)
            return
        policy(error)


def fetch_dependencies(
    entry_points: Sequence[str],
    *,
    base_url: Optional[str] = None,
    include_type_imports: bool = False,
    import_map: Optional[dict] = None,
    on_fetch_error: FetchErrorPolicy = "error",
    fetcher: Optional[BaseFetcher] = None,
) -> ResultChannel[FetchedResource]:
    """Fetch every module reachable from *entry_points*.

    Returns an async iterator yielding :class:`FetchedResource` once per
    unique URL.  Iteration ends normally when the graph is exhausted or
    raises the error that aborted the crawl.

    Example:
    ```python
    async for module in fetch_dependencies(["/main.js"], base_url="https://example.com"):
        print(module.url)
    ```
    """
    crawler = DependencyCrawler(
        fetcher,
        base_url=base_url,
        import_map=import_map,
        include_type_imports=include_type_imports,
        on_fetch_error=on_fetch_error,
    )
    return crawler.crawl(entry_points)
