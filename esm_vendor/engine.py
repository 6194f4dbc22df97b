# File: esm_vendor/engine.py
"""esm_vendor.engine: Orchestration layer для запуска обхода зависимостей и сохранения модулей."""

from __future__ import annotations

import asyncio
from typing import AsyncIterator, List, Optional

from esm_vendor.config import VendorConfig, load_config
from esm_vendor.crawler.crawler import fetch_dependencies
from esm_vendor.crawler.fetcher import BaseFetcher, HttpFetcher
from esm_vendor.crawler.models import FetchedResource
from esm_vendor.logger import logger
from esm_vendor.storage import WrittenFile, vendor

__all__ = ["Engine", "start_vendor", "iter_modules"]


def _fetcher_for(config: VendorConfig) -> HttpFetcher:
    return HttpFetcher(timeout=config.timeout, user_agent=config.user_agent)


async def start_vendor(cfg: VendorConfig, fetcher: Optional[BaseFetcher] = None) -> List[WrittenFile]:
    """Обходит граф из cfg.entry_points и сохраняет модули в cfg.out_dir."""
    return await vendor(
        cfg.entry_points,
        cfg.out_dir,
        fetcher=fetcher or _fetcher_for(cfg),
        **cfg.crawl_options(),
    )


def iter_modules(cfg: VendorConfig, fetcher: Optional[BaseFetcher] = None) -> AsyncIterator[FetchedResource]:
    """Поток загруженных модулей без записи на диск (нужен работающий event loop)."""
    return fetch_dependencies(cfg.entry_points, fetcher=fetcher or _fetcher_for(cfg), **cfg.crawl_options())


class Engine:
    """Фасад для CLI и тестов: загрузка конфига, запуск обхода и сохранение результатов."""

    @staticmethod
    def load_config(path: Optional[str]) -> VendorConfig:
        """Загружает конфиг из YAML/JSON."""
        return load_config(path)

    def __init__(self, config: VendorConfig, fetcher: Optional[BaseFetcher] = None) -> None:
        """Инициализирует Engine с заданной конфигурацией."""
        self.config = config
        self.fetcher = fetcher

    def run(self) -> List[WrittenFile]:
        """Запускает асинхронный обход и возвращает список сохранённых файлов."""
        logger.info("Vendoring %s into %s", ", ".join(self.config.entry_points), self.config.out_dir)
        try:
            return asyncio.run(start_vendor(self.config, self.fetcher))
        except Exception as exc:
            logger.error("Vendoring failed: %s", exc)
            raise
