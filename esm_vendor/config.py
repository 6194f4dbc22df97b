# === FILE: esm_vendor/config.py ===
"""
Модуль для загрузки и валидации конфигурации esm_vendor.
Используется Pydantic для описания схемы и проверки данных.
"""
from __future__ import annotations

import errno
import json
import os
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, Union

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

from esm_vendor.crawler.fetcher import DEFAULT_USER_AGENT
from esm_vendor.exceptions import FetchError
from esm_vendor.logger import logger
from esm_vendor.parser.import_map import is_absolute_url

__all__ = ["VendorConfig", "load_config", "load_import_map", "read_config_file", "warn_on_fetch_error"]


def warn_on_fetch_error(error: FetchError) -> None:
    """Callback policy: report the failed module and keep crawling."""
    logger.warning("Skipping %s: %s", error.locator, error.cause)


class VendorConfig(BaseModel):
    """Конфигурация для одного запуска обхода зависимостей."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    entry_points: List[str] = Field(..., min_length=1, description="Точки входа (спецификаторы или URL).")
    base_url: Optional[str] = Field(None, description="Базовый URL; по умолчанию file:// текущего каталога.")
    include_type_imports: bool = Field(False, description="Учитывать type-only импорты и JSDoc.")
    import_map: Dict[str, Any] = Field(default_factory=dict, description="Import map в виде JSON-объекта.")
    import_map_path: Optional[Path] = Field(None, description="Путь к JSON-файлу import map.")
    on_fetch_error: Literal["error", "none", "warn"] = Field(
        "error", description="Политика ошибок загрузки: прервать, игнорировать или предупредить."
    )
    out_dir: Path = Field(Path("vendor"), description="Каталог для сохранения модулей.")
    timeout: float = Field(30.0, gt=0, description="Таймаут на один запрос (секунд).")
    user_agent: str = Field(DEFAULT_USER_AGENT, min_length=1, description="Заголовок User-Agent.")

    @field_validator("entry_points")
    def _strip_entry_points(cls, v: List[str]) -> List[str]:
        cleaned = [ep.strip() for ep in v]
        if any(not ep for ep in cleaned):
            raise ValueError("entry points must be non-empty strings")
        return cleaned

    @field_validator("base_url")
    def _check_base_url(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not is_absolute_url(v):
            raise ValueError(f"base_url must be an absolute URL, got {v!r}")
        return v

    @model_validator(mode="after")
    def _check_import_map_file(self) -> VendorConfig:
        if self.import_map_path is not None and not self.import_map_path.is_file():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(self.import_map_path))
        return self

    def effective_import_map(self) -> Dict[str, Any]:
        """Inline import map merged over the file one (inline keys win)."""
        if self.import_map_path is None:
            return dict(self.import_map)
        merged = load_import_map(self.import_map_path)
        for key in ("imports", "scopes"):
            if key in self.import_map:
                merged[key] = {**merged.get(key, {}), **self.import_map[key]}
        return merged

    def crawl_options(self) -> Dict[str, Any]:
        """Keyword arguments for :func:`esm_vendor.fetch_dependencies` (without the fetcher)."""
        policy = warn_on_fetch_error if self.on_fetch_error == "warn" else self.on_fetch_error
        return {
            "base_url": self.base_url,
            "include_type_imports": self.include_type_imports,
            "import_map": self.effective_import_map(),
            "on_fetch_error": policy,
        }


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Неправильный YAML в {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Верхний уровень YAML должен быть mapping, получено {type(data).__name__}")
    return data


def _read_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8")) or {}
    except json.JSONDecodeError as exc:
        raise ValueError(f"Неправильный JSON в {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Верхний уровень JSON должен быть mapping, получено {type(data).__name__}")
    return data


def load_import_map(path: Union[str, Path]) -> dict[str, Any]:
    """Читает import map из JSON-файла."""
    path_obj = Path(path).expanduser()
    if not path_obj.is_file():
        raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path_obj))
    return _read_json(path_obj)


def read_config_file(path: Union[str, Path]) -> dict[str, Any]:
    """Читает YAML или JSON и возвращает сырые данные без валидации."""
    path_obj = Path(path).expanduser().resolve()
    if not path_obj.is_file():
        raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path_obj))

    suffix = path_obj.suffix.lower()
    if suffix in (".yaml", ".yml"):
        return _read_yaml(path_obj)
    if suffix == ".json":
        return _read_json(path_obj)
    raise ValueError(f"Неподдерживаемый формат конфига: {suffix}")


def load_config(path: Union[str, Path, None] = None, **overrides: Any) -> VendorConfig:
    """
    Читает YAML или JSON и возвращает проверенный объект VendorConfig.
    Значения *overrides*, отличные от None, перекрывают значения из файла.
    При отсутствии файла конфига бросает FileNotFoundError.
    """
    data: dict[str, Any] = read_config_file(path) if path is not None else {}
    data.update({k: v for k, v in overrides.items() if v is not None})
    return VendorConfig(**data)
