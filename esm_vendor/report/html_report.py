# File: esm_vendor/report/html_report.py
"""esm_vendor.report.html_report: Генерация HTML-манифеста с помощью Jinja2."""

from __future__ import annotations

from collections import Counter
from pathlib import Path
from typing import Any, Optional, Sequence, Union
from urllib.parse import urlsplit

from jinja2 import Environment, FileSystemLoader, PackageLoader, select_autoescape

from esm_vendor.storage import WrittenFile

TEMPLATE_NAME = "manifest.html.j2"


def render_html(
    files: Sequence[WrittenFile],
    output_path: Union[Path, str],
    template_dir: Optional[Union[Path, str]] = None,
) -> Path:
    """Рендерит HTML-манифест из шаблона и сохраняет его по указанному пути.

    Args:
        files: записанные файлы.
        output_path: путь к итоговому HTML-файлу.
        template_dir: директория со своим ``manifest.html.j2``;
            по умолчанию используется шаблон из пакета.

    Returns:
        Path до сохранённого HTML-файла.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    loader = (
        FileSystemLoader(str(template_dir))
        if template_dir is not None
        else PackageLoader("esm_vendor", "templates")
    )
    env = Environment(loader=loader, autoescape=select_autoescape(["html", "xml", "j2"]))
    template = env.get_template(TEMPLATE_NAME)

    hosts = Counter(urlsplit(f.url).netloc or "(local)" for f in files)
    context: dict[str, Any] = {
        "files": files,
        "hosts": sorted(hosts.items()),
        "total": len(files),
    }

    output_path.write_text(template.render(**context), encoding="utf-8")
    return output_path
