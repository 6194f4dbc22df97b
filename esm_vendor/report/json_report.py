# esm_vendor/report/json_report.py

"""
Генерация JSON-манифеста для esm_vendor.

Сериализация списка WrittenFile в файл.
"""
import json
from pathlib import Path
from typing import Sequence

from esm_vendor.storage import WrittenFile


def render_json(files: Sequence[WrittenFile], output_path: Path | str, pretty: bool = True) -> Path:
    """
    Сохраняет манифест ``[{url, path}, ...]`` в формате JSON по указанному пути.

    :param files: записанные файлы в порядке загрузки
    :param output_path: путь к JSON-файлу
    :param pretty: отступ 2 пробела
    :return: Path сохранённого файла

    Пример:
    ```python
    from esm_vendor.report.json_report import render_json
    manifest = render_json(written, 'vendor/manifest.json')
    ```
    """
    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)

    data = [f.as_dict() for f in files]
    output.write_text(
        json.dumps(data, ensure_ascii=False, indent=2 if pretty else None),
        encoding='utf-8',
    )
    return output
