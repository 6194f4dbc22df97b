# File: esm_vendor/report/__init__.py
"""esm_vendor.report: манифест сохранённых модулей (JSON и HTML), используется CLI и тестами."""

from esm_vendor.report.html_report import render_html
from esm_vendor.report.json_report import render_json

__all__ = ["render_json", "render_html"]
