# === FILE: esm_vendor/cli.py ===
#!/usr/bin/env python3
"""
Точка входа для запуска esm_vendor через командную строку.

Команды:
  vendor    Загрузить все модули, достижимые из точек входа, и сохранить их на диск
  list      Вывести URL всех достижимых модулей (по мере загрузки)
  config    Показать итоговую конфигурацию

Общие опции:
  --config PATH       Путь к YAML/JSON-конфигу (необязательно)
  --log-level LEVEL   Уровень логирования (DEBUG, INFO, ...)
  --log-file PATH     Файл для логов (stderr, если не указан)
  --log-format FORMAT Формат логирования

Опции обхода (vendor, list, config):
  ENTRY...                    Точки входа: спецификаторы или URL
  --base-url URL              Базовый URL (по умолчанию file:// текущего каталога)
  --import-map PATH           JSON-файл import map
  --include-type-imports      Учитывать type-only импорты и JSDoc
  --on-fetch-error POLICY     error | none | warn
  --html-entry PATH           HTML-страница с <script type="module"> и import map

Команда vendor опции:
  --out DIR           Каталог для сохранения (default: vendor)
  --json PATH         Сохранить JSON-манифест в файл
  --html PATH         Сохранить HTML-манифест в файл
  --template DIR      Папка со своим шаблоном manifest.html.j2
  --pretty            Преформатировать JSON-вывод (отступ 2)

Дополнительно:
  --version, -v       Показать версию esm_vendor

Пример:
  esm-vendor vendor https://example.com/main.js --out vendor --json vendor/manifest.json
"""
import asyncio
import json
import sys
from pathlib import Path

import click

from esm_vendor import __version__
from esm_vendor.config import load_config
from esm_vendor.engine import iter_modules, start_vendor
from esm_vendor.logger import init_logging
from esm_vendor.parser.html_parser import parse_module_entries
from esm_vendor.report.html_report import render_html
from esm_vendor.report.json_report import render_json

CONTEXT_SETTINGS = dict(help_option_names=["--help"])


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


_CRAWL_OPTIONS = (
    click.argument('entry_points', nargs=-1),
    click.option(
        '--base-url', '-b', 'base_url',
        default=None,
        help='Базовый URL для разрешения точек входа.'
    ),
    click.option(
        '--import-map', '-m', 'import_map_path',
        default=None,
        type=click.Path(exists=True, dir_okay=False, path_type=Path),
        help='JSON-файл import map.'
    ),
    click.option(
        '--include-type-imports/--no-include-type-imports', 'include_type_imports',
        default=None,
        help='Учитывать type-only импорты и JSDoc import("...").'
    ),
    click.option(
        '--on-fetch-error', 'on_fetch_error',
        default=None,
        type=click.Choice(['error', 'none', 'warn']),
        help='Что делать при ошибке загрузки модуля (default: error).'
    ),
    click.option(
        '--html-entry', 'html_entry',
        default=None,
        type=click.Path(exists=True, dir_okay=False, path_type=Path),
        help='HTML-страница: точки входа из <script type="module">, import map из <script type="importmap">.'
    ),
)


def crawl_options(func):
    """Общие опции обхода для команд vendor, list и config."""
    for decorator in reversed(_CRAWL_OPTIONS):
        func = decorator(func)
    return func


def _build_config(ctx, entry_points, base_url, import_map_path, include_type_imports,
                  on_fetch_error, html_entry, **extra):
    overrides = dict(
        entry_points=list(entry_points) or None,
        base_url=base_url,
        import_map_path=import_map_path,
        include_type_imports=include_type_imports,
        on_fetch_error=on_fetch_error,
        **extra,
    )
    try:
        if html_entry is not None:
            page_url = html_entry.resolve().as_uri()
            page = parse_module_entries(html_entry.read_text(encoding='utf-8'), page_url)
            overrides['entry_points'] = list(entry_points) + page.entry_points or None
            if page.import_map:
                overrides['import_map'] = page.import_map
            if base_url is None:
                overrides['base_url'] = page_url
        return load_config(ctx.obj['config_path'], **overrides)
    except Exception as e:
        print_error(f'Ошибка загрузки конфигурации: {e}')


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='esm_vendor, version %(version)s')
@click.option(
    '--config', '-c', 'config_path',
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Путь к файлу конфигурации YAML/JSON.'
)
@click.option(
    '--log-level', 'log_level',
    default='WARNING', show_default=True,
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']),
    help='Уровень логирования'
)
@click.option(
    '--log-file', 'log_file',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Путь к файлу логов (stderr, если не указан)'
)
@click.option(
    '--log-format', 'log_format',
    default='%(asctime)s %(levelname)s %(message)s',
    show_default=True,
    help='Строка формата для логов'
)
@click.pass_context
def cli(ctx, config_path, log_level, log_file, log_format):
    """Группа команд esm_vendor CLI."""
    init_logging(
        level=log_level,
        log_file=str(log_file) if log_file else None,
        log_format=log_format
    )
    ctx.ensure_object(dict)
    ctx.obj['config_path'] = config_path


@cli.command('vendor', context_settings=CONTEXT_SETTINGS)
@crawl_options
@click.option(
    '--out', '-o', 'out_dir',
    default=None,
    type=click.Path(file_okay=False, path_type=Path),
    help='Каталог для сохранения модулей (default: vendor)'
)
@click.option(
    '--json', '-j', 'json_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Сохранить JSON-манифест в файл'
)
@click.option(
    '--html', '-h', 'html_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Сохранить HTML-манифест в файл'
)
@click.option(
    '--template', '-t', 'template_dir',
    default=None,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help='Папка со своим шаблоном manifest.html.j2'
)
@click.option(
    '--pretty', is_flag=True,
    help='Преформатировать JSON-вывод (отступ 2)'
)
@click.pass_context
def vendor_cmd(ctx, out_dir, json_output, html_output, template_dir, pretty, **options):
    """Загрузить граф модулей и сохранить файлы."""
    cfg = _build_config(ctx, out_dir=out_dir, **options)
    click.echo(f'Vendoring {len(cfg.entry_points)} entry point(s) into {cfg.out_dir}', err=True)
    try:
        written = asyncio.run(start_vendor(cfg))
    except Exception as e:
        print_error(f'Ошибка при загрузке модулей: {e}')

    manifest = [f.as_dict() for f in written]

    # Если не сохраняем в файл, печатаем в stdout
    if not json_output and not html_output:
        indent = 2 if pretty else None
        click.echo(json.dumps(manifest, ensure_ascii=False, indent=indent))
        return

    if json_output:
        try:
            saved_json = render_json(written, json_output, pretty=pretty)
            click.echo(f'JSON manifest: {saved_json}')
        except Exception as e:
            print_error(f'Ошибка при сохранении JSON: {e}')

    if html_output:
        try:
            saved_html = render_html(written, html_output, template_dir)
            click.echo(f'HTML manifest: {saved_html}')
        except Exception as e:
            print_error(f'Ошибка при сохранении HTML: {e}')


@cli.command('list', context_settings=CONTEXT_SETTINGS)
@crawl_options
@click.pass_context
def list_cmd(ctx, **options):
    """Вывести URL всех достижимых модулей, по одному на строку."""
    cfg = _build_config(ctx, **options)

    async def _stream() -> None:
        async for module in iter_modules(cfg):
            click.echo(module.url)

    try:
        asyncio.run(_stream())
    except Exception as e:
        print_error(f'Ошибка при загрузке модулей: {e}')


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@crawl_options
@click.pass_context
def show_config(ctx, **options):
    """Показать итоговую конфигурацию в JSON."""
    cfg = _build_config(ctx, **options)
    click.echo(cfg.model_dump_json(indent=2))


def main():
    cli()


if __name__ == "__main__":
    main()
