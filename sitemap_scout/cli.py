# === FILE: sitemap_scout/cli.py ===
#!/usr/bin/env python3
"""
Command-line entry point of SitemapScout.

Commands:
  crawl     Discover a site's URLs via its sitemaps, analyze every page, print/save reports
  discover  Only resolve the sitemaps and list the content URLs
  config    Show the effective configuration

Global options:
  --config PATH       YAML/JSON config file (defaults are used when omitted)
  --log-level LEVEL   Logging level (DEBUG, INFO, ...)
  --log-file PATH     Log file (console only if omitted)
  --log-format FORMAT Log format (e.g. "%(asctime)s %(levelname)s %(message)s")

crawl options:
  --sitemap-path PATH Explicit sitemap path or URL instead of the default paths
  --limit INT         Analyze at most this many URLs
  --concurrency INT   Parallel page fetches
  --stream            Print each record as a JSON line as soon as it is analyzed
  --json PATH         Save the JSON report to a file
  --html PATH         Save the HTML report to a file
  --template DIR      Directory with Jinja2 templates (bundled one by default)
  --pretty            Indent JSON output by 2
  --scan-timeout SEC  Timeout of the whole crawl (seconds)

Also:
  --version, -v       Show the SitemapScout version

Example:
  sitemap-scout --log-level WARNING crawl https://example.com --json report.json --limit 200
"""
import asyncio
import json
import sys
from pathlib import Path

import click

from sitemap_scout import __version__
from sitemap_scout.config import CrawlConfig, load_config
from sitemap_scout.engine import discover_urls, start_scan
from sitemap_scout.errors import ScoutError
from sitemap_scout.logger import init_logging
from sitemap_scout.report.html_report import render_html
from sitemap_scout.report.json_report import render_json

CONTEXT_SETTINGS = dict(help_option_names=["--help"])


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='SitemapScout, version %(version)s')
@click.option(
    '--config', '-c', 'config_path',
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Path to a YAML or JSON configuration file.'
)
@click.option(
    '--log-level', 'log_level',
    default='INFO', show_default=True,
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']),
    help='Logging level'
)
@click.option(
    '--log-file', 'log_file',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Log file path (console only if omitted)'
)
@click.option(
    '--log-format', 'log_format',
    default='%(asctime)s %(levelname)s %(message)s',
    show_default=True,
    help='Log format string'
)
@click.pass_context
def cli(ctx, config_path, log_level, log_file, log_format):
    """SitemapScout command group."""
    init_logging(
        level=log_level,
        log_file=str(log_file) if log_file else None,
        log_format=log_format
    )
    try:
        cfg = load_config(config_path) if config_path else CrawlConfig()
    except Exception as e:
        print_error(f'Failed to load configuration: {e}')
    ctx.ensure_object(dict)
    ctx.obj['config'] = cfg


@cli.command('crawl', context_settings=CONTEXT_SETTINGS)
@click.argument('site_url', required=False)
@click.option('--sitemap-path', '-s', 'sitemap_path', default=None,
              help='Sitemap path or URL (skips the default paths)')
@click.option('--limit', '-l', 'limit', type=click.IntRange(min=1), default=None,
              help='Analyze at most this many URLs (overrides max_urls)')
@click.option('--concurrency', 'concurrency', type=click.IntRange(min=1), default=None,
              help='Parallel page fetches (overrides page_concurrency)')
@click.option('--stream', 'stream', is_flag=True,
              help='Print every record as a JSON line as soon as it is ready')
@click.option(
    '--json', '-j', 'json_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Save the JSON report to a file'
)
@click.option(
    '--html', '-h', 'html_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Save the HTML report to a file'
)
@click.option(
    '--template', '-t', 'template_dir',
    default=None,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help='Directory with Jinja2 templates'
)
@click.option('--pretty', is_flag=True, help='Indent JSON output by 2')
@click.option('--scan-timeout', 'scan_timeout', type=float, default=None,
              help='Timeout of the whole crawl (seconds)')
@click.pass_context
def crawl(ctx, site_url, sitemap_path, limit, concurrency, stream, json_output, html_output,
          template_dir, pretty, scan_timeout):
    """Discover and analyze SITE_URL (or site_url from the config)."""
    cfg: CrawlConfig = ctx.obj['config']
    updates = {}
    if limit is not None:
        updates['max_urls'] = limit
    if concurrency is not None:
        updates['page_concurrency'] = concurrency
    if updates:
        cfg = cfg.model_copy(update=updates)

    on_record = None
    if stream:
        def on_record(record):
            click.echo(json.dumps(record.to_dict(), ensure_ascii=False))

    click.echo(f'Starting crawl of {site_url or cfg.site_url}', err=True)
    try:
        coro = start_scan(cfg, site_url, sitemap_path, on_record)
        if scan_timeout:
            report = asyncio.run(asyncio.wait_for(coro, timeout=scan_timeout))
        else:
            report = asyncio.run(coro)
    except asyncio.TimeoutError:
        print_error(f'Crawl did not finish within {scan_timeout} seconds')
    except (ScoutError, ValueError) as e:
        print_error(f'Crawl failed: {e}')

    # Nothing to save: print the report to stdout
    if not json_output and not html_output:
        if not stream:
            click.echo(report.json(pretty=pretty))
        else:
            click.echo(json.dumps(report.summary(), ensure_ascii=False), err=True)
        return

    if json_output:
        try:
            saved_json = render_json(report, json_output, pretty=pretty)
            click.echo(f'JSON report: {saved_json}', err=True)
        except OSError as e:
            print_error(f'Failed to save JSON report: {e}')

    if html_output:
        try:
            saved_html = render_html(report, template_dir, html_output)
            click.echo(f'HTML report: {saved_html}', err=True)
        except Exception as e:
            print_error(f'Failed to save HTML report: {e}')


@cli.command('discover', context_settings=CONTEXT_SETTINGS)
@click.argument('site_url', required=False)
@click.option('--sitemap-path', '-s', 'sitemap_path', default=None,
              help='Sitemap path or URL (skips the default paths)')
@click.pass_context
def discover(ctx, site_url, sitemap_path):
    """List content URLs of SITE_URL with their last-modified dates."""
    cfg = ctx.obj['config']
    try:
        entries = asyncio.run(discover_urls(cfg, site_url, sitemap_path))
    except (ScoutError, ValueError) as e:
        print_error(f'Discovery failed: {e}')
    for entry in entries.values():
        lastmod = entry.last_modified.isoformat() if entry.last_modified else '-'
        click.echo(f'{entry.url}\t{lastmod}')


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@click.pass_context
def show_config(ctx):
    """Show the effective configuration as JSON."""
    cfg = ctx.obj['config']
    click.echo(cfg.model_dump_json(indent=2))


def main():
    cli(obj={})


if __name__ == "__main__":
    main()
