# === FILE: blog_migrator/cli.py ===
#!/usr/bin/env python3
"""
Command line entry point of BlogMigrator.

Commands:
  crawl     Discover and extract the blog posts of one site profile into a CSV
  compare   Reconcile an old-site crawl with a new-site (preview) crawl
  config    Show the loaded configuration

Common options:
  --config PATH       Path to the YAML/JSON config (default: configs/default.yaml)
  --log-level LEVEL   Logging level (DEBUG, INFO, ...), overrides log_level
  --log-file PATH     Log file, overrides log_file
  --log-format FORMAT Logging format string, overrides log_format

crawl options:
  --profile NAME      Crawl profile from the config (default profile if omitted)
  --limit INT         Page-visit budget for discovery (overrides max_pages)
  --concurrency INT   Parallel post extractions
  --output-dir DIR    Where to write the CSV (overrides output_dir)

compare options:
  --new PATH / --old PATH   Crawl files to compare (newest ones by default)
  --yes                     Take the newest files without asking
  --template DIR            Folder with the Jinja2 summary template

Example:
  blog-migrator --config configs/default.yaml crawl --profile creativeresources --limit 20
"""
import asyncio
import json
import sys
from pathlib import Path
from typing import List, Optional

import click

from blog_migrator import __version__
from blog_migrator.config import load_config
from blog_migrator.engine import list_crawl_files, run_comparison, run_crawl, save_crawl
from blog_migrator.logger import init_logging

CONTEXT_SETTINGS = dict(help_option_names=["--help"])


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


class _ProgressBar:
    """Adapts the engine's (done, total) callback to a click progress bar."""

    def __init__(self, label: str) -> None:
        self.label = label
        self.bar = None

    def __call__(self, done: int, total: int) -> None:
        if self.bar is None:
            self.bar = click.progressbar(length=total, label=self.label, file=sys.stderr)
        self.bar.update(done - self.bar.pos)

    def finish(self) -> None:
        if self.bar is not None:
            self.bar.render_finish()


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='BlogMigrator, version %(version)s')
@click.option(
    '--config', '-c', 'config_path',
    default='configs/default.yaml',
    show_default=True,
    type=click.Path(dir_okay=False, path_type=Path),
    help='Path to the YAML/JSON configuration file.'
)
@click.option(
    '--log-level', 'log_level',
    default=None,
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']),
    help='Logging level (overrides log_level, INFO by default)'
)
@click.option(
    '--log-file', 'log_file',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Log file path (overrides log_file)'
)
@click.option(
    '--log-format', 'log_format',
    default=None,
    help='Logging format string (overrides log_format)'
)
@click.pass_context
def cli(ctx, config_path, log_level, log_file, log_format):
    """BlogMigrator command group."""
    try:
        cfg = load_config(config_path)
    except Exception as e:
        print_error(f'Failed to load configuration: {e}')
    init_logging(cfg, level=log_level, log_file=log_file, log_format=log_format)
    ctx.ensure_object(dict)
    ctx.obj['config'] = cfg


@cli.command('crawl', context_settings=CONTEXT_SETTINGS)
@click.option('--profile', '-p', 'profile', default=None, help='Crawl profile name')
@click.option(
    '--limit', '-l', 'limit',
    type=click.IntRange(min=1),
    default=None,
    help='Page-visit budget for discovery (override max_pages)'
)
@click.option(
    '--concurrency', 'concurrency',
    type=click.IntRange(1, 16),
    default=None,
    help='Parallel post extractions (override concurrency)'
)
@click.option(
    '--output-dir', '-o', 'output_dir',
    default=None,
    type=click.Path(file_okay=False, path_type=Path),
    help='Directory for the CSV file (override output_dir)'
)
@click.pass_context
def crawl(ctx, profile, limit, concurrency, output_dir):
    """Crawl one site profile and save its blog posts to CSV."""
    cfg = ctx.obj['config']
    try:
        target = cfg.profile(profile)
    except KeyError as e:
        print_error(str(e.args[0]))
    if limit is not None:
        target = target.model_copy(update={'max_pages': limit})
    if concurrency is not None:
        cfg = cfg.model_copy(update={'concurrency': concurrency})

    click.echo(f'Crawling {", ".join(target.seed_urls)}', err=True)
    progress = _ProgressBar('Crawling')
    try:
        result = asyncio.run(run_crawl(cfg, target, on_progress=progress))
    except asyncio.TimeoutError:
        print_error(f'Crawl did not finish within {cfg.crawl_deadline} seconds')
    except Exception as e:
        print_error(f'Crawl failed: {e}')
    finally:
        progress.finish()

    try:
        path = save_crawl(result, target, output_dir or cfg.output_dir)
    except OSError as e:
        print_error(f'Failed to save CSV: {e}')

    click.echo(f'Succeeded: {result.succeeded}')
    click.echo(f'Failed: {result.failed}')
    click.echo(f'Skipped (duplicate title): {result.skipped}')
    click.echo(f'CSV: {path}')


def _choose(prompt: str, files: List[Path]) -> Path:
    click.echo(prompt)
    for i, f in enumerate(files, start=1):
        click.echo(f'{i} - {f.name}')
    index = click.prompt('Choose a file number', type=click.IntRange(1, len(files)))
    return files[index - 1]


@cli.command('compare', context_settings=CONTEXT_SETTINGS)
@click.option(
    '--new', 'new_path', default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='New site (preview) crawl CSV'
)
@click.option(
    '--old', 'old_path', default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Old site crawl CSV'
)
@click.option('--yes', '-y', 'assume_yes', is_flag=True, help='Use the newest files without asking')
@click.option(
    '--template', '-t', 'template_dir',
    default=None,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help='Folder with the Jinja2 summary template'
)
@click.pass_context
def compare(ctx, new_path: Optional[Path], old_path: Optional[Path], assume_yes, template_dir):
    """Find old-site posts that are still missing on the new site."""
    cfg = ctx.obj['config']
    if new_path is None or old_path is None:
        new_files, old_files = list_crawl_files(cfg.output_dir)
        if (new_path is None and not new_files) or (old_path is None and not old_files):
            print_error(
                "Make sure you have both 'preview' (new site) and non-preview (old site) CSVs "
                f"in {cfg.output_dir}."
            )
        if new_path is None:
            click.echo(f'New Site CSV Default: {new_files[0].name}')
        if old_path is None:
            click.echo(f'Old Site CSV Default: {old_files[0].name}')
        use_default = assume_yes or click.confirm('Use these files?', default=True)
        if new_path is None:
            new_path = new_files[0] if use_default else _choose('Select a New Site CSV:', new_files)
        if old_path is None:
            old_path = old_files[0] if use_default else _choose('Select an Old Site CSV:', old_files)

    try:
        outcome = run_comparison(cfg, old_path, new_path, template_dir=template_dir)
    except (OSError, ValueError, KeyError) as e:
        print_error(f'Comparison failed: {e}')

    counts = outcome.result.counts
    if outcome.unmatched_csv is not None:
        click.echo(f'Unmatched old site blogs written to: {outcome.unmatched_csv}')
    else:
        click.echo('All old site blog titles are present on the new site.')
    click.echo(f'Matched Titles: {counts["matched"]}')
    click.echo(f'Titles to Migrate: {counts["migrate"]}')
    click.echo(f'New Site Titles not found on Old Site: {counts["new_only"]}')
    click.echo(f'Summary written to: {outcome.summary_path}')


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@click.pass_context
def show_config(ctx):
    """Show the current configuration as JSON."""
    cfg = ctx.obj['config']
    data = cfg.model_dump(mode='json')
    for profile in data['profiles'].values():
        if profile.get('password'):
            profile['password'] = '***'
    click.echo(json.dumps(data, ensure_ascii=False, indent=2))


if __name__ == "__main__":
    cli()
