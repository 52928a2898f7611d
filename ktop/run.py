from __future__ import annotations
import click
import signal
import time
import yaml
from datetime import datetime
from kubernetes.config.config_exception import ConfigException
from .config import load_config, AppConfig, OUTPUT_FORMATS, SORT_FIELDS, MIN_PARALLEL, MAX_PARALLEL
from .collect.engine import CollectionEngine, ClusterUnavailable
from .kube.client import load_kubeconfig, KubeSource
from .reporting.base import get_renderer, Renderer
from .reporting.common import paint
from .reporting import table_report  # noqa: F401 registers 'table'
from .reporting import csv_report  # noqa: F401 registers 'csv'
from .reporting import json_report  # noqa: F401 registers 'json'
from .util import logging as log

VERSION = '1.3.0'


def _raise_interrupt(signum, frame):
    raise KeyboardInterrupt()


def _cycle_output(engine: CollectionEngine, renderer: Renderer, cfg: AppConfig) -> str:
    result = engine.run_cycle()
    return renderer.render(result, cfg)


def _fatal(e: ClusterUnavailable) -> click.ClickException:
    return click.ClickException(f'{e.what}.\n{e.hint}\nDetail: {e.__cause__ or e}')


def run_once(engine: CollectionEngine, renderer: Renderer, cfg: AppConfig) -> None:
    try:
        output = _cycle_output(engine, renderer, cfg)
    except ClusterUnavailable as e:
        raise _fatal(e) from e
    except KeyboardInterrupt:
        click.echo('\nExiting...')
        return
    click.echo(output)


def run_watch(engine: CollectionEngine, renderer: Renderer, cfg: AppConfig, sleep=time.sleep) -> None:
    """Refresh every ``cfg.watch`` seconds until interrupted.

    An unreachable cluster on the first cycle is fatal; later cycles only log
    the failure and try again after the interval.
    """
    first = True
    try:
        while True:
            try:
                output = _cycle_output(engine, renderer, cfg)
            except ClusterUnavailable as e:
                if first:
                    raise _fatal(e) from e
                log.error('refresh failed', error=str(e))
                output = ''
            first = False
            click.clear()
            banner = f"{datetime.now():%Y-%m-%d %H:%M:%S} - Refreshing every {cfg.watch}s (Ctrl+C to stop)"
            click.echo(paint(banner, None, not cfg.no_color, bold=True))
            click.echo()
            if output:
                click.echo(output)
            sleep(cfg.watch)
    except KeyboardInterrupt:
        click.echo('\nExiting...')


@click.command(context_settings={'help_option_names': ['-h', '--help']})
@click.option('-P', '--parallel', type=click.IntRange(MIN_PARALLEL, MAX_PARALLEL), default=None, help='Number of parallel node queries (default: 8)')
@click.option('-o', '--output', 'output_format', type=click.Choice(OUTPUT_FORMATS), default=None, help='Output format (default: table)')
@click.option('-a', '--all', 'show_all', is_flag=True, help='Include control-plane nodes')
@click.option('-n', '--no-color', is_flag=True, help='Disable color output')
@click.option('-s', '--no-sum', is_flag=True, help="Don't show summary totals")
@click.option('-w', '--watch', type=click.IntRange(min=1), default=None, help='Auto-refresh every N seconds')
@click.option('-S', '--sort', 'sort_by', type=click.Choice(SORT_FIELDS), default=None, help='Sort field (default: cpu-req)')
@click.option('-r', '--reverse', is_flag=True, help='Reverse sort order (ascending)')
@click.option('-c', '--show-conditions', is_flag=True, help='Show pressure conditions in the status column')
@click.option('--kubeconfig', default=None, help='Path to kubeconfig file')
@click.option('--context', 'kube_context', default=None, help='Kubeconfig context to use')
@click.option('--config', 'config_path', default=None, help='Optional YAML config file')
@click.version_option(VERSION, '-v', '--version', prog_name='ktop', message='%(prog)s version %(version)s')
def cli(parallel, output_format, show_all, no_color, no_sum, watch, sort_by, reverse, show_conditions,
        kubeconfig, kube_context, config_path):
    """Display worker node CPU, memory and disk allocation, usage and capacity."""
    overrides = {
        'parallel': parallel,
        'output_format': output_format,
        'show_all': show_all or None,
        'no_color': no_color or None,
        'no_sum': no_sum or None,
        'watch': watch,
        'sort_by': sort_by,
        'reverse': reverse or None,
        'show_conditions': show_conditions or None,
        'kubeconfig': kubeconfig,
        'context': kube_context,
    }
    try:
        cfg = load_config(config_path, overrides=overrides)
    except (FileNotFoundError, ValueError, yaml.YAMLError) as e:
        raise click.ClickException(str(e))
    log.configure_logging(cfg.logging.level, cfg.logging.format)
    log.debug('configuration', parallel=cfg.parallel, format=cfg.output_format, all_nodes=cfg.show_all)
    try:
        api_client = load_kubeconfig(cfg.kubeconfig, cfg.context)
    except (ConfigException, FileNotFoundError) as e:
        raise click.ClickException(f'Cannot load kubeconfig: {e}\nCheck KUBECONFIG or pass --kubeconfig.')
    engine = CollectionEngine(KubeSource(api_client), cfg)
    renderer = get_renderer(cfg.output_format)
    previous = signal.signal(signal.SIGTERM, _raise_interrupt)
    try:
        if cfg.watch > 0:
            run_watch(engine, renderer, cfg)
        else:
            run_once(engine, renderer, cfg)
    finally:
        if previous is not None:
            signal.signal(signal.SIGTERM, previous)


if __name__ == '__main__':
    cli()
