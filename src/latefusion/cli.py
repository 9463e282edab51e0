"""latefusion command-line interface."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import NoReturn

import click

from latefusion.config import load_config
from latefusion.fusion.registry import CombinerRegistry, UnknownCombinerError, get_combiner
from latefusion.logging import get_logger, setup_logging
from latefusion.pipeline import merge_runs
from latefusion.trec import TrecParseError, parse_from_trec, to_trec

log = get_logger(__name__)


def _fail(message: str, **context) -> NoReturn:
    log.error("merge_failed", error=message, **context)
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


@click.group()
@click.option("--log-level", default=None, help="Logging level (default from LATEFUSION_LOG_LEVEL)")
@click.option("--log-json", is_flag=True, help="Emit JSON-formatted logs")
@click.pass_context
def cli(ctx, log_level: str | None, log_json: bool):
    """latefusion: search result list processing tool."""
    config = load_config()
    setup_logging(level=log_level or config.log_level, json_output=log_json or config.log_json)
    ctx.ensure_object(dict)
    ctx.obj["config"] = config


@cli.command()
@click.argument("files", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False))
@click.option("-m", "--method", default=None, help="Fusion method: combmax, combsum, combmnz, rrf, or an alias")
@click.option("-o", "--output", default=None, type=click.Path(dir_okay=False), help="Output file (stdout by default)")
@click.option("--qid", default=None, help="Fuse everything as a single query with this ID")
@click.option("--run-id", default=None, help="Run ID for the fused list")
@click.option("--top-n", default=None, type=click.IntRange(min=1), help="Max fused results per query")
@click.option(
    "--rank-source",
    default=None,
    type=click.Choice(["field", "position"]),
    help="Ranks for rank-based methods: the rank column, or order of appearance",
)
@click.option("--precision", default=None, type=click.IntRange(0, 17), help="Fixed decimals for output scores")
@click.pass_context
def merge(
    ctx,
    files: tuple[str, ...],
    method: str | None,
    output: str | None,
    qid: str | None,
    run_id: str | None,
    top_n: int | None,
    rank_source: str | None,
    precision: int | None,
):
    """Perform late fusion of TREC search result lists."""
    config = ctx.obj["config"]

    try:
        combiner = get_combiner(method or config.fusion.method, config.fusion)
    except UnknownCombinerError as exc:
        _fail(str(exc))

    runs = []
    for path in files:
        try:
            runs.append(parse_from_trec(Path(path).read_text(encoding="utf-8")))
        except (TrecParseError, OSError, UnicodeDecodeError) as exc:
            _fail(f"{path}: {exc}", path=path)

    merged, summary = merge_runs(
        runs,
        combiner,
        runid=run_id or config.output.run_id,
        qid=qid if qid is not None else config.output.qid,
        rank_source=rank_source or config.fusion.rank_source,
        top_n=top_n if top_n is not None else config.fusion.top_n,
    )
    text = to_trec(
        merged,
        precision=precision if precision is not None else config.output.score_precision,
    )

    if output:
        try:
            Path(output).write_text(text, encoding="utf-8")
        except OSError as exc:
            _fail(f"{output}: {exc}", path=output)
        click.echo(f"Fused {summary.n_runs} runs with {summary.method}:", err=True)
        for k, v in summary.model_dump().items():
            click.echo(f"  {k}: {v}", err=True)
    else:
        click.echo(text, nl=False)


@cli.command()
def methods():
    """List the available fusion methods."""
    click.echo(f"{'Name':<10} {'Kind':<7} {'Aliases':<12} Description")
    click.echo("-" * 60)
    for combiner in CombinerRegistry.all():
        aliases = ", ".join(combiner.aliases)
        click.echo(f"{combiner.name:<10} {combiner.kind:<7} {aliases:<12} {combiner.description}")
