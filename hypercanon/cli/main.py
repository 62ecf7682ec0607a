"""Command-line interface for hypergraph canonicalization.

Hypergraph files hold one hyperedge per line (see hypercanon.engine.reader).
Pass ``-`` to read from stdin; ``match - -`` reads two ``-``-terminated
hypergraphs from the same stream.
"""

from __future__ import annotations

import logging
import sys
from typing import IO, Any

import click

from hypercanon.client import Hypercanon
from hypercanon.engine.canon import DEFAULT_MAX_DEPTH
from hypercanon.engine.core import Hypergraph
from hypercanon.engine.reader import iter_hypergraphs

MAX_DEPTH_ENV = "HYPERCANON_MAX_DEPTH"


def _configure_logging(verbose: int) -> None:
    level = logging.WARNING
    if verbose == 1:
        level = logging.INFO
    elif verbose >= 2:
        level = logging.DEBUG
    # Logs go to stderr, stdout carries command output
    logging.basicConfig(stream=sys.stderr, level=level, format="%(levelname)s: %(message)s")


def _get_client(ctx: click.Context) -> Hypercanon:
    return ctx.obj["client"]


def _load(ctx: click.Context, name: str, source: IO[str], min_size: int) -> Hypercanon:
    hc = _get_client(ctx)
    try:
        hc.load(name, source, min_size=min_size)
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint="--min-size") from exc
    return hc


def _is_stdin(source: IO[str]) -> bool:
    return getattr(source, "name", None) == "<stdin>"


def _load_pair(ctx: click.Context, source: IO[str], min_size: int) -> Hypercanon:
    """Register "first" and "second" from consecutive sections of one stream.

    Both hypergraphs come from the same reader, so nothing read ahead for
    the first one is lost to the second. Missing sections are empty.
    """
    hc = _get_client(ctx)
    try:
        sections = iter_hypergraphs(source, min_size=min_size)
        hc.add("first", next(sections, Hypergraph()))
        hc.add("second", next(sections, Hypergraph()))
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint="--min-size") from exc
    return hc


def _format_label(label: Any) -> str:
    return label if isinstance(label, str) else repr(label)


@click.group()
@click.option("-v", "--verbose", count=True, help="Log INFO (-v) or DEBUG (-vv) to stderr.")
@click.option(
    "--max-depth",
    type=click.IntRange(min=0),
    default=DEFAULT_MAX_DEPTH,
    show_default=True,
    envvar=MAX_DEPTH_ENV,
    help=f"Nested hashing bound for signatures; 0 means unbounded. Env: {MAX_DEPTH_ENV}.",
)
@click.option(
    "--min-size", default=2, show_default=True, help="Minimum labels per line to form an edge."
)
@click.pass_context
def cli(ctx: click.Context, verbose: int, max_depth: int, min_size: int) -> None:
    """Sign, match and explore hypergraphs."""
    _configure_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["client"] = Hypercanon(max_depth=max_depth or None)
    ctx.obj["min_size"] = min_size


@cli.command()
@click.argument("source", type=click.File("r"))
@click.pass_context
def stats(ctx: click.Context, source: IO[str]) -> None:
    """Show node, edge and component counts."""
    hc = _load(ctx, "input", source, ctx.obj["min_size"])
    s = hc.stats("input")
    click.echo(f"Nodes: {s.node_count}  Edges: {s.edge_count}")
    click.echo(f"Rank: {s.rank if s.rank is not None else '-'}")
    click.echo(f"Components: {s.component_count}")
    if s.isolated_nodes:
        click.echo("Isolated nodes: " + ", ".join(map(_format_label, s.isolated_nodes)))


@cli.command()
@click.argument("source", type=click.File("r"))
@click.pass_context
def validate(ctx: click.Context, source: IO[str]) -> None:
    """Check that node and edge incidence agree."""
    hc = _load(ctx, "input", source, ctx.obj["min_size"])
    result = hc.validate("input")
    if result.valid:
        click.echo("Hypergraph is valid.")
        return
    click.echo("Validation errors:")
    for err in result.errors:
        click.echo(f"  ERROR: {err}")
    ctx.exit(1)


@cli.command()
@click.argument("source", type=click.File("r"))
@click.option("--blank", default=".", show_default=True, help="Filler for empty cells.")
@click.pass_context
def matrix(ctx: click.Context, source: IO[str], blank: str) -> None:
    """Print the incidence matrix, one line per edge."""
    hc = _load(ctx, "input", source, ctx.obj["min_size"])
    click.echo(hc.matrix("input", blank=blank))


@cli.command()
@click.argument("source", type=click.File("r"))
@click.option("--json", "as_json", is_flag=True, help="Emit the report as JSON.")
@click.pass_context
def canon(ctx: click.Context, source: IO[str], as_json: bool) -> None:
    """Print node and edge signatures."""
    hc = _load(ctx, "input", source, ctx.obj["min_size"])
    report = hc.canon("input")
    if as_json:
        click.echo(report.model_dump_json(indent=2))
        return
    click.echo("Nodes:")
    for node, signature in report.node_signatures.items():
        click.echo(f"  {_format_label(node)}  {signature}")
    click.echo("Edges:")
    for edge, signature in report.edge_signatures.items():
        click.echo(f"  {_format_label(edge)}  {signature}")
    click.echo(
        f"Distinct: {report.distinct_nodes}/{len(report.node_signatures)} nodes, "
        f"{report.distinct_edges}/{len(report.edge_signatures)} edges"
        + ("" if report.discrete else " (not discrete)")
    )


@cli.command()
@click.argument("first", type=click.File("r"))
@click.argument("second", type=click.File("r"))
@click.option("--json", "as_json", is_flag=True, help="Emit the report as JSON.")
@click.pass_context
def match(ctx: click.Context, first: IO[str], second: IO[str], as_json: bool) -> None:
    """Map FIRST onto SECOND by signatures. Exits 1 when there is no mapping."""
    min_size = ctx.obj["min_size"]
    if _is_stdin(first) and _is_stdin(second):
        hc = _load_pair(ctx, first, min_size)
    else:
        _load(ctx, "first", first, min_size)
        hc = _load(ctx, "second", second, min_size)
    report = hc.match("first", "second")
    if as_json:
        click.echo(report.model_dump_json(indent=2))
    elif report.matched:
        click.echo("Nodes: " + " ".join(f"{_format_label(a)}>{_format_label(b)}"
                                        for a, b in report.node_map.items()))
        click.echo("Edges: " + " ".join(f"{_format_label(a)}>{_format_label(b)}"
                                        for a, b in report.edge_map.items()))
    else:
        click.echo(f"No mapping: {report.reason}")
    if not report.matched:
        ctx.exit(1)


@cli.command()
@click.argument("source", type=click.File("r"))
@click.argument("start")
@click.option("--edge", "from_edge", is_flag=True, help="START is an edge number.")
@click.option("--dfs", "depth_first", is_flag=True, help="Depth-first instead of breadth-first.")
@click.option("--limit", type=click.IntRange(min=1), default=None, help="Stop after N visits.")
@click.pass_context
def traverse(
    ctx: click.Context,
    source: IO[str],
    start: str,
    from_edge: bool,
    depth_first: bool,
    limit: int | None,
) -> None:
    """Walk the node/edge incidence graph from START."""
    hc = _load(ctx, "input", source, ctx.obj["min_size"])
    label: Any = start
    if from_edge:
        try:
            label = int(start)
        except ValueError:
            raise click.BadParameter(f"edge labels are integers, got: {start!r}") from None
    try:
        visits = hc.traverse(
            "input",
            label,
            kind="edge" if from_edge else "node",
            order="dfs" if depth_first else "bfs",
            limit=limit,
        )
    except KeyError as exc:
        raise click.ClickException(exc.args[0]) from exc
    for visit in visits:
        click.echo(f"{'  ' * visit.depth}{visit.kind} {_format_label(visit.label)}")


if __name__ == "__main__":
    cli()
