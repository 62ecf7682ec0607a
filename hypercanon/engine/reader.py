"""Plain-text hypergraph input.

Format: one hyperedge per line, node labels separated by whitespace. Edges
are numbered by line index (starting at 0). A line holding a single ``-``
ends the hypergraph, so several hypergraphs can share one stream. Lines with
fewer than ``min_size`` distinct labels are skipped but still use up their
edge number.

    alice bob carol
    bob dave
    -
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from pathlib import Path

from hypercanon.engine.core import Hypergraph

logger = logging.getLogger(__name__)

END_MARKER = "-"


def parse_hypergraph(lines: Iterable[str], *, min_size: int = 2) -> Hypergraph[str, int]:
    """Read one hypergraph from ``lines``, stopping at the end marker.

    Args:
        lines: Text lines (trailing newlines are fine). An iterator is
            consumed only up to and including the end marker.
        min_size: Minimum number of distinct labels for a line to form an edge

    Returns:
        Hypergraph with string node labels and integer edge labels

    Raises:
        ValueError: If min_size is less than 1
    """
    if min_size < 1:
        raise ValueError(f"min_size must be at least 1, got: {min_size}")

    edges: dict[int, list[str]] = {}
    skipped = 0
    for line_num, line in enumerate(lines):
        line = line.strip()
        if line == END_MARKER:
            break
        labels = list(dict.fromkeys(line.split()))
        if len(labels) < min_size:
            skipped += 1
            continue
        edges[line_num] = labels

    if skipped:
        logger.debug("Skipped %d line(s) with fewer than %d labels", skipped, min_size)
    return Hypergraph.from_edges(edges)


def iter_hypergraphs(lines: Iterable[str], *, min_size: int = 2) -> Iterator[Hypergraph[str, int]]:
    """Read consecutive ``-``-terminated hypergraphs until the input runs out.

    A trailing empty section (input ending right after a marker) is not
    yielded.
    """
    source = iter(lines)
    while True:
        chunk: list[str] = []
        ended = False
        for line in source:
            if line.strip() == END_MARKER:
                ended = True
                break
            chunk.append(line)
        if not chunk and not ended:
            return
        yield parse_hypergraph(chunk, min_size=min_size)
        if not ended:
            return


def load_hypergraph(path: str | Path, *, min_size: int = 2) -> Hypergraph[str, int]:
    """Read the first hypergraph stored in a text file.

    Raises:
        FileNotFoundError: If the file does not exist
    """
    resolved = Path(path)
    with resolved.open(encoding="utf-8") as handle:
        hypergraph = parse_hypergraph(handle, min_size=min_size)
    logger.info(
        "Loaded %s: %d nodes, %d edges", resolved, hypergraph.node_count, hypergraph.edge_count
    )
    return hypergraph
