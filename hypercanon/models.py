"""Pydantic models for the hypercanon public API.

These are thin, serializable views over the engine results (engine.canon,
engine.core, engine.traversal) returned by the ``Hypercanon`` client.
Labels are kept as given; JSON output turns dictionary keys into strings.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field, model_validator


class HypergraphStats(BaseModel):
    """Summary counts for a hypergraph.

    ``rank`` is None for a hypergraph without edges.
    """

    node_count: int
    edge_count: int
    rank: int | None = None
    is_empty: bool
    component_count: int = 0
    isolated_nodes: list[Any] = Field(default_factory=list)


class ValidationResult(BaseModel):
    """Result of the incidence consistency check."""

    valid: bool
    errors: list[str] = Field(default_factory=list)


class CanonReport(BaseModel):
    """Signature tables for one hypergraph.

    ``discrete`` is True when every node and edge got its own signature,
    which is what matching requires.
    """

    node_signatures: dict[Any, int]
    edge_signatures: dict[Any, int]
    distinct_nodes: int
    distinct_edges: int
    discrete: bool
    max_depth: int | None = None

    def node_classes(self) -> list[list[Any]]:
        """Nodes grouped by shared signature, largest groups first."""
        return _classes(self.node_signatures)

    def edge_classes(self) -> list[list[Any]]:
        """Edges grouped by shared signature, largest groups first."""
        return _classes(self.edge_signatures)


def _classes(table: dict[Any, int]) -> list[list[Any]]:
    groups: dict[int, list[Any]] = {}
    for element, signature in table.items():
        groups.setdefault(signature, []).append(element)
    return sorted(groups.values(), key=len, reverse=True)


class MatchReport(BaseModel):
    """Result of matching two hypergraphs.

    Exactly one of (node_map and edge_map) or reason is meaningful: a match
    carries both maps, a failure carries the reason.
    """

    matched: bool
    node_map: dict[Any, Any] = Field(default_factory=dict)
    edge_map: dict[Any, Any] = Field(default_factory=dict)
    reason: str | None = None

    @model_validator(mode="after")
    def _check_reason(self) -> MatchReport:
        if self.matched and self.reason is not None:
            raise ValueError("A successful match cannot carry a failure reason")
        if not self.matched and (self.node_map or self.edge_map):
            raise ValueError("A failed match cannot carry partial mappings")
        return self


class Visit(BaseModel):
    """One element reached by a traversal, with its hop distance from the start."""

    kind: Literal["node", "edge"]
    label: Any
    depth: int = Field(ge=0)
