"""Dependency-related Pydantic schemas: edge records and computed views."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from .common import DependencyType


# ---------------------------------------------------------------------------
# Edges
# ---------------------------------------------------------------------------

class Dependency(BaseModel):
    """Directed edge: ``task_id`` depends on ``depends_on_task_id``."""
    id: str
    task_id: str
    depends_on_task_id: str
    type: DependencyType = DependencyType.BLOCKS
    created_at: datetime


class ValidationResult(BaseModel):
    is_valid: bool
    reason: Optional[str] = None


class TaskDependencies(BaseModel):
    """Outgoing edges of one task, partitioned by type."""
    blocks: List[Dependency] = Field(default_factory=list)
    requires: List[Dependency] = Field(default_factory=list)
    suggests: List[Dependency] = Field(default_factory=list)


class DependencyListItem(BaseModel):
    """One outgoing edge with display fields resolved."""
    dependency: Dependency
    type_label: str
    depends_on_title: str


# ---------------------------------------------------------------------------
# Computed views
# ---------------------------------------------------------------------------

class DependencyChain(BaseModel):
    task_id: str
    blocked_by: List[str] = Field(default_factory=list)
    blocks: List[str] = Field(default_factory=list)
    chain_length: int = 0
    is_blocked: bool = False


class DependencySuggestion(BaseModel):
    task_id: str
    suggested_dependency: str
    reason: str
    confidence: int = Field(ge=0, le=100)


# ---------------------------------------------------------------------------
# Visualization
# ---------------------------------------------------------------------------

class GraphNode(BaseModel):
    id: str
    label: str
    completed: bool
    project_id: Optional[str] = None
    is_blocked: bool = False


class GraphEdge(BaseModel):
    """Edge pointing from prerequisite (``source``) to dependent (``target``)."""
    id: str
    source: str
    target: str
    type: DependencyType


class DependencyGraph(BaseModel):
    nodes: List[GraphNode] = Field(default_factory=list)
    edges: List[GraphEdge] = Field(default_factory=list)
