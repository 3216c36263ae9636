"""
Flow Layout Backend - FastAPI Application

This is the HTTP entry point for the layout engine.
It provides:
- Stateless layout of a posted node/edge snapshot (whole graph or selection)
- Slot restacking after an out-of-band branching change
- Structural validation and summary of a snapshot
- CORS configuration for local frontend development

The server keeps no diagram state; every request carries its own snapshot.
"""
import logging
import os
from typing import Any, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..analysis import summarize_flow
from ..config import LayoutConfig
from ..layout import reposition_branching_group, run_layout
from ..models import Edge, FlowSnapshot, Node
from ..validation import validate_snapshot, validation_summary

logger = logging.getLogger(__name__)

# Defaults for every request; per-request "config" objects are merged on top
BASE_CONFIG = LayoutConfig.from_env()

CORS_ORIGINS = os.environ.get(
    "FLOWLAYOUT_CORS_ORIGINS",
    "http://localhost:5173,http://localhost:3000,http://127.0.0.1:5173",
).split(",")


# --- FastAPI App ---

app = FastAPI(
    title="Flow Layout API",
    description="Automatic layout for branching dialog flow diagrams",
    version="1.0.0",
)

# CORS for local development
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Request Models ---

class LayoutRequest(FlowSnapshot):
    """A snapshot plus optional per-request config overrides."""
    config: Optional[dict[str, Any]] = None


class NodesRequest(BaseModel):
    """A bare node/edge snapshot."""
    model_config = ConfigDict(populate_by_name=True)

    nodes: list[Node] = Field(default_factory=list)
    edges: list[Edge] = Field(default_factory=list)
    root_hint: Optional[str] = Field(default=None, alias="rootHint")
    config: Optional[dict[str, Any]] = None


def _config_for(overrides: Optional[dict[str, Any]]) -> LayoutConfig:
    """Merge request overrides over the base config."""
    try:
        return BASE_CONFIG.merged(overrides)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=f"Invalid layout config: {e.errors()}")


# --- Health Check ---

@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "ok"}


# --- Layout ---

@app.post("/api/layout")
async def layout(request: LayoutRequest):
    """
    Lay out a snapshot.

    Returns the repositioned nodes, the unmodified edges and the diagnostics
    of the run (levels, layers, anchor shift, saturated modules, bounds).
    """
    config = _config_for(request.config)
    result = run_layout(
        request.nodes,
        request.edges,
        root_hint=request.root_hint,
        selection=request.selection,
        config=config,
    )
    return {"success": True, **result.to_dict()}


@app.post("/api/layout/branching/{parent_id}")
async def reposition_branching(parent_id: str, request: NodesRequest):
    """Restack one branching module's slots after a slot add, remove or reorder."""
    if not any(n.id == parent_id and not n.is_slot for n in request.nodes):
        raise HTTPException(status_code=404, detail=f"Module not found: {parent_id}")
    config = _config_for(request.config)
    nodes = reposition_branching_group(request.nodes, parent_id, config)
    return {"success": True, "nodes": [n.to_json_dict() for n in nodes]}


# --- Analysis & Validation ---

@app.post("/api/validate")
async def validate(request: NodesRequest):
    """
    Validate a snapshot for structural issues.

    Returns a list of issues (errors, warnings, info) and a summary.
    """
    issues = validate_snapshot(request.nodes, request.edges)
    return {
        "success": True,
        "issues": [issue.to_dict() for issue in issues],
        "summary": validation_summary(issues)
    }


@app.post("/api/summary")
async def summarize(request: NodesRequest):
    """
    Get a structural summary of a snapshot.

    Returns module/slot counts, components, roots, depth, crossings and cycles.
    """
    config = _config_for(request.config)
    summary = summarize_flow(request.nodes, request.edges, request.root_hint, config)
    return {
        "success": True,
        "summary": summary.to_dict()
    }


# --- Run with uvicorn ---

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="127.0.0.1", port=8765)
