#!/usr/bin/env python3
"""
Flowchart Tool MCP Server

Provides MCP tools for AI agents to analyze and lay out flowchart diagrams.
Every tool takes the diagram itself as a JSON object; nothing is stored
between calls.
"""

import json
import logging
from typing import Optional

from mcp.server.fastmcp import FastMCP
from pydantic import ValidationError

from .analysis import analyze_diagram as run_analysis
from .exceptions import FlowchartError
from .layout import apply_layout as run_layout
from .logging_config import setup_logging
from .models import AnalysisKind, LayoutAlgorithm
from .validation import validate_diagram as run_validation, validation_summary

logger = logging.getLogger(__name__)

# Create MCP server
mcp = FastMCP("flowchart-tool")


def _error(message: str) -> str:
    return json.dumps({"status": "error", "error": message}, indent=2)


# ============================================================================
# ANALYSIS TOOLS
# ============================================================================

@mcp.tool()
def analyze_diagram(diagram: dict, analysis_type: str = AnalysisKind.METRICS.value) -> str:
    """
    Analyze the structure of a diagram.

    Args:
        diagram: Diagram object with "shapes" and "connections" lists
        analysis_type: One of complexity, connectivity, hierarchy, cycles,
            paths, clusters, metrics (all of them plus an overall score)

    Returns the metrics as JSON. Unknown analysis types return an empty object.
    """
    try:
        result = run_analysis(diagram, analysis_type)
    except FlowchartError as e:
        return _error(str(e))
    return json.dumps({"analysis_type": analysis_type, "result": result}, indent=2)


@mcp.tool()
def validate_diagram(diagram: dict) -> str:
    """
    Check a diagram for structural issues.

    Reports duplicate shape ids, dangling or duplicate connections,
    self-loops, orphan shapes and unpositioned shapes.

    Args:
        diagram: Diagram object with "shapes" and "connections" lists
    """
    try:
        issues = run_validation(diagram)
    except FlowchartError as e:
        return _error(str(e))
    return json.dumps({
        "summary": validation_summary(issues),
        "issues": [i.to_dict() for i in issues],
    }, indent=2)


# ============================================================================
# LAYOUT TOOLS
# ============================================================================

@mcp.tool()
def apply_layout(
    diagram: dict,
    algorithm: str = LayoutAlgorithm.HIERARCHICAL.value,
    options: Optional[dict] = None
) -> str:
    """
    Position the shapes of a diagram with a layout algorithm.

    Args:
        diagram: Diagram object with "shapes" and "connections" lists
        algorithm: One of hierarchical, force-directed, circular, tree, grid,
            organic, orthogonal
        options: Algorithm options, e.g. {"direction": "left-right"},
            {"iterations": 50}, {"radius": 200}, {"columns": 5}

    Returns the laid-out diagram as JSON. Unknown algorithms return it unchanged.
    """
    try:
        result = run_layout(diagram, algorithm, options)
    except FlowchartError as e:
        return _error(str(e))
    except ValidationError as e:
        return _error(f"Invalid layout options: {e}")
    return json.dumps(result.to_json_dict(), indent=2)


def main() -> None:
    """Run the MCP server over stdio."""
    setup_logging()
    logger.info("Starting flowchart-tool MCP server")
    mcp.run()


if __name__ == "__main__":
    main()
