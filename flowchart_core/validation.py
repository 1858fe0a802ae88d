"""
Diagram validation - Check diagrams for structural issues.

Analysis and layout tolerate every issue reported here (dangling
connections are ignored, self-loops are one-shape cycles); validation lets
callers find them before they skew the metrics.
"""

from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union, TYPE_CHECKING

from .models import coerce_diagram

if TYPE_CHECKING:
    from .models import Diagram


class IssueSeverity(str, Enum):
    """Severity levels for validation issues."""
    ERROR = "error"      # Ambiguous state, must be fixed
    WARNING = "warning"  # Ignored by analysis, should review
    INFO = "info"        # Informational, may be intentional


@dataclass
class ValidationIssue:
    """A single validation issue found in a diagram."""
    severity: IssueSeverity
    message: str
    shape_id: Optional[str] = None
    connection_index: Optional[int] = None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        result = {
            "type": self.severity.value,
            "message": self.message
        }
        if self.shape_id:
            result["shape_id"] = self.shape_id
        if self.connection_index is not None:
            result["connection_index"] = self.connection_index
        return result


def validate_diagram(diagram: Union["Diagram", dict]) -> list[ValidationIssue]:
    """
    Validate a diagram and return a list of issues.

    Checks for:
    - Empty diagram - INFO
    - Duplicate shape ids - ERROR
    - Dangling connections (source/target doesn't exist) - WARNING
    - Self-referencing connections - INFO
    - Duplicate connections (same source->target) - WARNING
    - Orphan shapes (no connections) - WARNING
    - Unpositioned shapes - INFO

    Args:
        diagram: The diagram to validate

    Returns:
        List of ValidationIssue objects
    """
    diagram = coerce_diagram(diagram)
    issues: list[ValidationIssue] = []

    shapes = diagram.shapes
    connections = diagram.connections

    if not shapes:
        issues.append(ValidationIssue(
            severity=IssueSeverity.INFO,
            message="Diagram has no shapes"
        ))
        if not connections:
            return issues

    # Duplicate ids make every id-based lookup ambiguous
    id_counts = Counter(s.id for s in shapes)
    for shape_id, count in id_counts.items():
        if count > 1:
            issues.append(ValidationIssue(
                severity=IssueSeverity.ERROR,
                message=f"Shape id used {count} times",
                shape_id=shape_id
            ))

    shape_ids = set(id_counts)

    for index, conn in enumerate(connections):
        if conn.source not in shape_ids:
            issues.append(ValidationIssue(
                severity=IssueSeverity.WARNING,
                message=f"Connection references non-existent source shape: {conn.source}",
                connection_index=index
            ))
        if conn.target not in shape_ids:
            issues.append(ValidationIssue(
                severity=IssueSeverity.WARNING,
                message=f"Connection references non-existent target shape: {conn.target}",
                connection_index=index
            ))

    for index, conn in enumerate(connections):
        if conn.is_self_loop:
            issues.append(ValidationIssue(
                severity=IssueSeverity.INFO,
                message="Self-referencing connection (shape points to itself)",
                shape_id=conn.source,
                connection_index=index
            ))

    seen_pairs: set[tuple[str, str]] = set()
    for index, conn in enumerate(connections):
        pair = (conn.source, conn.target)
        if pair in seen_pairs:
            issues.append(ValidationIssue(
                severity=IssueSeverity.WARNING,
                message=f"Duplicate connection from {conn.source} to {conn.target}",
                connection_index=index
            ))
        else:
            seen_pairs.add(pair)

    connected: set[str] = set()
    for conn in connections:
        connected.add(conn.source)
        connected.add(conn.target)

    orphans = [s for s in shapes if s.id not in connected]
    if orphans:
        labels = [f"{s.label or s.type.value} ({s.id})" for s in orphans]
        issues.append(ValidationIssue(
            severity=IssueSeverity.WARNING,
            message=f"Orphan shapes (no connections): {', '.join(labels)}"
        ))

    for shape in shapes:
        if not shape.is_positioned:
            issues.append(ValidationIssue(
                severity=IssueSeverity.INFO,
                message="Shape has no position yet",
                shape_id=shape.id
            ))

    return issues


def validation_summary(issues: list[ValidationIssue]) -> dict:
    """
    Create a summary of validation issues.

    Args:
        issues: List of validation issues

    Returns:
        Dictionary with counts by severity
    """
    errors = len([i for i in issues if i.severity == IssueSeverity.ERROR])
    return {
        "total": len(issues),
        "errors": errors,
        "warnings": len([i for i in issues if i.severity == IssueSeverity.WARNING]),
        "info": len([i for i in issues if i.severity == IssueSeverity.INFO]),
        "valid": errors == 0
    }
