"""
Core data models for flowchart diagrams.

These models define the canonical schema consumed by analysis and layout:
- Shapes (graph nodes) with a closed shape type, optional position and size
- Connections (directed edges) between shape ids, optionally labelled
- The diagram that groups both

Field Naming Convention:
- Connections use `source` and `target`
- For backward compatibility, `from`/`to` are accepted on input and converted
- A shape whose `position` is None has not been placed yet
"""

from enum import Enum
from typing import Optional, Any
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator
from pydantic.alias_generators import to_camel
import uuid

from .exceptions import InvalidDiagramError


class ShapeType(str, Enum):
    """Every shape kind a diagram may contain."""
    RECTANGLE = "rectangle"
    ROUNDED = "rounded"
    ELLIPSE = "ellipse"
    DIAMOND = "diamond"
    PARALLELOGRAM = "parallelogram"
    HEXAGON = "hexagon"
    CYLINDER = "cylinder"
    DOCUMENT = "document"
    CIRCLE = "circle"
    # Flowchart semantics
    START = "start"
    END = "end"
    PROCESS = "process"
    DECISION = "decision"
    INPUT = "input"
    OUTPUT = "output"
    CONNECTOR = "connector"


class AnalysisKind(str, Enum):
    """Structural analyses understood by the analyzer."""
    COMPLEXITY = "complexity"
    CONNECTIVITY = "connectivity"
    HIERARCHY = "hierarchy"
    CYCLES = "cycles"
    PATHS = "paths"
    CLUSTERS = "clusters"
    METRICS = "metrics"


class LayoutAlgorithm(str, Enum):
    """Layout algorithms understood by the layout engine."""
    HIERARCHICAL = "hierarchical"
    FORCE_DIRECTED = "force-directed"
    CIRCULAR = "circular"
    TREE = "tree"
    GRID = "grid"
    ORGANIC = "organic"
    ORTHOGONAL = "orthogonal"


class LayoutDirection(str, Enum):
    """Axis along which hierarchical and tree layouts advance levels."""
    TOP_DOWN = "top-down"
    LEFT_RIGHT = "left-right"


def generate_shape_id() -> str:
    """Generate a unique shape ID."""
    return f"s{uuid.uuid4().hex[:8]}"


class Position(BaseModel):
    """A point on the canvas."""
    x: float = 0
    y: float = 0


class Size(BaseModel):
    """Width and height of a shape."""
    width: float = 120
    height: float = 60


class Shape(BaseModel):
    """A shape (node) in the diagram."""
    id: str = Field(default_factory=generate_shape_id)
    type: ShapeType = ShapeType.PROCESS
    label: str = ""
    position: Optional[Position] = None  # None until placed
    size: Size = Field(default_factory=Size)

    @property
    def is_positioned(self) -> bool:
        return self.position is not None

    def move_to(self, x: float, y: float) -> None:
        """Place the shape at (x, y)."""
        self.position = Position(x=x, y=y)


class Connection(BaseModel):
    """
    A directed connection between two shapes.

    Uses `source` and `target` as canonical field names.
    Accepts `from`/`to` on input for backward compatibility.
    """
    source: str  # Source shape ID
    target: str  # Target shape ID
    label: Optional[str] = None

    @model_validator(mode='before')
    @classmethod
    def convert_legacy_fields(cls, data: Any) -> Any:
        """Convert legacy 'from'/'to' fields to 'source'/'target'."""
        if isinstance(data, dict):
            data = dict(data)
            if 'from' in data and 'source' not in data:
                data['source'] = data.pop('from')
            if 'to' in data and 'target' not in data:
                data['target'] = data.pop('to')
        return data

    @property
    def is_self_loop(self) -> bool:
        return self.source == self.target


class Diagram(BaseModel):
    """
    The complete diagram structure.

    Shapes and connections are plain ordered lists; connections may reference
    ids that are not shapes, and every algorithm ignores such connections.
    """
    id: str = Field(default_factory=lambda: f"diagram-{uuid.uuid4().hex[:8]}")
    name: str = "Untitled Diagram"
    shapes: list[Shape] = Field(default_factory=list)
    connections: list[Connection] = Field(default_factory=list)

    @property
    def shape_ids(self) -> list[str]:
        return [s.id for s in self.shapes]

    def get_shape(self, shape_id: str) -> Optional[Shape]:
        """Get a shape by ID (O(n))."""
        for shape in self.shapes:
            if shape.id == shape_id:
                return shape
        return None

    def to_json_dict(self) -> dict:
        """Convert to a JSON-serializable dict, omitting unset labels."""
        return self.model_dump(mode="json", exclude_none=True)

    @classmethod
    def from_json_dict(cls, data: dict) -> "Diagram":
        """Create a Diagram from a JSON dict (handles legacy edge keys)."""
        return cls.model_validate({
            "id": data.get("id", f"diagram-{uuid.uuid4().hex[:8]}"),
            "name": data.get("name", "Untitled Diagram"),
            "shapes": data.get("shapes", data.get("nodes", [])),
            "connections": data.get("connections", data.get("edges", [])),
        })


class LayoutOptions(BaseModel):
    """
    Options bag for apply_layout.

    Every field is optional; anything left unset falls back to the chosen
    algorithm's own default. Keys may be given in snake_case or camelCase.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    direction: Optional[LayoutDirection] = None
    level_separation: Optional[float] = None
    node_separation: Optional[float] = None
    sibling_separation: Optional[float] = None
    start_x: Optional[float] = None
    start_y: Optional[float] = None
    # Force-directed / organic
    iterations: Optional[int] = Field(default=None, ge=0)
    k: Optional[float] = Field(default=None, gt=0)
    c: Optional[float] = Field(default=None, ge=0)
    seed: Optional[int] = None
    width: Optional[float] = Field(default=None, gt=0)
    height: Optional[float] = Field(default=None, gt=0)
    # Circular
    radius: Optional[float] = None
    center_x: Optional[float] = None
    center_y: Optional[float] = None
    # Grid
    columns: Optional[int] = None
    cell_width: Optional[float] = None
    cell_height: Optional[float] = None
    padding: Optional[float] = None

    def set_values(self) -> dict:
        """Return only the options the caller actually set."""
        return self.model_dump(exclude_none=True)


def coerce_diagram(value: Any) -> Diagram:
    """
    Accept a Diagram or its JSON dict form.

    Raises:
        InvalidDiagramError: if the value is None or cannot be validated
    """
    if isinstance(value, Diagram):
        return value
    if isinstance(value, dict):
        try:
            return Diagram.from_json_dict(value)
        except ValidationError as e:
            raise InvalidDiagramError(f"Invalid diagram: {e}") from e
    raise InvalidDiagramError(f"Expected a Diagram or dict, got {type(value).__name__}")
