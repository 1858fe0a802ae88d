"""
Exceptions raised by flowchart_core.

Data-shape problems (dangling references, empty diagrams, unknown selectors)
are never errors; these exceptions only cover calls that cannot be served.
"""


class FlowchartError(Exception):
    """Base exception for all flowchart_core errors."""
    pass


class InvalidDiagramError(FlowchartError):
    """Raised when the value passed as a diagram is not a diagram."""
    pass
