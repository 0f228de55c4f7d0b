"""Exception types raised at the construction seams of the package.

The engine catches these internally; callers only see them when they build
definitions, viewports or colours by hand.
"""


class HighlightError(Exception):
    """Base class for all treehighlight errors."""


class InvalidDefinitionError(HighlightError, ValueError):
    """A highlight definition is missing its type or a required field."""


class MissingNodeError(HighlightError, KeyError):
    """A definition references a node id that is not in the nodes map."""

    def __init__(self, node_id):
        super().__init__(node_id)
        self.node_id = node_id

    def __str__(self) -> str:
        return f"Node not found: {self.node_id}"


class MalformedCoordinatesError(HighlightError, ValueError):
    """A node has missing or non-numeric render coordinates."""
