"""Exceptions raised by Quercus

All of them derive from :obj:`QuercusError`, and additionally from the builtin exception closest to their meaning, so
that ``except ValueError`` or ``except LookupError`` keep working for callers that don't know about Quercus.
"""

__all__ = ("QuercusError", "CircularReferenceError", "NodeNotFoundError", "InvalidConfigurationError", "UsageError")


class QuercusError(Exception):
    """Base-class for all the errors raised by Quercus"""

    pass


class CircularReferenceError(QuercusError, ValueError):
    """A node was reached a second time while it was still open on the current root-to-node path"""

    def __init__(self, node_repr: str = "", depth: int = -1) -> None:
        message = "Circular reference detected"
        if node_repr:
            message += f" at depth {depth}: {node_repr} is its own ancestor" if depth >= 0 else f": {node_repr}"
        super().__init__(message)
        self.depth = depth


class NodeNotFoundError(QuercusError, LookupError):
    """No node in the tree matched the condition, and the operation can't do anything sensible without a match"""

    pass


class InvalidConfigurationError(QuercusError, ValueError):
    """An option or argument is missing or invalid, or a children-field isn't a sequence of nodes"""

    pass


class UsageError(QuercusError, ValueError):
    """The operation is not possible at the position where the condition matched, e.g. inserting beside the root"""

    pass
