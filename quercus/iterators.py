"""This module contains the iterator-class that every Quercus-operation uses to walk through a tree"""
import logging
from typing import (
    Any,
    Optional,
    Iterator,
    List,
    Tuple,
    Set,
    Mapping,
)
import collections.abc as c_abc

from .exceptions import CircularReferenceError, InvalidConfigurationError
from .utils import _children


__all__ = ("TreeIterator", "Visit")

logger = logging.getLogger(__name__)

Visit = Tuple[Mapping[str, Any], Optional[Mapping[str, Any]], int]
"""What TreeIterator yields for each node: (node, parent, depth)"""


class TreeIterator:
    """Depth-first pre-order iterator over a tree of nodes, giving (node, parent, depth) for each node

    The iteration uses an explicit stack of child-iterators instead of recursion, so even very deep trees don't reach
    the recursion limit. Nodes that are referenced by several parents are visited once per parent. A node that is
    reached again while it is still open on the current root-to-node path is a cycle, and raises
    CircularReferenceError.

    Example:
        >>> from quercus.iterators import TreeIterator
        >>> tree = {"id": 1, "children": [{"id": 2}, {"id": 3, "children": [{"id": 4}]}]}
        >>> [(node["id"], parent and parent["id"], depth) for node, parent, depth in TreeIterator(tree)]
        [(1, None, 0), (2, 1, 1), (3, 1, 1), (4, 3, 2)]
    """

    def __init__(self, root: Mapping[str, Any], children_key: str = "children") -> None:
        """Internal iterator. Usually it is initialized by one of the methods in Quercus

        Args:
            root: the node to start the iteration at
            children_key: name of the field holding the child nodes
        """
        self.children_key = children_key
        self.path: List[Mapping[str, Any]] = []
        """the nodes from the root to the node that was yielded last (including that node)"""
        self.keys: List[Optional[int]] = []
        """the index of each node in path in its parent's children (None for the root)"""
        self._open: Set[int] = set()
        self._iterators: List[Iterator[Tuple[Optional[int], Any]]] = [iter(((None, root),))]
        self._last: Optional[Mapping[str, Any]] = None
        self._skip = False

    def __iter__(self) -> "TreeIterator":
        return self

    def __next__(self) -> Visit:
        visit = self._advance(1)
        if visit is None:
            raise StopIteration
        return visit

    def skip(self) -> Mapping[str, Any]:
        """Don't descend into the children of the node that was yielded last

        Returns:
            The node that was skipped
        """
        if self._last is None:
            raise RuntimeError("There is no node to skip, the iteration hasn't started or has already moved on.")
        self._skip = True
        return self._last

    def descendants(self) -> Iterator[Visit]:
        """Iterates over all the nodes below the node that was yielded last, and stops at the end of its subtree

        Afterwards the TreeIterator continues with the next sibling of that node, so this can be used to consume a
        subtree in the middle of an iteration.
        """
        if self._last is None:
            return
        floor = len(self.path) + 1
        while True:
            visit = self._advance(floor)
            if visit is None:
                return
            yield visit

    def _advance(self, floor: int) -> Optional[Visit]:
        """Moves on to the next node in pre-order, as long as there are more than floor - 1 iterators on the stack"""
        if self._last is not None:
            if self._skip:
                self._close()
            else:
                self._iterators.append(iter(enumerate(_children(self._last, self.children_key))))
            self._last, self._skip = None, False
        while len(self._iterators) >= floor:
            try:
                index, node = next(self._iterators[-1])
            except StopIteration:
                self._iterators.pop()
                if self.path and len(self._iterators) == len(self.path):
                    self._close()
                continue
            if not isinstance(node, c_abc.Mapping):
                raise InvalidConfigurationError(
                    f"{node!r} at depth {len(self.path)} is not a node, nodes must be Mappings (e.g. dicts)."
                )
            if id(node) in self._open:
                logger.debug(f"Node at depth {len(self.path)} is already open on the current path")
                raise CircularReferenceError(_short_repr(node), len(self.path))
            parent = self.path[-1] if self.path else None
            depth = len(self.path)
            self.path.append(node)
            self.keys.append(index)
            self._open.add(id(node))
            self._last = node
            return node, parent, depth
        return None

    def _close(self) -> None:
        """Removes the deepest node from the current path once its subtree has been handled"""
        node = self.path.pop()
        self.keys.pop()
        self._open.discard(id(node))


def _short_repr(node: Mapping[str, Any], length: int = 60) -> str:
    """repr of node for error messages, cut off at length"""
    text = repr(node)
    return text if len(text) <= length else text[: length - 3] + "..."
