"""This module contains the filter-class used in Quercus to select nodes relative to the nodes matching a condition"""
from enum import Enum
from typing import Any, Callable, Iterator, Optional, Set, Tuple, Union

from .exceptions import InvalidConfigurationError
from .iterators import TreeIterator, Visit
from .utils import _match_all, _ensure_callable


__all__ = ("Rel", "NodeFil")


class Rel(str, Enum):
    """Relationship between the nodes matching a condition and the nodes that are selected because of them"""

    MATCHES = "matches"
    """only the matching node itself"""
    ANCESTORS = "ancestors"
    """all the nodes from the root to the matching node, excluding the matching node"""
    DESCENDANTS = "descendants"
    """all the nodes in the subtree of the matching node, excluding the matching node"""
    INCLUSIVE_ANCESTORS = "inclusive_ancestors"
    """all the nodes from the root to the matching node, including the matching node"""
    INCLUSIVE_DESCENDANTS = "inclusive_descendants"
    """the matching node and all the nodes in its subtree"""

    @classmethod
    def parse(cls, value: Union["Rel", str], strict: bool = True) -> Optional["Rel"]:
        """Converts value to a Rel. Besides the values, "inclusiveAncestors" and "inclusiveDescendants" are accepted

        Args:
            value: Rel or the str-value of a Rel
            strict: raise an error if value isn't valid. If ~ is False, None is returned for invalid values

        Raises:
            InvalidConfigurationError: if strict is set and value can't be interpreted as Rel

        Returns:
            the Rel value is referring to
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            name = value.replace("inclusiveA", "inclusive_a").replace("inclusiveD", "inclusive_d")
            for rel in cls:
                if rel.value == name:
                    return rel
        if strict:
            raise InvalidConfigurationError(
                f"{value!r} is not a valid filter. Valid filters are {', '.join(rel.value for rel in cls)}."
            )
        return None

    @property
    def inclusive(self) -> bool:
        """whether the matching node itself is selected"""
        return self not in (Rel.ANCESTORS, Rel.DESCENDANTS)


class NodeFil:
    """NodeFilter - selects the nodes in a tree that match a condition, or the ancestors or descendants of those

    The condition is a function receiving (node, parent, depth), which returns True for the nodes that match. A match
    is interpreted according to rel (see :obj:`Rel`). When the filter is used to select descendants, the condition is
    not checked any more below a matching node: its whole subtree is included. When it is used to select ancestors,
    each node is selected at most once, even if several matches share it as ancestor. The nodes are always selected in
    pre-order.

    Example:
        >>> from quercus.filters import NodeFil
        >>> from quercus.iterators import TreeIterator
        >>> tree = {"id": 1, "children": [{"id": 2, "children": [{"id": 4}]}, {"id": 3}]}
        >>> fil = NodeFil(lambda node, parent, depth: node["id"] == 4, "inclusive_ancestors")
        >>> [node["id"] for node, parent, depth in fil.select(TreeIterator(tree))]
        [1, 2, 4]
    """

    def __init__(
        self,
        test_fn: Optional[Callable[[Any, Any, int], Any]] = None,
        rel: Union[Rel, str] = Rel.MATCHES,
        first_only: bool = False,
    ) -> None:
        """Constructor for the NodeFilter

        Args:
            test_fn: function (node, parent, depth) -> bool that defines which nodes match. Default None (all nodes)
            rel: which nodes are selected relative to a match, see :obj:`Rel`. Default matches (only the match)
            first_only: only select nodes because of the first match (in pre-order). Default False
        """
        self.test_fn = _ensure_callable("test_fn", test_fn, False) or _match_all
        self.rel = Rel.parse(rel)
        self.first_only = first_only

    def match(self, node: Any, parent: Any, depth: int) -> bool:
        """Whether node matches the condition of this filter"""
        return bool(self.test_fn(node, parent, depth))

    def select(self, tree_iter: TreeIterator) -> Iterator[Visit]:
        """Walks through tree_iter and yields (node, parent, depth) for each node selected by this filter

        Args:
            tree_iter: a fresh TreeIterator on the tree that shall be filtered

        Returns:
            Iterator over the selected nodes in pre-order
        """
        if self.rel in (Rel.ANCESTORS, Rel.INCLUSIVE_ANCESTORS):
            return self._select_ancestors(tree_iter)
        return self._select_descendants(tree_iter)

    def _select_descendants(self, tree_iter: TreeIterator) -> Iterator[Visit]:
        """Selection for matches, descendants and inclusive_descendants"""
        for node, parent, depth in tree_iter:
            if not self.match(node, parent, depth):
                continue
            if self.rel is not Rel.DESCENDANTS:
                yield node, parent, depth
            if self.rel is not Rel.MATCHES:
                yield from tree_iter.descendants()  # the condition is implicitly true in the whole subtree
            if self.first_only:
                return

    def _select_ancestors(self, tree_iter: TreeIterator) -> Iterator[Visit]:
        """Selection for ancestors and inclusive_ancestors. Each visit is identified by its index-path from the root"""
        selected: Set[Tuple[Optional[int], ...]] = set()
        for node, parent, depth in tree_iter:
            if not self.match(node, parent, depth):
                continue
            for i in range(depth + 1 if self.rel.inclusive else depth):
                address = tuple(tree_iter.keys[: i + 1])
                if address not in selected:
                    selected.add(address)
                    yield tree_iter.path[i], tree_iter.path[i - 1] if i else None, i
            if self.first_only:
                return

    def __repr__(self) -> str:
        return (
            f"NodeFil({getattr(self.test_fn, '__name__', self.test_fn)}, rel={self.rel.value!r}, "
            f"first_only={self.first_only})"
        )
