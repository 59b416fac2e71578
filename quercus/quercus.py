"""Base-module that contains the :obj:`~quercus.Quercus`-class"""

import logging
from collections.abc import Mapping, MutableSequence, Sequence
from typing import Any, Callable, Dict, Iterator, List, NamedTuple, Optional, Set, Tuple

from .exceptions import CircularReferenceError, InvalidConfigurationError, NodeNotFoundError, UsageError
from .filters import NodeFil
from .iterators import TreeIterator
from .utils import (
    QuercusMeta,
    _None,
    _children,
    _mutable_children,
    _copy_tree,
    _ensure_callable,
    OptStr,
    OptBool,
    OptAny,
)
from .validators import is_node


__all__ = ("Quercus", "Bifurcation")

logger = logging.getLogger(__name__)

Condition = Callable[[Any, Any, int], Any]
"""A function (node, parent, depth) -> bool deciding whether a node matches"""


class Bifurcation(NamedTuple):
    """Result of :meth:`Quercus.bifurcate`: the tree without the extracted subtree, and the extracted subtree"""

    remainder: Optional[Mapping]
    extracted: Optional[Mapping]


class Quercus(Mapping, metaclass=QuercusMeta):
    """Quercus is a wrapper-class for trees of nodes, where each node is a dict with its child nodes under one key

    Quercus can be used as an object by instantiating it, but it's also possible to use all methods statically without
    even an object, so that a = {"id": 1}; Quercus.prune(a, lambda n, p, d: n["id"] == 3) and
    Quercus(a).prune(lambda n, p, d: n["id"] == 3) do the same.

    The nodes are open records: apart from the children-field (children_key, default "children"), which holds a list
    of child nodes or nothing at all, they can carry any fields. Conditions are functions receiving (node, parent,
    depth), the root has no parent (None) and depth 0. Nodes may be shared between several parents, but a node can't
    be its own ancestor. All methods raise CircularReferenceError when they run into such a cycle.

    By default all the methods work on a deep copy of the tree, so the original tree stays unmodified. Set the option
    copy to False to work directly on the tree that was passed in.

    Several parameters used in functions in Quercus work as options so that you don't have to specify them each time
    you run a function. In the docstrings, these options are marked with a \\*, e.g. the copy parameter is an option.
    Options can be specified at three levels with increasing precedence: at class-level (Quercus.copy = False), at
    object-level (a = Quercus(tree), a.copy = False) and in each function-call (a.prune(condition, copy=False)).
    """

    def __init__(
        self,
        root: Optional[Mapping] = None,
        children_key: OptStr = ...,
        id_key: OptStr = ...,
        open_char: OptStr = ...,
        close_char: OptStr = ...,
        separator_char: OptStr = ...,
        copy: OptBool = ...,
        filter_: OptStr = ...,
        first_only: OptBool = ...,
        direction: OptStr = ...,
        default: OptAny = ...,
        validate: bool = True,
    ) -> None:
        """Constructor for Quercus, a wrapper-class for trees of nodes

        \\* means that the parameter is a Quercus-Setting, see Quercus-class-docstring for more information about options

        Args:
            root: the root node of the tree to wrap Quercus around. If this is None, an empty dict is used
            children_key: \\* name of the field in each node that holds its child nodes. Default "children"
            id_key: \\* name of the field in each node that identifies it in the signature. Default "id"
            open_char: \\* put before the children of a node in the signature. Default "["
            close_char: \\* put after the children of a node in the signature. Default "]"
            separator_char: \\* put between the children of a node in the signature. Default ","
            copy: \\* operate on a deep copy of the tree instead of the tree itself. Default True
            filter_: \\* which nodes are selected relative to the matching nodes, see :obj:`~quercus.filters.Rel`.
                Default "matches"
            first_only: \\* only select nodes because of the first matching node. Default False
            direction: \\* where insert() puts the new node: "below", "before" or "after" the match. Default "below"
            default: \\* returned by the find-methods if no node matches. Default None
            validate: check that root is a valid tree of nodes before wrapping Quercus around it. Default True

        Raises:
            InvalidConfigurationError: if validate is set and root isn't a valid tree of nodes
            CircularReferenceError: if validate is set and a node in root is its own ancestor
        """
        if root is None:
            root = {}
        elif isinstance(root, Quercus):
            self._options = None if root._options is None else root._options.copy()
            root = root.root
        self.root = root
        if "_options" not in self.__dict__:
            self._options = None
        # __options is renamed to options at instance-level. Quercus.options() still goes to QuercusMeta.options()
        super(Quercus, self).__setattr__("options", self.__options)
        for kw, value in locals().copy().items():
            if kw not in ("self", "root", "validate", "__class__") and value is not ...:
                setattr(self, kw, value)
        if validate and not is_node(self.root, Quercus._opt(self, "children_key")):
            raise InvalidConfigurationError(
                f"Can't wrap Quercus around {type(self.root).__name__}: it is not a valid tree of nodes with children "
                f"under {Quercus._opt(self, 'children_key')!r}."
            )

    def find_nodes(
        self: Mapping,
        test_fn: Optional[Condition] = None,
        filter_: OptStr = ...,
        first_only: OptBool = ...,
        copy: OptBool = ...,
        children_key: OptStr = ...,
    ) -> List[Mapping]:
        """Returns all the nodes that are selected because they match test_fn (or are related to a match)

        With the default values, this returns all the nodes in the tree as a flat list in pre-order (depth-first, a
        node before its children).

        \\* means that the parameter is a Quercus-Setting, see Quercus-class-docstring for more information about options

        Example:
            >>> from quercus import Quercus
            >>> tree = {"id": 1, "children": [{"id": 2, "children": [{"id": 4}]}, {"id": 3}]}
            >>> [node["id"] for node in Quercus.find_nodes(tree)]
            [1, 2, 4, 3]
            >>> [node["id"] for node in Quercus.find_nodes(tree, lambda n, p, d: n["id"] == 2, "descendants")]
            [4]

        Args:
            test_fn: function (node, parent, depth) -> bool selecting the matching nodes. Default None (all nodes match)
            filter_: \\* which nodes are selected relative to a match: "matches", "ancestors", "descendants",
                "inclusive_ancestors" or "inclusive_descendants". Default "matches" (only the matching nodes)
            first_only: \\* only select nodes because of the first match in pre-order. Default False
            copy: \\* return nodes from a copy of the tree instead of the nodes in the tree itself. Default True
            children_key: \\* name of the field in each node that holds its child nodes. Default "children"

        Returns:
            list of the selected nodes in pre-order
        """
        return [node for node, _, _ in Quercus._select(self, test_fn, filter_, first_only, copy, children_key)]

    def find_values(
        self: Mapping,
        get_fn: Callable[[Any, Any, int], Any],
        test_fn: Optional[Condition] = None,
        filter_: OptStr = ...,
        first_only: OptBool = ...,
        copy: OptBool = ...,
        children_key: OptStr = ...,
    ) -> List[Any]:
        """Selects nodes in the same way as find_nodes, but returns what get_fn returns for each of them

        \\* means that the parameter is a Quercus-Setting, see Quercus-class-docstring for more information about options

        Example:
            >>> from quercus import Quercus
            >>> tree = {"id": 1, "children": [{"id": 2}, {"id": 3}]}
            >>> Quercus.find_values(tree, lambda node, parent, depth: (node["id"], depth))
            [(1, 0), (2, 1), (3, 1)]

        Args:
            get_fn: function (node, parent, depth) -> value extracting the value to return from each selected node
            test_fn: function (node, parent, depth) -> bool selecting the matching nodes. Default None (all nodes match)
            filter_: \\* which nodes are selected relative to a match, see find_nodes. Default "matches"
            first_only: \\* only select nodes because of the first match in pre-order. Default False
            copy: \\* run get_fn on a copy of the tree instead of the tree itself. Default True
            children_key: \\* name of the field in each node that holds its child nodes. Default "children"

        Raises:
            InvalidConfigurationError: if get_fn is missing or isn't callable

        Returns:
            list of the values get_fn returned, in pre-order of the selected nodes
        """
        get_fn = _ensure_callable("get_fn", get_fn)
        return [
            get_fn(node, parent, depth)
            for node, parent, depth in Quercus._select(self, test_fn, filter_, first_only, copy, children_key)
        ]

    def find_node(
        self: Mapping,
        test_fn: Optional[Condition] = None,
        default: OptAny = ...,
        filter_: OptStr = ...,
        copy: OptBool = ...,
        children_key: OptStr = ...,
    ) -> Any:
        """Returns the first node selected because of the first node matching test_fn, or default if none matches

        \\* means that the parameter is a Quercus-Setting, see Quercus-class-docstring for more information about options

        Args:
            test_fn: function (node, parent, depth) -> bool selecting the matching nodes. Default None (all nodes match)
            default: \\* returned if no node is selected. Default None
            filter_: \\* which nodes are selected relative to a match, see find_nodes. Default "matches", so the
                first matching node itself is returned. With "ancestors" e.g. the root is returned
            copy: \\* return the node from a copy of the tree instead of the tree itself. Default True
            children_key: \\* name of the field in each node that holds its child nodes. Default "children"

        Returns:
            the first selected node in pre-order, or default
        """
        for node, _, _ in Quercus._select(self, test_fn, filter_, True, copy, children_key):
            return node
        return Quercus._opt(self, "default", default)

    def find_parent(
        self: Mapping,
        test_fn: Condition,
        default: Any = _None,
        copy: OptBool = ...,
        children_key: OptStr = ...,
    ) -> Optional[Mapping]:
        """Returns the parent of the first node that matches test_fn

        Example:
            >>> from quercus import Quercus
            >>> tree = {"id": 1, "children": [{"id": 2}, {"id": 3}]}
            >>> Quercus.find_parent(tree, lambda node, parent, depth: node["id"] == 3)["id"]
            1
            >>> Quercus.find_parent(tree, lambda node, parent, depth: node["id"] == 1) is None
            True

        \\* means that the parameter is a Quercus-Setting, see Quercus-class-docstring for more information about options

        Args:
            test_fn: function (node, parent, depth) -> bool selecting the matching node
            default: returned if no node matches. If ~ is not specified, NodeNotFoundError is raised instead. This is
                not an option, as None is already the result when the root matches
            copy: \\* return the parent from a copy of the tree instead of the tree itself. Default True
            children_key: \\* name of the field in each node that holds its child nodes. Default "children"

        Raises:
            NodeNotFoundError: if no node matches and default wasn't given
            InvalidConfigurationError: if test_fn is missing or isn't callable

        Returns:
            the parent of the first match, None if the root matches, or default if there is no match
        """
        tree_iter = Quercus._first_match(self, test_fn, copy, children_key)
        if tree_iter is None:
            if default is _None:
                raise NodeNotFoundError("Couldn't find the parent: no node matches the condition.")
            return default
        return tree_iter.path[-2] if len(tree_iter.path) > 1 else None

    def find_path(
        self: Mapping,
        test_fn: Condition,
        default: OptAny = ...,
        copy: OptBool = ...,
        children_key: OptStr = ...,
    ) -> Any:
        """Returns the nodes on the way from the root to the first node that matches test_fn (both included)

        \\* means that the parameter is a Quercus-Setting, see Quercus-class-docstring for more information about options

        Args:
            test_fn: function (node, parent, depth) -> bool selecting the matching node
            default: \\* returned if no node matches. Default None
            copy: \\* return the nodes from a copy of the tree instead of the tree itself. Default True
            children_key: \\* name of the field in each node that holds its child nodes. Default "children"

        Returns:
            list of nodes starting with the root and ending with the match, or default if there is no match
        """
        tree_iter = Quercus._first_match(self, test_fn, copy, children_key)
        if tree_iter is None:
            return Quercus._opt(self, "default", default)
        return list(tree_iter.path)

    def find_subtree(
        self: Mapping,
        test_fn: Condition,
        default: OptAny = ...,
        copy: OptBool = ...,
        children_key: OptStr = ...,
    ) -> Any:
        """Returns the first node that matches test_fn, together with everything below it

        \\* means that the parameter is a Quercus-Setting, see Quercus-class-docstring for more information about options

        Args:
            test_fn: function (node, parent, depth) -> bool selecting the matching node
            default: \\* returned if no node matches. Default None
            copy: \\* return the subtree from a copy of the tree, so that it is independent of the tree. Default True
            children_key: \\* name of the field in each node that holds its child nodes. Default "children"

        Returns:
            the root node of the subtree, or default if there is no match
        """
        tree_iter = Quercus._first_match(self, test_fn, copy, children_key)
        if tree_iter is None:
            return Quercus._opt(self, "default", default)
        return tree_iter.path[-1]

    def contains(self: Mapping, test_fn: Condition, children_key: OptStr = ...) -> bool:
        """Whether at least one node in the tree matches test_fn

        Args:
            test_fn: function (node, parent, depth) -> bool selecting the matching nodes
            children_key: \\* name of the field in each node that holds its child nodes. Default "children"

        Returns:
            True if a node matches, otherwise False
        """
        return Quercus._first_match(self, test_fn, False, children_key) is not None

    def count(self: Mapping, test_fn: Optional[Condition] = None, children_key: OptStr = ...) -> int:
        """Counts the nodes that match test_fn. A node shared by several parents is counted once per parent"""
        fil = NodeFil(test_fn)
        root, children_key, _ = Quercus._prepare(self, False, children_key)
        return sum(1 for node, parent, depth in TreeIterator(root, children_key) if fil.match(node, parent, depth))

    def reduce(
        self: Mapping,
        reduce_fn: Callable[[Any, Any, Any, int], Any],
        initial: Any = None,
        test_fn: Optional[Condition] = None,
        children_key: OptStr = ...,
    ) -> Any:
        """Accumulates a value over the nodes matching test_fn, visiting them in pre-order

        Example:
            >>> from quercus import Quercus
            >>> tree = {"id": 1, "children": [{"id": 2}, {"id": 3}]}
            >>> Quercus.reduce(tree, lambda total, node, parent, depth: total + node["id"], 0)
            6

        Args:
            reduce_fn: function (accumulated, node, parent, depth) -> new accumulated value
            initial: the accumulated value before the first node. Default None
            test_fn: function (node, parent, depth) -> bool, only matching nodes are passed to reduce_fn. Default None
                (all nodes match)
            children_key: \\* name of the field in each node that holds its child nodes. Default "children"

        Raises:
            InvalidConfigurationError: if reduce_fn is missing or isn't callable

        Returns:
            the value returned by reduce_fn for the last matching node, or initial if no node matches
        """
        reduce_fn = _ensure_callable("reduce_fn", reduce_fn)
        value = initial
        for node, parent, depth in Quercus._select(self, test_fn, "matches", False, False, children_key):
            value = reduce_fn(value, node, parent, depth)
        return value

    def apply(
        self: Mapping,
        apply_fn: Callable[[Any, Any, int], Any],
        test_fn: Optional[Condition] = None,
        filter_: OptStr = ...,
        first_only: OptBool = ...,
        copy: OptBool = ...,
        children_key: OptStr = ...,
    ) -> Mapping:
        """Runs apply_fn on all the nodes that are selected because they match test_fn (or are related to a match)

        apply_fn is supposed to modify the node it receives in place, what it returns is ignored. The nodes are
        selected like in find_nodes, so with filter\\_ "descendants", apply_fn is run on the nodes below each match, but
        not on the match itself.

        \\* means that the parameter is a Quercus-Setting, see Quercus-class-docstring for more information about options

        Example:
            >>> from quercus import Quercus
            >>> tree = {"id": 1, "children": [{"id": 2}, {"id": 3}]}
            >>> Quercus.apply(tree, lambda node, parent, depth: node.update(depth=depth), lambda n, p, d: n["id"] > 1)
            {'id': 1, 'children': [{'id': 2, 'depth': 1}, {'id': 3, 'depth': 1}]}

        Args:
            apply_fn: function (node, parent, depth) modifying the node in place
            test_fn: function (node, parent, depth) -> bool selecting the matching nodes. Default None (all nodes match)
            filter_: \\* which nodes are selected relative to a match, see find_nodes. Default "matches"
            first_only: \\* only select nodes because of the first match in pre-order. Default False
            copy: \\* modify a copy of the tree instead of the tree itself. Default True
            children_key: \\* name of the field in each node that holds its child nodes. Default "children"

        Raises:
            InvalidConfigurationError: if apply_fn is missing or isn't callable

        Returns:
            the root of the modified tree (or of the modified copy)
        """
        apply_fn = _ensure_callable("apply_fn", apply_fn)
        root, children_key, copy = Quercus._prepare(self, copy, children_key)
        for node, parent, depth in Quercus._select(root, test_fn, filter_, first_only, False, children_key, self):
            apply_fn(node, parent, depth)
        return root

    def prune(self: Mapping, test_fn: Condition, copy: OptBool = ..., children_key: OptStr = ...) -> Optional[Mapping]:
        """Removes all the nodes that match test_fn from the tree, together with everything below them

        \\* means that the parameter is a Quercus-Setting, see Quercus-class-docstring for more information about options

        Example:
            >>> from quercus import Quercus
            >>> tree = {"id": 1, "children": [{"id": 2, "children": []}, {"id": 3, "children": []}]}
            >>> Quercus.prune(tree, lambda node, parent, depth: node["id"] == 3)
            {'id': 1, 'children': [{'id': 2, 'children': []}]}

        Args:
            test_fn: function (node, parent, depth) -> bool selecting the nodes to remove
            copy: \\* prune a copy of the tree instead of the tree itself. Default True
            children_key: \\* name of the field in each node that holds its child nodes. Default "children"

        Raises:
            InvalidConfigurationError: if test_fn is missing or isn't callable
            TypeError: if copy is off and a node whose children must be removed is immutable

        Returns:
            the root of the pruned tree, or None if the root itself matches
        """
        test_fn = _ensure_callable("test_fn", test_fn)
        root, children_key, copy = Quercus._prepare(self, copy, children_key)
        # keyed by the children-sequence, as several parents can share one list
        removals: Dict[int, Tuple[Sequence, List[Mapping], Set[int]]] = {}
        tree_iter = TreeIterator(root, children_key)
        for node, parent, depth in tree_iter:
            if test_fn(node, parent, depth):
                if parent is None:
                    logger.debug("The root node matches, nothing is left after pruning")
                    return None
                children = _children(parent, children_key)
                _, parents, indices = removals.setdefault(id(children), (children, [], set()))
                if all(p is not parent for p in parents):
                    parents.append(parent)
                indices.add(tree_iter.keys[-1])
                tree_iter.skip()
        for children, parents, indices in removals.values():
            kept = [child for i, child in enumerate(children) if i not in indices]
            if isinstance(children, MutableSequence):
                children[:] = kept
            else:
                for parent in parents:
                    _mutable_children(parent, children_key)[:] = kept
        logger.debug(f"Pruned {sum(len(indices) for _, _, indices in removals.values())} subtrees")
        return root

    def insert(
        self: Mapping,
        node_to_insert: Mapping,
        test_fn: Condition,
        direction: OptStr = ...,
        copy: OptBool = ...,
        children_key: OptStr = ...,
    ) -> Mapping:
        """Inserts node_to_insert at the first node that matches test_fn

        \\* means that the parameter is a Quercus-Setting, see Quercus-class-docstring for more information about options

        Example:
            >>> from quercus import Quercus
            >>> tree = {"id": 1, "children": [{"id": 2}, {"id": 3}]}
            >>> Quercus.insert(tree, {"id": 4}, lambda node, parent, depth: node["id"] == 3, "before")
            {'id': 1, 'children': [{'id': 2}, {'id': 4}, {'id': 3}]}

        Args:
            node_to_insert: the node (and its subtree) to put into the tree
            test_fn: function (node, parent, depth) -> bool selecting the node to insert at
            direction: \\* "below" appends node_to_insert as last child of the match (the children-field is created if
                necessary), "before" and "after" insert it as sibling right before or after the match. Default "below"
            copy: \\* insert into a copy of the tree instead of the tree itself. node_to_insert is copied as well.
                Default True
            children_key: \\* name of the field in each node that holds its child nodes. Default "children"

        Raises:
            NodeNotFoundError: if no node matches test_fn
            UsageError: if the root matches and direction is "before" or "after" (the root has no siblings)
            InvalidConfigurationError: if test_fn is missing or node_to_insert isn't a node
            TypeError: if copy is off and the node that must receive node_to_insert is immutable

        Returns:
            the root of the tree with node_to_insert in it
        """
        direction = Quercus._opt(self, "direction", direction)
        if not isinstance(node_to_insert, Mapping):
            raise InvalidConfigurationError(f"Can't insert {type(node_to_insert).__name__}, it isn't a node.")
        root, children_key, copy = Quercus._prepare(self, copy, children_key)
        if copy:
            node_to_insert = _copy_tree(node_to_insert, children_key)
        tree_iter = Quercus._first_match(root, test_fn, False, children_key)
        if tree_iter is None:
            raise NodeNotFoundError(f"Couldn't insert {direction} the match: no node matches the condition.")
        if direction == "below":
            _mutable_children(tree_iter.path[-1], children_key, create=True).append(node_to_insert)
        else:
            if len(tree_iter.path) == 1:
                raise UsageError(f"Can't insert {direction} the root node, the root has no siblings.")
            index = tree_iter.keys[-1] + (direction == "after")
            _mutable_children(tree_iter.path[-2], children_key).insert(index, node_to_insert)
        logger.debug(f"Inserted node {direction} the match at depth {len(tree_iter.path) - 1}")
        return root

    def bifurcate(self: Mapping, test_fn: Condition, copy: OptBool = ..., children_key: OptStr = ...) -> Bifurcation:
        """Splits the tree in two at the first node that matches test_fn

        The subtree of the matching node is removed from the tree and returned separately. If the root matches, nothing
        remains of the tree. If nothing matches, the tree is returned unchanged and nothing is extracted.

        \\* means that the parameter is a Quercus-Setting, see Quercus-class-docstring for more information about options

        Example:
            >>> from quercus import Quercus
            >>> tree = {"id": 1, "children": [{"id": 2}, {"id": 3}]}
            >>> Quercus.bifurcate(tree, lambda node, parent, depth: node["id"] == 2)
            Bifurcation(remainder={'id': 1, 'children': [{'id': 3}]}, extracted={'id': 2})

        Args:
            test_fn: function (node, parent, depth) -> bool selecting the node to split at
            copy: \\* split a copy of the tree instead of the tree itself. Default True
            children_key: \\* name of the field in each node that holds its child nodes. Default "children"

        Raises:
            InvalidConfigurationError: if test_fn is missing or isn't callable

        Returns:
            Bifurcation (named tuple) of remainder (the tree without the subtree, or None if the root matched) and
            extracted (the subtree of the match, or None if nothing matched)
        """
        root, children_key, copy = Quercus._prepare(self, copy, children_key)
        tree_iter = Quercus._first_match(root, test_fn, False, children_key)
        if tree_iter is None:
            return Bifurcation(root, None)
        if len(tree_iter.path) == 1:
            return Bifurcation(None, root)
        del _mutable_children(tree_iter.path[-2], children_key)[tree_iter.keys[-1]]
        logger.debug(f"Extracted subtree at depth {len(tree_iter.path) - 1}")
        return Bifurcation(root, tree_iter.path[-1])

    def signature(
        self: Mapping,
        id_key: OptStr = ...,
        open_char: OptStr = ...,
        close_char: OptStr = ...,
        separator_char: OptStr = ...,
        children_key: OptStr = ...,
    ) -> str:
        """Encodes the ids and the shape of the tree in a string, e.g. 1[2,3[4]]

        Two trees with the same ids in the same shape and order always get the same signature, so the signature can be
        used to compare the structure of trees.

        \\* means that the parameter is a Quercus-Setting, see Quercus-class-docstring for more information about options

        Example:
            >>> from quercus import Quercus
            >>> Quercus.signature({"id": 1, "children": [{"id": 2, "children": []}, {"id": 3}]})
            '1[2,3]'

        Args:
            id_key: \\* name of the field in each node that identifies it. Default "id"
            open_char: \\* put before the children of a node. Default "["
            close_char: \\* put after the children of a node. Default "]"
            separator_char: \\* put between the children of a node. Default ","
            children_key: \\* name of the field in each node that holds its child nodes. Default "children"

        Raises:
            InvalidConfigurationError: if a node doesn't have the field id_key
            CircularReferenceError: if a node is its own ancestor

        Returns:
            the signature of the tree
        """
        root, children_key, _ = Quercus._prepare(self, False, children_key)
        chars = tuple(Quercus._opt(self, c, v) for c, v in (("open_char", open_char), ("close_char", close_char)))
        return Quercus._signature_r(
            root,
            children_key,
            Quercus._opt(self, "id_key", id_key),
            (*chars, Quercus._opt(self, "separator_char", separator_char)),
            set(),
        )

    @staticmethod
    def _signature_r(
        node: Mapping, children_key: str, id_key: str, chars: Tuple[str, str, str], open_ids: Set[int]
    ) -> str:
        """Internal recursive function rendering the signature, open_ids are the nodes on the current path"""
        if not isinstance(node, Mapping):
            raise InvalidConfigurationError(f"{node!r} is not a node, nodes must be Mappings (e.g. dicts).")
        if id(node) in open_ids:
            raise CircularReferenceError(f"node with {id_key} {node.get(id_key)!r}", len(open_ids))
        if id_key not in node:
            raise InvalidConfigurationError(f"Can't create the signature: a node has no field {id_key!r}.")
        children = _children(node, children_key)
        if not children:
            return str(node[id_key])
        open_ids.add(id(node))
        child_signatures = chars[2].join(
            Quercus._signature_r(child, children_key, id_key, chars, open_ids) for child in children
        )
        open_ids.discard(id(node))
        return f"{node[id_key]}{chars[0]}{child_signatures}{chars[1]}"

    def _prepare(self: Mapping, copy: OptBool = ..., children_key: OptStr = ...) -> Tuple[Mapping, str, bool]:
        """Internal function resolving the root, children_key and copy-options, and copying the root if necessary"""
        root = self.root if isinstance(self, Quercus) else self
        if not isinstance(root, Mapping):
            raise InvalidConfigurationError(f"The root must be a node (e.g. a dict), got {type(root).__name__}.")
        copy = Quercus._opt(self, "copy", copy)
        children_key = Quercus._opt(self, "children_key", children_key)
        return _copy_tree(root, children_key) if copy else root, children_key, copy

    def _select(
        self: Mapping,
        test_fn: Optional[Condition],
        filter_: OptStr,
        first_only: OptBool,
        copy: OptBool,
        children_key: OptStr,
        options_from: Any = None,
    ) -> Iterator[Tuple[Mapping, Optional[Mapping], int]]:
        """Internal function returning an iterator over the nodes selected by a NodeFil built from the parameters

        Options are taken from options_from if it is given, otherwise from self.
        """
        opts = self if options_from is None else options_from
        fil = NodeFil(test_fn, Quercus._opt(opts, "filter_", filter_), Quercus._opt(opts, "first_only", first_only))
        root, children_key, _ = Quercus._prepare(self, Quercus._opt(opts, "copy", copy), children_key)
        return fil.select(TreeIterator(root, children_key))

    def _first_match(
        self: Mapping, test_fn: Condition, copy: OptBool = ..., children_key: OptStr = ...
    ) -> Optional[TreeIterator]:
        """Internal function walking the tree until a node matches test_fn

        Returns:
            the TreeIterator standing at the first match (path and keys lead to it), or None if nothing matches
        """
        test_fn = _ensure_callable("test_fn", test_fn)
        root, children_key, _ = Quercus._prepare(self, copy, children_key)
        tree_iter = TreeIterator(root, children_key)
        for node, parent, depth in tree_iter:
            if test_fn(node, parent, depth):
                return tree_iter
        return None

    def child(self: Mapping, obj: Optional[Mapping] = None, **kwargs: Any) -> "Quercus":
        """Creates a Quercus-object for obj that has the same options as self"""
        options = {**self._options, **kwargs} if isinstance(self, Quercus) and self._options else kwargs
        return Quercus(obj, **options)

    def __options(
        self,
        options: Optional[Dict[str, Any]] = None,
        get_default_options: bool = False,
        reset: bool = False,
    ) -> Dict[str, Any]:
        """Function to set multiple Quercus-options in one line

        Args:
            options: dict with options that shall be set
            get_default_options: return all options (include default-values). Default: only return options that are set
            reset: if ~ is set, all options are reset before options is set

        Returns:
            a dict of options that are set, or all options if get_default_options is set
        """
        if all(Quercus.__verify_option__(k, v) is v for k, v in options.items()) if options else True:
            if reset or self._options is None:
                self._options = dict(options) if options else None
            elif options:
                self._options.update(options)
        return {
            **Quercus.options(get_default_options=get_default_options),
            **(self._options if self._options else {}),
        }

    def _opt(self: Any, option_name: str, option: Any = ...) -> Any:
        """Internal function that is used for Quercus-options (see Quercus-help for more information)"""
        if option is not ...:
            return Quercus.__verify_option__(option_name, option)
        return (
            self._options[option_name]
            if isinstance(self, Quercus) and isinstance(self._options, dict) and option_name in self._options
            else getattr(Quercus, option_name)
        )

    def __call__(self) -> Mapping:
        """Calling the Quercus-object returns the root node the Quercus-object is wrapped around (same as .root)

        Example:
            >>> from quercus import Quercus
            >>> a = Quercus({"id": 1})
            >>> a
            Quercus({'id': 1})
            >>> a()
            {'id': 1}
        """
        return self.root

    def __getattr__(self, attr: str) -> Any:
        if attr in ("root", "_options") or attr.startswith("__"):
            raise AttributeError(attr)
        if attr in Quercus.__default_options__:
            return Quercus._opt(self, attr)
        try:
            return self.root[attr]
        except KeyError:
            raise AttributeError(f"Neither the root node nor Quercus have an attribute {attr!r}") from None

    def __setattr__(self, attr: str, value: Any) -> None:
        if attr in ("root", "_options"):
            super(Quercus, self).__setattr__(attr, value)
        elif attr in Quercus.__default_options__:
            if self._options is None:
                super(Quercus, self).__setattr__("_options", {})
            self._options[attr] = Quercus.__verify_option__(attr, value)
        else:
            raise AttributeError(f"Can't set {attr!r}, only Quercus-options can be set as attributes.")

    def __delattr__(self, attr: str) -> None:
        if attr in Quercus.__default_options__:
            if self._options and attr in self._options:
                del self._options[attr]
                if not self._options:
                    self._options = None
        else:
            raise AttributeError(attr)

    def __getitem__(self, key: Any) -> Any:  # the fields of the root node
        return self.root[key]

    def __iter__(self) -> Iterator[Any]:
        return iter(self.root)

    def __len__(self) -> int:
        return len(self.root)

    def __deepcopy__(self, memo: Dict[int, Any]) -> "Quercus":
        return Quercus.child(self, _copy_tree(self.root, Quercus._opt(self, "children_key")), validate=False)

    def __repr__(self) -> str:
        return "Quercus(%s)" % ", ".join(
            (repr(self.root), *(f"{e[0]}={repr(e[1])}" for e in (self._options.items() if self._options else ())))
        )

    def __str__(self) -> str:
        return str(self.root)
