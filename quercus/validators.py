"""Structural checks telling whether a value looks like a tree of nodes that Quercus can work on"""
import collections.abc as c_abc
from typing import Any, Collection, Optional

from .exceptions import CircularReferenceError, InvalidConfigurationError
from .iterators import TreeIterator


__all__ = ("is_node", "is_leaf", "is_internal", "is_node_with_id", "is_uniform")


def is_node(value: Any, children_key: str = "children", check_circular: bool = True) -> bool:
    """Checks if value is a node: a Mapping whose children-field is absent, None or a list of nodes

    Example:
        >>> from quercus.validators import is_node
        >>> is_node({"id": 1, "children": [{"id": 2}]})
        True
        >>> is_node({"id": 1, "children": "2"})
        False

    Args:
        value: the value to check
        children_key: name of the field holding the child nodes
        check_circular: raise an error if a node is its own ancestor. If ~ is off, False is returned for cyclic values

    Raises:
        CircularReferenceError: if check_circular is set and a cycle is found (shared subtrees are fine)

    Returns:
        whether value is a node
    """
    return _is_node_walk(value, children_key, None, check_circular)


def is_leaf(node: c_abc.Mapping, children_key: str = "children") -> bool:
    """Whether node has no children (the children-field is absent, None or empty)"""
    return not node.get(children_key)


def is_internal(node: c_abc.Mapping, children_key: str = "children") -> bool:
    """Whether node has at least one child"""
    return bool(node.get(children_key))


def is_node_with_id(value: Any, id_key: str = "id", children_key: str = "children") -> bool:
    """Checks if value is a node, and if all the nodes in it have the field id_key

    Raises:
        CircularReferenceError: if a node is its own ancestor
    """
    return _is_node_walk(value, children_key, (id_key,))


def is_uniform(value: Any, attributes: Collection[str], children_key: str = "children") -> bool:
    """Checks if value is a node, and if all the nodes in it have all the fields in attributes

    Args:
        value: the value to check
        attributes: the names of the fields every node must have
        children_key: name of the field holding the child nodes

    Raises:
        CircularReferenceError: if a node is its own ancestor

    Returns:
        whether value is a uniform node
    """
    return _is_node_walk(value, children_key, tuple(attributes))


def _is_node_walk(value: Any, children_key: str, required: Optional[tuple], check_circular: bool = True) -> bool:
    """Internal function behind the validators, walking value with a TreeIterator so that depth isn't limited"""
    try:
        for node, _, _ in TreeIterator(value, children_key):
            if required and any(key not in node for key in required):
                return False
    except CircularReferenceError:
        if check_circular:
            raise
        return False
    except InvalidConfigurationError:
        return False
    return True
