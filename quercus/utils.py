"""This module contains classes and functions used across the Quercus-library that didn't fit in another module"""

import copy as cp
import logging
import sys
from abc import ABCMeta
import collections.abc as c_abc
from typing import (
    Union,
    Optional,
    Any,
    Callable,
    Tuple,
    Dict,
    List,
    Sequence,
)

if sys.version_info < (3, 10):
    from typing_extensions import TypeAlias
else:
    from typing import TypeAlias

from .exceptions import InvalidConfigurationError


__all__ = ("QuercusOption", "EllipsisType", "OptStr", "OptBool", "OptAny", "DIRECTIONS")

logger = logging.getLogger(__name__)

DIRECTIONS = ("below", "before", "after")
"""Valid values for the direction-option of Quercus.insert()"""


class _None:
    """Dummy type used internally in Quercus to represent non-existing while allowing None as a value"""

    pass


EllipsisType: TypeAlias = type(...)  # type: ignore
"""TypeAlias to represent type(...), which cannot be done in a nicer way prior to Python 3.10"""

OptStr: TypeAlias = Union[str, EllipsisType]
"""TypeAlias for QuercusOption requiring a str. Specify custom value as str, or keep ... to use the default."""
OptBool: TypeAlias = Union[bool, EllipsisType]
"""TypeAlias for QuercusOption requiring a bool. Specify custom value as bool, or keep ... to use the default."""
OptAny: TypeAlias = Any
"""TypeAlias for QuercusOption taking any object. Specify custom value, or keep ... to use the default."""


def _valid_rel(value: Any) -> bool:
    from .filters import Rel

    return Rel.parse(value, strict=False) is not None


class QuercusOption:
    """Helper class to facilitate Quercus options."""

    def __init__(
        self,
        name: str,
        default: Any,
        type_: Union[type, Tuple[type, ...]] = type(Any),
        verify_function: Callable[[Any], bool] = lambda x: True,
        verify_error_msg: Optional[str] = None,
    ) -> None:
        """Initializes QuercusOption with the given parameters

        Args:
            name (str): The name of the option.
            default (Any): The default value for the option if it hasn't been set explicitly at class- or instance
                level or in the function.
            type_ (type): The expected type for the input to the option. Defaults to Any. In case the provided
                input to the option doesn't have the type indicated here, an error-message is thrown.
            verify_function (Callable[[Any], bool]): A function to verify the input value to the option. Returns a bool
                whether the input was valid or not. An error is thrown if the input isn't valid with the error message
                defined in verify_error_message. Defaults to `lambda x: True`, meaning that any input is valid
            verify_error_msg (Optional[str]): An error message to display when the verify_function returns False.
                Defaults to f"{value} is not a valid value for {self.name}"
        """
        self.name = name
        self.default = default
        self.type_ = type_
        self.verify_function = verify_function
        self.verify_error_msg = verify_error_msg

    def verify(self, value: Any) -> Any:
        """Verifies if the input value to the option has the correct type and passes the validation function.

        Args:
            value (Any): The option input value to be verified.

        Raises:
            InvalidConfigurationError: If the input value is not of the expected type, or if it does not pass the
                custom validation function.

        Returns:
            Any: The input value if it meets the requirements.
        """
        if not isinstance(value, object if self.type_ is type(Any) else self.type_):
            type_name = (
                " or ".join(t.__name__ for t in self.type_) if isinstance(self.type_, tuple) else self.type_.__name__
            )
            raise InvalidConfigurationError(
                f"Can't apply {self.name} because {self.name} needs to be a {type_name}, got {type(value).__name__}."
            )
        if not self.verify_function(value):
            raise InvalidConfigurationError(
                self.verify_error_msg if self.verify_error_msg else f"{value!r} is not a valid value for {self.name}"
            )
        return value


class QuercusMeta(ABCMeta):
    """Metaclass for Quercus-objects to facilitate options at class-level"""

    @staticmethod
    def __verify_option__(option_name: str, option: Any) -> Any:
        """Verify Quercus-option using the functions / types in __default_options__

        Args:
            option_name: name of the option to verify
            option: the value to be verified

        Raises:
            ValueError: If the option name is not defined in Quercus.

        Returns:
            the option-value if it was valid (otherwise the function is left in an error)
        """
        if option_name in QuercusMeta.__default_options__:
            return QuercusMeta.__default_options__[option_name].verify(option)
        raise ValueError(f"The option named {option_name} is not defined in Quercus.")

    __default_options__: Dict[str, QuercusOption] = dict(
        children_key=QuercusOption(
            "children_key",
            "children",
            str,
            lambda x: bool(x),
            'children_key can\'t be "", it is the name of the field that holds the child nodes.',
        ),
        close_char=QuercusOption("close_char", "]", str),
        copy=QuercusOption("copy", True, bool),
        default=QuercusOption("default", None),
        direction=QuercusOption(
            "direction",
            "below",
            str,
            lambda x: x in DIRECTIONS,
            'direction must be either "below" (as last child), "before" or "after" (as sibling of the match).',
        ),
        filter_=QuercusOption(
            "filter_",
            "matches",
            str,
            _valid_rel,
            "filter_ must be one of matches, ancestors, descendants, inclusive_ancestors or inclusive_descendants.",
        ),
        first_only=QuercusOption("first_only", False, bool),
        id_key=QuercusOption("id_key", "id", str),
        open_char=QuercusOption("open_char", "[", str),
        separator_char=QuercusOption("separator_char", ",", str),
    )
    """Default values for all options used in Quercus"""

    _cls_options: Dict[str, Any] = {}

    def options(
        cls, options: Optional[Dict[str, Any]] = None, get_default_options: bool = False, reset: bool = False
    ) -> Dict[str, Any]:
        """Function to set multiple Quercus-options in one line

        Args:
            options: dict with options that shall be set
            get_default_options: return all options (include default-values). Default: only return options that are set
            reset: if ~ is set, all options are reset before options is set

        Returns:
            a dict of options that are set, or all options if get_default_options is set
        """
        if reset:
            cls._cls_options.clear()
        if options:
            cls._cls_options.update((k, cls.__verify_option__(k, v)) for k, v in options.items())
        if get_default_options:
            return {k: cls._cls_options.get(k, v.default) for k, v in cls.__default_options__.items()}
        return {k: cls._cls_options[k] for k in cls.__default_options__ if k in cls._cls_options}

    def __setattr__(cls, attr: str, value: Any) -> None:
        if attr in cls.__default_options__:
            QuercusMeta._cls_options[attr] = cls.__verify_option__(attr, value)
        elif attr in ("__abstractmethods__", "__annotations__", "__parameters__") or attr.startswith("_abc_"):
            super(QuercusMeta, cls).__setattr__(attr, value)
        else:
            raise AttributeError(attr)

    def __getattr__(cls, attr: str) -> Any:
        if attr in cls._cls_options:
            return cls._cls_options[attr]
        elif attr in cls.__default_options__:
            return cls.__default_options__[attr].default
        return getattr(QuercusMeta, attr)

    def __delattr__(cls, attr: str) -> None:
        if attr in cls._cls_options:
            QuercusMeta._cls_options.pop(attr)
        else:
            raise AttributeError(attr)


def _children(node: c_abc.Mapping, children_key: str) -> Sequence[Any]:
    """Returns the child-sequence of node, or an empty tuple if node is a leaf

    Args:
        node: the node whose children shall be returned
        children_key: name of the field holding the child nodes

    Raises:
        InvalidConfigurationError: if the children-field is present, but isn't a list or tuple

    Returns:
        the children of node (the actual list, not a copy)
    """
    children = node.get(children_key)
    if children is None:
        return ()
    if not _is(children, c_abc.Sequence):
        raise InvalidConfigurationError(
            f"Children field {children_key!r} should be a list of nodes, but it is {type(children).__name__}."
        )
    return children


def _mutable_children(node: c_abc.Mapping, children_key: str, create: bool = False) -> Optional[List[Any]]:
    """Internal function that returns the children of node as a list that can be modified

    A tuple in the children-field is replaced by a list with the same items. If there are no children, a new list is
    only put in place if create is set, otherwise None is returned.

    Args:
        node: the node whose children are about to be modified
        children_key: name of the field holding the child nodes
        create: create an empty children-list in node if it doesn't have one

    Raises:
        TypeError: if node itself is immutable, so that the children can't be replaced

    Returns:
        the (mutable) children-list of node, or None
    """
    children = _children(node, children_key)
    if isinstance(children, c_abc.MutableSequence) and children_key in node:
        return children
    if not children and not create:
        return None
    if not isinstance(node, c_abc.MutableMapping):
        raise TypeError(f"Can't modify the children of a node having the immutable type {type(node).__name__}.")
    node[children_key] = list(children)
    return node[children_key]


def _copy_tree(node: Any, children_key: str = "children") -> Any:
    """Creates an independent deep copy of the tree below node without recursing along the children

    Shared subtrees and shared children-lists stay shared inside the copy, and cycles are reproduced. Immutable nodes
    (e.g. MappingProxyType) are copied into dicts. The other fields of each node are copied with copy.deepcopy.

    Args:
        node: the root of the tree to copy
        children_key: name of the field holding the child nodes

    Returns:
        the root of the copy
    """
    memo: Dict[int, Any] = {}
    new_node = _copy_node(node, children_key, memo)
    stack: List[Tuple[Any, Any]] = [(node, new_node)]
    while stack:
        original, clone = stack.pop()
        if not isinstance(original, c_abc.Mapping):
            continue
        children = original.get(children_key)
        if not _is(children, c_abc.Sequence):
            continue  # invalid children-fields were deep-copied as plain values, the walker reports them
        if id(children) not in memo:
            new_children = []
            for child in children:
                if id(child) in memo:
                    new_children.append(memo[id(child)])
                else:
                    new_child = _copy_node(child, children_key, memo)
                    stack.append((child, new_child))
                    new_children.append(new_child)
            memo[id(children)] = tuple(new_children) if isinstance(children, tuple) else new_children
        clone[children_key] = memo[id(children)]
    logger.debug(f"Copied tree of type {type(node).__name__} before operating on it")
    return new_node


def _copy_node(node: Any, children_key: str, memo: Dict[int, Any]) -> Any:
    """Copies one node without its children (copy_tree puts them in place), and registers the copy in memo"""
    if not isinstance(node, c_abc.Mapping):
        return cp.deepcopy(node, memo)
    if isinstance(node, c_abc.MutableMapping):
        clone = cp.copy(node)
    else:
        clone = dict(node)
    memo[id(node)] = clone
    for key, value in node.items():
        if key != children_key or not _is(value, c_abc.Sequence):
            clone[key] = cp.deepcopy(value, memo)
    return clone


def _match_all(*_: Any) -> bool:
    """Default condition, accepting every node"""
    return True


def _ensure_callable(name: str, function: Any, required: bool = True) -> Optional[Callable[..., Any]]:
    """Internal function verifying that a function-argument was given and can be called

    Raises:
        InvalidConfigurationError: if function is None while required, or if it isn't callable
    """
    if function is None:
        if required:
            raise InvalidConfigurationError(f"{name} must be given.")
        return None
    if not callable(function):
        raise InvalidConfigurationError(f"{name} must be callable, got {type(function).__name__}.")
    return function


def _is(value: Any, *args: type) -> bool:
    """Override of isinstance, making sure that Sequence, Iterable or Collection doesn't match on str or bytearray

    Args:
        value: Value whose instance shall be checked
        *args: types to compare against

    Returns:
        whether the value is instance of one of the types in args (but not str, bytes or bytearray)"""
    return not isinstance(value, (str, bytes, bytearray)) and isinstance(value, args)
