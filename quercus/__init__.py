"""Library to search, transform, split and compare trees of nodes, where each node is a dict holding a list of children

The following objects can be imported directly from this module:
    * :obj:`~quercus.Quercus`: a wrapper-class for trees of nodes, all its methods can also be used statically
    * :obj:`~quercus.filters.NodeFil` and :obj:`~quercus.filters.Rel` select nodes relative to the nodes matching a
      condition (the matches themselves, their ancestors or their descendants)
    * :obj:`~quercus.iterators.TreeIterator`: cycle-safe depth-first iterator over a tree of nodes
    * validators telling whether a value is a tree of nodes: :func:`~quercus.validators.is_node`,
      :func:`~quercus.validators.is_leaf`, :func:`~quercus.validators.is_internal`,
      :func:`~quercus.validators.is_node_with_id` and :func:`~quercus.validators.is_uniform`
    * the exceptions raised by Quercus, all deriving from :obj:`~quercus.exceptions.QuercusError`

Submodules in :py:mod:`quercus`:
    * :py:mod:`~quercus.quercus`: Base-module that contains the :obj:`~quercus.Quercus`-class
    * :py:mod:`~quercus.filters`: filter-classes selecting nodes in a tree
    * :py:mod:`~quercus.iterators`: iterator-class walking through a tree
    * :py:mod:`~quercus.validators`: structural checks for trees of nodes
    * :py:mod:`~quercus.exceptions`: errors raised by Quercus
    * :py:mod:`~quercus.utils`: helper classes and methods for :obj:`~quercus.Quercus`
"""

__version__ = "1.0.0"

from .quercus import Quercus, Bifurcation
from .filters import NodeFil, Rel
from .iterators import TreeIterator
from .validators import is_node, is_leaf, is_internal, is_node_with_id, is_uniform
from .exceptions import (
    QuercusError,
    CircularReferenceError,
    NodeNotFoundError,
    InvalidConfigurationError,
    UsageError,
)

__all__ = (
    "Quercus",
    "Bifurcation",
    "NodeFil",
    "Rel",
    "TreeIterator",
    "is_node",
    "is_leaf",
    "is_internal",
    "is_node_with_id",
    "is_uniform",
    "QuercusError",
    "CircularReferenceError",
    "NodeNotFoundError",
    "InvalidConfigurationError",
    "UsageError",
)
