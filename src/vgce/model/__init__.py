"""Search tree model."""

from vgce.model.rwlock import RWLock
from vgce.model.search_tree import SearchTree, TreeNode

__all__ = ["RWLock", "SearchTree", "TreeNode"]
