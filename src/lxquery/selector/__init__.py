"""CSS selector support built on cssselect."""

from .adapter import SelectorAdapter, split_groups

__all__ = ["SelectorAdapter", "split_groups"]
