"""
Token tree for multi-word gazetteer keys.

Each key is split into tokens by a boundary pattern and stored as a path of
nodes, one per token, from the root. The node reached by the last token is
terminal and remembers the key(s) that ended there.
"""

from __future__ import annotations

import re
import threading
from typing import Dict, Iterator, List, Optional


class TokenTreeNode:
    """A node in the token tree. Child table and terminal keys share one lock."""

    __slots__ = ("children", "keys", "_lock")

    def __init__(self) -> None:
        self.children: Dict[str, TokenTreeNode] = {}
        self.keys: set[str] = set()
        self._lock = threading.Lock()

    @property
    def is_terminal(self) -> bool:
        return bool(self.keys)

    def child(self, token: str) -> TokenTreeNode:
        """Return the child for ``token``, creating it if needed."""
        node = self.children.get(token)
        if node is not None:
            return node
        with self._lock:
            node = self.children.get(token)
            if node is None:
                node = TokenTreeNode()
                self.children[token] = node
            return node

    def mark(self, key: str) -> None:
        with self._lock:
            self.keys.add(key)


class TokenTree:
    """Token tree supporting concurrent :meth:`insert` calls.

    Args:
        token_boundary: Regex that separates tokens; empty fragments are dropped.
        case_fold: Lowercase tokens on insert, so lookups ignore case.
    """

    def __init__(self, token_boundary: str = r"\s+", case_fold: bool = False) -> None:
        self.token_boundary = token_boundary
        self.case_fold = case_fold
        self._boundary_re = re.compile(token_boundary)
        self.root = TokenTreeNode()

    def tokenize(self, text: str) -> List[str]:
        tokens = [token for token in self._boundary_re.split(text) if token]
        if self.case_fold:
            tokens = [token.lower() for token in tokens]
        return tokens

    def insert(self, key: str) -> None:
        tokens = self.tokenize(key)
        if not tokens:
            return
        node = self.root
        for token in tokens:
            node = node.child(token)
        node.mark(key)

    def _find(self, tokens: List[str]) -> Optional[TokenTreeNode]:
        node = self.root
        for token in tokens:
            node = node.children.get(token)
            if node is None:
                return None
        return node

    def get(self, key: str) -> Optional[frozenset[str]]:
        """Return the keys stored on the token path of ``key``, or ``None``."""
        tokens = self.tokenize(key)
        if not tokens:
            return None
        node = self._find(tokens)
        if node is None or not node.is_terminal:
            return None
        return frozenset(node.keys)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.get(key) is not None

    def size(self) -> int:
        """Number of nodes below the root."""
        count = 0
        stack = [self.root]
        while stack:
            node = stack.pop()
            count += len(node.children)
            stack.extend(node.children.values())
        return count

    def __len__(self) -> int:
        return sum(1 for _ in self.iter_keys())

    def iter_keys(self) -> Iterator[str]:
        """Yield every stored key, depth first with children in token order."""
        stack = [self.root]
        while stack:
            node = stack.pop()
            yield from sorted(node.keys)
            for token in sorted(node.children, reverse=True):
                stack.append(node.children[token])


__all__ = ["TokenTree", "TokenTreeNode"]
