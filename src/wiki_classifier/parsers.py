"""HTML tree access for feature extraction.

Feature extraction only relies on the small :class:`TreeNode` capability
interface. :class:`SoupNode` implements it on top of BeautifulSoup, and
:class:`HTMLDocumentParser` turns a file on disk into a tree.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from pathlib import Path

from bs4 import BeautifulSoup
from bs4.element import Tag

from .errors import InputError


class TreeNode(ABC):
    """A node of a parsed HTML document."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Tag name of the node (lowercase)."""
        ...

    @abstractmethod
    def find_all(self, predicate: Callable[["TreeNode"], bool]) -> list["TreeNode"]:
        """Return every descendant node matching *predicate*, in document order."""
        ...

    @abstractmethod
    def text(self) -> str:
        """Concatenated text content of the node and its descendants."""
        ...

    @abstractmethod
    def rendered_text(self) -> str:
        """Text content with element boundaries rendered as whitespace."""
        ...

    @abstractmethod
    def attribute(self, name: str) -> str | None:
        """Value of attribute *name*, or None when the node does not carry it."""
        ...

    def find_by_id(self, node_id: str) -> "TreeNode | None":
        """Return the first descendant whose ``id`` equals *node_id*."""
        matches = self.find_all(lambda node: node.attribute("id") == node_id)
        return matches[0] if matches else None


class SoupNode(TreeNode):
    """:class:`TreeNode` backed by a BeautifulSoup tag (or the soup itself)."""

    def __init__(self, tag: Tag) -> None:
        self._tag = tag

    @property
    def name(self) -> str:
        return self._tag.name or ""

    def find_all(self, predicate: Callable[[TreeNode], bool]) -> list[TreeNode]:
        nodes = (SoupNode(tag) for tag in self._tag.find_all(True))
        return [node for node in nodes if predicate(node)]

    def find_by_id(self, node_id: str) -> TreeNode | None:
        tag = self._tag.find(attrs={"id": node_id})
        return SoupNode(tag) if isinstance(tag, Tag) else None

    def text(self) -> str:
        return self._tag.get_text()

    def rendered_text(self) -> str:
        return self._tag.get_text(" ")

    def attribute(self, name: str) -> str | None:
        value = self._tag.get(name)
        if value is None:
            return None
        # Multi-valued attributes such as ``class`` come back as lists.
        if isinstance(value, list):
            return " ".join(value)
        return str(value)

    def __repr__(self) -> str:
        return f"SoupNode(<{self.name}>)"


def parse_html(markup: str | bytes) -> SoupNode:
    """Build a tree from an HTML string."""
    return SoupNode(BeautifulSoup(markup, "lxml"))


class HTMLDocumentParser:
    """Parser for wiki HTML pages stored on disk.

    Args:
        encoding: Text encoding of the files. Undecodable bytes are
            replaced rather than rejected.
    """

    def __init__(self, encoding: str = "utf-8") -> None:
        self.encoding = encoding

    def parse(self, path: str | Path) -> SoupNode:
        """Parse an HTML file into a tree.

        Files are accepted regardless of extension; wiki dumps are often
        saved without one.

        Raises:
            InputError: If the file does not exist or cannot be read.
        """
        path = Path(path)
        self._validate_path(path)
        try:
            markup = path.read_text(encoding=self.encoding, errors="replace")
        except (OSError, LookupError) as exc:
            raise InputError(path, f"unreadable ({exc})") from exc
        return parse_html(markup)

    def _validate_path(self, path: Path) -> None:
        if not path.exists():
            raise InputError(path)
        if not path.is_file():
            raise InputError(path, "is not a file")
