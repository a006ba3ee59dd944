"""Feature extraction from wiki HTML pages.

A page is reduced to a bag of word counts drawn from four sources:

- the article body (``#mw-content-text``), split into lowercase words
- link targets: the host of every URL plus relative ``/wiki/`` paths
- section headers (any node with a ``head`` class), one feature each
- titles (text of nodes carrying a ``title=`` attribute), one feature each

Header and title features keep the whole string so that, e.g., a
"Signs and symptoms" section is a single piece of evidence.
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass
from itertools import chain
from pathlib import Path
from urllib.parse import urlsplit

from .config import ClassifierConfig
from .models import NO_TITLE, FeatureMap, count_features
from .parsers import HTMLDocumentParser, TreeNode

_NON_WORD_RE = re.compile(r"[^\s\w]")
_WHITESPACE_RE = re.compile(r"\s+")
_WIKI_PATH_RE = re.compile(r"^/wiki/", re.IGNORECASE)
_HEAD_CLASS_RE = re.compile(r"head")


def _collapse(text: str, separator: str) -> str:
    return _WHITESPACE_RE.sub(separator, text.strip())


def _has_head_class(node: TreeNode) -> bool:
    classes = node.attribute("class")
    return classes is not None and _HEAD_CLASS_RE.search(classes) is not None


def _has_title_attribute(node: TreeNode) -> bool:
    return node.attribute("title") is not None


@dataclass(frozen=True)
class FeatureExtractor:
    """Turns one parsed HTML document into a :data:`FeatureMap`.

    Instances hold only settings, so they can be shipped to worker
    processes.

    Args:
        min_feature_length: Tokens shorter than this are discarded.
        content_id: ``id`` of the article body node.
        title_id: ``id`` of the page heading node.
        reference_pattern: Substring selecting reference links.
        encoding: Encoding used by :meth:`extract_file`.
    """

    min_feature_length: int = 4
    content_id: str = "mw-content-text"
    title_id: str = "firstHeading"
    reference_pattern: str = "diseasesdatabase"
    encoding: str = "utf-8"

    @classmethod
    def from_config(cls, config: ClassifierConfig) -> "FeatureExtractor":
        return cls(
            min_feature_length=config.min_feature_length,
            content_id=config.content_id,
            title_id=config.title_id,
            reference_pattern=config.reference_pattern,
            encoding=config.encoding,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def extract(self, tree: TreeNode) -> FeatureMap:
        """Count the content, link, header and title tokens of *tree*."""
        tokens = chain(
            self.content_tokens(tree),
            self.link_tokens(tree),
            self.header_tokens(tree),
            self.title_tokens(tree),
        )
        return count_features(tokens, self.min_feature_length)

    def extract_file(self, path: str | Path) -> FeatureMap:
        """Parse the HTML file at *path* and extract its features.

        Raises:
            InputError: If the file is missing or unreadable.
        """
        return self.extract(self.parse(path))

    def parse(self, path: str | Path) -> TreeNode:
        return HTMLDocumentParser(self.encoding).parse(path)

    def page_title(self, tree: TreeNode) -> str:
        """Text of the page heading, or ``"N/A"`` when the page has none."""
        heading = tree.find_by_id(self.title_id)
        if heading is None:
            return NO_TITLE
        return _collapse(heading.text(), " ")

    def reference_links(self, tree: TreeNode) -> list[str]:
        """``href`` values containing the reference pattern, in document order."""
        links = []
        for node in tree.find_all(lambda n: n.attribute("href") is not None):
            href = node.attribute("href") or ""
            if self.reference_pattern in href:
                links.append(href)
        return links

    # ------------------------------------------------------------------
    # Token sources
    # ------------------------------------------------------------------

    def content_tokens(self, tree: TreeNode) -> Iterator[str]:
        """Lowercase words of the article body."""
        content = tree.find_by_id(self.content_id)
        if content is None:
            return
        text = _NON_WORD_RE.sub("", content.rendered_text())
        yield from _WHITESPACE_RE.sub(" ", text).lower().split()

    def link_tokens(self, tree: TreeNode) -> Iterator[str]:
        """Link hosts (without ``www.``) and lowercased relative wiki paths."""
        for node in tree.find_all(lambda n: n.attribute("href") is not None):
            href = node.attribute("href") or ""
            try:
                authority = urlsplit(href).netloc
            except ValueError:
                # Malformed URLs (e.g. broken IPv6 hosts) have no usable host.
                authority = ""
            if authority:
                yield authority[4:] if authority.startswith("www.") else authority
            if _WIKI_PATH_RE.match(href):
                yield href.lower()

    def header_tokens(self, tree: TreeNode) -> Iterator[str]:
        """One underscore-joined lowercase token per header node."""
        for node in tree.find_all(_has_head_class):
            header = _collapse(node.text(), "_").lower()
            if header:
                yield header

    def title_tokens(self, tree: TreeNode) -> Iterator[str]:
        """One space-joined lowercase token per node with a ``title`` attribute."""
        for node in tree.find_all(_has_title_attribute):
            title = _collapse(node.text(), " ").lower()
            if title:
                yield title
