"""Runtime configuration for the wiki classifier.

Values come from keyword arguments, or from ``WIKI_CLASSIFIER_*``
environment variables (optionally via a ``.env`` file) through
:meth:`ClassifierConfig.from_env`.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace

from dotenv import load_dotenv

ENV_PREFIX = "WIKI_CLASSIFIER_"

# field name -> environment variable suffix
_ENV_FIELDS = {
    "min_feature_length": "MIN_WORD_LENGTH",
    "worker_count": "NUM_PROCS",
    "content_id": "CONTENT_ID",
    "title_id": "TITLE_ID",
    "reference_pattern": "REFERENCE_PATTERN",
    "encoding": "ENCODING",
}


@dataclass(frozen=True)
class ClassifierConfig:
    """Settings shared by feature extraction, corpus building and prediction.

    Args:
        min_feature_length: Tokens shorter than this are not used as features.
        worker_count: Number of worker processes used to parse training
            files. ``1`` parses sequentially.
        content_id: ``id`` of the node holding the article body.
        title_id: ``id`` of the node holding the page heading.
        reference_pattern: Substring identifying reference links reported
            alongside each prediction.
        encoding: Encoding used to read HTML files.

    Raises:
        ValueError: If a numeric setting is out of range or an id is empty.
    """

    min_feature_length: int = 4
    worker_count: int = 1
    content_id: str = "mw-content-text"
    title_id: str = "firstHeading"
    reference_pattern: str = "diseasesdatabase"
    encoding: str = "utf-8"

    def __post_init__(self) -> None:
        if self.min_feature_length < 0:
            raise ValueError("min_feature_length must be non-negative")
        if self.worker_count < 1:
            raise ValueError("worker_count must be at least 1")
        if not self.content_id:
            raise ValueError("content_id must not be empty")
        if not self.title_id:
            raise ValueError("title_id must not be empty")

    @classmethod
    def from_env(cls, dotenv_path: str | None = None) -> "ClassifierConfig":
        """Build a config from ``WIKI_CLASSIFIER_*`` environment variables.

        A ``.env`` file is loaded first when present; variables already set
        in the environment take precedence over it.
        """
        load_dotenv(dotenv_path)

        kwargs: dict = {}
        types = {f.name: f.type for f in fields(cls)}
        for name, suffix in _ENV_FIELDS.items():
            raw = os.getenv(ENV_PREFIX + suffix)
            if raw is None or raw.strip() == "":
                continue
            if types[name] in (int, "int"):
                try:
                    kwargs[name] = int(raw)
                except ValueError as exc:
                    raise ValueError(f"{ENV_PREFIX}{suffix} must be an integer, got {raw!r}") from exc
            else:
                kwargs[name] = raw.strip()
        return cls(**kwargs)

    def with_overrides(self, **overrides) -> "ClassifierConfig":
        """Return a copy with every non-None override applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes) if changes else self
