"""Data models for wiki page classification."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field

# Mapping of feature token -> occurrences within one document.
FeatureMap = Counter

# Label -> feature maps of every training document carrying that label.
TrainingCorpus = dict[str, list[FeatureMap]]

NO_TITLE = "N/A"


def count_features(tokens: Iterable[str], min_length: int = 0) -> FeatureMap:
    """Count tokens into a feature map, dropping those shorter than *min_length*."""
    return Counter(t for t in tokens if len(t) >= min_length)


@dataclass(frozen=True)
class LabeledInstance:
    """A training document's features paired with its category label."""

    features: FeatureMap
    label: str


@dataclass
class Prediction:
    """Classification output for a single input document."""

    path: str
    title: str = NO_TITLE
    reference_links: list[str] = field(default_factory=list)
    scores: dict[str, float] = field(default_factory=dict)

    @property
    def best_label(self) -> str | None:
        """Label with the highest score, or None when there are no scores."""
        if not self.scores:
            return None
        return max(self.scores, key=self.scores.get)  # type: ignore[arg-type]

    def to_dict(self) -> dict:
        record: dict = {
            "path": self.path,
            "title": self.title,
            "reference_links": list(self.reference_links),
        }
        for label, score in self.scores.items():
            record[f"score_{label}"] = score
        return record
