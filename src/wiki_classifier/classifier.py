"""Multinomial Naive Bayes over document word counts.

Provides the model used to classify wiki pages, written in pure Python:

- Incremental accumulation of labeled feature maps
- Training of log priors and add-one smoothed feature log probabilities
- Prediction as per-label scores (raw log scores or rescaled scores)
- Purging of raw counts once training is done
- Model persistence (JSON serialization)
- Most informative features per label
- Precision, recall and F1 of held-out predictions
"""

from __future__ import annotations

import json
import logging
import math
import os
import tempfile
from collections import Counter, defaultdict
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from .errors import PersistenceError, TrainingWindowClosed, UntrainedModel

logger = logging.getLogger(__name__)

FORMAT_VERSION = 1


# ---------------------------------------------------------------------------
# Multinomial Naive Bayes
# ---------------------------------------------------------------------------

class NaiveBayesModel:
    """Naive Bayes classifier with Laplace smoothing.

    Instances go through ``empty -> accumulating -> trained -> purged``.
    Training is deferred: :meth:`add_instance` only accumulates counts and
    :meth:`train` computes the probability tables. After :meth:`purge` the
    model is read-only.

    Example::

        model = NaiveBayesModel()
        model.add_instance({"sertraline": 2, "depression": 1}, "positive")
        model.add_instance({"football": 3}, "negative")
        model.train()
        model.purge()

        scores = model.predict({"depression": 1})
        model.save("disease.model")
        loaded = NaiveBayesModel.restore("disease.model")
    """

    def __init__(self) -> None:
        # Raw accumulation state
        self._instance_counts: Counter[str] = Counter()
        self._feature_counts: dict[str, Counter[str]] = defaultdict(Counter)

        # Learned parameters
        self._labels: list[str] = []
        self._log_priors: dict[str, float] = {}
        self._feature_log_probs: dict[str, dict[str, float]] = {}
        self._vocabulary: frozenset[str] = frozenset()

        self._trained = False
        self._purged = False

    @property
    def labels(self) -> list[str]:
        """Labels known to the trained model."""
        return list(self._labels)

    @property
    def vocabulary(self) -> frozenset[str]:
        """Every feature seen during training."""
        return self._vocabulary

    @property
    def is_trained(self) -> bool:
        return self._trained

    @property
    def is_purged(self) -> bool:
        return self._purged

    @property
    def instance_count(self) -> int:
        """Number of accumulated instances (0 once purged)."""
        return sum(self._instance_counts.values())

    def instance_counts(self) -> dict[str, int]:
        """Accumulated instances per label (empty once purged)."""
        return dict(self._instance_counts)

    def priors(self) -> dict[str, float]:
        """Prior probability of each trained label."""
        self._require_trained()
        return {label: math.exp(lp) for label, lp in self._log_priors.items()}

    # ------------------------------------------------------------------
    # Training
    # ------------------------------------------------------------------

    def add_instance(self, features: Mapping[str, int], label: str) -> None:
        """Accumulate one document's feature counts under *label*.

        Raises:
            TrainingWindowClosed: If the model has been purged.
        """
        if self._purged:
            raise TrainingWindowClosed("Model has been purged; it no longer accepts instances.")
        self._instance_counts[label] += 1
        counts = self._feature_counts[label]
        for feature, count in features.items():
            counts[feature] += count

    def train(self) -> "NaiveBayesModel":
        """Compute priors and smoothed feature probabilities.

        P(feature|label) = (count of feature in label + 1) / (total counts in label + |V|)

        Returns:
            Self (for method chaining).

        Raises:
            TrainingWindowClosed: If the model has been purged.
            ValueError: If no instances were added.
        """
        if self._purged:
            raise TrainingWindowClosed("Model has been purged; raw counts are no longer available.")
        n_total = sum(self._instance_counts.values())
        if n_total == 0:
            raise ValueError("Cannot train a model without instances.")

        vocabulary: set[str] = set()
        for counts in self._feature_counts.values():
            vocabulary.update(counts)
        vocab_size = len(vocabulary)

        labels = sorted(self._instance_counts)
        log_priors: dict[str, float] = {}
        feature_log_probs: dict[str, dict[str, float]] = {}

        for label in labels:
            log_priors[label] = math.log(self._instance_counts[label] / n_total)

            counts = self._feature_counts[label]
            denominator = sum(counts.values()) + vocab_size
            feature_log_probs[label] = {
                feature: math.log((counts.get(feature, 0) + 1) / denominator)
                for feature in vocabulary
            }

        self._labels = labels
        self._log_priors = log_priors
        self._feature_log_probs = feature_log_probs
        self._vocabulary = frozenset(vocabulary)
        self._trained = True

        logger.debug(
            "Trained %d labels over %d instances and %d features.",
            len(labels), n_total, vocab_size,
        )
        return self

    def purge(self) -> None:
        """Discard raw counts, keeping only the trained tables.

        Raises:
            UntrainedModel: If the model has not been trained.
        """
        self._require_trained()
        self._instance_counts = Counter()
        self._feature_counts = defaultdict(Counter)
        self._purged = True

    # ------------------------------------------------------------------
    # Prediction
    # ------------------------------------------------------------------

    def log_scores(self, features: Mapping[str, int]) -> dict[str, float]:
        """Unnormalized log posterior score for each label.

        Features outside the training vocabulary are ignored.

        Raises:
            UntrainedModel: If the model has not been trained or restored.
        """
        self._require_trained()
        known = [(f, c) for f, c in features.items() if f in self._vocabulary]

        scores: dict[str, float] = {}
        for label in self._labels:
            log_probs = self._feature_log_probs[label]
            score = self._log_priors[label]
            for feature, count in known:
                score += count * log_probs[feature]
            scores[label] = score
        return scores

    def predict(self, features: Mapping[str, int]) -> dict[str, float]:
        """Score every label for a document's features.

        Log scores are shifted so the best label is at zero, exponentiated
        and divided by their Euclidean norm. Scores are comparable across
        labels but do not sum to 1.

        Raises:
            UntrainedModel: If the model has not been trained or restored.
        """
        log_scores = self.log_scores(features)
        max_score = max(log_scores.values())
        scaled = {label: math.exp(s - max_score) for label, s in log_scores.items()}
        norm = math.sqrt(sum(v ** 2 for v in scaled.values()))
        return {label: v / norm for label, v in scaled.items()}

    def most_informative_features(
        self,
        label: str,
        top_n: int = 20,
    ) -> list[tuple[str, float]]:
        """Return the most discriminative features for *label*.

        Ranks features by their log probability under *label* minus the
        average log probability under the other labels.

        Raises:
            UntrainedModel: If the model has not been trained or restored.
            ValueError: If *label* is not a trained label.
        """
        self._require_trained()
        if label not in self._feature_log_probs:
            raise ValueError(f"Unknown label: {label}. Known: {self._labels}")

        target = self._feature_log_probs[label]
        others = [self._feature_log_probs[l] for l in self._labels if l != label]

        if not others:
            ranked = sorted(target.items(), key=lambda x: (-x[1], x[0]))
            return ranked[:top_n]

        ratios = []
        for feature, log_prob in target.items():
            avg_other = sum(o[feature] for o in others) / len(others)
            ratios.append((feature, round(log_prob - avg_other, 4)))

        ratios.sort(key=lambda x: (-x[1], x[0]))
        return ratios[:top_n]

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def to_dict(self) -> dict:
        """Serialize the trained tables."""
        self._require_trained()
        return {
            "format_version": FORMAT_VERSION,
            "labels": list(self._labels),
            "log_priors": dict(self._log_priors),
            "feature_log_probs": {
                label: dict(probs) for label, probs in self._feature_log_probs.items()
            },
            "vocabulary": sorted(self._vocabulary),
        }

    @classmethod
    def from_dict(cls, data: Mapping) -> "NaiveBayesModel":
        """Rebuild a purged, ready-to-predict model from :meth:`to_dict` output.

        Raises:
            ValueError: If the data is not a compatible model.
        """
        version = data.get("format_version")
        if version != FORMAT_VERSION:
            raise ValueError(f"Unsupported model format version: {version!r}")

        labels = list(data["labels"])
        log_priors = {label: float(data["log_priors"][label]) for label in labels}
        vocabulary = frozenset(data["vocabulary"])
        feature_log_probs: dict[str, dict[str, float]] = {}
        for label in labels:
            probs = {f: float(p) for f, p in data["feature_log_probs"][label].items()}
            if set(probs) != vocabulary:
                raise ValueError(f"Feature table for label '{label}' does not match the vocabulary")
            feature_log_probs[label] = probs
        if not labels:
            raise ValueError("Model has no labels")

        model = cls()
        model._labels = labels
        model._log_priors = log_priors
        model._feature_log_probs = feature_log_probs
        model._vocabulary = vocabulary
        model._trained = True
        model._purged = True
        return model

    def save(self, path: str | Path) -> None:
        """Save the trained model to a JSON file.

        The model is written to a temporary file next to *path* and moved
        into place, so *path* holds either the previous file or the
        complete new model.

        Raises:
            UntrainedModel: If the model has not been trained.
            PersistenceError: If the file cannot be written.
        """
        data = self.to_dict()
        path = Path(path)
        tmp_path: Path | None = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w", encoding="utf-8", dir=path.parent,
                prefix=f".{path.name}.", suffix=".tmp", delete=False,
            ) as f:
                tmp_path = Path(f.name)
                json.dump(data, f)
            os.replace(tmp_path, path)
        except OSError as exc:
            if tmp_path is not None:
                tmp_path.unlink(missing_ok=True)
            raise PersistenceError(path, str(exc)) from exc

    @classmethod
    def restore(cls, path: str | Path) -> "NaiveBayesModel":
        """Load a model saved with :meth:`save`.

        Raises:
            PersistenceError: If the file is missing, unreadable or malformed.
        """
        path = Path(path)
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise PersistenceError(path, str(exc)) from exc

        try:
            return cls.from_dict(data)
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            raise PersistenceError(path, f"invalid model data ({exc})") from exc

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_trained(self) -> None:
        if not self._trained:
            raise UntrainedModel("Model has not been trained. Call train() or restore() first.")


def restore(path: str | Path) -> NaiveBayesModel:
    """Load a saved :class:`NaiveBayesModel` from *path*."""
    return NaiveBayesModel.restore(path)


# ---------------------------------------------------------------------------
# Held-out evaluation
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class LabelScores:
    """Precision, recall and F1 of one label, with its number of true pages."""

    precision: float
    recall: float
    f1: float
    support: int


@dataclass
class ClassificationMetrics:
    """Accuracy and per-label scores of an evaluation run."""

    accuracy: float = 0.0
    per_label: dict[str, LabelScores] = field(default_factory=dict)

    @property
    def macro_f1(self) -> float:
        if not self.per_label:
            return 0.0
        return sum(s.f1 for s in self.per_label.values()) / len(self.per_label)

    @property
    def weighted_f1(self) -> float:
        total = sum(s.support for s in self.per_label.values())
        if not total:
            return 0.0
        return sum(s.f1 * s.support for s in self.per_label.values()) / total

    def to_dict(self) -> dict:
        return {
            "accuracy": round(self.accuracy, 4),
            "macro_f1": round(self.macro_f1, 4),
            "weighted_f1": round(self.weighted_f1, 4),
            "labels": {
                label: {
                    "precision": round(s.precision, 4),
                    "recall": round(s.recall, 4),
                    "f1": round(s.f1, 4),
                    "support": s.support,
                }
                for label, s in self.per_label.items()
            },
        }


def compute_metrics(y_true: Sequence[str], y_pred: Sequence[str]) -> ClassificationMetrics:
    """Score predicted labels against true labels.

    Raises:
        ValueError: If the two sequences differ in length.
    """
    if len(y_true) != len(y_pred):
        raise ValueError("y_true and y_pred must have the same length")
    if not y_true:
        return ClassificationMetrics()

    hits = Counter(t for t, p in zip(y_true, y_pred) if t == p)
    actual = Counter(y_true)
    predicted = Counter(y_pred)

    per_label: dict[str, LabelScores] = {}
    for label in sorted(actual.keys() | predicted.keys()):
        precision = hits[label] / predicted[label] if predicted[label] else 0.0
        recall = hits[label] / actual[label] if actual[label] else 0.0
        f1 = 2 * precision * recall / (precision + recall) if precision + recall else 0.0
        per_label[label] = LabelScores(precision, recall, f1, actual[label])

    return ClassificationMetrics(sum(hits.values()) / len(y_true), per_label)
