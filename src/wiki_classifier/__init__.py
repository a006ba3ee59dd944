"""Wiki Page Classifier -- Naive Bayes classification of wiki HTML pages."""

__version__ = "0.1.0"

from .classifier import (
    ClassificationMetrics,
    LabelScores,
    NaiveBayesModel,
    compute_metrics,
    restore,
)
from .config import ClassifierConfig
from .corpus import CorpusBuilder, build_corpus
from .errors import (
    CorpusBuildFailure,
    InputError,
    PersistenceError,
    TrainingWindowClosed,
    UntrainedModel,
    WikiClassifierError,
)
from .features import FeatureExtractor
from .models import FeatureMap, LabeledInstance, Prediction, TrainingCorpus
from .parsers import HTMLDocumentParser, SoupNode, TreeNode, parse_html
from .service import ClassifierService

__all__ = [
    # Core
    "ClassifierService",
    "ClassifierConfig",
    # Features
    "FeatureExtractor",
    "FeatureMap",
    "HTMLDocumentParser",
    "SoupNode",
    "TreeNode",
    "parse_html",
    # Training
    "CorpusBuilder",
    "LabeledInstance",
    "TrainingCorpus",
    "build_corpus",
    # Model
    "NaiveBayesModel",
    "Prediction",
    "restore",
    # Evaluation
    "ClassificationMetrics",
    "LabelScores",
    "compute_metrics",
    # Errors
    "WikiClassifierError",
    "InputError",
    "UntrainedModel",
    "TrainingWindowClosed",
    "CorpusBuildFailure",
    "PersistenceError",
]
