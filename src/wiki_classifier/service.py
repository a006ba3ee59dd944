"""Classification service orchestrating corpus building, training and prediction.

The ``ClassifierService`` class is the primary entry point for users. It
either trains a model from labeled directories or uses an existing one,
then classifies HTML files into ``Prediction`` records.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from pathlib import Path

from .classifier import ClassificationMetrics, NaiveBayesModel, compute_metrics, restore
from .config import ClassifierConfig
from .corpus import CorpusBuilder, iter_instances, label_for_directory, list_training_files
from .errors import InputError, UntrainedModel
from .features import FeatureExtractor
from .models import Prediction

logger = logging.getLogger(__name__)


class ClassifierService:
    """High-level wiki page classifier.

    Exactly one model source is used per service: training directories
    (a new model is built, and saved when *save_model_path* is given), an
    in-memory *model*, or a *model_path* to restore.

    Example::

        service = ClassifierService(
            training_directories=["training_data/positive", "training_data/negative"],
            save_model_path="models/disease_classifier.model",
            config=ClassifierConfig(worker_count=10),
        )
        predictions = service.predict_files(["my_test_wiki_page.html"])

        service = ClassifierService(model_path="models/disease_classifier.model")
        print(service.predict_files(["page.html"])[0].to_dict())

    Args:
        training_directories: One directory per label.
        model: A trained model to use as is.
        model_path: Path of a saved model to restore.
        save_model_path: Where to save a newly trained model.
        config: Extraction and parallelism settings.

    Raises:
        ValueError: If both a training source and an existing model are given,
            or if *save_model_path* is given without training directories.
    """

    def __init__(
        self,
        training_directories: Sequence[str | Path] | None = None,
        model: NaiveBayesModel | None = None,
        model_path: str | Path | None = None,
        save_model_path: str | Path | None = None,
        config: ClassifierConfig | None = None,
    ) -> None:
        if model is not None and model_path is not None:
            raise ValueError("Pass either model or model_path, not both.")
        if training_directories and (model is not None or model_path is not None):
            raise ValueError("Pass either training_directories or an existing model, not both.")
        if save_model_path is not None and not training_directories:
            raise ValueError("save_model_path only applies to a model trained from training_directories.")

        self.config = config or ClassifierConfig()
        self.training_directories = list(training_directories or [])
        self.model_path = Path(model_path) if model_path is not None else None
        self.save_model_path = Path(save_model_path) if save_model_path is not None else None
        self._extractor = FeatureExtractor.from_config(self.config)
        self._model = model

    @property
    def model(self) -> NaiveBayesModel:
        """The model, trained or restored on first access.

        Raises:
            UntrainedModel: If no model source was configured.
        """
        if self._model is None:
            if self.model_path is not None:
                logger.info("Restoring model from: %s", self.model_path)
                self._model = restore(self.model_path)
            elif self.training_directories:
                self._model = self.train()
            else:
                raise UntrainedModel("No model available: provide training directories or a model.")
        return self._model

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def train(self) -> NaiveBayesModel:
        """Build the corpus, train and purge a new model, saving it if requested.

        The model is only saved once training succeeded.

        Raises:
            InputError: If a directory is missing, or none holds any file.
            CorpusBuildFailure: If a training file cannot be parsed.
        """
        if not self.training_directories:
            raise ValueError("No training directories configured.")
        builder = CorpusBuilder(self._extractor, self.config.worker_count)
        corpus = builder.build(self.training_directories)
        if not any(corpus.values()):
            names = ", ".join(str(d) for d in self.training_directories)
            raise InputError(self.training_directories[0], f"empty (no training files in: {names})")

        logger.info("Training model.")
        model = NaiveBayesModel()
        for instance in iter_instances(corpus):
            model.add_instance(instance.features, instance.label)
        model.train()
        model.purge()
        logger.info("Done training model.")

        if self.save_model_path is not None:
            logger.info("Saving model state to: %s", self.save_model_path)
            model.save(self.save_model_path)

        return model

    def predict_file(self, path: str | Path) -> Prediction:
        """Classify one HTML file.

        Raises:
            InputError: If the file is missing or unreadable.
            UntrainedModel: If no model is available.
        """
        model = self.model
        tree = self._extractor.parse(path)
        features = self._extractor.extract(tree)

        return Prediction(
            path=str(path),
            title=self._extractor.page_title(tree),
            reference_links=self._extractor.reference_links(tree),
            scores=model.predict(features),
        )

    def predict_files(self, paths: Iterable[str | Path]) -> list[Prediction]:
        """Classify several HTML files, returning predictions in input order."""
        return [self.predict_file(path) for path in paths]

    def evaluate(self, directories: Iterable[str | Path]) -> ClassificationMetrics:
        """Score the model on labeled directories of held-out pages.

        Each file's true label is its directory's base name; the predicted
        label is the highest scoring one.
        """
        y_true: list[str] = []
        y_pred: list[str] = []
        for directory in directories:
            label = label_for_directory(directory)
            for prediction in self.predict_files(list_training_files(directory)):
                y_true.append(label)
                y_pred.append(prediction.best_label or "")
        return compute_metrics(y_true, y_pred)

    def run(self, predict_paths: Sequence[str | Path] | None = None) -> list[Prediction]:
        """Make sure a model exists, then classify *predict_paths* if any."""
        self.model
        if not predict_paths:
            return []
        return self.predict_files(predict_paths)
