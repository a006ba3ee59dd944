"""Training corpus construction from labeled directories.

Each training directory holds the pages of one category; the directory's
base name is the label. Files are parsed sequentially, or fanned out to a
process pool when more than one worker is requested.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from concurrent.futures import Future, ProcessPoolExecutor, as_completed
from pathlib import Path

from .config import ClassifierConfig
from .errors import CorpusBuildFailure, InputError
from .features import FeatureExtractor
from .models import FeatureMap, LabeledInstance, TrainingCorpus

logger = logging.getLogger(__name__)


def label_for_directory(directory: str | Path) -> str:
    """Label for a training directory: its last path component."""
    return Path(directory).name


def list_training_files(directory: str | Path) -> list[Path]:
    """Regular files directly inside *directory*, sorted by name.

    Raises:
        InputError: If *directory* does not exist or is not a directory.
    """
    path = Path(directory)
    if not path.exists():
        raise InputError(path)
    if not path.is_dir():
        raise InputError(path, "is not a directory")
    try:
        return sorted(p for p in path.iterdir() if p.is_file())
    except OSError as exc:
        raise InputError(path, f"unreadable ({exc})") from exc


class CorpusBuilder:
    """Builds a :data:`TrainingCorpus` from labeled directories.

    Example::

        builder = CorpusBuilder(FeatureExtractor(min_feature_length=4), worker_count=8)
        corpus = builder.build(["training_data/positive", "training_data/negative"])

    Args:
        extractor: Feature extractor applied to every file.
        worker_count: Number of worker processes. ``1`` (or less) parses
            the files sequentially and keeps their order.
    """

    def __init__(self, extractor: FeatureExtractor | None = None, worker_count: int = 1) -> None:
        self.extractor = extractor or FeatureExtractor()
        self.worker_count = worker_count

    @classmethod
    def from_config(cls, config: ClassifierConfig) -> "CorpusBuilder":
        return cls(FeatureExtractor.from_config(config), config.worker_count)

    def build(self, directories: Iterable[str | Path]) -> TrainingCorpus:
        """Parse every file of every directory into a label -> feature maps corpus.

        Directories sharing a base name are merged under one label.

        Raises:
            InputError: If a directory is missing.
            CorpusBuildFailure: If any file cannot be parsed.
        """
        logger.info("Building training data.")
        corpus: TrainingCorpus = {}

        for directory in directories:
            label = label_for_directory(directory)
            parsed = self.parse_directory(directory)
            corpus.setdefault(label, []).extend(parsed)

        logger.info("Done building training data.")
        return corpus

    def parse_directory(self, directory: str | Path) -> list[FeatureMap]:
        """Parse all files directly inside *directory*."""
        label = label_for_directory(directory)
        files = list_training_files(directory)

        logger.info("Parsing %d files for training directory: %s", len(files), directory)

        if self.worker_count > 1 and len(files) > 1:
            parsed = self._parse_parallel(files, label)
        else:
            parsed = [self._parse_one(path, label) for path in files]

        logger.info("Done parsing training directory.")
        return parsed

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _parse_one(self, path: Path, label: str) -> FeatureMap:
        logger.debug("Parsing file: %s", path)
        try:
            return self.extractor.extract_file(path)
        except Exception as exc:
            raise CorpusBuildFailure(path, label, str(exc)) from exc

    def _parse_parallel(self, files: Sequence[Path], label: str) -> list[FeatureMap]:
        """Fan files out to a process pool; fail the whole batch on first error."""
        parsed: list[FeatureMap] = []
        with ProcessPoolExecutor(max_workers=min(self.worker_count, len(files))) as executor:
            futures: dict[Future, Path] = {
                executor.submit(self.extractor.extract_file, path): path for path in files
            }
            try:
                for future in as_completed(futures):
                    path = futures[future]
                    try:
                        parsed.append(future.result())
                    except Exception as exc:
                        raise CorpusBuildFailure(path, label, str(exc)) from exc
                    logger.debug("Parsed file: %s", path)
            except BaseException:
                executor.shutdown(wait=True, cancel_futures=True)
                raise

        return parsed


def build_corpus(
    directories: Iterable[str | Path],
    worker_count: int = 1,
    min_feature_length: int = 4,
) -> TrainingCorpus:
    """Build a training corpus with default extraction settings."""
    builder = CorpusBuilder(FeatureExtractor(min_feature_length=min_feature_length), worker_count)
    return builder.build(directories)


def iter_instances(corpus: TrainingCorpus) -> Iterable[LabeledInstance]:
    """Flatten a corpus into labeled instances, label by label."""
    for label, feature_maps in corpus.items():
        for features in feature_maps:
            yield LabeledInstance(features=features, label=label)
