"""End-to-end tests for the classifier service."""

from __future__ import annotations

from pathlib import Path

import pytest

from wiki_classifier.classifier import NaiveBayesModel, restore
from wiki_classifier.config import ClassifierConfig
from wiki_classifier.errors import CorpusBuildFailure, InputError, PersistenceError, UntrainedModel
from wiki_classifier.models import Prediction
from wiki_classifier.service import ClassifierService


@pytest.fixture
def scenario_dirs(tmp_path: Path, write_page) -> tuple[Path, Path]:
    """One positive and one negative training page."""
    positive = tmp_path / "positive"
    negative = tmp_path / "negative"
    write_page(positive, "sertraline.html", content="sertraline treats depression")
    write_page(negative, "other.html", content="unrelated topic text")
    return positive, negative


@pytest.fixture
def sertraline_page(tmp_path: Path, write_page) -> Path:
    return write_page(
        tmp_path / "input",
        "Sertraline.html",
        heading="Sertraline",
        content="sertraline depression treatment",
        links=["http://www.diseasesdatabase.com/ddb29345.htm", "/wiki/Antidepressant"],
    )


class TestTraining:
    """Tests for building a model from training directories."""

    def test_scenario_prediction(self, scenario_dirs, sertraline_page: Path) -> None:
        service = ClassifierService(training_directories=scenario_dirs)
        (prediction,) = service.predict_files([sertraline_page])

        assert prediction.title == "Sertraline"
        assert prediction.scores["positive"] > prediction.scores["negative"]
        assert prediction.best_label == "positive"

    def test_model_is_purged_and_cached(self, scenario_dirs) -> None:
        service = ClassifierService(training_directories=scenario_dirs)
        model = service.model
        assert model.is_trained and model.is_purged
        assert service.model is model
        assert model.labels == ["negative", "positive"]

    def test_saves_trained_model(self, scenario_dirs, sertraline_page: Path, tmp_path: Path) -> None:
        model_path = tmp_path / "models" / "disease.model"
        service = ClassifierService(training_directories=scenario_dirs, save_model_path=model_path)
        trained = service.predict_file(sertraline_page)

        assert model_path.exists()
        loaded = ClassifierService(model_path=model_path).predict_file(sertraline_page)
        assert loaded.scores == pytest.approx(trained.scores)

    def test_same_label_directories_combine(self, tmp_path: Path, write_page) -> None:
        first = tmp_path / "a" / "positive"
        second = tmp_path / "b" / "positive"
        negative = tmp_path / "negative"
        write_page(first, "one.html", content="fever cough")
        write_page(second, "two.html", content="rash fever")
        write_page(second, "three.html", content="nausea vomiting")
        write_page(negative, "four.html", content="football stadium")

        model = ClassifierService(training_directories=[first, second, negative]).model
        assert model.priors()["positive"] == pytest.approx(3 / 4)

    def test_parallel_training_matches_sequential(self, training_dirs, sertraline_page: Path) -> None:
        sequential = ClassifierService(training_directories=training_dirs).predict_file(sertraline_page)
        parallel = ClassifierService(
            training_directories=training_dirs,
            config=ClassifierConfig(worker_count=4),
        ).predict_file(sertraline_page)
        assert parallel.scores == pytest.approx(sequential.scores)

    def test_failed_build_saves_nothing(self, tmp_path: Path, write_page, monkeypatch) -> None:
        positive = tmp_path / "positive"
        write_page(positive, "page.html", content="fever cough")
        model_path = tmp_path / "disease.model"

        def broken(self, path):
            raise OSError("read error")

        monkeypatch.setattr("wiki_classifier.features.FeatureExtractor.extract_file", broken)
        service = ClassifierService(training_directories=[positive], save_model_path=model_path)

        with pytest.raises(CorpusBuildFailure):
            service.model
        assert not model_path.exists()

    def test_all_directories_empty(self, tmp_path: Path) -> None:
        positive = tmp_path / "positive"
        negative = tmp_path / "negative"
        positive.mkdir()
        negative.mkdir()
        model_path = tmp_path / "disease.model"
        service = ClassifierService(training_directories=[positive, negative], save_model_path=model_path)

        with pytest.raises(InputError, match="no training files") as exc_info:
            service.model
        assert exc_info.value.path == positive
        assert str(negative) in str(exc_info.value)
        assert not model_path.exists()

    def test_one_empty_directory_is_allowed(self, tmp_path: Path, write_page) -> None:
        positive = tmp_path / "positive"
        write_page(positive, "page.html", content="fever cough")
        (tmp_path / "negative").mkdir()
        model = ClassifierService(training_directories=[positive, tmp_path / "negative"]).model
        assert model.labels == ["positive"]

    def test_min_feature_length_from_config(self, scenario_dirs) -> None:
        service = ClassifierService(
            training_directories=scenario_dirs,
            config=ClassifierConfig(min_feature_length=5),
        )
        assert "text" not in service.model.vocabulary
        assert "topic" in service.model.vocabulary


class TestModelSources:
    """Tests for choosing between a new and an existing model."""

    def test_in_memory_model(self, sertraline_page: Path) -> None:
        model = NaiveBayesModel()
        model.add_instance({"sertraline": 1}, "positive")
        model.add_instance({"football": 1}, "negative")
        model.train()

        service = ClassifierService(model=model)
        assert service.model is model
        prediction = service.predict_file(sertraline_page)
        assert set(prediction.scores) == {"positive", "negative"}

    def test_no_model_source(self, sertraline_page: Path) -> None:
        service = ClassifierService()
        with pytest.raises(UntrainedModel):
            service.predict_file(sertraline_page)

    def test_training_and_model_are_exclusive(self, scenario_dirs, tmp_path: Path) -> None:
        with pytest.raises(ValueError):
            ClassifierService(training_directories=scenario_dirs, model_path=tmp_path / "m.model")

    def test_model_and_model_path_are_exclusive(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError):
            ClassifierService(model=NaiveBayesModel(), model_path=tmp_path / "m.model")

    @pytest.mark.parametrize("source", ["model", "model_path", "none"])
    def test_save_path_requires_training(self, source: str, tmp_path: Path) -> None:
        kwargs = {
            "model": {"model": NaiveBayesModel()},
            "model_path": {"model_path": tmp_path / "m.model"},
            "none": {},
        }[source]
        with pytest.raises(ValueError, match="save_model_path"):
            ClassifierService(save_model_path=tmp_path / "out.model", **kwargs)

    def test_missing_model_file(self, tmp_path: Path, sertraline_page: Path) -> None:
        service = ClassifierService(model_path=tmp_path / "missing.model")
        with pytest.raises(PersistenceError):
            service.predict_file(sertraline_page)


class TestPredictions:
    """Tests for prediction records."""

    @pytest.fixture
    def service(self, training_dirs) -> ClassifierService:
        return ClassifierService(training_directories=training_dirs)

    def test_report_fields(self, service: ClassifierService, sertraline_page: Path) -> None:
        prediction = service.predict_file(sertraline_page)
        assert prediction.path == str(sertraline_page)
        assert prediction.reference_links == ["http://www.diseasesdatabase.com/ddb29345.htm"]
        assert set(prediction.scores) == set(service.model.labels)

    def test_input_order_preserved(self, service: ClassifierService, tmp_path: Path, write_page) -> None:
        paths = [
            write_page(tmp_path / "input", name, heading=heading, content=content)
            for name, heading, content in [
                ("b.html", "Fever", "fever symptoms infection"),
                ("a.html", "Opera", "opera music orchestra"),
                ("c.html", "Asthma", "asthma inflammation airways"),
            ]
        ]
        predictions = service.predict_files(paths)
        assert [p.title for p in predictions] == ["Fever", "Opera", "Asthma"]
        assert [p.best_label for p in predictions] == ["positive", "negative", "positive"]

    def test_page_without_features(self, service: ClassifierService, tmp_path: Path) -> None:
        path = tmp_path / "blank.html"
        path.write_text("<html><body><p>x</p></body></html>", encoding="utf-8")
        prediction = service.predict_file(path)
        assert prediction.title == "N/A"
        assert set(prediction.scores) == {"positive", "negative"}

    def test_missing_input_file(self, service: ClassifierService, tmp_path: Path) -> None:
        with pytest.raises(InputError):
            service.predict_files([tmp_path / "missing.html"])

    def test_run_without_files(self, scenario_dirs, tmp_path: Path) -> None:
        model_path = tmp_path / "disease.model"
        service = ClassifierService(training_directories=scenario_dirs, save_model_path=model_path)
        assert service.run() == []
        assert model_path.exists()

    def test_run_with_files(self, scenario_dirs, sertraline_page: Path) -> None:
        predictions = ClassifierService(training_directories=scenario_dirs).run([sertraline_page])
        assert len(predictions) == 1
        assert isinstance(predictions[0], Prediction)


class TestEvaluate:
    """Tests for held-out evaluation."""

    def test_evaluate_on_training_data(self, training_dirs) -> None:
        service = ClassifierService(training_directories=training_dirs)
        metrics = service.evaluate(training_dirs)
        assert metrics.accuracy == pytest.approx(1.0)
        assert {label: s.support for label, s in metrics.per_label.items()} == {
            "negative": 3,
            "positive": 3,
        }

    def test_evaluate_with_restored_model(self, training_dirs, tmp_path: Path) -> None:
        model_path = tmp_path / "disease.model"
        ClassifierService(training_directories=training_dirs, save_model_path=model_path).model
        assert restore(model_path).labels == ["negative", "positive"]

        metrics = ClassifierService(model_path=model_path).evaluate(training_dirs)
        assert metrics.accuracy == pytest.approx(1.0)
