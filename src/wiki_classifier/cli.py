"""Command-line interface for the wiki page classifier.

Provides ``train``, ``predict``, ``evaluate`` and ``features`` commands
with rich terminal output using the ``click`` and ``rich`` libraries.

Usage::

    # Build and save a model from two directories, parsing with 10 processes.
    wiki-classifier train training_data/positive training_data/negative \\
        --num-procs 10 --save-model models/disease_classifier.model

    # Classify new pages with a saved model.
    wiki-classifier predict --model models/disease_classifier.model my_test_wiki_page.html
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import NoReturn

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from .classifier import ClassificationMetrics, NaiveBayesModel, restore
from .config import ClassifierConfig
from .errors import WikiClassifierError
from .log import configure_logging
from .models import Prediction
from .service import ClassifierService

console = Console()

_num_procs_option = click.option(
    "--num-procs", "-n", type=click.IntRange(min=1), default=None,
    help="Number of processes used to parse training files.",
)
_min_word_length_option = click.option(
    "--min-word-length", type=click.IntRange(min=0), default=None,
    help="Minimum length of a word to be used as a feature (default 4).",
)


def _load_config(num_procs: int | None, min_word_length: int | None) -> ClassifierConfig:
    return ClassifierConfig.from_env().with_overrides(
        worker_count=num_procs,
        min_feature_length=min_word_length,
    )


def _fail(error: Exception) -> NoReturn:
    console.print(f"[bold red]Error:[/] {escape(str(error))}")
    sys.exit(1)


@click.group()
@click.version_option(package_name="wiki-classifier")
@click.option("--verbose", "-v", is_flag=True, help="Log every parsed file.")
def main(verbose: bool) -> None:
    """Wiki page classifier: Naive Bayes over wiki HTML pages.

    Train a model from one directory of pages per label, then predict the
    label of new pages.
    """
    configure_logging(verbose)


@main.command()
@click.argument("directories", nargs=-1, required=True,
                type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option("--save-model", "-s", required=True, type=click.Path(dir_okay=False, path_type=Path),
              help="File to save the trained model to.")
@_num_procs_option
@_min_word_length_option
def train(
    directories: tuple[Path, ...],
    save_model: Path,
    num_procs: int | None,
    min_word_length: int | None,
) -> None:
    """Train a model from labeled directories of HTML pages.

    Each directory's name is the label of the pages inside it.

    Example: wiki-classifier train data/positive data/negative -s disease.model
    """
    try:
        config = _load_config(num_procs, min_word_length)
        service = ClassifierService(
            training_directories=list(directories),
            save_model_path=save_model,
            config=config,
        )
        model = service.model
    except (WikiClassifierError, ValueError) as e:
        _fail(e)

    _render_model(model)
    console.print(f"[dim]Model saved to {save_model}[/]")


@main.command()
@click.argument("files", nargs=-1, required=True, type=click.Path(path_type=Path))
@click.option("--model", "-m", "model_path", type=click.Path(dir_okay=False, path_type=Path),
              default=None, help="Saved model to classify with.")
@click.option("--training-dir", "-t", "training_dirs", multiple=True,
              type=click.Path(exists=True, file_okay=False, path_type=Path),
              help="Train a model from this directory first (repeatable).")
@click.option("--save-model", "-s", type=click.Path(dir_okay=False, path_type=Path), default=None,
              help="Save the model trained from --training-dir.")
@click.option("--output", "-o", type=click.Choice(["rich", "json"]), default="rich",
              help="Output format.")
@_num_procs_option
@_min_word_length_option
def predict(
    files: tuple[Path, ...],
    model_path: Path | None,
    training_dirs: tuple[Path, ...],
    save_model: Path | None,
    output: str,
    num_procs: int | None,
    min_word_length: int | None,
) -> None:
    """Predict the label of wiki HTML pages.

    Uses either a saved model (--model) or one trained on the fly
    (--training-dir).

    Example: wiki-classifier predict -m disease.model page.html
    """
    if (model_path is None) == (not training_dirs):
        raise click.UsageError("Pass exactly one of --model or --training-dir.")
    if save_model is not None and model_path is not None:
        raise click.UsageError("--save-model only applies to a model trained with --training-dir.")

    try:
        config = _load_config(num_procs, min_word_length)
        service = ClassifierService(
            training_directories=list(training_dirs) or None,
            model_path=model_path,
            save_model_path=save_model,
            config=config,
        )
        predictions = service.run(list(files))
    except (WikiClassifierError, ValueError) as e:
        _fail(e)

    if output == "json":
        click.echo(json.dumps([p.to_dict() for p in predictions], indent=2, sort_keys=True))
    else:
        _render_predictions(predictions)


@main.command()
@click.argument("directories", nargs=-1, required=True,
                type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option("--model", "-m", "model_path", required=True,
              type=click.Path(dir_okay=False, path_type=Path), help="Saved model to evaluate.")
@click.option("--output", "-o", type=click.Choice(["rich", "json"]), default="rich",
              help="Output format.")
@_min_word_length_option
def evaluate(
    directories: tuple[Path, ...],
    model_path: Path,
    output: str,
    min_word_length: int | None,
) -> None:
    """Measure accuracy on labeled directories of held-out pages.

    Example: wiki-classifier evaluate -m disease.model held_out/positive held_out/negative
    """
    try:
        config = _load_config(None, min_word_length)
        metrics = ClassifierService(model_path=model_path, config=config).evaluate(directories)
    except (WikiClassifierError, ValueError) as e:
        _fail(e)

    if output == "json":
        click.echo(json.dumps(metrics.to_dict(), indent=2))
    else:
        _render_metrics(metrics)


@main.command()
@click.argument("label")
@click.option("--model", "-m", "model_path", required=True,
              type=click.Path(dir_okay=False, path_type=Path), help="Saved model to inspect.")
@click.option("--top", "top_n", type=click.IntRange(min=1), default=20, show_default=True,
              help="Number of features to list.")
def features(label: str, model_path: Path, top_n: int) -> None:
    """List the most informative features of a label.

    Example: wiki-classifier features positive -m disease.model
    """
    try:
        ranked = restore(model_path).most_informative_features(label, top_n)
    except (WikiClassifierError, ValueError) as e:
        _fail(e)

    table = Table(title=f"Most informative features: {label}")
    table.add_column("#", justify="right", width=4)
    table.add_column("Feature", style="cyan")
    table.add_column("Log ratio", justify="right")
    for i, (feature, ratio) in enumerate(ranked, 1):
        table.add_row(str(i), Text(feature), f"{ratio:.4f}")
    console.print(table)


# ------------------------------------------------------------------
# Rich rendering helpers
# ------------------------------------------------------------------

def _render_model(model: NaiveBayesModel) -> None:
    """Render the labels of a trained model."""
    table = Table(title="Trained model")
    table.add_column("Label", style="cyan")
    table.add_column("Prior", justify="right")
    for label, prior in model.priors().items():
        table.add_row(label, f"{prior:.2%}")
    console.print(table)
    console.print(f"Vocabulary: {len(model.vocabulary)} features")


def _render_predictions(predictions: list[Prediction]) -> None:
    """Render predictions as a rich table, one row per file."""
    labels = sorted({label for p in predictions for label in p.scores})

    table = Table(title="Predictions", show_lines=True)
    table.add_column("File", style="white", max_width=40)
    table.add_column("Title", style="bold")
    for label in labels:
        table.add_column(label, justify="right")
    table.add_column("Best", style="cyan")
    table.add_column("Reference links", style="dim", max_width=40)

    for p in predictions:
        scores = [f"{p.scores[label]:.4f}" if label in p.scores else "-" for label in labels]
        table.add_row(
            Text(Path(p.path).name),
            Text(p.title),
            *scores,
            p.best_label or "-",
            Text("\n".join(p.reference_links) or "-"),
        )

    console.print(table)


def _render_metrics(metrics: ClassificationMetrics) -> None:
    """Render evaluation metrics."""
    table = Table(title=f"Evaluation (accuracy {metrics.accuracy:.2%})")
    table.add_column("Label", style="cyan")
    table.add_column("Precision", justify="right")
    table.add_column("Recall", justify="right")
    table.add_column("F1", justify="right")
    table.add_column("Support", justify="right")

    for label, scores in metrics.per_label.items():
        table.add_row(
            Text(label),
            f"{scores.precision:.4f}",
            f"{scores.recall:.4f}",
            f"{scores.f1:.4f}",
            str(scores.support),
        )

    console.print(table)
    console.print(f"Macro F1: {metrics.macro_f1:.4f} | Weighted F1: {metrics.weighted_f1:.4f}")


if __name__ == "__main__":
    main()
