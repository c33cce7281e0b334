"""CLI entrypoints for stormweaver."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

import typer
from pydantic import ValidationError

from stormweaver.config import Settings, load_settings
from stormweaver.engine.sections import generate_article
from stormweaver.engine.state import GenerationOptions
from stormweaver.llm.client import GenerativeModel, OpenAIGenerativeModel
from stormweaver.llm.embeddings import EmbeddingModel, OpenAIEmbeddingModel
from stormweaver.logging import configure_logging, get_logger
from stormweaver.models.article import Article, RichSectionDraft, SectionDraft
from stormweaver.models.outline import Outline
from stormweaver.orchestrator.pipeline import draft_outline, storm

app = typer.Typer(add_completion=False, help="Stormweaver long-form article generation CLI")
logger = get_logger(__name__)


def _build_models(settings: Settings) -> tuple[GenerativeModel, EmbeddingModel]:
    return OpenAIGenerativeModel(settings), OpenAIEmbeddingModel(settings)


def _load_outline(path: Path) -> Outline:
    try:
        return Outline.model_validate_json(path.read_text(encoding="utf-8"))
    except (OSError, ValidationError) as e:
        raise typer.BadParameter(f"cannot load outline from {path}: {e}") from e


def _write(output: Path, payload: str) -> None:
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(payload, encoding="utf-8")
    typer.echo(str(output))


def _build_options(settings: Settings, **kwargs: Any) -> GenerationOptions:
    try:
        return GenerationOptions.from_settings(settings, **kwargs)
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e


def _log_article(article: Article) -> None:
    logger.info("Article written", extra={"sections": article.count_sections(), "tokens": article.total_tokens()})


@app.command()
def run(
    topic: str = typer.Argument(..., help="Article topic."),
    outline_file: Path | None = typer.Option(
        None, "--outline", help="JSON outline to use instead of drafting and refining one."
    ),
    output: Path = typer.Option(Path("storm.json"), "--output", "-o", help="Output JSON file"),
    research_tools: bool = typer.Option(
        False, "--research-tools", help="Let the model search the web while answering questions."
    ),
    k: int | None = typer.Option(None, "--k", min=1, help="Recent sections shown as context."),
    dedupe_threshold: float | None = typer.Option(
        None, "--dedupe-threshold", min=0.0, max=1.0, help="Cosine similarity that triggers regeneration."
    ),
    max_attempts: int | None = typer.Option(None, "--max-attempts", min=1, help="Generative calls per section."),
    rich_blocks: bool = typer.Option(False, "--rich-blocks", help="Generate tagged text/image/insight blocks."),
) -> None:
    """Run the full research-then-write pipeline and write the result as JSON."""

    settings = load_settings()
    configure_logging(settings.log_level)
    logger.info("CLI run requested", extra={"topic": topic})

    model, embedding_model = _build_models(settings)
    options = _build_options(
        settings,
        model=model,
        topic=topic,
        embedding_model=embedding_model,
        outline=_load_outline(outline_file) if outline_file else None,
        k=k,
        dedupe_threshold=dedupe_threshold,
        max_attempts=max_attempts,
        use_research_tools=research_tools or None,
        section_schema=RichSectionDraft if rich_blocks else SectionDraft,
    )
    result = asyncio.run(storm(options, settings=settings))
    _log_article(result.article)
    _write(output, result.model_dump_json(indent=2))


@app.command()
def article(
    outline_file: Path = typer.Argument(..., help="JSON outline file."),
    topic: str | None = typer.Option(None, "--topic", help="Article topic; defaults to the outline title."),
    output: Path = typer.Option(Path("article.json"), "--output", "-o", help="Output JSON file"),
    rich_blocks: bool = typer.Option(False, "--rich-blocks", help="Generate tagged text/image/insight blocks."),
) -> None:
    """Generate only the article for an existing outline."""

    settings = load_settings()
    configure_logging(settings.log_level)
    outline = _load_outline(outline_file)

    model, embedding_model = _build_models(settings)
    options = _build_options(
        settings,
        model=model,
        topic=topic or outline.title,
        embedding_model=embedding_model,
        outline=outline,
        section_schema=RichSectionDraft if rich_blocks else SectionDraft,
    )
    result = asyncio.run(generate_article(options, outline))
    _log_article(result)
    _write(output, result.model_dump_json(indent=2))


@app.command()
def outline(
    topic: str = typer.Argument(..., help="Article topic."),
    output: Path = typer.Option(Path("outline.json"), "--output", "-o", help="Output JSON file"),
) -> None:
    """Draft an outline for a topic."""

    settings = load_settings()
    configure_logging(settings.log_level)
    model, _ = _build_models(settings)
    result = asyncio.run(draft_outline(model, topic))
    _write(output, result.model_dump_json(indent=2))


def main() -> None:
    app()


if __name__ == "__main__":
    main()
