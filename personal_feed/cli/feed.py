"""CLI commands for the personal feed ranker."""

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

import click
import httpx
import structlog

from personal_feed import __version__
from personal_feed.api import FeedHttpResponse, handle_feed_request
from personal_feed.config import ConfigLoader, ConfigValidationError, PipelineConfig
from personal_feed.llm import LlmAuthError, create_embedding_client, create_llm_client
from personal_feed.observability import configure_logging
from personal_feed.ranker import FeedPipeline
from personal_feed.settings import AppSettings, get_settings
from personal_feed.store import SupabaseStoryStore


logger = structlog.get_logger()

EXIT_OK = 0
EXIT_PIPELINE_FAILURE = 1
EXIT_VALIDATION_FAILURE = 2


def _echo_config_errors(exc: ConfigValidationError) -> None:
    click.echo("Configuration validation failed:", err=True)
    for formatted in exc.format_errors():
        click.echo(f"  - {formatted}", err=True)


def _load_config(config_path: Path | None) -> PipelineConfig:
    """Load the pipeline config, or defaults when no path is given."""
    if config_path is None:
        return PipelineConfig()
    return ConfigLoader().load(config_path).config


def _read_payload(profile_path: Path) -> Any:
    try:
        return json.loads(profile_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        click.echo(f"Error: {profile_path} is not valid JSON: {exc}", err=True)
        sys.exit(EXIT_VALIDATION_FAILURE)


async def _serve_once(
    payload: Any,
    config: PipelineConfig,
    settings: AppSettings,
) -> FeedHttpResponse:
    """Build the pipeline against live services and serve one request."""
    async with httpx.AsyncClient() as http_client:
        pipeline = FeedPipeline.from_config(
            config,
            embedding_client=create_embedding_client(settings, http_client=http_client),
            store=SupabaseStoryStore(
                settings.supabase_url or "",
                settings.supabase_key or "",
                http_client=http_client,
            ),
            llm_client=create_llm_client(
                settings,
                model=config.scoring.model,
                temperature=config.scoring.temperature,
                http_client=http_client,
            ),
        )
        return await handle_feed_request(payload, pipeline)


@click.group()
@click.version_option(version=__version__)
def cli() -> None:
    """Personalized story feed ranker CLI."""


@cli.command()
@click.argument(
    "profile_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Path to a pipeline YAML configuration file.",
)
@click.option(
    "--log-format",
    type=click.Choice(["json", "console"]),
    default="json",
    show_default=True,
    help="Log output format (logs go to stderr).",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose logging.",
)
def rank(
    profile_path: Path,
    config_path: Path | None,
    log_format: str,
    verbose: bool,
) -> None:
    """Rank stories for the profile in PROFILE_PATH and print the response.

    PROFILE_PATH is a JSON file with ``role``, ``interests`` and
    ``projects``. Exits 0 on success, 2 when the profile is invalid and
    1 when the pipeline fails.
    """
    configure_logging(
        level=logging.DEBUG if verbose else logging.INFO,
        json_format=log_format == "json",
    )
    log = logger.bind(component="cli", command="rank")

    try:
        config = _load_config(config_path)
    except ConfigValidationError as exc:
        _echo_config_errors(exc)
        sys.exit(EXIT_PIPELINE_FAILURE)

    settings = get_settings()
    missing = settings.missing_for_pipeline()
    if missing:
        click.echo(f"Error: missing environment variables: {', '.join(missing)}", err=True)
        sys.exit(EXIT_PIPELINE_FAILURE)

    payload = _read_payload(profile_path)

    try:
        response = asyncio.run(_serve_once(payload, config, settings))
    except LlmAuthError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(EXIT_PIPELINE_FAILURE)

    click.echo(json.dumps(response.to_json_dict(), indent=2, ensure_ascii=False))
    log.info("rank_command_complete", status_code=int(response.status_code))

    if response.ok:
        sys.exit(EXIT_OK)
    if response.status_code < 500:  # noqa: PLR2004
        sys.exit(EXIT_VALIDATION_FAILURE)
    sys.exit(EXIT_PIPELINE_FAILURE)


@cli.command("check-config")
@click.argument(
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
def check_config(config_path: Path) -> None:
    """Validate a pipeline configuration file without running the pipeline."""
    configure_logging(json_format=False)

    try:
        loaded = ConfigLoader().load(config_path)
    except ConfigValidationError as exc:
        _echo_config_errors(exc)
        sys.exit(1)

    config = loaded.config
    click.echo("Configuration is valid!")
    click.echo(f"  Version: {config.version}")
    click.echo(f"  Pool size: {config.retrieval.pool_size}")
    click.echo(f"  Final size: {config.scoring.final_size}")
    click.echo(f"  Blocked sources: {len(config.filter.blocked_sources)}")
    click.echo(f"  Checksum: {loaded.checksum}")
