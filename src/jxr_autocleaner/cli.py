"""CLI entry point for the JXR autocleaner."""

import sys
from pathlib import Path

import click
from loguru import logger

from .concurrency import InstanceLockError, acquire_instance_lock
from .config import AgentConfig
from .converter import Converter
from .service import AutoCleanerService

log = logger.bind(component="cli")


def _find_config_file() -> Path | None:
    """Look for .env next to the package or in cwd."""
    pkg_dir = Path(__file__).resolve().parent
    for candidate in [
        pkg_dir.parent.parent / ".env",  # dev: src/../.env
        Path.cwd() / ".env",
    ]:
        if candidate.is_file():
            return candidate
    return None


def run_cli_convert(config: AgentConfig, file_path: Path) -> int:
    """Convert one file synchronously. Returns the process exit status."""
    click.echo(f"Converting: {file_path}")
    try:
        ok = Converter(config).convert(file_path, config.jpeg_quality)
    except Exception as e:
        log.error(f"Error converting {file_path}: {e}")
        ok = False
    if ok:
        click.echo("Success!")
        return 0
    click.echo(f"Conversion failed. Check log at {config.log_file}", err=True)
    return 1


def run_service(config: AgentConfig) -> int:
    """Run the background agent until a stop signal. Returns exit status."""
    log.info("=== JxrAutoCleaner starting ===")

    try:
        lock = acquire_instance_lock(config.lock_file)
    except InstanceLockError:
        log.info("Another instance is already running, exiting")
        return 0

    try:
        watch_dir = config.watch_dir.expanduser().resolve()
        if not watch_dir.is_dir():
            log.error(f"Watch directory {config.watch_dir} not found, exiting")
            return 1
        config.watch_dir = watch_dir

        service = AutoCleanerService(config)
        service.run_forever()
    finally:
        lock.close()

    log.info("=== JxrAutoCleaner stopped ===")
    return 0


@click.command()
@click.option(
    "-c",
    "--convert",
    "convert_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Convert a single file and exit (0 on success, 1 on failure).",
)
@click.option(
    "-w",
    "--watch-dir",
    type=click.Path(file_okay=False),
    default=None,
    help="Directory tree to watch. Defaults to ~/Videos.",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.option(
    "--config",
    "config_file",
    type=click.Path(exists=True),
    default=None,
    help="Path to .env file.",
)
def main(
    convert_path: str | None,
    watch_dir: str | None,
    verbose: bool,
    config_file: str | None,
) -> None:
    """Convert new JPEG XR captures into (Ultra HDR) JPEGs in the background."""
    env_file = Path(config_file) if config_file else _find_config_file()

    # Pass CLI flags as kwargs to avoid env pollution
    config_kwargs: dict[str, bool | str | Path] = {"verbose": verbose}
    if watch_dir:
        config_kwargs["watch_dir"] = Path(watch_dir)

    config = AgentConfig(_env_file=env_file, **config_kwargs)  # type: ignore[arg-type]
    config.setup_logging()
    if env_file:
        log.debug(f"Loaded env from {env_file}")

    if convert_path:
        sys.exit(run_cli_convert(config, Path(convert_path).resolve()))

    sys.exit(run_service(config))
