import json
import logging
import sys
from pathlib import Path
from typing import Optional

from reportwriter.cli.visuals import progress_for, visuals_context
from reportwriter.config.export import ConfigError, ExportConfig, load_export_config
from reportwriter.domain.header import headers_to_raw
from reportwriter.io.output import OutputResolutionError, resolve_output_target
from reportwriter.pipeline.export import ExportJob
from reportwriter.utils.load import load_headers_file

logger = logging.getLogger(__name__)


def _load_config(config_path: Optional[str], **overrides) -> ExportConfig:
    try:
        return load_export_config(Path(config_path) if config_path else None, **overrides)
    except ConfigError as exc:
        logger.error("%s", exc)
        raise SystemExit(2)


def _log_config_debug(config: ExportConfig) -> None:
    if not logger.isEnabledFor(logging.DEBUG):
        return
    logger.debug(
        "Export config:\n%s",
        json.dumps(config.model_dump(exclude_none=True), indent=2, default=str),
    )


def handle_export(
    *,
    cache: str,
    fmt: Optional[str] = None,
    out_path: Optional[str] = None,
    config_path: Optional[str] = None,
    headers_path: Optional[str] = None,
    header_mode: Optional[str] = None,
    freeze: Optional[bool] = None,
    remove_cache: Optional[bool] = None,
    progress: Optional[str] = None,
    visuals: Optional[str] = None,
    cli_log_level: Optional[str] = None,
) -> None:
    cache_path = Path(cache)
    if not cache_path.is_file():
        logger.error("Cache file not found: %s", cache_path)
        raise SystemExit(2)

    overrides = {
        "format": fmt,
        "header_mode": header_mode,
        "freeze_headers": freeze,
        "remove_cache": remove_cache,
    }
    if headers_path:
        try:
            overrides["headers"] = load_headers_file(Path(headers_path))
        except (FileNotFoundError, TypeError, ValueError) as exc:
            logger.error("%s", exc)
            raise SystemExit(2)
    config = _load_config(config_path, **overrides)
    if cli_log_level is None and config.log_level:
        logging.getLogger().setLevel(config.log_level)
    _log_config_debug(config)

    try:
        target = resolve_output_target(cache_path, config, cli_path=out_path)
    except OutputResolutionError as exc:
        logger.error("%s", exc)
        raise SystemExit(2)

    job = ExportJob(config, target, progress=progress_for(progress))
    try:
        with visuals_context(visuals):
            result = job.run(cache_path)
    except (OSError, ValueError) as exc:
        logger.error("Export failed: %s", exc)
        raise SystemExit(2)

    print(str(result.path))


def handle_headers(
    *,
    cache: str,
    output: Optional[str] = None,
    config_path: Optional[str] = None,
    progress: Optional[str] = None,
) -> None:
    """Print (or save) the header list discovered in ``cache`` as JSON."""
    cache_path = Path(cache)
    if not cache_path.is_file():
        logger.error("Cache file not found: %s", cache_path)
        raise SystemExit(2)
    config = _load_config(config_path)
    target = resolve_output_target(cache_path, config)
    job = ExportJob(config, target, progress=progress_for(progress))
    with visuals_context(None):
        headers = job.collect_headers(cache_path)
    text = json.dumps(headers_to_raw(headers), indent=2, ensure_ascii=False)
    if output:
        dest = Path(output)
        dest.parent.mkdir(parents=True, exist_ok=True)
        dest.write_text(text + "\n", encoding="utf-8")
        logger.info("Wrote %d header(s) to %s", len(headers), dest)
        return
    sys.stdout.write(text + "\n")
