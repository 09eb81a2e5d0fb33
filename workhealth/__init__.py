"""workhealth - calendar-derived work health scoring.

Turns a day's meetings into cognitive load, focus time, fragmentation and an
adaptive performance index, and gates language-model insight generation
behind a stable cache key. Imports are kept light so the package can be
inspected without pulling in the HTTP or LLM clients.
"""

__version__ = "0.1.0"

from typing import Any, Optional


def _init_logging(level_name: Optional[str]) -> None:
    """Initialize root logging to stream to console.

    Installs a colorized console handler when none is present so early
    messages are visible. WORKHEALTH_DEBUG (truthy values: "1", "true",
    "yes", "on") forces DEBUG verbosity.
    """
    import logging
    import os
    import sys

    from colorlog import ColoredFormatter

    debug_env = os.environ.get("WORKHEALTH_DEBUG", "")
    if debug_env.strip().lower() in ("1", "true", "yes", "on"):
        level_name = "DEBUG"

    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler(stream=sys.stderr)
        # HH:MM:SS  LEVEL   [analysis] logger.name: message
        fmt = (
            "%(asctime)s %(log_color)s%(levelname)-7s%(reset)s "
            "[%(analysis_id)s] %(name)s: %(message)s"
        )
        log_colors = {
            "DEBUG": "cyan",
            "INFO": "green",
            "WARNING": "yellow",
            "ERROR": "red",
            "CRITICAL": "bold_red",
        }
        handler.setFormatter(ColoredFormatter(fmt, datefmt="%H:%M:%S", log_colors=log_colors))

        from .core.logging_config import CorrelationIdFilter

        handler.addFilter(CorrelationIdFilter())
        root.addHandler(handler)

    level = logging.INFO
    if isinstance(level_name, str):
        level = getattr(logging, level_name.upper(), logging.INFO)
    root.setLevel(level)
    logging.getLogger(__name__).debug(
        "Logging initialized at level %s", logging.getLevelName(level)
    )


def run_analysis(args: Optional[Any] = None) -> dict[str, Any]:
    """Analyse one day and optionally attach insights.

    Wires configuration, the event source and the insight service together
    and runs them on a fresh event loop.

    Args:
        args: argparse namespace from ``workhealth.__main__`` (or None)

    Returns:
        JSON-ready dict with ``metrics`` and, when requested, ``insights``
    """
    import asyncio

    from .app import analyze_from_args

    return asyncio.run(analyze_from_args(args))
