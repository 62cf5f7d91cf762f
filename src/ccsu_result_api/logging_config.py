import logging
import os
from pathlib import Path
from typing import Iterable, Optional


# Every lookup runs on its own request thread; the thread name ties a lookup's lines together.
LOG_FORMAT = "%(asctime)s %(levelname)s [%(threadName)s] %(name)s - %(message)s"

# Playwright's driver chatter and werkzeug's per-request access lines.
NOISY_LOGGERS = ("playwright", "urllib3", "werkzeug")


def configure_logging(
    level: str = "INFO",
    file_path: Optional[str] = None,
    *,
    noisy_loggers: Iterable[str] = NOISY_LOGGERS,
) -> None:
    root_level = getattr(logging, (level or "INFO").upper(), logging.INFO)

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if file_path:
        log_path = Path(file_path)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))

    # force: the CLI configures once from env, then again once config.yaml is loaded
    logging.basicConfig(level=root_level, format=LOG_FORMAT, handlers=handlers, force=True)

    noisy_level = os.getenv("NOISY_LOG_LEVEL", "WARNING").upper()
    for name in noisy_loggers:
        logging.getLogger(name).setLevel(noisy_level)
