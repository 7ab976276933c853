from __future__ import annotations
import logging
import os
from logging.handlers import TimedRotatingFileHandler

from .settings import settings

_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logging() -> None:
	"""Console logging always; daily-rotated application and error files when LOG_DIR is set."""
	root = logging.getLogger()
	if getattr(root, "_jpsentence_configured", False):
		return
	root.setLevel(settings.log_level.upper())
	formatter = logging.Formatter(_FORMAT)

	console = logging.StreamHandler()
	console.setFormatter(formatter)
	root.addHandler(console)

	if settings.log_dir:
		os.makedirs(settings.log_dir, exist_ok=True)
		for filename, level in (("application.log", logging.NOTSET), ("error.log", logging.ERROR)):
			handler = TimedRotatingFileHandler(
				os.path.join(settings.log_dir, filename),
				when="midnight",
				backupCount=settings.log_retention_days,
				encoding="utf-8",
			)
			handler.setLevel(level)
			handler.setFormatter(formatter)
			root.addHandler(handler)

	root._jpsentence_configured = True  # type: ignore[attr-defined]


def preview(text: str | None, limit: int = 50) -> str | None:
	# Sentence text is truncated before it reaches a log record
	if text is None:
		return None
	return text[:limit] + ("..." if len(text) > limit else "")
