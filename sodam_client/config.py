from __future__ import annotations

from dataclasses import dataclass
from os import getenv
from pathlib import Path

from dotenv import load_dotenv

DEFAULT_BASE_URL = "http://localhost:8080"
DEFAULT_TIMEOUT = 10.0


@dataclass
class AppConfig:
	"""Client configuration for the Sodam backend.

	Attributes
	----------
	base_url: str
		Backend root, e.g. ``http://localhost:8080``. Relative request paths are
		joined onto it.
	request_timeout: float
		Total timeout in seconds for regular API requests.
	refresh_timeout: float
		Total timeout in seconds for each refresh call.
	refresh_path: str
		Primary token refresh route.
	refresh_fallback_path: str
		Legacy refresh route, used only when the primary answers 404/405.
	token_file: Path | None
		Optional JSON file used to persist tokens between runs.
	log_file: str
		Log file written by ``configure_logging``.
	log_level: str
		Level name for the log file, e.g. ``INFO`` or ``DEBUG``.
	"""
	base_url: str = DEFAULT_BASE_URL
	request_timeout: float = DEFAULT_TIMEOUT
	refresh_timeout: float = DEFAULT_TIMEOUT
	refresh_path: str = "/api/auth/refresh"
	refresh_fallback_path: str = "/api/refresh"
	token_file: Path | None = None
	log_file: str = "sodam_client.log"
	log_level: str = "INFO"

	def url_for(self, path: str) -> str:
		"""Return an absolute URL for ``path`` (absolute URLs pass through)."""
		if path.startswith("http://") or path.startswith("https://"):
			return path
		if not path.startswith("/"):
			path = "/" + path
		return self.base_url.rstrip("/") + path


def load_config(env_file: str | None = None) -> AppConfig:
	"""Build an AppConfig from the environment, loading ``.env`` first if present."""
	load_dotenv(dotenv_path=env_file, encoding="utf-8")

	token_file = getenv("TOKEN_FILE")
	return AppConfig(
		base_url=getenv("API_BASE_URL", DEFAULT_BASE_URL),
		request_timeout=float(getenv("API_TIMEOUT", str(DEFAULT_TIMEOUT))),
		refresh_timeout=float(getenv("REFRESH_TIMEOUT", str(DEFAULT_TIMEOUT))),
		token_file=Path(token_file).expanduser() if token_file else Path.home() / ".sodam_tokens.json",
		log_file=getenv("LOG_FILE", "sodam_client.log"),
		log_level=getenv("LOG_LEVEL", "INFO"),
	)
