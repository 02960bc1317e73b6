import asyncio
import json
import logging
import sys
from os import getenv

from dotenv import load_dotenv

from sodam_client.auth_service import AuthService
from sodam_client.config import AppConfig, load_config
from sodam_client.errors import ApiError
from sodam_client.http_client import HttpClient
from sodam_client.storage import FileStorage
from sodam_client.token_store import TokenStore
from sodam_client.utils import configure_logging, level_from_name

# Load environment from .env (if present)
load_dotenv(encoding="utf-8")

# --- CONFIGURATION (from environment) ---
EMAIL = getenv("SODAM_EMAIL")
PASSWORD = getenv("SODAM_PASSWORD")
DEFAULT_PATH = "/api/auth/me"


def _session_expired() -> None:
    logging.warning("Session expired. Set SODAM_EMAIL and SODAM_PASSWORD and run again to log in.")


async def run(config: AppConfig, path: str) -> int:
    store = TokenStore(FileStorage(config.token_file))

    async with HttpClient(config, store) as client:
        client.set_on_unauthorized(_session_expired)
        auth = AuthService(client, store)

        if await store.get_tokens() is None:
            if not EMAIL or not PASSWORD:
                logging.critical(
                    "No stored tokens. Please set SODAM_EMAIL and SODAM_PASSWORD in your environment or .env file."
                )
                return 1
            session = await auth.login(EMAIL, PASSWORD)
            print(f"Logged in as {session.user.get('email') or session.user.get('id')}")

        resp = await client.get(path)
        print(f"HTTP {resp.status} {resp.url}")
        if isinstance(resp.data, (dict, list)):
            print(json.dumps(resp.data, ensure_ascii=False, indent=2))
        elif resp.data:
            print(resp.data)
    return 0


def main() -> None:
    config = load_config()
    configure_logging(config.log_file, level=level_from_name(config.log_level), truncate=True)

    path = sys.argv[1] if len(sys.argv) > 1 else DEFAULT_PATH
    try:
        sys.exit(asyncio.run(run(config, path)))
    except KeyboardInterrupt:
        print("\nStopped by user.")
    except ApiError as e:
        logging.critical(f"Request failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
