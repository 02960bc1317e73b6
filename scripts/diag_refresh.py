import asyncio
import sys
from pathlib import Path

from dotenv import load_dotenv
load_dotenv()
# Ensure project root is on sys.path so `sodam_client` can be imported
sys.path.insert(0, str(Path.cwd()))
from sodam_client.config import load_config
from sodam_client.errors import HttpStatusError
from sodam_client.http_client import HttpClient
from sodam_client.storage import FileStorage
from sodam_client.token_store import TokenStore


async def diagnose() -> None:
    config = load_config()
    store = TokenStore(FileStorage(config.token_file))
    print(f'API_BASE_URL: {config.base_url}')
    print(f'TOKEN_FILE: {config.token_file}')
    print(f'Access token present: {bool(await store.get_access())}')
    print(f'Refresh token present: {bool(await store.get_refresh())}')

    async with HttpClient(config, store) as client:
        try:
            tokens = await client.refresh_client.refresh()
            await store.set_tokens(tokens)
            print('REFRESH_OK')
            print(f'New access token: {tokens.access_token[:12]}...')
        except HttpStatusError as e:
            print('EXCEPTION:', type(e).__name__, e)
            print('STATUS:', e.status)
            print('BODY:', e.response.data)
        except Exception as e:
            print('EXCEPTION:', type(e), e)


asyncio.run(diagnose())
