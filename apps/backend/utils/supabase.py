import asyncio
import logging
from typing import Dict, Any, Optional

from dotenv import load_dotenv
from supabase import create_client, Client, ClientOptions

from agents.config import get_supabase_url, get_supabase_key

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)


def get_supabase_client(authorization: Optional[str] = None) -> Client:
    """
    Create a Supabase client for one pipeline run.

    The caller's Authorization header is forwarded so row-level security and
    the share-token RPCs see the same identity as the browser.

    Args:
        authorization: Raw Authorization header value, if any

    Returns:
        Client: A configured Supabase client instance

    Raises:
        ValueError: If SUPABASE_URL or SUPABASE_ANON_KEY environment variables are not set
    """
    url = get_supabase_url()
    key = get_supabase_key()
    if not url or not key:
        raise ValueError("SUPABASE_URL and SUPABASE_ANON_KEY environment variables must be set")

    headers = {"Authorization": authorization} if authorization else {}
    return create_client(url, key, options=ClientOptions(headers=headers))


async def call_rpc(client: Client, function_name: str, params: Dict[str, Any]) -> Any:
    """
    Execute a Supabase RPC off the event loop and return its rows.

    Raises whatever the SDK raises (postgrest APIError, transport errors);
    callers decide whether a failure is fatal.
    """
    logger.debug(f"[SUPABASE] rpc {function_name} keys={list(params.keys())}")
    response = await asyncio.to_thread(lambda: client.rpc(function_name, params).execute())
    return response.data
