import logging
from typing import Dict, Any, Optional

import httpx

from agents.config import (
    IMAGE_GENERATION_MODEL,
    IMAGE_GENERATION_TIMEOUT,
    get_image_function_key,
    get_supabase_url,
)
from agents.generation.exceptions import ImageGenerationError

logger = logging.getLogger(__name__)


def build_image_prompt(prompt: str) -> str:
    return (
        f"Professional presentation visual: {prompt}. High quality, clean, modern design "
        f"suitable for a business presentation slide."
    )


class ImageGenerationService:
    """Client for the enhance-image edge function.

    The function takes a text prompt and answers with a hosted image URL.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: float = IMAGE_GENERATION_TIMEOUT,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        self.base_url = (base_url or get_supabase_url()).rstrip("/")
        self.api_key = api_key or get_image_function_key()
        self.timeout = timeout
        self.model = IMAGE_GENERATION_MODEL
        self._http_client = http_client
        self.is_available = bool(self.base_url and self.api_key)

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/functions/v1/enhance-image"

    async def generate_image(self, prompt: str) -> str:
        """Generate one image and return its URL.

        Raises:
            ImageGenerationError: on transport errors, non-2xx answers or a
                response without an imageUrl
        """
        if not self.is_available:
            raise ImageGenerationError("Image generation is not configured")

        payload: Dict[str, Any] = {
            "prompt": build_image_prompt(prompt),
            "model": self.model,
            "images": [],
        }
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        try:
            if self._http_client is not None:
                response = await self._http_client.post(
                    self.endpoint, json=payload, headers=headers, timeout=self.timeout
                )
            else:
                async with httpx.AsyncClient(timeout=httpx.Timeout(self.timeout, connect=10.0)) as client:
                    response = await client.post(self.endpoint, json=payload, headers=headers)
        except httpx.HTTPError as e:
            raise ImageGenerationError(f"Image request failed: {e}", cause=e)

        if response.status_code >= 400:
            raise ImageGenerationError(
                f"Image function returned HTTP {response.status_code}",
                context={'body': response.text[:200]}
            )

        try:
            data = response.json()
        except ValueError as e:
            raise ImageGenerationError("Image function returned invalid JSON", cause=e)

        image_url = data.get("imageUrl") if isinstance(data, dict) else None
        if not image_url:
            raise ImageGenerationError("Image function response had no imageUrl")

        logger.debug(f"[IMAGE] generated {image_url[:80]}")
        return image_url
