import asyncio
import logging
from typing import Dict, Any, Optional, Tuple

import langsmith as ls
from google import genai
from google.genai import types as genai_types
from openai import OpenAI

from agents.config import (
    PRESENTATION_MODEL,
    LLM_TIMEOUT_SECONDS,
    LLM_MAX_RETRIES,
    LLM_RETRY_DELAY_SECONDS,
    get_gemini_api_key,
)
from agents.generation.exceptions import (
    AIGenerationError,
    AIRateLimitError,
    AITimeoutError,
    ConfigurationError,
)

logger = logging.getLogger(__name__)

# Models, their client type, and their model_name
MODELS = {
    "gemini-2.5-flash": ("gemini", "gemini-2.5-flash"),
    "gemini-2.5-pro": ("gemini", "gemini-2.5-pro"),
    "gemini-2.5-flash-lite": ("gemini", "gemini-2.5-flash-lite"),
    "gpt-4o-mini": ("openai", "gpt-4o-mini"),
    "gpt-4.1-mini": ("openai", "gpt-4.1-mini-2025-04-14"),
    "gpt-4.1": ("openai", "gpt-4.1-2025-04-14"),
}


def get_client(model_name: str, api_key: Optional[str] = None) -> Tuple[Any, str, str]:
    """
    Get a raw provider client for a model alias or provider model name.

    Returns (client, client_type, actual_model_name).
    """
    if model_name in MODELS:
        client_type, actual_model_name = MODELS[model_name]
    else:
        client_type = None
        actual_model_name = model_name
        for alias, (ct, actual_name) in MODELS.items():
            if actual_name == model_name:
                client_type = ct
                break
        if client_type is None:
            raise ValueError(f"Model {model_name} not supported")

    if client_type == "gemini":
        key = api_key or get_gemini_api_key()
        if not key:
            raise ConfigurationError("GEMINI_API_KEY is not configured")
        return genai.Client(api_key=key), client_type, actual_model_name

    kwargs = {"api_key": api_key} if api_key else {}
    return OpenAI(**kwargs), client_type, actual_model_name


def _status_code(e: Exception) -> Optional[int]:
    if hasattr(e, 'response') and hasattr(e.response, 'status_code'):
        return e.response.status_code
    code = getattr(e, 'status_code', None) or getattr(e, 'code', None)
    return code if isinstance(code, int) else None


def _generate_sync(
    client,
    client_type: str,
    model: str,
    prompt: str,
    system_instruction: Optional[str],
    max_tokens: int,
    temperature: float,
    json_mode: bool
) -> str:
    if client_type == "gemini":
        config = genai_types.GenerateContentConfig(
            system_instruction=system_instruction,
            max_output_tokens=max_tokens,
            temperature=temperature,
            response_mime_type="application/json" if json_mode else None,
        )
        result = client.models.generate_content(model=model, contents=prompt, config=config)
        return result.text or ""

    messages = []
    if system_instruction:
        messages.append({"role": "system", "content": system_instruction})
    messages.append({"role": "user", "content": prompt})
    request: Dict[str, Any] = {
        "model": model,
        "messages": messages,
        "max_tokens": max_tokens,
        "temperature": temperature,
    }
    # json_object mode rejects top-level arrays, so the JSON shape is left to the prompt here
    result = client.chat.completions.create(**request)
    return result.choices[0].message.content or ""


async def invoke(
    client,
    client_type: str,
    model: str,
    prompt: str,
    system_instruction: Optional[str] = None,
    max_tokens: int = 2000,
    temperature: float = 0.7,
    json_mode: bool = False,
    timeout: float = LLM_TIMEOUT_SECONDS,
    max_retries: int = LLM_MAX_RETRIES,
    retry_delay: float = LLM_RETRY_DELAY_SECONDS,
) -> str:
    """Run one text generation off the event loop and return the raw text.

    Provider failures are mapped onto the AIGenerationError family. Retries use
    linear backoff (delay * attempt) and only apply to timeouts and 429/5xx.
    """
    with ls.trace(name="llm-invoke",
                  tags=["llm-invoke", "presentation-agent"],
                  inputs={"prompt": prompt, "system": system_instruction},
                  metadata={
                      "model": model,
                      "max_tokens": max_tokens,
                      "temperature": temperature,
                      "json_mode": json_mode,
                  }) as rt:
        attempt = 0
        while True:
            attempt += 1
            try:
                content = await asyncio.wait_for(
                    asyncio.to_thread(
                        _generate_sync, client, client_type, model, prompt,
                        system_instruction, max_tokens, temperature, json_mode
                    ),
                    timeout=timeout
                )
                rt.end(outputs={"output": content})
                logger.debug(f"[LLM] {model} returned {len(content)} chars (attempt {attempt})")
                return content
            except asyncio.TimeoutError as e:
                error = AITimeoutError(
                    f"AI service timeout after {timeout:.0f}s",
                    cause=e,
                    context={'model': model}
                )
            except Exception as e:
                code = _status_code(e)
                if code == 429:
                    error = AIRateLimitError("Rate limit exceeded", cause=e, context={'model': model})
                elif code in (502, 504):
                    error = AITimeoutError(f"AI service timeout (HTTP {code})", cause=e, context={'model': model})
                else:
                    error = AIGenerationError(
                        f"AI generation failed: {getattr(e, 'message', None) or str(e)}",
                        cause=e,
                        context={'model': model, 'status_code': code}
                    )
                    if code is None or code < 500:
                        raise error

            if attempt > max_retries:
                logger.warning(f"[LLM] {model} failed after {attempt} attempt(s): {error.message}")
                raise error
            delay = retry_delay * attempt
            logger.info(f"[LLM] {model} attempt {attempt} failed ({error.message}); retrying in {delay:.1f}s")
            await asyncio.sleep(delay)


class ModelClient:
    """Bound model handle used by the planner and slide generator."""

    def __init__(self, model_name: str = PRESENTATION_MODEL, api_key: Optional[str] = None):
        self.model_name = model_name
        self._client, self._client_type, self._model = get_client(model_name, api_key=api_key)

    async def generate(
        self,
        prompt: str,
        system_instruction: Optional[str] = None,
        max_tokens: int = 2000,
        temperature: float = 0.7,
        json_mode: bool = False,
    ) -> str:
        return await invoke(
            self._client,
            self._client_type,
            self._model,
            prompt,
            system_instruction=system_instruction,
            max_tokens=max_tokens,
            temperature=temperature,
            json_mode=json_mode,
        )
