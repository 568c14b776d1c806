"""
Array-in/array-out translation through an LLM backend.

Each chunk of source strings goes to the backend as a JSON array together
with the full source and target catalogs as context. The response must be a
JSON array of strings of the same length whose placeholders match the input
one for one; anything else fails the attempt and is retried.
"""
import json
import logging
from dataclasses import dataclass
from typing import List, Optional, Protocol

import jsonschema
import tiktoken
from aiolimiter import AsyncLimiter
from openai import AsyncOpenAI
from openai.types.chat import (
    ChatCompletionSystemMessageParam,
    ChatCompletionUserMessageParam
)
from tqdm import tqdm

from catalog_sync.app_config import AppConfig, TargetLanguage
from catalog_sync.catalog_tree import Catalog
from catalog_sync.chunking import chunk, retry
from catalog_sync.errors import (
    LengthMismatchError,
    ParseError,
    PlaceholderMismatchError,
    ShapeError
)
from catalog_sync.placeholder_validator import placeholders_match

logger = logging.getLogger(__name__)

STRING_ARRAY_SCHEMA = {
    "type": "array",
    "items": {"type": "string"}
}

# JSON mode only produces objects, so the array travels under this key.
RESPONSE_ARRAY_KEY = "translations"

SYSTEM_PROMPT = (
    "You are a professional software localization engine. "
    "You answer with JSON only, never with prose or markdown. "
    f'Return a JSON object whose only key is "{RESPONSE_ARRAY_KEY}" and whose '
    "value is the JSON array requested by the user."
)


class TranslationBackend(Protocol):
    async def generate(self, prompt: str) -> str:
        ...


@dataclass
class TranslationSettings:
    chunk_size: int = 150
    max_retries: int = 3
    retry_base_delay_ms: int = 800
    model_name: str = "gpt-4o-mini"
    max_model_tokens: int = 128000

    @classmethod
    def from_config(cls, config: AppConfig) -> "TranslationSettings":
        return cls(
            chunk_size=config.chunk_size,
            max_retries=config.max_retries,
            retry_base_delay_ms=config.retry_base_delay_ms,
            model_name=config.model_name,
            max_model_tokens=config.max_model_tokens,
        )


class OpenAIBackend:
    """Sends a prompt to the chat completions API and returns the raw reply text."""

    def __init__(
            self,
            client: AsyncOpenAI,
            model_name: str,
            timeout: float = 120.0,
            rate_limiter: Optional[AsyncLimiter] = None,
            temperature: float = 0.2
    ):
        self.client = client
        self.model_name = model_name
        self.timeout = timeout
        self.rate_limiter = rate_limiter or AsyncLimiter(max_rate=60, time_period=60)
        self.temperature = temperature

    @classmethod
    def from_config(cls, config: AppConfig) -> "OpenAIBackend":
        return cls(
            client=config.openai_client,
            model_name=config.model_name,
            timeout=config.request_timeout,
            rate_limiter=AsyncLimiter(max_rate=config.rate_limit_per_minute, time_period=60),
        )

    async def generate(self, prompt: str) -> str:
        async with self.rate_limiter:
            response = await self.client.chat.completions.create(
                model=self.model_name,
                messages=[
                    ChatCompletionSystemMessageParam(role="system", content=SYSTEM_PROMPT),
                    ChatCompletionUserMessageParam(role="user", content=prompt)
                ],
                temperature=self.temperature,
                response_format={"type": "json_object"},
                timeout=self.timeout,
            )
        return unwrap_response_array((response.choices[0].message.content or "").strip())


def unwrap_response_array(response_text: str) -> str:
    """
    Return the array text wrapped in a JSON-mode reply.

    Replies that are not an object carrying ``RESPONSE_ARRAY_KEY`` are returned
    unchanged so that ``validate_response`` reports them.
    """
    try:
        parsed = json.loads(response_text)
    except json.JSONDecodeError:
        return response_text
    if isinstance(parsed, dict) and RESPONSE_ARRAY_KEY in parsed:
        return json.dumps(parsed[RESPONSE_ARRAY_KEY], ensure_ascii=False)
    return response_text


def count_tokens(text: str, model_name: str = 'gpt-4o-mini') -> int:
    """Count the number of tokens in ``text`` for ``model_name``.

    ``tiktoken.encoding_for_model`` may need to download model data, which is
    not possible everywhere (e.g., in CI). It falls back to ``cl100k_base``
    and, as a last resort, to a whitespace split.
    """
    try:
        encoding = tiktoken.encoding_for_model(model_name)
    except Exception:
        try:
            encoding = tiktoken.get_encoding("cl100k_base")
        except Exception:
            return len(text.split())

    try:
        return len(encoding.encode(text))
    except Exception:
        return len(text.split())


def build_prompt(values: List[str], language_name: str, live_source: Catalog, target: Catalog) -> str:
    """
    Build the translation prompt for one chunk.

    Args:
        values: The source strings of the chunk, in order.
        language_name: Display name of the target language.
        live_source: Full source catalog, sent as context.
        target: Full current target catalog, sent as context.

    Returns:
        str: The prompt text.
    """
    return f"""
You are a professional UI translator. Translate each English UI string into {language_name}.
Return ONLY valid JSON: a single array of strings, same length and order as the input array.

Rules:
- Preserve placeholders exactly: {{{{var}}}}, {{{{1}}}}, {{0}}, %s, %1$s, etc.
- Keep sentence casing and punctuation style.
- Do not add, remove, or reorder entries. No objects, no extra text.

Full English JSON (context):
{json.dumps(live_source, ensure_ascii=False, indent=2)}

Existing {language_name} JSON (context):
{json.dumps(target, ensure_ascii=False, indent=2)}

Input (JSON array of English strings):
{json.dumps(values, ensure_ascii=False, indent=2)}
""".strip()


def validate_response(response_text: str, inputs: List[str], language_code: str) -> List[str]:
    """
    Check a raw backend reply against the chunk it answers.

    Args:
        response_text: The raw reply.
        inputs: The source strings that were sent.
        language_code: Target language, for error messages.

    Returns:
        List[str]: The translated strings, aligned with ``inputs``.

    Raises:
        ParseError: The reply is not JSON.
        ShapeError: The reply is not an array of strings.
        LengthMismatchError: The array length differs from ``inputs``.
        PlaceholderMismatchError: A translation does not carry its source's placeholders.
    """
    try:
        parsed = json.loads(response_text)
    except json.JSONDecodeError as json_exc:
        raise ParseError(f"Non-JSON response for {language_code}: {json_exc}") from json_exc

    try:
        jsonschema.validate(instance=parsed, schema=STRING_ARRAY_SCHEMA)
    except jsonschema.ValidationError as schema_exc:
        if not isinstance(parsed, list):
            raise ShapeError(
                f"Expected JSON array for {language_code}, got {type(parsed).__name__}"
            ) from schema_exc
        index = schema_exc.absolute_path[0] if schema_exc.absolute_path else "?"
        raise ShapeError(f"Non-string item in array for {language_code} at idx {index}") from schema_exc

    if len(parsed) != len(inputs):
        raise LengthMismatchError(
            f"Length mismatch for {language_code}: expected {len(inputs)}, got {len(parsed)}",
            expected=len(inputs),
            actual=len(parsed)
        )

    for i, (source, candidate) in enumerate(zip(inputs, parsed)):
        if not placeholders_match(source, candidate):
            raise PlaceholderMismatchError(
                f'Placeholder mismatch ({language_code}) at idx {i}: "{source}" -> "{candidate}"',
                index=i,
                source=source,
                candidate=candidate
            )

    return parsed


async def call_backend_array(
        values: List[str],
        language: TargetLanguage,
        live_source: Catalog,
        target: Catalog,
        backend: TranslationBackend,
        settings: TranslationSettings
) -> List[str]:
    """Run one backend attempt for one chunk and validate the reply."""
    if not values:
        return []

    prompt = build_prompt(values, language.name, live_source, target)
    prompt_tokens = count_tokens(prompt, settings.model_name)
    if prompt_tokens > settings.max_model_tokens:
        logger.warning(
            f"Prompt for {language.code} is {prompt_tokens} tokens, above the configured "
            f"limit of {settings.max_model_tokens}. Consider a smaller chunk_size."
        )
    logger.debug(f"LLM prompt for {language.code} ({prompt_tokens} tokens):\n---\n{prompt}\n---")

    response_text = await backend.generate(prompt)
    logger.debug(f"LLM raw response ({language.code}):\n---\n{response_text}\n---")

    return validate_response(response_text, values, language.code)


async def translate_values(
        values: List[str],
        language: TargetLanguage,
        live_source: Catalog,
        target: Catalog,
        backend: TranslationBackend,
        settings: TranslationSettings
) -> List[str]:
    """
    Translate ``values`` chunk by chunk, retrying each chunk on failure.

    Chunks are awaited strictly in order and their results concatenated, so
    the output is aligned with ``values``.

    Args:
        values: Source strings to translate.
        language: The target language.
        live_source: Full source catalog, sent as context.
        target: Full current target catalog, sent as context.
        backend: The translation backend.
        settings: Chunk size and retry budget.

    Returns:
        List[str]: One translation per input string.

    Raises:
        TranslationValidationError: The last validation failure of a chunk
            whose retries were exhausted. Backend errors propagate the same way.
    """
    pieces = chunk(values, settings.chunk_size)
    results: List[str] = []

    progress = tqdm(pieces, desc=f"Translating {language.code}", unit="chunk", disable=None)
    for i, piece in enumerate(progress):
        logger.info(f"Translating chunk {i + 1}/{len(pieces)} ({len(piece)} strings) for {language.code}...")
        translated = await retry(
            lambda piece=piece: call_backend_array(piece, language, live_source, target, backend, settings),
            settings.max_retries,
            settings.retry_base_delay_ms,
            description=f"Chunk {i + 1}/{len(pieces)} for {language.code}"
        )
        results.extend(translated)

    return results
