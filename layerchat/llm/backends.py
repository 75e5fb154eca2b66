"""
Text-generation backends.

Every provider speaks the OpenAI chat-completions protocol, so one adapter
class covers OpenAI and Mistral; the registry picks the provider by model id.
"""
from abc import ABC, abstractmethod
from typing import AsyncIterator, Dict, List, Optional, Tuple
import logging

from openai import AsyncOpenAI, OpenAIError

from layerchat.core.errors import GenerationBackendError, UnknownModelError
from layerchat.schemas.chat import GenerationOptions, GenerationResult, PromptBundle

# Configure logging
logger = logging.getLogger(__name__)

OPENAI_MODEL_MARKERS = ("gpt", "chatgpt", "o1", "o3", "o4")
MISTRAL_MODEL_MARKERS = (
    "mistral", "mixtral", "codestral", "magistral", "devstral", "pixtral", "voxtral", "ministral",
)


class GenerationBackend(ABC):
    """Contract consumed by the stream transformer."""

    model: str = ""
    supports_streaming: bool = True

    @abstractmethod
    async def generate(self, bundle: PromptBundle, options: GenerationOptions) -> GenerationResult:
        """Generate the whole response at once."""

    async def stream(self, bundle: PromptBundle, options: GenerationOptions) -> AsyncIterator[str]:
        """Yield response chunks; the default yields the whole response once."""
        result = await self.generate(bundle, options)
        yield result.content


def to_messages(bundle: PromptBundle) -> List[Dict[str, str]]:
    return [
        {"role": "system", "content": bundle.system},
        {"role": "user", "content": bundle.user},
    ]


class OpenAICompatibleBackend(GenerationBackend):
    """Backend for any OpenAI-compatible chat-completions endpoint."""

    def __init__(self, model: str, api_key: str, base_url: Optional[str] = None, provider: str = "openai"):
        self.model = model
        self.provider = provider
        self._api_key = api_key
        self._base_url = base_url
        self._client: Optional[AsyncOpenAI] = None

    @property
    def client(self) -> AsyncOpenAI:
        # Created on first use so the app can start without credentials
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self._api_key, base_url=self._base_url)
        return self._client

    async def generate(self, bundle: PromptBundle, options: GenerationOptions) -> GenerationResult:
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=to_messages(bundle),
                temperature=options.temperature,
                max_tokens=options.max_tokens,
            )
        except OpenAIError as e:
            logger.error(f"{self.provider} generation failed for {self.model}: {e}")
            raise GenerationBackendError(f"{self.provider} request failed: {e}") from e

        content = ""
        if response.choices:
            content = response.choices[0].message.content or ""
        tokens = response.usage.total_tokens if response.usage else None
        return GenerationResult(content=content, tokens=tokens, model=self.model)

    async def stream(self, bundle: PromptBundle, options: GenerationOptions) -> AsyncIterator[str]:
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=to_messages(bundle),
                temperature=options.temperature,
                max_tokens=options.max_tokens,
                stream=True,
            )
            async for chunk in response:
                if not chunk.choices:
                    continue
                delta = chunk.choices[0].delta.content
                if delta:
                    yield delta
        except OpenAIError as e:
            logger.error(f"{self.provider} streaming failed for {self.model}: {e}")
            raise GenerationBackendError(f"{self.provider} stream failed: {e}") from e


class BackendRegistry:
    """Resolves a model id to a backend, creating backends on first use."""

    def __init__(
        self,
        default_model: str,
        providers: Dict[str, Tuple[str, Optional[str]]],
    ):
        """
        Args:
            default_model: Model used when the request names none
            providers: Provider name -> (api_key, base_url)
        """
        self.default_model = default_model
        self._providers = {name: creds for name, creds in providers.items() if creds[0]}
        self._backends: Dict[str, GenerationBackend] = {}

    def register(self, backend: GenerationBackend) -> None:
        self._backends[backend.model] = backend

    @staticmethod
    def provider_for(model: str) -> Optional[str]:
        lower = model.lower()
        if any(marker in lower for marker in MISTRAL_MODEL_MARKERS):
            return "mistral"
        if any(marker in lower for marker in OPENAI_MODEL_MARKERS):
            return "openai"
        return None

    def resolve(self, model: Optional[str] = None) -> GenerationBackend:
        """
        Get the backend for a model id.

        Args:
            model: Requested model id; the default model when empty

        Returns:
            GenerationBackend serving the model

        Raises:
            UnknownModelError: If no configured provider can serve the model
        """
        model_id = model or self.default_model
        if model_id in self._backends:
            return self._backends[model_id]

        provider = self.provider_for(model_id)
        if provider is None:
            raise UnknownModelError(f"Model {model_id} not found")
        if provider not in self._providers:
            raise UnknownModelError(f"No API key configured for provider '{provider}' (model {model_id})")

        api_key, base_url = self._providers[provider]
        backend = OpenAICompatibleBackend(model=model_id, api_key=api_key, base_url=base_url, provider=provider)
        self._backends[model_id] = backend
        logger.info(f"Created {provider} backend for model {model_id}")
        return backend

    def available_models(self) -> List[str]:
        return sorted(self._backends)


def build_backend_registry(settings) -> BackendRegistry:
    return BackendRegistry(
        default_model=settings.DEFAULT_MODEL,
        providers={
            "openai": (settings.OPENAI_API_KEY, settings.OPENAI_BASE_URL),
            "mistral": (settings.MISTRAL_API_KEY, settings.MISTRAL_BASE_URL),
        },
    )
