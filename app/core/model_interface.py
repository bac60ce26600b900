"""Model interfaces for the vision and chat-completion services."""

import json
import logging
from typing import Optional
from abc import ABC, abstractmethod

import requests
from openai import OpenAI

logger = logging.getLogger(__name__)


class ModelInterfaceError(Exception):
    """Base exception for model service failures."""
    pass


class MissingCredentialsError(ModelInterfaceError):
    """Raised when a hosted model is called without an API key."""
    pass


class BaseVisionInterface(ABC):
    """Abstract base class for image-analysis models."""

    @abstractmethod
    def analyze_image(self, image_b64: str, prompt: str) -> str:
        """Return the raw text reply for an image and prompt."""
        pass

    @abstractmethod
    def get_model_name(self) -> str:
        """Get model name."""
        pass


class BaseChatInterface(ABC):
    """Abstract base class for chat-completion models."""

    @abstractmethod
    def complete(self, prompt: str) -> str:
        """Return the raw text reply for a single user message."""
        pass

    @abstractmethod
    def get_model_name(self) -> str:
        """Get model name."""
        pass


class MockVisionInterface(BaseVisionInterface):
    """Offline vision model for testing and demos."""

    def __init__(self, dish_name: str = "Paneer Tikka"):
        self._name = "mock-vision-model"
        self._dish_name = dish_name

    def analyze_image(self, image_b64: str, prompt: str) -> str:
        if not image_b64:
            return json.dumps({"isFood": False, "reason": "Empty image"})
        return json.dumps({
            "isFood": True,
            "dishName": self._dish_name,
            "ingredients": ["paneer", "yogurt", "bell pepper", "onion", "spices"],
        })

    def get_model_name(self) -> str:
        return self._name


class MockChatInterface(BaseChatInterface):
    """Offline chat model that answers with a fenced recipe array."""

    def __init__(self):
        self._name = "mock-chat-model"

    def complete(self, prompt: str) -> str:
        expiring = ""
        for line in prompt.splitlines():
            if "about to spoil" in line:
                expiring = line.split(":", 1)[-1].strip()
        main = expiring or "seasonal vegetables"
        recipes = [{
            "name": f"Quick {main.split(',')[0].strip().title()} Skillet",
            "ingredients": main,
            "twist": "Finish with toasted seeds and a squeeze of citrus.",
            "time": "20 mins",
            "benefits": "Fresh produce keeps vitamins and fibre high.",
            "sustainability": "Uses the most perishable items first.",
        }]
        return "```json\n" + json.dumps(recipes, indent=2) + "\n```"

    def get_model_name(self) -> str:
        return self._name


class OllamaVisionInterface(BaseVisionInterface):
    """Interface for a local Ollama server's /api/generate endpoint."""

    def __init__(
        self,
        endpoint: str,
        model_name: str,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None
    ):
        self._endpoint = endpoint
        self._model_name = model_name
        self._timeout = timeout
        self._session = session or requests.Session()

    def analyze_image(self, image_b64: str, prompt: str) -> str:
        """Send one image to Ollama and return its 'response' text."""
        payload = {
            "model": self._model_name,
            "prompt": prompt,
            "images": [image_b64],
            "stream": False,
            "format": "json"
        }
        response = self._session.post(
            self._endpoint,
            json=payload,
            headers={"Content-Type": "application/json"},
            timeout=self._timeout
        )
        if not response.ok:
            raise ModelInterfaceError(f"Ollama API Error: {response.status_code} {response.text}")

        data = response.json()
        text = data.get("response") if isinstance(data, dict) else None
        if not isinstance(text, str):
            raise ModelInterfaceError("Ollama reply has no 'response' text")
        return text

    def get_model_name(self) -> str:
        return self._model_name


class GroqChatInterface(BaseChatInterface):
    """Interface for Groq's OpenAI-compatible chat completions."""

    def __init__(
        self,
        api_key: Optional[str],
        model_name: str,
        base_url: str = "https://api.groq.com/openai/v1",
        temperature: float = 0.7,
        max_tokens: int = 2048,
        timeout: Optional[float] = None,
        client: Optional[OpenAI] = None
    ):
        self._api_key = api_key
        self._model_name = model_name
        self._base_url = base_url
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._timeout = timeout
        self._client = client

    def _get_client(self) -> OpenAI:
        if self._client is None:
            if not self._api_key:
                raise MissingCredentialsError("Missing API Key")
            options = {"timeout": self._timeout} if self._timeout is not None else {}
            # Single attempt per request
            self._client = OpenAI(
                api_key=self._api_key,
                base_url=self._base_url,
                max_retries=0,
                **options
            )
        return self._client

    def complete(self, prompt: str) -> str:
        completion = self._get_client().chat.completions.create(
            messages=[{"role": "user", "content": prompt}],
            model=self._model_name,
            temperature=self._temperature,
            max_tokens=self._max_tokens
        )
        if not completion.choices:
            return "[]"
        return completion.choices[0].message.content or "[]"

    def list_models(self) -> list:
        """List model ids available on the provider."""
        return [(m.id, getattr(m, "owned_by", "")) for m in self._get_client().models.list()]

    @property
    def has_credentials(self) -> bool:
        return bool(self._api_key) or self._client is not None

    def get_model_name(self) -> str:
        return self._model_name


class ModelManager:
    """Builds the vision and chat interfaces from settings."""

    def __init__(self, settings):
        self.settings = settings
        self._vision: Optional[BaseVisionInterface] = None
        self._chat: Optional[BaseChatInterface] = None

    def initialize(self, use_mock: bool = False) -> None:
        """Initialize the model interfaces."""
        if use_mock:
            logger.info("Using mock model interfaces")
            self._vision = MockVisionInterface()
            self._chat = MockChatInterface()
            return

        self._vision = OllamaVisionInterface(
            endpoint=self.settings.ollama_endpoint,
            model_name=self.settings.vision_model,
            timeout=self.settings.vision_timeout
        )
        if not self.settings.chat_api_key:
            logger.warning("Chat API key is missing. Recipe assistant will use fallback recipes.")
        self._chat = GroqChatInterface(
            api_key=self.settings.chat_api_key,
            model_name=self.settings.chat_model,
            base_url=self.settings.chat_base_url,
            temperature=self.settings.temperature,
            max_tokens=self.settings.max_tokens,
            timeout=self.settings.chat_timeout
        )
        logger.info(
            f"Model interfaces ready: vision={self._vision.get_model_name()} "
            f"chat={self._chat.get_model_name()}"
        )

    @property
    def vision(self) -> Optional[BaseVisionInterface]:
        return self._vision

    @property
    def chat(self) -> Optional[BaseChatInterface]:
        return self._chat

    @property
    def chat_configured(self) -> bool:
        if isinstance(self._chat, GroqChatInterface):
            return self._chat.has_credentials
        return self._chat is not None

    def is_ready(self) -> bool:
        return self._vision is not None and self._chat is not None
