'''
Request clients: the boundary between the UI and the remote text service.

A client has one blocking method, `submit(prompt) -> list[str]`, which returns
the response fragments in the order the service produced them, or raises a
RequestError subclass. Clients are run off the UI thread by PendingRequest.

Clients are registered by name:

    @provider("my_service")
    class MyClient:
        def __init__(self, config): ...
        def submit(self, prompt): ...
'''
import logging
from typing import Any, Callable, Dict, List, Protocol

import litellm
import openai
import requests

from .config import Config, ConfigError
from .state import ErrorKind

logger = logging.getLogger(__name__)

# litellm prints help text to stdout on errors, which would land on the UI
litellm.suppress_debug_info = True


GEMINI_API_URL = "https://generativelanguage.googleapis.com/v1beta"
GEMINI_OPENAI_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"


class RequestError(Exception):
    kind = ErrorKind.TRANSPORT_FAILURE

class TransportFailure(RequestError):
    kind = ErrorKind.TRANSPORT_FAILURE

class MalformedResponse(RequestError):
    kind = ErrorKind.MALFORMED_RESPONSE

class RemoteRejected(RequestError):
    kind = ErrorKind.REMOTE_REJECTED


class RequestClient(Protocol):
    def submit(self, prompt: str) -> List[str]: ...


PROVIDERS: Dict[str, Callable[[Config], RequestClient]] = {}


def provider(name: str):
    def register(cls):
        PROVIDERS[name] = cls
        return cls
    return register


def build_client(config: Config) -> RequestClient:
    factory = PROVIDERS.get(config.provider)
    if factory is None:
        raise ConfigError(f"unknown provider '{config.provider}' (choose from {', '.join(sorted(PROVIDERS))})")
    logger.info("using provider %s with model %s", config.provider, config.model)
    return factory(config)


def _user_message(prompt: str) -> List[Dict[str, str]]:
    return [{"role": "user", "content": prompt}]


def _choice_texts(response: Any) -> List[str]:
    '''Pull message text out of an OpenAI-shaped chat completion, one per choice.'''
    try:
        choices = response.choices
        texts = [c.message.content for c in choices]
    except (AttributeError, TypeError) as e:
        raise MalformedResponse(f"unexpected completion shape: {e}") from e
    if any(t is not None and not isinstance(t, str) for t in texts):
        raise MalformedResponse("choice content is not a string")
    # empty choices keep their place so the first fragment stays the first choice
    fragments = [t or "" for t in texts]
    if not any(fragments):
        finish = [getattr(c, "finish_reason", None) for c in choices]
        raise RemoteRejected(f"no text in {len(choices)} choice(s), finish_reason={finish}")
    return fragments


@provider("litellm")
class LiteLLMClient:
    def __init__(self, config: Config):
        self.model = config.model if "/" in config.model else f"gemini/{config.model}"
        self.api_key = config.api_key
        self.base_url = config.base_url
        self.timeout = config.timeout
        self.candidates = config.candidates

    def submit(self, prompt: str) -> List[str]:
        kwargs: Dict[str, Any] = {}
        if self.base_url: kwargs["api_base"] = self.base_url
        if self.candidates > 1: kwargs["n"] = self.candidates
        try:
            response = litellm.completion(
                model=self.model,
                messages=_user_message(prompt),
                api_key=self.api_key,
                timeout=self.timeout,
                num_retries=0,
                **kwargs,
            )
        except openai.APIConnectionError as e:
            # also covers litellm.Timeout
            raise TransportFailure(str(e)) from e
        except openai.APIResponseValidationError as e:
            raise MalformedResponse(str(e)) from e
        except openai.APIError as e:
            raise RemoteRejected(str(e)) from e
        return _choice_texts(response)


@provider("openai")
class OpenAIClient:
    def __init__(self, config: Config):
        self.model = config.model
        self.candidates = config.candidates
        self.client = openai.OpenAI(
            base_url=config.base_url or GEMINI_OPENAI_URL,
            api_key=config.api_key,
            timeout=config.timeout,
            max_retries=0,
        )

    def submit(self, prompt: str) -> List[str]:
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=_user_message(prompt),  # pyright: ignore
                n=self.candidates,
            )
        except openai.APIConnectionError as e:
            raise TransportFailure(str(e)) from e
        except openai.APIResponseValidationError as e:
            raise MalformedResponse(str(e)) from e
        except openai.APIError as e:
            raise RemoteRejected(str(e)) from e
        return _choice_texts(response)


@provider("gemini")
class GeminiClient:
    '''Talks to the Gemini REST API directly.'''
    def __init__(self, config: Config):
        self.url = f"{(config.base_url or GEMINI_API_URL).rstrip('/')}/models/{config.model}:generateContent"
        self.api_key = config.api_key
        self.timeout = config.timeout
        self.candidates = config.candidates
        self.session = requests.Session()

    def body(self, prompt: str) -> dict:
        return {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {"candidateCount": self.candidates},
        }

    def submit(self, prompt: str) -> List[str]:
        try:
            response = self.session.post(
                self.url,
                params={"key": self.api_key},
                json=self.body(prompt),
                headers={"content-type": "application/json"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise TransportFailure(str(e)) from e

        if not response.ok:
            raise RemoteRejected(f"HTTP {response.status_code}: {_error_detail(response)}")
        try:
            payload = response.json()
        except ValueError as e:
            raise MalformedResponse(f"response body is not JSON: {e}") from e
        return parse_generate_content(payload)


def _error_detail(response: requests.Response) -> str:
    try:
        return response.json()["error"]["message"]
    except (ValueError, KeyError, TypeError):
        return (response.text or "")[:200]


def parse_generate_content(payload: Any) -> List[str]:
    '''
    Flatten a generateContent response into fragments: the text of every part
    of every candidate, in order.
    '''
    if not isinstance(payload, dict):
        raise MalformedResponse(f"expected a JSON object, got {type(payload).__name__}")

    try:
        block = (payload.get("promptFeedback") or {}).get("blockReason")
    except AttributeError as e:
        raise MalformedResponse(f"unexpected promptFeedback shape: {e}") from e
    if block:
        raise RemoteRejected(f"prompt blocked: {block}")

    candidates = payload.get("candidates")
    if not candidates:
        raise RemoteRejected("no candidates returned")
    if not isinstance(candidates, list):
        raise MalformedResponse("'candidates' is not a list")

    fragments = []
    try:
        for candidate in candidates:
            # candidates stopped by safety filters come back without content
            content = candidate.get("content")
            if content is None:
                continue
            for part in content.get("parts", []):
                text = part.get("text")
                if text is not None:
                    if not isinstance(text, str):
                        raise MalformedResponse("part text is not a string")
                    fragments.append(text)
    except (AttributeError, TypeError) as e:
        raise MalformedResponse(f"unexpected candidate shape: {e}") from e

    if not any(fragments):
        reasons = [c.get("finishReason") for c in candidates if isinstance(c, dict)]
        raise RemoteRejected(f"candidates carried no text, finishReason={reasons}")
    return fragments
