import json
import logging
import time
from typing import Any, Callable, Dict, List, Optional, Union

import requests

from repomap.errors import MalformedEnvelopeError
from repomap.inference.base import LLMClient
from repomap.llm.parser import decode
from repomap.validation.schema_validator import Contract, SchemaValidator

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 300  # seconds, whole attempt including the body
DEFAULT_MAX_ATTEMPTS = 3

JSON_OBJECT_FORMAT = {"type": "json_object"}


def extract_content(data: Any) -> Union[str, dict]:
    """
    Pull the assistant payload out of a chat-completions envelope.

    Accepts plain string content, a list of text parts, an already-structured
    object, or tool-call arguments. Anything else is a malformed envelope.
    """
    try:
        message = data["choices"][0]["message"]
    except (KeyError, IndexError, TypeError) as e:
        raise MalformedEnvelopeError(f"response has no choices[0].message: {e!r}") from e

    if not isinstance(message, dict):
        raise MalformedEnvelopeError("choices[0].message is not an object")

    content = message.get("content")

    if isinstance(content, str) and content.strip():
        return content

    if isinstance(content, dict):
        return content

    if isinstance(content, list):
        parts = [
            p.get("text", "") if isinstance(p, dict) else str(p)
            for p in content
        ]
        text = "".join(parts)
        if text.strip():
            return text

    tool_calls = message.get("tool_calls") or []
    if tool_calls:
        try:
            return tool_calls[0]["function"]["arguments"]
        except (KeyError, IndexError, TypeError) as e:
            raise MalformedEnvelopeError(f"tool call without arguments: {e!r}") from e

    raise MalformedEnvelopeError("choices[0].message has no content")


class ChatCompletionsClient(LLMClient):
    """
    Chat-completions client with a per-attempt deadline and linear backoff.

    Network errors, non-2xx responses and malformed envelopes are retried:
    after attempt n fails, wait n * 2 seconds. The last error is re-raised
    unchanged once attempts run out. Content is never judged here.

    The deadline spans the whole attempt: connecting, the headers and the
    streamed body. A body still arriving when it passes raises
    requests.Timeout, which is retried like any other network error.
    """

    def __init__(
        self,
        base_url: str,
        model: str,
        api_key: Optional[str] = None,
        temperature: float = 0.0,
        timeout: float = DEFAULT_TIMEOUT,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        referer: Optional[str] = None,
        title: Optional[str] = None,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

        self.base_url = base_url.rstrip("/")
        self.model = model
        self.api_key = api_key
        self.temperature = temperature
        self.timeout = timeout
        self.max_attempts = max_attempts
        self.referer = referer
        self.title = title
        self.session = session or requests.Session()
        self._sleep = sleep
        self._clock = clock

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        if self.referer:
            headers["HTTP-Referer"] = self.referer
        if self.title:
            headers["X-Title"] = self.title
        return headers

    def _payload(
        self,
        messages: List[Dict],
        response_format: Optional[Dict[str, Any]],
    ) -> Dict[str, Any]:
        payload = {
            "model": self.model,
            "messages": list(messages),
            "temperature": self.temperature,
        }
        if response_format:
            payload["response_format"] = response_format
        return payload

    def _read_body(self, response, deadline: float) -> bytes:
        # the deadline covers the whole body, not each socket read
        chunks = []
        for chunk in response.iter_content(chunk_size=8192):
            chunks.append(chunk)
            if self._clock() > deadline:
                raise requests.Timeout(
                    f"no complete response within {self.timeout}s"
                )
        return b"".join(chunks)

    def _call(self, payload: Dict[str, Any]) -> Union[str, dict]:
        deadline = self._clock() + self.timeout
        response = self.session.post(
            f"{self.base_url}/chat/completions",
            json=payload,
            headers=self._headers(),
            timeout=self.timeout,
            stream=True,
        )
        try:
            response.raise_for_status()
            body = self._read_body(response, deadline)
        finally:
            response.close()

        try:
            data = json.loads(body)
        except ValueError as e:
            raise MalformedEnvelopeError(f"response body is not JSON: {e}") from e

        return extract_content(data)

    def generate(
        self,
        messages: List[Dict],
        response_format: Optional[Dict[str, Any]] = None,
    ) -> Union[str, dict]:
        payload = self._payload(messages, response_format)
        attempt = 1

        while True:
            try:
                content = self._call(payload)
                if attempt > 1:
                    logger.info("[CLIENT] attempt %d/%d succeeded", attempt, self.max_attempts)
                return content
            except (requests.RequestException, MalformedEnvelopeError) as e:
                if attempt >= self.max_attempts:
                    logger.error(
                        "[CLIENT] giving up after %d attempts: %s",
                        attempt,
                        e,
                    )
                    raise

                delay = attempt * 2
                logger.warning(
                    "[CLIENT] attempt %d/%d failed (%s), retrying in %ds",
                    attempt,
                    self.max_attempts,
                    e,
                    delay,
                )
                self._sleep(delay)
                attempt += 1

    def generate_structured(
        self,
        messages: List[Dict],
        contract: Contract,
        validator: Optional[SchemaValidator] = None,
    ):
        """
        Request a JSON object response and return it decoded and validated.
        Raises SchemaViolation when the decoded document breaks the contract.
        """
        raw = self.generate(messages, response_format=JSON_OBJECT_FORMAT)
        validator = validator or SchemaValidator()
        return validator.validate(decode(raw, contract.shape), contract)
