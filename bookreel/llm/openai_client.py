"""HTTP client for OpenAI-compatible chat-completions endpoints.

Responsibilities:
- Post chat-completions requests with a per-call timeout.
- Extract assistant text from response payloads.
- Map HTTP and transport failures to `OpenAIProviderError` with a failure kind.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Callable

import requests


class OpenAIProviderError(RuntimeError):
    """Raised when a completion request fails or returns malformed output.

    `failure_kind` is one of `invalid_api_key`, `insufficient_quota`,
    `invalid_model`, `rate_limited`, `timeout`, `http_error`, `transport`,
    `malformed_response`, `empty_response`, or `unknown`.
    """

    def __init__(
        self,
        message: str,
        *,
        failure_kind: str = "unknown",
        status_code: int | None = None,
        provider_code: str | None = None,
    ) -> None:
        """Store the failure classification next to the readable message."""

        super().__init__(message)
        self.failure_kind = failure_kind
        self.status_code = status_code
        self.provider_code = provider_code


class OpenAIChatClient:
    """Minimal requests-based chat-completions client.

    Works against any endpoint speaking the OpenAI wire format, such as
    DeepSeek or a local gateway, by changing `base_url`.
    """

    def __init__(
        self,
        *,
        api_key: str | None,
        base_url: str = "https://api.openai.com/v1",
        timeout_seconds: float = 60.0,
    ) -> None:
        """Normalize the key and base URL; `timeout_seconds` is the per-request default."""

        self.api_key = api_key.strip() if isinstance(api_key, str) else ""
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds

    def chat_completion_text(
        self,
        *,
        model: str,
        user_prompt: str,
        system_prompt: str | None = None,
        temperature: float = 0.0,
        timeout_seconds: float | None = None,
    ) -> str:
        """Return the first assistant text response from a chat-completions request."""

        if not self.api_key:
            raise OpenAIProviderError(
                "Missing provider API key. Set `OPENAI_API_KEY` or `provider.api_key`.",
                failure_kind="invalid_api_key",
            )

        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": user_prompt})
        payload = {"model": model, "messages": messages, "temperature": temperature}

        timeout = self.timeout_seconds if timeout_seconds is None else timeout_seconds
        raw_payload = self._post_json(
            endpoint_path="/chat/completions",
            payload=payload,
            timeout=timeout,
        )
        return extract_assistant_text(raw_payload)

    def _post_json(self, *, endpoint_path: str, payload: dict[str, Any], timeout: float) -> str:
        """POST a JSON payload and return the decoded response body."""

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        try:
            response = requests.post(
                f"{self.base_url}{endpoint_path}",
                headers=headers,
                json=payload,
                timeout=timeout,
            )
            response.raise_for_status()
        except requests.HTTPError as exc:
            raise _http_failure(exc.response) from exc
        except (requests.Timeout, TimeoutError) as exc:
            raise OpenAIProviderError(
                f"{_HEADLINES['timeout']}.", failure_kind="timeout"
            ) from exc
        except requests.RequestException as exc:
            raise OpenAIProviderError(
                f"Provider request transport error: {redact_provider_text(str(exc))}",
                failure_kind="transport",
            ) from exc
        return _decode_body(response)


_MAX_PROVIDER_MESSAGE_CHARS = 180
_API_KEY_PATTERN = re.compile(r"\bsk-[A-Za-z0-9_-]{8,}\b")
_BEARER_PATTERN = re.compile(r"(?i)bearer\s+[A-Za-z0-9._-]{12,}")

_HEADLINES = {
    "invalid_api_key": "Provider authentication failed",
    "insufficient_quota": "Provider quota is insufficient for this request",
    "invalid_model": "Provider rejected the selected model",
    "rate_limited": "Provider rate limit exceeded",
    "timeout": "Provider request timed out",
}


@dataclass(frozen=True, slots=True)
class _ErrorBody:
    """Provider error body reduced to a redacted message and optional code."""

    message: str = ""
    code: str = ""

    def mentions(self, *phrases: str) -> bool:
        lowered = self.message.lower()
        return any(phrase in lowered for phrase in phrases)


# First matching rule wins; anything unmatched is `http_error`.
_HTTP_FAILURE_RULES: tuple[tuple[str, Callable[[int, _ErrorBody], bool]], ...] = (
    ("invalid_api_key", lambda status, body: status == 401 or body.mentions("api key")),
    (
        "insufficient_quota",
        lambda status, body: body.code == "insufficient_quota"
        or (status in {402, 429} and body.mentions("quota", "balance")),
    ),
    ("rate_limited", lambda status, body: status == 429),
    (
        "invalid_model",
        lambda status, body: body.code == "model_not_found"
        or (body.mentions("model") and body.mentions("not found", "does not exist", "invalid")),
    ),
    ("timeout", lambda status, body: status in {408, 504} or body.mentions("timeout", "timed out")),
)


def redact_provider_text(text: str) -> str:
    """Mask credentials, collapse whitespace, and cap length for user-facing output."""

    masked = _BEARER_PATTERN.sub("Bearer [redacted-token]", _API_KEY_PATTERN.sub("[redacted-key]", text))
    compact = " ".join(masked.split())
    if len(compact) > _MAX_PROVIDER_MESSAGE_CHARS:
        return f"{compact[: _MAX_PROVIDER_MESSAGE_CHARS - 1]}..."
    return compact


def _decode_body(response: Any) -> str:
    return bytes(response.content).decode("utf-8", errors="replace")


def _parse_error_body(body: str) -> _ErrorBody:
    """Reduce a raw HTTP error body to a redacted message and lowercase code."""

    if not body:
        return _ErrorBody()
    try:
        payload = json.loads(body)
    except json.JSONDecodeError:
        return _ErrorBody(message=redact_provider_text(body))

    error = payload.get("error") if isinstance(payload, dict) else None
    if not isinstance(error, dict):
        return _ErrorBody(message=redact_provider_text(body))
    message = error.get("message")
    code = error.get("code")
    return _ErrorBody(
        message=redact_provider_text(message if isinstance(message, str) and message.strip() else body),
        code=code.strip().lower() if isinstance(code, str) else "",
    )


def _http_failure(response: Any) -> OpenAIProviderError:
    """Build a classified provider error from a failed HTTP response."""

    status_code = response.status_code if response is not None else 0
    body = _parse_error_body(_decode_body(response).strip() if response is not None else "")
    failure_kind = next(
        (kind for kind, matches in _HTTP_FAILURE_RULES if matches(status_code, body)),
        "http_error",
    )
    headline = _HEADLINES.get(failure_kind, "Provider request failed")
    suffix = f": {body.message}" if body.message else "."
    return OpenAIProviderError(
        f"{headline} (HTTP {status_code}){suffix}",
        failure_kind=failure_kind,
        status_code=status_code,
        provider_code=body.code or None,
    )


def _malformed(detail: str) -> OpenAIProviderError:
    return OpenAIProviderError(detail, failure_kind="malformed_response")


def extract_assistant_text(raw_payload: str) -> str:
    """Return stripped text of `choices[0].message.content`.

    List-form content keeps only `text` parts. Blank content raises with
    `failure_kind="empty_response"` so callers can tell it apart from
    payloads that do not look like chat completions at all.
    """

    try:
        payload = json.loads(raw_payload)
    except json.JSONDecodeError as exc:
        raise _malformed("Provider returned invalid JSON payload.") from exc

    choices = payload.get("choices") if isinstance(payload, dict) else None
    if not isinstance(choices, list) or not choices:
        raise _malformed("Provider response missing non-empty `choices` list.")
    message = choices[0].get("message") if isinstance(choices[0], dict) else None
    if not isinstance(message, dict):
        raise _malformed("Provider response missing `choices[0].message` object.")

    content = message.get("content")
    if isinstance(content, list):
        content = "".join(
            part["text"]
            for part in content
            if isinstance(part, dict) and part.get("type") == "text" and isinstance(part.get("text"), str)
        )
    text = content.strip() if isinstance(content, str) else ""
    if not text:
        raise OpenAIProviderError(
            "Provider response message content is empty.", failure_kind="empty_response"
        )
    return text
