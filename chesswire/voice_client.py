"""
Voice rendering service client.

Provides methods for:
- Rendering narration text to audio bytes
- Non-blocking hand-off of narrative adaptations
- Retry logic with exponential backoff
"""

from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Optional

import httpx
from tenacity import (
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from chesswire.models.analysis import NarrativeAdaptation
from chesswire.models.content import Tone, VoiceMode
from chesswire.utils.config import get_settings
from chesswire.utils.exceptions import RateLimitError, VoiceServiceError
from chesswire.utils.logger import get_logger

logger = get_logger("voice")

RENDER_ENDPOINT = "/voice/generate"


def _is_transient(exc: BaseException) -> bool:
    """Rate limits, server errors and transport failures are worth retrying."""
    if isinstance(exc, RateLimitError):
        return True
    if isinstance(exc, VoiceServiceError):
        return exc.status_code is None or exc.is_server_error
    return False


class VoiceRenderingClient:
    """
    Client for the external voice rendering service.

    render() blocks on the HTTP call; dispatch() hands the work to a small
    thread pool and returns immediately.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_url: Optional[str] = None,
        timeout: Optional[float] = None,
        max_workers: Optional[int] = None,
    ) -> None:
        """
        Initialize the voice client.

        Args:
            api_key: Voice service API key. Defaults to config value.
            api_url: Voice service base URL. Defaults to config value.
            timeout: Request timeout in seconds. Defaults to config value.
            max_workers: Threads used by dispatch(). Defaults to config value.
        """
        settings = get_settings()
        self.api_key = api_key or settings.voice.api_key
        self.api_url = (api_url or settings.voice.api_url).rstrip("/")
        self.timeout = timeout or settings.voice.timeout

        if not self.api_key:
            logger.warning("Voice service API key not configured")

        self._client = httpx.Client(
            base_url=self.api_url,
            headers=self._build_headers(),
            timeout=self.timeout,
        )
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers or settings.voice.max_workers,
            thread_name_prefix="chesswire-voice",
        )

    def _build_headers(self) -> dict[str, str]:
        """Build request headers with authentication."""
        headers = {
            "Content-Type": "application/json",
            "Accept": "audio/mpeg",
        }
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def close(self) -> None:
        """Stop accepting hand-offs and close the HTTP client."""
        self._executor.shutdown(wait=True)
        self._client.close()

    def __enter__(self) -> "VoiceRenderingClient":
        """Context manager entry."""
        return self

    def __exit__(self, *args: Any) -> None:
        """Context manager exit."""
        self.close()

    @retry(
        retry=retry_if_exception(_is_transient),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        reraise=True,
    )
    def _make_request(
        self,
        method: str,
        endpoint: str,
        **kwargs: Any,
    ) -> httpx.Response:
        """
        Make an HTTP request with retry logic.

        Args:
            method: HTTP method (GET, POST, etc.)
            endpoint: API endpoint path
            **kwargs: Additional arguments passed to httpx

        Returns:
            HTTP response

        Raises:
            VoiceServiceError: On API errors
            RateLimitError: When rate limited
        """
        url = f"{self.api_url}/{endpoint.lstrip('/')}"
        logger.debug(f"Making {method} request to {url}")

        try:
            response = self._client.request(method, endpoint, **kwargs)
        except httpx.TimeoutException as e:
            logger.error(f"Request timeout: {url}")
            raise VoiceServiceError(
                "Request timed out",
                endpoint=endpoint,
                cause=e,
            ) from e
        except httpx.NetworkError as e:
            logger.error(f"Network error: {url} - {e}")
            raise VoiceServiceError(
                "Network error occurred",
                endpoint=endpoint,
                cause=e,
            ) from e

        if response.status_code == 429:
            retry_after_header = response.headers.get("Retry-After", "60")
            try:
                retry_after = int(retry_after_header)
            except (ValueError, TypeError):
                retry_after = 60
            logger.warning(f"Rate limited, retry after {retry_after}s")
            raise RateLimitError(
                "Voice service rate limit exceeded",
                service="voice",
                retry_after=retry_after,
            )

        if response.status_code >= 400:
            error_body = response.text
            logger.error(f"Voice service error {response.status_code}: {error_body[:200]}")
            raise VoiceServiceError(
                f"Voice service error: {response.status_code}",
                status_code=response.status_code,
                response_body=error_body,
                endpoint=endpoint,
            )

        return response

    def render(self, text: str, voice_mode: VoiceMode, tone: Tone) -> bytes:
        """
        Render narration text to audio.

        Args:
            text: Narration text with emphasis and pause markers
            voice_mode: Voice mode to render with
            tone: Emotional tone of the narration

        Returns:
            Audio bytes (MPEG)

        Raises:
            VoiceServiceError: On API errors or when the service has no
                               renderer available
        """
        logger.info(f"Rendering narration ({voice_mode.value}/{tone.value}, {len(text)} chars)")

        response = self._make_request(
            "POST",
            RENDER_ENDPOINT,
            json={"text": text, "voiceMode": voice_mode.value, "tone": tone.value},
        )

        # The service answers JSON {"fallback": true} when it cannot render
        if response.headers.get("content-type", "").startswith("application/json"):
            raise VoiceServiceError(
                "Voice service has no renderer available",
                status_code=response.status_code,
                response_body=response.text,
                endpoint=RENDER_ENDPOINT,
            )
        return response.content

    def dispatch(self, adaptation: NarrativeAdaptation) -> "Future[bytes]":
        """
        Hand a narrative adaptation off for rendering without waiting.

        Args:
            adaptation: Narration produced by the pipeline

        Returns:
            Future resolving to the audio bytes
        """
        future = self._executor.submit(
            self.render,
            adaptation.text,
            adaptation.voice_mode,
            adaptation.tone,
        )
        future.add_done_callback(self._log_failure)
        return future

    @staticmethod
    def _log_failure(future: "Future[bytes]") -> None:
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            logger.warning(f"Narration rendering failed: {exc}")

    def health_check(self) -> bool:
        """
        Check if the voice service is accessible.

        Returns:
            True if the service is healthy, False otherwise
        """
        try:
            response = self._client.get("/health", timeout=5.0)
            return response.status_code == 200
        except httpx.HTTPError as e:
            logger.warning(f"Health check failed: {e}")
            return False
