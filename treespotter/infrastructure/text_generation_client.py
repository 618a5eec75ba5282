"""
Infrastructure layer: Text generation API client.
"""
from typing import Any, Dict, Optional, Protocol, Union
import httpx

from treespotter.config import settings
from treespotter.infrastructure.api_constants import TextGenerationEndpoints


TextGenerationResponse = Union[str, Dict[str, Any]]


class TextGenerationRunner(Protocol):
    """Anything that can run a text generation model on a prompt."""

    async def run(self, model: str, inputs: Dict[str, Any]) -> TextGenerationResponse:
        ...


class TextGenerationError(Exception):
    """Custom exception for text generation API errors."""

    def __init__(self, message: str, status_code: int = 502):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class TextGenerationClient:
    """
    Client for the Workers AI text generation REST API.
    Each call is made exactly once; failures surface as TextGenerationError.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        account_id: Optional[str] = None,
        api_token: Optional[str] = None,
    ):
        """Initialize the API client with configuration."""
        self.base_url = base_url or settings.text_generation_base_url
        self.account_id = account_id or settings.text_generation_account_id
        self.api_token = api_token or settings.text_generation_api_token
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={
                "Authorization": f"Bearer {self.api_token}",
                "accept": "application/json",
            },
            timeout=settings.text_generation_timeout,
        )

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()

    async def __aenter__(self) -> "TextGenerationClient":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def _make_request(
        self,
        method: str,
        endpoint: str,
        **kwargs
    ) -> Dict[str, Any]:
        """
        Make a single HTTP request.

        Args:
            method: HTTP method (GET, POST, etc.)
            endpoint: API endpoint path
            **kwargs: Additional arguments for the request

        Returns:
            Response data as dictionary

        Raises:
            TextGenerationError: On any non-2xx status or transport failure
        """
        try:
            response = await self.client.request(method, endpoint, **kwargs)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            raise TextGenerationError(
                f"Text generation request failed: {e.response.status_code} - {e.response.text}",
                status_code=e.response.status_code,
            )
        except httpx.TimeoutException as e:
            raise TextGenerationError(
                f"Text generation request timed out: {str(e)}",
                status_code=504,
            )
        except httpx.RequestError as e:
            raise TextGenerationError(f"Text generation request error: {str(e)}")

    async def run(self, model: str, inputs: Dict[str, Any]) -> TextGenerationResponse:
        """
        Run a text generation model.

        Args:
            model: Model identifier
            inputs: Model inputs, e.g. {"prompt": "..."}

        Returns:
            The unwrapped "result" payload, normally {"response": "..."}

        Raises:
            TextGenerationError: If the request fails or the API reports failure
        """
        data = await self._make_request(
            "POST",
            TextGenerationEndpoints.run_model(self.account_id, model),
            json=inputs,
        )

        if not data.get("success", True):
            errors = data.get("errors") or []
            detail = "; ".join(
                str(err.get("message", err)) if isinstance(err, dict) else str(err)
                for err in errors
            ) or "unknown error"
            raise TextGenerationError(f"Text generation failed: {detail}")

        return data.get("result", data)


# Singleton instance
_text_generation_client: Optional[TextGenerationClient] = None


def get_text_generation_client() -> TextGenerationClient:
    """
    Get or create the singleton text generation client instance.

    Returns:
        TextGenerationClient instance
    """
    global _text_generation_client
    if _text_generation_client is None:
        _text_generation_client = TextGenerationClient()
    return _text_generation_client
