"""
External API endpoint constants and image format signatures.

Centralizing these values makes it easy to swap out endpoints or update API versions.
"""


# Text generation API endpoints (Cloudflare Workers AI REST API)
class TextGenerationEndpoints:
    """Text generation API endpoint paths."""

    RUN_MODEL = "/accounts/{account_id}/ai/run/{model}"

    @classmethod
    def run_model(cls, account_id: str, model: str) -> str:
        """
        Get the model invocation endpoint.

        Args:
            account_id: Account identifier
            model: Model identifier, e.g. "@cf/meta/llama-3.1-8b-instruct"

        Returns:
            Formatted endpoint path
        """
        return cls.RUN_MODEL.format(account_id=account_id, model=model)


class ImageSignatures:
    """Leading magic bytes expected for each declared image MIME type."""

    SIGNATURES = {
        "image/jpeg": bytes([0xFF, 0xD8, 0xFF]),
        "image/jpg": bytes([0xFF, 0xD8, 0xFF]),
        "image/png": bytes([0x89, 0x50, 0x4E, 0x47]),
        "image/gif": bytes([0x47, 0x49, 0x46]),
        "image/webp": bytes([0x52, 0x49, 0x46, 0x46]),
        "image/bmp": bytes([0x42, 0x4D]),
        "image/tiff": bytes([0x49, 0x49, 0x2A, 0x00]),
    }

    @classmethod
    def matches(cls, content_type: str, content: bytes) -> bool:
        """
        Check that content starts with the signature of its declared type.

        Unknown content types are not checked and always match.

        Args:
            content_type: Declared MIME type (parameters such as charset ignored)
            content: Raw body bytes

        Returns:
            True if the signature matches or the type is unknown
        """
        mime_type = content_type.split(";")[0].strip().lower()
        signature = cls.SIGNATURES.get(mime_type)
        if signature is None:
            return True
        return content.startswith(signature)


# API Configuration Constants
class APIConstants:
    """General API configuration constants."""

    # HTTP Headers
    CONTENT_TYPE_JSON = "application/json"
    IMAGE_CONTENT_TYPE_PREFIX = "image/"

    # Timeouts (in seconds)
    DEFAULT_TIMEOUT = 30.0

    # Text generation output contract
    NOT_FOUND_TOKEN = "NOT_FOUND"
