"""
Domain service: Tree diameter estimation.

The interim estimator asks a text generation model to read the diameter
out of the submitting message. A future vision-based estimator is expected
to implement the same DiameterEstimator interface.
"""
import asyncio
import logging
import math
from abc import ABC, abstractmethod
from typing import Any, Optional

from treespotter.config import settings
from treespotter.domain.exceptions import DiameterCalculationError
from treespotter.infrastructure.api_constants import APIConstants
from treespotter.infrastructure.text_generation_client import (
    TextGenerationResponse,
    TextGenerationRunner,
)

logger = logging.getLogger(__name__)


DIAMETER_PROMPT_TEMPLATE = """You extract tree trunk measurements from citizen tree reports.

Read the email below and determine the trunk diameter in centimeters.

Rules:
- If a diameter (or DBH) is given, convert it to centimeters.
- If only a circumference is given, compute diameter = circumference / π and convert to centimeters.
- If a radius is given, diameter = 2 * radius.
- Reply with ONLY the number, without units or any other text.
- If no measurement can be found, reply with exactly {not_found}.

Email subject: {subject}

Email body:
{body}
"""


def build_diameter_prompt(subject: str, body: str) -> str:
    """Fill the diameter extraction prompt for one message."""
    return DIAMETER_PROMPT_TEMPLATE.format(
        subject=subject,
        body=body,
        not_found=APIConstants.NOT_FOUND_TOKEN,
    )


class DiameterEstimator(ABC):
    """Interface for anything that can produce a diameter in centimeters."""

    @abstractmethod
    async def estimate(self, subject: str, body: str) -> float:
        """
        Estimate the trunk diameter for a submission.

        Raises:
            DiameterCalculationError: If no valid diameter can be produced
        """


class TextModelDiameterEstimator(DiameterEstimator):
    """
    Diameter estimation from message text via a text generation model.

    The model is invoked exactly once per call; failures are not retried.
    """

    def __init__(
        self,
        runner: TextGenerationRunner,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
        min_diameter_cm: Optional[float] = None,
        max_diameter_cm: Optional[float] = None,
    ):
        """
        Initialize the estimator.

        Args:
            runner: Text generation capability
            model: Model identifier passed to the runner
            timeout: Upper bound in seconds for the model call
            min_diameter_cm: Smallest accepted diameter
            max_diameter_cm: Largest accepted diameter
        """
        self.runner = runner
        self.model = model or settings.text_generation_model
        self.timeout = timeout if timeout is not None else settings.text_generation_timeout
        self.min_diameter_cm = (
            min_diameter_cm if min_diameter_cm is not None else settings.diameter_min_cm
        )
        self.max_diameter_cm = (
            max_diameter_cm if max_diameter_cm is not None else settings.diameter_max_cm
        )

    async def estimate(self, subject: str, body: str) -> float:
        """
        Extract the diameter in centimeters from a message.

        Args:
            subject: Message subject
            body: Message body

        Returns:
            Diameter in centimeters within the accepted range

        Raises:
            DiameterCalculationError: On model failure, unexpected response
                shape, NOT_FOUND, non-numeric or out-of-range values
        """
        prompt = build_diameter_prompt(subject, body)

        try:
            response = await asyncio.wait_for(
                self.runner.run(self.model, {"prompt": prompt}),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            raise DiameterCalculationError(
                f"Text generation timed out after {self.timeout}s"
            )
        except Exception as e:
            raise DiameterCalculationError(f"Text generation failed: {e}")

        text = self._response_text(response)
        if text is None:
            raise DiameterCalculationError(
                "Unexpected response format from text generation model"
            )

        text = text.strip()
        logger.debug(f"Model diameter response: {text!r}")

        if text == APIConstants.NOT_FOUND_TOKEN:
            raise DiameterCalculationError(
                "No diameter measurement found in email content"
            )

        try:
            diameter = float(text)
        except ValueError:
            diameter = math.nan

        if not math.isfinite(diameter) or diameter <= 0:
            raise DiameterCalculationError(
                f"Invalid diameter value extracted: {text}"
            )

        if diameter < self.min_diameter_cm or diameter > self.max_diameter_cm:
            raise DiameterCalculationError(
                f"Diameter {diameter}cm is outside reasonable range "
                f"({self.min_diameter_cm:g}-{self.max_diameter_cm:g}cm)"
            )

        return diameter

    @staticmethod
    def _response_text(response: TextGenerationResponse) -> Optional[str]:
        """Pull the generated text out of a bare string or {"response": ...}."""
        if isinstance(response, str):
            return response

        value: Any = None
        if isinstance(response, dict):
            value = response.get("response")
        else:
            value = getattr(response, "response", None)

        return value if isinstance(value, str) else None
