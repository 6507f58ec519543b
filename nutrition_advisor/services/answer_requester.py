"""
Answer Requester for Nutrition Advisor.

This service sends a food photo to Google Gemini through the google-genai SDK
and returns the model's free-text nutritional analysis. The credential lives
on the server; the browser never sees it.
"""

import base64
import binascii
import logging
from typing import Optional, Dict, Any, Literal

from google import genai
from google.genai import errors, types
from pydantic import BaseModel, Field

from ..config import mask_key


DEFAULT_PROMPT = """You are an expert nutritionist. Look at the food in this image and give a nutritional analysis.

Respond in Markdown with:
- A short list of the foods you can identify, with an estimated portion size for each
- Estimated calories per item and a total
- Estimated macronutrients (protein, carbohydrates, fat) for the whole meal
- Two or three practical suggestions to make the meal more balanced

If the image does not show food, say so briefly and do not invent an analysis."""


class AnalysisError(Exception):
    """Raised when the nutrition analysis call fails."""


class AnalysisRequest(BaseModel):
    """Payload for one analysis call."""
    file_base64: str = Field(..., min_length=1, description="Image payload without data URI prefix")
    file_mime_type: Literal["image/jpeg", "image/png"]
    google_key: str = Field(default="", description="Gemini API key")


class AnswerRequester:
    """Service for requesting nutrition analysis from Gemini."""

    def __init__(self, model: str = "gemini-2.5-flash", timeout: int = 60,
                 prompt: str = DEFAULT_PROMPT, temperature: float = 0.4,
                 max_output_tokens: int = 2048, api_key: str = ""):
        """
        Initialize the Answer Requester.

        Args:
            model: Gemini model name
            timeout: Request timeout in seconds
            prompt: Instruction sent alongside the image
            temperature: Sampling temperature
            max_output_tokens: Upper bound on response length
            api_key: Server-held credential used when building requests
        """
        self.model = model
        self.timeout = timeout
        self.prompt = prompt
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens
        self.api_key = api_key
        self._clients: Dict[str, genai.Client] = {}
        self.logger = logging.getLogger(__name__)

        if self.api_key:
            self.logger.info(f"Gemini analysis configured: model={self.model}, key={mask_key(self.api_key)}")
        else:
            self.logger.warning("No Gemini API key provided")

    def is_configured(self) -> bool:
        return bool(self.api_key)

    def build_request(self, file_base64: str, file_mime_type: str) -> AnalysisRequest:
        """Build an analysis request carrying the server-held credential."""
        return AnalysisRequest(
            file_base64=file_base64,
            file_mime_type=file_mime_type,
            google_key=self.api_key
        )

    def generate_answer(self, request: AnalysisRequest) -> str:
        """
        Request a nutritional analysis of an image.

        Args:
            request: Image payload, MIME type and credential

        Returns:
            Analysis text, usually Markdown

        Raises:
            AnalysisError: If the credential is missing, the payload is
                invalid, or the model call fails or returns nothing
        """
        if not request.google_key:
            raise AnalysisError("Gemini API key is not configured")

        try:
            image_bytes = base64.b64decode(request.file_base64, validate=True)
        except (binascii.Error, ValueError) as e:
            raise AnalysisError(f"Image payload is not valid base64: {e}") from e

        client = self._get_client(request.google_key)

        try:
            response = client.models.generate_content(
                model=self.model,
                contents=[
                    types.Part.from_bytes(data=image_bytes, mime_type=request.file_mime_type),
                    self.prompt,
                ],
                config=types.GenerateContentConfig(
                    temperature=self.temperature,
                    max_output_tokens=self.max_output_tokens,
                ),
            )
        except errors.APIError as e:
            self.logger.error(f"Gemini API error ({e.code}): {e.message}")
            raise AnalysisError(f"Nutrition analysis failed: {e.message}") from e

        text = (response.text or "").strip()
        if not text:
            raise AnalysisError("Nutrition analysis returned no text")

        self.logger.info(f"Received analysis: {len(text)} characters")
        return text

    def _get_client(self, api_key: str) -> genai.Client:
        client = self._clients.get(api_key)
        if client is None:
            client = genai.Client(
                api_key=api_key,
                http_options=types.HttpOptions(timeout=self.timeout * 1000),
            )
            self._clients[api_key] = client
        return client

    def get_service_info(self) -> Dict[str, Any]:
        """
        Get information about the analysis service configuration.

        Returns:
            Dictionary with service information
        """
        return {
            'service_name': 'Gemini Nutrition Analysis',
            'model': self.model,
            'available': self.is_configured(),
            'api_key_masked': mask_key(self.api_key),
            'timeout': self.timeout
        }


def create_answer_requester(config: Any, api_key: Optional[str] = None) -> AnswerRequester:
    """Build an AnswerRequester from an app config mapping."""
    return AnswerRequester(
        model=config.get('GEMINI_MODEL', 'gemini-2.5-flash'),
        timeout=config.get('REQUEST_TIMEOUT', 60),
        temperature=config.get('ANALYSIS_TEMPERATURE', 0.4),
        max_output_tokens=config.get('ANALYSIS_MAX_OUTPUT_TOKENS', 2048),
        api_key=api_key if api_key is not None else config.get('GOOGLE_API_KEY', ''),
    )
