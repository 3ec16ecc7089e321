import asyncio
import base64
import io
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import httpx
from PIL import Image, ImageFile

from app.bestpick.parsing import ScorerAnalysis, parse_scorer_content
from app.common.errors import ScorerConfigurationError, ScorerError
from app.config import ScorerConfig

logger = logging.getLogger(__name__)
ImageFile.LOAD_TRUNCATED_IMAGES = True

DEFAULT_BASE_URLS = {
    "openai": "https://api.openai.com/v1",
    "google": "https://generativelanguage.googleapis.com/v1beta/openai",
}

DEFAULT_MODELS = {
    "google": "gemini-2.0-flash-exp",
}


class QualityScorer(ABC):
    """Rates a batch of photos and names the best one."""

    @abstractmethod
    async def score(self, photo_paths: List[str]) -> ScorerAnalysis:
        """
        Args:
            photo_paths: Up to 10 image paths, scored together in one call.

        Returns:
            One PhotoAnalysis per path (same order) plus the best index and reasoning.

        Raises:
            ScorerError: on transport failure or an unusable reply.
        """
        raise NotImplementedError()


def build_prompt(photo_count: int) -> str:
    return f"""You are an expert photo quality analyst. Analyze these {photo_count} photos and determine which one is the best quality.

Evaluate each photo based on:
1. **Sharpness/Focus**: Is the image sharp and in focus? (0-100)
2. **Brightness/Exposure**: Is the lighting good? Not too dark or overexposed? (0-100)
3. **Composition**: Is the framing and composition good? (0-100)
4. **Face Quality** (if faces present): Are eyes open? Are faces clear and well-lit? (0-100)

For each photo, in the order given, provide:
- Sharpness score (0-100)
- Brightness score (0-100)
- Composition score (0-100)
- Face score (0-100, or N/A if no faces)
- Whether all eyes are open (true/false, or N/A)
- Number of faces detected
- Brief reasoning (1-2 sentences)
- Overall final score (0-100)

Then determine which photo is the BEST overall and explain why.

Respond in this EXACT JSON format:
{{
  "photos": [
    {{
      "photoIndex": 0,
      "sharpness": 85,
      "brightness": 90,
      "composition": 80,
      "faceScore": 75,
      "allEyesOpen": true,
      "faceCount": 2,
      "reasoning": "Sharp image with good lighting...",
      "finalScore": 82.5
    }}
  ],
  "bestPhotoIndex": 0,
  "bestPhotoReasoning": "Photo 1 is the best because..."
}}"""


class LLMQualityScorer(QualityScorer):
    """
    Scores photos with a multimodal model behind an OpenAI-compatible
    chat-completions endpoint (OpenAI, Azure OpenAI, Google, or custom).
    """

    def __init__(self, config: Optional[ScorerConfig] = None):
        self.config = config or ScorerConfig()
        self.provider = self.config.provider.lower()
        self.base_url = self._resolve_base_url()
        self.model_name = self.config.model_name or DEFAULT_MODELS.get(self.provider, "gpt-4o")
        self.headers = self._build_headers()
        logger.info(f"Quality scorer ready. Provider: {self.provider}, model: {self.model_name}")

    def _resolve_base_url(self) -> str:
        api_key, base_url = self.config.api_key, self.config.base_url

        if self.provider in ("openai", "google"):
            if not api_key:
                raise ScorerConfigurationError(f"LLM_API_KEY is required for the {self.provider} provider")
            return (base_url or DEFAULT_BASE_URLS[self.provider]).rstrip("/")

        if self.provider in ("azure", "custom"):
            if not api_key or not base_url:
                raise ScorerConfigurationError(
                    f"LLM_API_KEY and LLM_BASE_URL are required for the {self.provider} provider"
                )
            return base_url.rstrip("/")

        raise ScorerConfigurationError(f"Unsupported LLM provider: {self.config.provider}")

    def _build_headers(self) -> Dict[str, str]:
        headers = {"Authorization": f"Bearer {self.config.api_key}"}
        if self.provider == "azure":
            headers["api-key"] = self.config.api_key
        return headers

    def _encode_image(self, path: str) -> Dict[str, Any]:
        """Downscale to fit the max side, re-encode as JPEG and wrap as a data URL."""
        side = self.config.image_max_side
        with Image.open(path) as img:
            img = img.convert("RGB")
            img.thumbnail((side, side))
            buf = io.BytesIO()
            img.save(buf, format="JPEG", quality=self.config.jpeg_quality)

        encoded = base64.b64encode(buf.getvalue()).decode("ascii")
        return {
            "type": "image_url",
            "image_url": {"url": f"data:image/jpeg;base64,{encoded}", "detail": "high"},
        }

    async def score(self, photo_paths: List[str]) -> ScorerAnalysis:
        try:
            images = await asyncio.gather(*(asyncio.to_thread(self._encode_image, p) for p in photo_paths))
        except (OSError, Image.DecompressionBombError) as e:
            raise ScorerError(f"Could not read photo for scoring: {e}") from e

        payload = {
            "model": self.model_name,
            "messages": [
                {
                    "role": "user",
                    "content": [{"type": "text", "text": build_prompt(len(photo_paths))}, *images],
                }
            ],
            "max_tokens": self.config.max_tokens,
            "temperature": self.config.temperature,
        }

        logger.debug(f"Scoring {len(photo_paths)} photos with {self.model_name}")
        async with httpx.AsyncClient(timeout=self.config.timeout_seconds) as client:
            try:
                response = await client.post(f"{self.base_url}/chat/completions", json=payload, headers=self.headers)
                response.raise_for_status()
            except httpx.HTTPStatusError as e:
                raise ScorerError(f"Quality scorer returned HTTP {e.response.status_code}") from e
            except httpx.HTTPError as e:
                raise ScorerError(f"Quality scorer request failed: {e.__class__.__name__}") from e

        try:
            content = response.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise ScorerError("Unexpected quality scorer response envelope") from e

        return parse_scorer_content(content)
