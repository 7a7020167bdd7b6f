"""
Vision analysis requester.

Sends a validated selfie to an OpenAI vision-capable chat model and
returns the reply text untouched. Parsing happens in analysis.parser.
There is no retry: a failed call surfaces as UpstreamUnavailable.
"""

import threading
import time
from typing import Optional

from config.settings import get_settings
from core.exceptions import UpstreamUnavailable
from core.logging import get_logger
from analysis.images import ValidatedImage

logger = get_logger(__name__)


# =============================================================================
# Prompt
# =============================================================================

_SYSTEM_PROMPT = (
    "You are a senior makeup artist who specializes in matching foundation shades. "
    "Always commit to a single skin tone and a single undertone, even when the photo "
    "is not perfect."
)

_USER_PROMPT = """Look at this selfie and assess skin tone and undertone, then recommend makeup.

Rules:
1. Undertone must be exactly one of: Warm, Cool, Neutral.
2. Skin Tone must be exactly one of: Fair, Light, Medium, Tan, Deep, Dark.
3. State each assessment directly. No hedging.
4. If there is no human face in the image, reply with only NO_FACE_DETECTED.

Use this layout:

Undertone: <Warm|Cool|Neutral>
Skin Tone: <Fair|Light|Medium|Tan|Deep|Dark>
Skin Type: <Dry|Oily|Combination|Normal>
Suggested Foundation: <one product and shade, e.g. "MAC Studio Fix in NC30">

Concealer
Shade: <shade that works with the foundation>
Best For: <under eyes, spot coverage, brightening>

Blush
Color Family: <coral, pink, mauve, ...>
Finish: <matte, satin, shimmer>

Eyeshadow
Shades: <two or three flattering colors>
Eyeliner: <type and color>

Lipstick
Color Family: <nude, pink, berry, ...>
Finish: <matte, satin, gloss>

Application Tips:
<two or three short tips>

Stick to makeup. Do not comment on medical skin conditions."""


# =============================================================================
# Requester
# =============================================================================

class VisionAnalyzer:
    """OpenAI vision client, constructed lazily on first use."""

    def __init__(self):
        self._client = None
        self._client_lock = threading.Lock()
        settings = get_settings()
        self._api_key = settings.openai_api_key
        self._model = settings.analysis_model
        self._timeout = settings.analysis_timeout_seconds
        self._max_tokens = settings.analysis_max_tokens
        self._temperature = settings.analysis_temperature

    @property
    def client(self):
        """Lazy-load OpenAI client."""
        if self._client is None:
            with self._client_lock:
                if self._client is None:
                    from openai import OpenAI
                    self._client = OpenAI(
                        api_key=self._api_key,
                        timeout=self._timeout,
                        max_retries=0,
                    )
        return self._client

    @property
    def enabled(self) -> bool:
        return bool(self._api_key)

    def build_messages(self, image: ValidatedImage) -> list:
        return [
            {"role": "system", "content": _SYSTEM_PROMPT},
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": _USER_PROMPT},
                    {"type": "image_url", "image_url": {"url": image.data_url, "detail": "high"}},
                ],
            },
        ]

    def analyze(self, image: ValidatedImage) -> str:
        """
        Return the model's free-text analysis of ``image``.

        Raises:
            UpstreamUnavailable: not configured, request failed, or empty reply
        """
        if not self.enabled:
            logger.error("Vision analysis requested but OPENAI_API_KEY is not set")
            raise UpstreamUnavailable("Analysis service is not configured")

        t_start = time.time()
        try:
            response = self.client.chat.completions.create(
                model=self._model,
                messages=self.build_messages(image),
                max_tokens=self._max_tokens,
                temperature=self._temperature,
            )
        except Exception as e:
            logger.error(
                "Vision analysis request failed",
                error=str(e),
                error_type=type(e).__name__,
                latency_ms=int((time.time() - t_start) * 1000),
            )
            raise UpstreamUnavailable(f"Analysis request failed: {e}") from e

        content = response.choices[0].message.content if response.choices else None
        if not content:
            logger.error("Vision analysis returned empty response", model=self._model)
            raise UpstreamUnavailable("No analysis generated")

        logger.info(
            "Vision analysis completed",
            model=self._model,
            chars=len(content),
            image_bytes=image.size_bytes,
            latency_ms=int((time.time() - t_start) * 1000),
        )
        return content


# =============================================================================
# Singleton
# =============================================================================

_analyzer: Optional[VisionAnalyzer] = None
_analyzer_lock = threading.Lock()


def get_vision_analyzer() -> VisionAnalyzer:
    """Get or create the VisionAnalyzer singleton (thread-safe)."""
    global _analyzer
    if _analyzer is None:
        with _analyzer_lock:
            if _analyzer is None:
                _analyzer = VisionAnalyzer()
    return _analyzer


def reset_vision_analyzer() -> None:
    global _analyzer
    with _analyzer_lock:
        _analyzer = None
