"""
YouTube video references: id extraction, embed normalization and
liveness checks against the public oEmbed endpoint.

A liveness check is a single GET with a timeout. Any error, timeout or
non-200 answer means "unavailable"; there are no retries.
"""

import re
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Dict, Iterable, List, Optional

import requests

from config.constants import DEFAULT_TUTORIAL_CONFIG
from config.settings import get_settings
from core.logging import get_logger

logger = get_logger(__name__)

_WATCH_OR_SHORT = re.compile(
    r"(?:youtube\.com/(?:[^/]+/.+/|(?:v|e(?:mbed)?)/|.*[?&]v=)|youtu\.be/)([^\"&?/\s]{11})"
)
_EMBED = re.compile(r"youtube\.com/embed/([^\"&?/\s]{11})")
_BARE_ID = re.compile(r"^[A-Za-z0-9_-]{11}$")


def extract_video_id(reference: Optional[str]) -> Optional[str]:
    """
    Video id from a watch, short, embed or /v/ URL, or a bare 11 character id.

    >>> extract_video_id("https://youtu.be/ZD92D2qQW8U")
    'ZD92D2qQW8U'
    """
    if not reference:
        return None
    reference = reference.strip()

    for pattern in (_WATCH_OR_SHORT, _EMBED):
        match = pattern.search(reference)
        if match:
            return match.group(1)

    if _BARE_ID.match(reference):
        return reference
    return None


def to_embed_url(reference: Optional[str]) -> Optional[str]:
    video_id = extract_video_id(reference)
    if video_id is None:
        return None
    return f"{DEFAULT_TUTORIAL_CONFIG.EMBED_BASE}{video_id}"


def to_watch_url(video_id: str) -> str:
    return f"{DEFAULT_TUTORIAL_CONFIG.WATCH_BASE}{video_id}"


class LivenessChecker:
    """Probes oEmbed to tell whether a video still exists and is embeddable."""

    def __init__(
        self,
        oembed_url: Optional[str] = None,
        timeout: Optional[float] = None,
        max_workers: Optional[int] = None,
        session: Optional[requests.Session] = None,
    ):
        settings = get_settings()
        self.oembed_url = oembed_url or settings.youtube_oembed_url
        self.timeout = timeout if timeout is not None else settings.liveness_timeout_seconds
        self.max_workers = max_workers or settings.liveness_max_workers
        self._session = session or requests.Session()

    def is_available(self, reference: str) -> bool:
        video_id = extract_video_id(reference)
        if video_id is None:
            logger.warning("Unrecognized video reference", reference=reference)
            return False

        try:
            resp = self._session.get(
                self.oembed_url,
                params={"url": to_watch_url(video_id), "format": "json"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.warning("Video liveness check failed", video_id=video_id, error=str(e))
            return False

        if resp.status_code != 200:
            logger.warning("Video unavailable", video_id=video_id, status_code=resp.status_code)
            return False
        return True

    def check_many(self, references: Iterable[str]) -> Dict[str, bool]:
        """Probe several references concurrently. Order of completion is not significant."""
        unique: List[str] = list(dict.fromkeys(r for r in references if r))
        if not unique:
            return {}

        results: Dict[str, bool] = {}
        with ThreadPoolExecutor(max_workers=min(len(unique), self.max_workers)) as executor:
            futures = {executor.submit(self.is_available, ref): ref for ref in unique}
            for future in as_completed(futures):
                ref = futures[future]
                try:
                    results[ref] = future.result()
                except Exception as e:
                    logger.warning("Video liveness check raised", reference=ref, error=str(e))
                    results[ref] = False
        return results
