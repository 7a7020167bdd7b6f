"""
Tutorial video routes.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from api.dependencies import tutorials_dep
from config.constants import DEFAULT_TUTORIAL_CONFIG
from core.exceptions import MalformedInput
from core.logging import get_logger
from tutorials.resolver import TutorialResolution, TutorialResolver
from tutorials.youtube import extract_video_id


logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["Tutorials"])


class VerifyYoutubeRequest(BaseModel):
    url: str = ""
    category: str = Field(DEFAULT_TUTORIAL_CONFIG.BASE_CATEGORY, description="Tutorial category for fallbacks")


@router.post("/verify-youtube", response_model=TutorialResolution, summary="Check a tutorial link")
def verify_youtube(
    request: VerifyYoutubeRequest,
    resolver: TutorialResolver = Depends(tutorials_dep),
) -> TutorialResolution:
    """
    Check that a YouTube link still plays. Unavailable links are replaced by
    the first live video in the category's fallback chain.
    """
    url = request.url.strip()
    if not url:
        raise MalformedInput("URL is required")
    if extract_video_id(url) is None:
        raise MalformedInput("Invalid YouTube URL format")
    return resolver.verify(url, request.category.strip().lower() or None)


@router.get("/tutorials", summary="Tutorials for a skin tone and undertone")
def get_tutorials(
    category: Optional[str] = Query(None, description="One category, or all when omitted"),
    skin_tone: Optional[str] = Query(None),
    undertone: Optional[str] = Query(None),
    verify: bool = Query(False, description="Probe each video and fall back when unavailable"),
    resolver: TutorialResolver = Depends(tutorials_dep),
) -> Dict[str, Any]:
    if category:
        resolution = resolver.resolve(category.strip().lower(), skin_tone, undertone, verify=verify)
        return {"category": category.strip().lower(), "tutorial": resolution.model_dump()}

    resolved = resolver.resolve_all(skin_tone, undertone, verify=verify)
    logger.debug("Tutorials resolved", categories=len(resolved), verify=verify)
    return {"tutorials": {name: r.model_dump() for name, r in resolved.items()}}
