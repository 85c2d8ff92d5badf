"""
Curriculum/progress API client.

Async HTTP client for the learning platform's REST API. Every request is
issued through a RequestGateway so identical concurrent reads collapse into
one call and all calls share the retry policy.

Usage:
    async with CurriculumApiClient(settings.api_base_url) as client:
        topics = await client.get_topics("1-3_years")
        await client.toggle_section("react", "hooks", completed=True)
"""

from __future__ import annotations

import json
from typing import Any
from urllib.parse import urlencode

import httpx
from loguru import logger

from config import get_settings
from prepsync.curriculum.rules import ExperienceLevel
from prepsync.gateway import RequestGateway, RetryPolicy
from prepsync.models import DueReview, Node, ReviewState


def request_signature(method: str, path: str, params: dict[str, Any] | None = None,
                      body: dict[str, Any] | None = None) -> str:
    """Deterministic request id used for deduplication."""
    signature = f"{method.upper()} {path}"
    if params:
        signature += "?" + urlencode(sorted(params.items()))
    if body:
        signature += " " + json.dumps(body, sort_keys=True, separators=(",", ":"))
    return signature


class CurriculumApiClient:
    """HTTP client for the curriculum and progress endpoints."""

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        gateway: RequestGateway | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize the API client.

        Args:
            base_url: API root (default from config)
            token: Bearer token (default from config)
            gateway: Retry/dedup policy layer (default from config)
            timeout: Request timeout in seconds (default from config)
            transport: Custom httpx transport, mainly for tests
        """
        settings = get_settings()
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self.gateway = gateway or RequestGateway(RetryPolicy(**settings.get_retry_policy_config()))

        headers = {"Content-Type": "application/json"}
        token = token if token is not None else settings.api_token
        if token:
            headers["Authorization"] = f"Bearer {token}"

        self.client = httpx.AsyncClient(
            transport=transport,
            base_url=self.base_url,
            headers=headers,
            timeout=httpx.Timeout(timeout or settings.request_timeout_seconds),
            follow_redirects=True,
        )

    async def __aenter__(self) -> CurriculumApiClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()

    # ========================================
    # Transport
    # ========================================

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        body: dict[str, Any] | None = None,
    ) -> Any:
        request_id = request_signature(method, path, params, body)

        async def send() -> Any:
            response = await self.client.request(method, path, params=params, json=body)
            response.raise_for_status()
            if not response.content:
                return {}
            return response.json()

        logger.debug("-> {}", request_id)
        # Only reads may share an in-flight call; every mutation is sent
        return await self.gateway.execute(request_id, send, dedupe=method == "GET")

    # ========================================
    # Curriculum
    # ========================================

    async def get_topics_payload(
        self, experience_level: str | ExperienceLevel | None = None
    ) -> dict[str, Any]:
        """Raw ``{topics: [...]}`` catalog payload."""
        level = ExperienceLevel.parse(experience_level).value
        return await self._request("GET", "/curriculum/topics", params={"experienceLevel": level})

    async def get_topics(self, experience_level: str | ExperienceLevel | None = None) -> list[Node]:
        """Full topic catalog."""
        data = await self.get_topics_payload(experience_level)
        return [Node.from_dict(item) for item in data.get("topics", [])]

    async def get_topic_aggregate(
        self, slug: str, experience_level: str | ExperienceLevel | None = None
    ) -> dict[str, Any]:
        """Topic with its categories, sections, progress map and stats."""
        level = ExperienceLevel.parse(experience_level).value
        return await self._request(
            "GET",
            f"/curriculum/aggregate/topic/{slug}",
            params={"experienceLevel": level},
        )

    async def get_category_aggregate(self, topic_slug: str, category_slug: str) -> dict[str, Any]:
        """Category with its sections, progress map and owning topic."""
        return await self._request(
            "GET", f"/curriculum/aggregate/category/{topic_slug}/{category_slug}"
        )

    # ========================================
    # Progress
    # ========================================

    async def toggle_section(self, topic_slug: str, section_slug: str, completed: bool) -> Any:
        """Mark one section complete or incomplete."""
        return await self._request(
            "POST",
            "/progress/toggle",
            body={"topicSlug": topic_slug, "sectionSlug": section_slug, "completed": completed},
        )

    async def toggle_category(self, topic_slug: str, category_slug: str, completed: bool) -> Any:
        """Mark every section of a category complete or incomplete."""
        return await self._request(
            "POST",
            "/progress/toggle/category",
            body={"topicSlug": topic_slug, "categorySlug": category_slug, "completed": completed},
        )

    # ========================================
    # Reviews
    # ========================================

    async def get_due_reviews_payload(self) -> dict[str, Any]:
        return await self._request("GET", "/progress/reviews/due")

    async def get_due_reviews(self) -> list[DueReview]:
        """Reviews the server considers due."""
        data = await self.get_due_reviews_payload()
        return [DueReview.from_dict(item) for item in data.get("reviews", [])]

    async def update_review(
        self, topic_slug: str, section_slug: str, quality: int
    ) -> ReviewState | None:
        """
        Record a rating.

        Returns:
            The server's updated state, or None if the ack carried no review data
        """
        data = await self._request(
            "POST",
            "/progress/reviews/update",
            body={"topicSlug": topic_slug, "sectionSlug": section_slug, "quality": quality},
        )
        review = (data or {}).get("reviewData") or (data or {}).get("review")
        if not review:
            return None
        return ReviewState.from_dict(review, item_id=review.get("itemId") or f"{topic_slug}/{section_slug}")
