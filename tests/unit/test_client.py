"""
Unit tests for the curriculum API client.

HTTP is served by httpx.MockTransport; no server is required.
"""

import asyncio
import json

import httpx
import pytest

from prepsync.client import CurriculumApiClient, request_signature
from prepsync.gateway import RequestGateway, RetryPolicy


class FakeApi:
    """Records requests and answers from a route table."""

    def __init__(self, routes):
        self.routes = routes
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get((request.method, request.url.path))
        if handler is None:
            return httpx.Response(404, json={"error": "not found"})
        if callable(handler):
            return handler(request)
        return httpx.Response(200, json=handler)


async def no_sleep(seconds):
    return None


def make_client(api, token="secret-token"):
    return CurriculumApiClient(
        base_url="http://api.test/api",
        token=token,
        gateway=RequestGateway(RetryPolicy(max_retries=3, base_delay=0.0), sleep=no_sleep),
        transport=httpx.MockTransport(api),
    )


@pytest.fixture
def topics_payload():
    return {
        "topics": [
            {"slug": "javascript", "name": "JavaScript", "categoryCount": 5, "progress": 20},
            {"slug": "react", "name": "React", "categoryCount": 4, "completionPercentage": 150},
        ]
    }


class TestRequestSignature:
    def test_params_and_body_are_order_independent(self):
        assert request_signature("get", "/x", {"b": 1, "a": 2}) == "GET /x?a=2&b=1"
        assert request_signature("POST", "/t", body={"z": 1, "a": True}) == \
            request_signature("POST", "/t", body={"a": True, "z": 1})


class TestCurriculumEndpoints:
    @pytest.mark.asyncio
    async def test_get_topics(self, topics_payload):
        api = FakeApi({("GET", "/api/curriculum/topics"): topics_payload})
        async with make_client(api) as client:
            topics = await client.get_topics("1-3_years")

        assert [t.slug for t in topics] == ["javascript", "react"]
        assert topics[1].progress == 100
        request = api.requests[0]
        assert request.url.params["experienceLevel"] == "1-3_years"
        assert request.headers["Authorization"] == "Bearer secret-token"

    @pytest.mark.asyncio
    async def test_no_auth_header_without_token(self, topics_payload):
        api = FakeApi({("GET", "/api/curriculum/topics"): topics_payload})
        async with make_client(api, token="") as client:
            await client.get_topics()
        assert "Authorization" not in api.requests[0].headers

    @pytest.mark.asyncio
    async def test_aggregate_paths(self):
        api = FakeApi({
            ("GET", "/api/curriculum/aggregate/topic/react"): {"topic": {"slug": "react"}},
            ("GET", "/api/curriculum/aggregate/category/react/hooks"): {"category": {"slug": "hooks"}},
        })
        async with make_client(api) as client:
            topic = await client.get_topic_aggregate("react", "3-5_years")
            category = await client.get_category_aggregate("react", "hooks")

        assert topic["topic"]["slug"] == "react"
        assert category["category"]["slug"] == "hooks"
        assert api.requests[0].url.params["experienceLevel"] == "3-5_years"

    @pytest.mark.asyncio
    async def test_concurrent_identical_reads_collapse(self, topics_payload):
        api = FakeApi({("GET", "/api/curriculum/topics"): topics_payload})
        async with make_client(api) as client:
            first, second = await asyncio.gather(client.get_topics(), client.get_topics())

        assert first == second
        assert len(api.requests) == 1


class TestProgressEndpoints:
    @pytest.mark.asyncio
    async def test_toggle_section_body(self):
        api = FakeApi({("POST", "/api/progress/toggle"): {"success": True}})
        async with make_client(api) as client:
            ack = await client.toggle_section("react", "use-state", True)

        assert ack == {"success": True}
        assert json.loads(api.requests[0].content) == {
            "topicSlug": "react",
            "sectionSlug": "use-state",
            "completed": True,
        }

    @pytest.mark.asyncio
    async def test_identical_mutations_are_not_collapsed(self):
        gate = asyncio.Event()
        bodies = []

        async def gated(request):
            bodies.append(json.loads(request.content))
            await gate.wait()
            return httpx.Response(200, json={"success": True})

        api = FakeApi({("POST", "/api/progress/toggle"): gated})
        async with make_client(api) as client:
            calls = [
                asyncio.ensure_future(client.toggle_section("react", "use-state", flag))
                for flag in (True, False, True)
            ]
            for _ in range(1000):
                if len(bodies) == 3:
                    break
                await asyncio.sleep(0)
            gate.set()
            await asyncio.gather(*calls)

        assert sorted(b["completed"] for b in bodies) == [False, True, True]

    @pytest.mark.asyncio
    async def test_toggle_category_body(self):
        api = FakeApi({("POST", "/api/progress/toggle/category"): {"success": True}})
        async with make_client(api) as client:
            await client.toggle_category("react", "hooks", False)

        assert json.loads(api.requests[0].content)["categorySlug"] == "hooks"

    @pytest.mark.asyncio
    async def test_client_error_surfaces_without_retry(self):
        api = FakeApi({
            ("POST", "/api/progress/toggle"): lambda r: httpx.Response(401, json={"error": "auth"}),
        })
        async with make_client(api) as client:
            with pytest.raises(httpx.HTTPStatusError) as excinfo:
                await client.toggle_section("react", "use-state", True)

        assert excinfo.value.response.status_code == 401
        assert len(api.requests) == 1

    @pytest.mark.asyncio
    async def test_server_error_retried(self):
        statuses = [503, 500, 200]

        def flaky(request):
            status = statuses.pop(0)
            return httpx.Response(status, json={"success": status == 200})

        api = FakeApi({("POST", "/api/progress/toggle"): flaky})
        async with make_client(api) as client:
            ack = await client.toggle_section("react", "use-state", True)

        assert ack == {"success": True}
        assert len(api.requests) == 3

    @pytest.mark.asyncio
    async def test_empty_ack_body(self):
        api = FakeApi({("POST", "/api/progress/toggle"): lambda r: httpx.Response(204)})
        async with make_client(api) as client:
            assert await client.toggle_section("react", "x", False) == {}


class TestReviewEndpoints:
    @pytest.mark.asyncio
    async def test_get_due_reviews(self):
        api = FakeApi({
            ("GET", "/api/progress/reviews/due"): {
                "reviews": [{
                    "itemId": "r1",
                    "sectionName": "Closures",
                    "reviewData": {"interval": 6, "easeFactor": 2.5, "reviewCount": 2,
                                   "nextReview": "2026-03-10T08:00:00Z"},
                }]
            }
        })
        async with make_client(api) as client:
            reviews = await client.get_due_reviews()

        assert reviews[0].item_id == "r1"
        assert reviews[0].section_name == "Closures"
        assert reviews[0].review.interval == 6

    @pytest.mark.asyncio
    async def test_update_review(self):
        api = FakeApi({
            ("POST", "/api/progress/reviews/update"): {
                "success": True,
                "reviewData": {"interval": 1, "easeFactor": 2.18, "reviewCount": 0,
                               "nextReview": "2026-03-15T09:30:00Z"},
            }
        })
        async with make_client(api) as client:
            state = await client.update_review("react", "hooks", 2)

        assert state.item_id == "react/hooks"
        assert state.ease_factor == pytest.approx(2.18)
        assert json.loads(api.requests[0].content)["quality"] == 2

    @pytest.mark.asyncio
    async def test_update_review_without_review_data(self):
        api = FakeApi({("POST", "/api/progress/reviews/update"): {"success": True}})
        async with make_client(api) as client:
            assert await client.update_review("react", "hooks", 4) is None
