import json
from unittest.mock import MagicMock

import pytest

from researchhub.services.ai_client import RoadmapAIClient
from researchhub.services.roadmap_service import (
    RoadmapService,
    RoadmapGenerationError,
    RoadmapRateLimited,
    generate_preference_hash,
    extract_title,
)
from researchhub.utils.throttling import UserRateLimiter, RequestDeduplicator


class FakeClock:
    now = 0.0

    def __call__(self):
        return self.now


@pytest.fixture
def ai():
    client = MagicMock()
    client.generate_roadmap.return_value = {"title": "Into NLP Research", "nodes": []}
    return client


@pytest.fixture
def cache():
    cache = MagicMock()
    cache.get.return_value = None
    return cache


@pytest.fixture
def history():
    history = MagicMock()
    history.add.return_value = "65f0c0ffee"
    return history


@pytest.fixture
def service(ai, cache, history):
    return RoadmapService(
        ai_client=ai,
        cache=cache,
        history=history,
        rate_limiter=UserRateLimiter(10, clock=FakeClock()),
        deduplicator=RequestDeduplicator(5),
    )


def test_preference_hash_ignores_case_and_whitespace(make_preferences):
    a = make_preferences(field_of_study="Computer Science", goals="Publish a paper", interest_areas="NLP")
    b = make_preferences(field_of_study="  computer science ", goals="publish a paper", interest_areas=" nlp")
    c = make_preferences(field_of_study="Computer Science", goals="Get into a PhD", interest_areas="NLP")

    assert generate_preference_hash(a) == generate_preference_hash(b)
    assert generate_preference_hash(a) != generate_preference_hash(c)
    assert len(generate_preference_hash(a)) == 64


def test_extract_title_default():
    assert extract_title({"title": "Into NLP"}) == "Into NLP"
    assert extract_title({"nodes": []}) == "Research Roadmap"


def test_cache_miss_calls_ai_and_stores(service, ai, cache, history, make_preferences):
    prefs = make_preferences()

    result = service.generate(1, prefs)

    assert result["cached"] is False
    assert result["roadmap"]["title"] == "Into NLP Research"
    assert result["roadmap_id"] == "65f0c0ffee"
    ai.generate_roadmap.assert_called_once_with(prefs)
    cache.store.assert_called_once()
    assert history.add.call_args.kwargs["generated_by"] == "ai"


def test_cache_hit_skips_ai(service, ai, cache, history, make_preferences):
    cache.get.return_value = {"roadmap_data": {"title": "Cached"}, "usage_count": 4}

    result = service.generate(1, make_preferences())

    assert result["cached"] is True
    assert result["roadmap"] == {"title": "Cached"}
    ai.generate_roadmap.assert_not_called()
    cache.increment_usage.assert_called_once()
    assert history.add.call_args.kwargs["generated_by"] == "ai-cached"


def test_second_request_within_cooldown_is_rejected(service, make_preferences):
    service.generate(1, make_preferences())

    with pytest.raises(RoadmapRateLimited) as exc:
        service.generate(1, make_preferences())
    assert exc.value.retry_after == 10

    # other users are unaffected
    service.generate(2, make_preferences())


def test_invalid_json_becomes_generation_error(service, ai, cache, make_preferences):
    ai.generate_roadmap.side_effect = json.JSONDecodeError("Expecting value", "oops", 0)

    with pytest.raises(RoadmapGenerationError):
        service.generate(1, make_preferences())
    cache.store.assert_not_called()


def test_non_object_json_becomes_generation_error(service, ai, make_preferences):
    ai.generate_roadmap.return_value = ["not", "a", "roadmap"]

    with pytest.raises(RoadmapGenerationError):
        service.generate(1, make_preferences())


def test_api_failure_becomes_generation_error(service, ai, make_preferences):
    ai.generate_roadmap.side_effect = RuntimeError("connection reset")

    with pytest.raises(RoadmapGenerationError, match="connection reset"):
        service.generate(1, make_preferences())


@pytest.mark.parametrize("raw", [
    '```json\n{"title": "x"}\n```',
    '```\n{"title": "x"}\n```',
    '  {"title": "x"}  ',
])
def test_strip_code_fences(raw):
    assert json.loads(RoadmapAIClient._strip_code_fences(raw)) == {"title": "x"}


def test_prompt_includes_optional_fields(make_preferences):
    prompt = RoadmapAIClient.build_roadmap_prompt(make_preferences(time_commitment=8, interest_areas="NLP"))
    assert "Field of study: Computer Science" in prompt
    assert "Interest areas: NLP" in prompt
    assert "8 hours per week" in prompt
    assert "Prior experience" not in prompt
