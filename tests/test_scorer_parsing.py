import json
import os
import sys
from unittest.mock import patch

import httpx
import pytest
from PIL import Image

# Add src to sys.path
sys.path.append(os.path.join(os.path.dirname(__file__), "../src"))

from app.bestpick.parsing import parse_scorer_content
from app.bestpick.scorer import LLMQualityScorer, build_prompt
from app.common.errors import ScorerConfigurationError, ScorerError
from app.config import ScorerConfig

REPLY = {
    "photos": [
        {
            "photoIndex": 0,
            "sharpness": 85,
            "brightness": 90,
            "composition": 80,
            "faceScore": 75,
            "allEyesOpen": True,
            "faceCount": 2,
            "reasoning": "Sharp and well lit.",
            "finalScore": 82.5,
        },
        {
            "photoIndex": 1,
            "sharpness": 40,
            "brightness": 55,
            "composition": 60,
            "faceScore": "N/A",
            "allEyesOpen": "N/A",
            "faceCount": "N/A",
            "finalScore": 48,
        },
    ],
    "bestPhotoIndex": 0,
    "bestPhotoReasoning": "Photo 1 is the sharpest.",
}


# --- Reply parsing ---

def test_parses_json_wrapped_in_prose_and_code_fences():
    content = "Here is my analysis:\n```json\n" + json.dumps(REPLY) + "\n```\nLet me know if you need more."

    analysis = parse_scorer_content(content)

    assert analysis.best_photo_index == 0
    assert analysis.best_photo_reasoning == "Photo 1 is the sharpest."
    assert analysis.photos[0].final_score == 82.5
    assert analysis.photos[0].all_eyes_open is True
    assert analysis.photos[0].face_count == 2


def test_not_applicable_face_fields_become_neutral():
    photo = parse_scorer_content(json.dumps(REPLY)).photos[1]

    assert photo.face_score == 0.0
    assert photo.face_count == 0
    assert photo.all_eyes_open is False
    assert photo.reasoning == ""


def test_missing_required_score_is_rejected():
    reply = json.loads(json.dumps(REPLY))
    del reply["photos"][1]["sharpness"]

    with pytest.raises(ScorerError, match="sharpness"):
        parse_scorer_content(json.dumps(reply))


def test_missing_best_index_is_rejected():
    reply = {k: v for k, v in REPLY.items() if k != "bestPhotoIndex"}

    with pytest.raises(ScorerError):
        parse_scorer_content(json.dumps(reply))


@pytest.mark.parametrize(
    "content",
    [
        None,
        "",
        "I could not evaluate these photos.",
        '{"photos": [ {"sharpness": 10, } ]}',
    ],
)
def test_unusable_replies_raise_scorer_error(content):
    with pytest.raises(ScorerError):
        parse_scorer_content(content)


def test_prompt_mentions_photo_count_and_reply_format():
    prompt = build_prompt(4)

    assert "these 4 photos" in prompt
    assert '"bestPhotoIndex"' in prompt


# --- Provider configuration ---

@pytest.mark.parametrize(
    "provider,api_key,base_url",
    [
        ("openai", None, None),
        ("google", None, None),
        ("azure", "key", None),
        ("custom", None, "http://llm.local/v1"),
        ("anthropic", "key", "http://llm.local/v1"),
    ],
)
def test_incomplete_provider_configuration_is_rejected(provider, api_key, base_url):
    with pytest.raises(ScorerConfigurationError):
        LLMQualityScorer(ScorerConfig(provider=provider, api_key=api_key, base_url=base_url))


def test_provider_defaults():
    openai = LLMQualityScorer(ScorerConfig(provider="openai", api_key="sk-test", base_url=None, model_name=None))
    google = LLMQualityScorer(ScorerConfig(provider="Google", api_key="g-test", base_url=None, model_name=None))
    azure = LLMQualityScorer(ScorerConfig(provider="azure", api_key="az", base_url="https://res.openai.azure.com/"))

    assert openai.base_url == "https://api.openai.com/v1"
    assert openai.model_name == "gpt-4o"
    assert google.base_url.startswith("https://generativelanguage.googleapis.com")
    assert google.model_name == "gemini-2.0-flash-exp"
    assert azure.base_url == "https://res.openai.azure.com"
    assert azure.headers["api-key"] == "az"


# --- Scoring over HTTP ---

@pytest.fixture
def photos(tmp_path):
    paths = []
    for i, color in enumerate(["red", "blue"]):
        path = tmp_path / f"photo_{i}.png"
        Image.new("RGB", (2048, 1024), color=color).save(path)
        paths.append(str(path))
    return paths


@pytest.fixture
def scorer():
    return LLMQualityScorer(
        ScorerConfig(
            provider="custom",
            api_key="test-key",
            base_url="http://llm.local/v1/",
            model_name="vision-test",
            image_max_side=256,
        )
    )


def serve(handler):
    """Patches the scorer's HTTP client so requests go to ``handler``."""
    transport = httpx.MockTransport(handler)
    real_client = httpx.AsyncClient
    return patch(
        "app.bestpick.scorer.httpx.AsyncClient",
        lambda **kwargs: real_client(transport=transport, **kwargs),
    )


@pytest.mark.asyncio
async def test_score_sends_images_and_parses_reply(scorer, photos):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"choices": [{"message": {"content": json.dumps(REPLY)}}]})

    with serve(handler):
        analysis = await scorer.score(photos)

    assert seen["url"] == "http://llm.local/v1/chat/completions"
    assert seen["auth"] == "Bearer test-key"
    body = seen["body"]
    assert body["model"] == "vision-test"
    content = body["messages"][0]["content"]
    assert content[0]["type"] == "text"
    assert "these 2 photos" in content[0]["text"]
    images = content[1:]
    assert len(images) == 2
    assert all(img["image_url"]["url"].startswith("data:image/jpeg;base64,") for img in images)
    assert analysis.best_photo_index == 0


@pytest.mark.asyncio
async def test_http_error_becomes_scorer_error(scorer, photos):
    with serve(lambda request: httpx.Response(500, text="upstream exploded")):
        with pytest.raises(ScorerError, match="500"):
            await scorer.score(photos)


@pytest.mark.asyncio
async def test_unexpected_envelope_becomes_scorer_error(scorer, photos):
    with serve(lambda request: httpx.Response(200, json={"choices": []})):
        with pytest.raises(ScorerError):
            await scorer.score(photos)


@pytest.mark.asyncio
async def test_unreadable_photo_becomes_scorer_error(scorer, photos, tmp_path):
    bogus = tmp_path / "bogus.jpg"
    bogus.write_bytes(b"definitely not an image")

    with serve(lambda request: httpx.Response(200, json={})):
        with pytest.raises(ScorerError):
            await scorer.score([photos[0], str(bogus)])
