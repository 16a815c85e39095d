import base64

import pytest
from fastapi.testclient import TestClient

from narration_studio.services.narration.app import create_app
from narration_studio.shared.config import StudioConfig


@pytest.fixture
def client(studio_config, orchestrator) -> TestClient:
    return TestClient(create_app(studio_config, orchestrator))


def encode(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def test_health_check(client, transcoder) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["data"] == {"store_backend": "memory", "ffmpeg_available": True, "tts_configured": True}


def test_save_audio(client, store) -> None:
    response = client.post(
        "/api/save-audio",
        json={"module": "module-03", "slide": 2, "audio": encode(b"webm-bytes"), "format": "webm", "narration": "Inputs"},
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["status"] == "success"
    assert data["audio_path"] == "audio/module-03/slide-02.mp3"
    assert store.get_bytes("audio/module-03/slide-02.mp3") == b"ID3recorded:webm-bytes"


def test_save_audio_rejects_invalid_base64(client, store) -> None:
    response = client.post("/api/save-audio", json={"module": "module-03", "slide": 2, "audio": "not base64!"})

    assert response.status_code == 400
    assert response.json()["error_code"] == "validation_error"
    assert store.writes == []


def test_save_audio_enforces_size_limit(studio_config, orchestrator) -> None:
    config = studio_config.model_copy(update={"max_upload_bytes": 4})
    client = TestClient(create_app(config, orchestrator))

    response = client.post("/api/save-audio", json={"module": "module-03", "slide": 2, "audio": encode(b"12345")})

    assert response.status_code == 400


def test_save_audio_invalid_deck(client) -> None:
    response = client.post("/api/save-audio", json={"module": "module-3", "slide": 2, "audio": encode(b"x")})

    assert response.status_code == 400
    assert response.json()["success"] is False


def test_save_text(client, store) -> None:
    response = client.post("/api/save-text", json={"module": "module-03", "slide": "5", "narration": "Wrap up"})

    assert response.status_code == 200
    assert response.json()["data"]["document_updated"] is True
    assert 'data-narration="Wrap up"' in store.get_bytes("modules/module-03.html").decode()


def test_save_text_unknown_slide(client) -> None:
    response = client.post("/api/save-text", json={"module": "module-03", "slide": 12, "narration": "x"})

    assert response.status_code == 404
    assert response.json()["error_code"] == "slide_not_found"


def test_generate_audio_and_skip(client, synthesizer) -> None:
    payload = {"module": "module-03", "slide": 1, "text": "Welcome to module three."}

    first = client.post("/api/generate-audio", json=payload)
    second = client.post("/api/generate-audio", json=payload)

    assert first.status_code == 200
    assert second.status_code == 200
    assert second.json()["data"]["status"] == "skipped"
    assert second.json()["data"]["skip_reason"] == "unchanged"
    assert len(synthesizer.calls) == 1


def test_generate_audio_provider_failure(client, synthesizer) -> None:
    synthesizer.fail_on.add("Boom")

    response = client.post("/api/generate-audio", json={"module": "module-03", "slide": 1, "text": "Boom"})

    assert response.status_code == 502
    assert response.json() == {
        "success": False,
        "message": "ElevenLabs API error: 500 - boom",
        "error_code": "provider_error",
        "retryable": True,
    }


def test_corrupt_manifest_fails_generation(client, store) -> None:
    store.seed("audio/manifest.json", "[]")

    response = client.post("/api/generate-audio", json={"module": "module-03", "slide": 1, "text": "Hi"})

    assert response.status_code == 500
    assert response.json()["error_code"] == "corrupt_manifest"


def test_list_modules(client, store) -> None:
    store.seed("audio/module-03/slide-01.mp3", b"ID3")

    response = client.get("/api/modules")

    assert response.status_code == 200
    assert response.json() == [
        {"deck_id": "module-03", "slide_count": 5, "status_counts": {"unverified": 1, "none": 4}}
    ]


def test_list_slides(client) -> None:
    response = client.get("/api/modules/module-03/slides")

    assert response.status_code == 200
    slides = response.json()
    assert len(slides) == 5
    assert slides[3]["narration"] == "Tom & Jerry <3"
    assert {slide["audio_status"] for slide in slides} == {"none"}


def test_list_slides_errors_are_mapped(client) -> None:
    assert client.get("/api/modules/module-08/slides").status_code == 404
    assert client.get("/api/modules/bogus/slides").status_code == 400


def test_studio_secret_is_required_when_configured(orchestrator) -> None:
    config = StudioConfig(store_backend="memory", studio_secret="s3cret")
    client = TestClient(create_app(config, orchestrator))
    payload = {"module": "module-03", "slide": 5, "narration": "Secret edit"}

    assert client.post("/api/save-text", json=payload).status_code == 401
    assert client.post("/api/save-text", json=payload, headers={"X-Studio-Secret": "wrong"}).status_code == 401
    response = client.post("/api/save-text", json=payload, headers={"X-Studio-Secret": "s3cret"})
    assert response.status_code == 200


def test_save_audio_defaults_to_webm_recording(client, store, transcoder) -> None:
    response = client.post("/api/save-audio", json={"module": "module-03", "slide": 4, "audio": encode(b"clip")})

    assert response.status_code == 200
    assert transcoder.calls == ["webm"]
    assert store.get_bytes("audio/module-03/slide-04.mp3") == b"ID3recorded:clip"
