"""Tests for the hosting adapters."""

from __future__ import annotations

import base64
import json

import pytest
from fastapi.testclient import TestClient

from nutrilens.adapters.common import error_response, payload_from_body, success_body
from nutrilens.adapters.serverless import make_function_handler
from nutrilens.adapters.server import create_app
from nutrilens.config import AppConfig
from nutrilens.providers.base import (
    AnalysisResult,
    ConfigurationError,
    ImagePayload,
    InvalidInputError,
    NetworkError,
    NetworkTimeoutError,
    PlatformHint,
    ProviderFormatError,
    ProviderHTTPError,
)
from nutrilens.services.analyzer import AnalysisService


class DummyProvider:
    def __init__(self, response: str | Exception = "总热量: 990 kcal"):
        self._response = response
        self.platforms: list[PlatformHint] = []

    def generate(self, image: ImagePayload, prompt: str, platform: PlatformHint) -> str:
        self.platforms.append(platform)
        if isinstance(self._response, Exception):
            raise self._response
        return self._response


def _data_url(png_data: bytes) -> str:
    return "data:image/png;base64," + base64.b64encode(png_data).decode("ascii")


def _service(response: str | Exception = "总热量: 990 kcal", **config) -> AnalysisService:
    config.setdefault("api_key", "secret")
    return AnalysisService(AppConfig(**config), provider=DummyProvider(response))


@pytest.mark.parametrize(
    ("error", "status"),
    [
        (ConfigurationError("no key"), 500),
        (ProviderFormatError("bad shape"), 502),
        (ProviderHTTPError("denied", status_code=401), 502),
        (NetworkError("down"), 504),
        (NetworkTimeoutError("slow"), 504),
        (InvalidInputError("no image"), 400),
    ],
)
def test_error_response_maps_kinds_to_status(error, status):
    code, body = error_response(error)

    assert code == status
    assert body["success"] is False
    assert body["kind"] == error.kind.value


def test_configuration_errors_are_not_leaked():
    _, body = error_response(ConfigurationError("QWEN_API_KEY missing"))
    assert "QWEN_API_KEY" not in body["error"]


def test_payload_from_body_validates_input(png_data):
    with pytest.raises(InvalidInputError):
        payload_from_body({}, max_bytes=1024)
    with pytest.raises(InvalidInputError):
        payload_from_body("dataUrl", max_bytes=1024)
    with pytest.raises(InvalidInputError):
        payload_from_body({"dataUrl": _data_url(png_data)}, max_bytes=1)

    payload = payload_from_body({"dataUrl": _data_url(png_data)}, max_bytes=1024 * 1024)
    assert payload.data == png_data


def test_success_body_wraps_result():
    body = success_body(AnalysisResult(is_food=True, description="ok", total_calories=5))

    assert body["success"] is True
    assert body["result"]["totalCalories"] == 5
    assert body["timestamp"]


# ----- Serverless handlers ---------------------------------------------------


def test_function_handler_success(png_data):
    service = _service()
    handler = make_function_handler("netlify", service=service)

    response = handler({"httpMethod": "POST", "body": json.dumps({"dataUrl": _data_url(png_data)})})

    assert response["statusCode"] == 200
    body = json.loads(response["body"])
    assert body["result"]["totalCalories"] == 990
    assert body["result"]["isFood"] is True
    assert service._provider.platforms == [PlatformHint.NETLIFY]


def test_function_handler_decodes_base64_body(png_data):
    raw = json.dumps({"dataUrl": _data_url(png_data)}).encode("utf-8")
    handler = make_function_handler(PlatformHint.VERCEL, service=_service())

    response = handler(
        {"httpMethod": "POST", "body": base64.b64encode(raw).decode("ascii"), "isBase64Encoded": True}
    )

    assert response["statusCode"] == 200


def test_function_handler_rejects_other_methods():
    handler = make_function_handler("netlify", service=_service())

    response = handler({"httpMethod": "GET"})

    assert response["statusCode"] == 405
    assert response["headers"]["Allow"] == "POST"


@pytest.mark.parametrize("body", [None, "", "{not json", json.dumps({"other": 1})])
def test_function_handler_rejects_bad_bodies(body):
    handler = make_function_handler("netlify", service=_service())

    response = handler({"httpMethod": "POST", "body": body})

    assert response["statusCode"] == 400
    assert json.loads(response["body"])["kind"] == "invalid_input"


def test_function_handler_enforces_size_ceiling(png_data):
    handler = make_function_handler("netlify", service=_service(max_image_bytes=8))

    response = handler({"httpMethod": "POST", "body": json.dumps({"dataUrl": _data_url(png_data)})})

    assert response["statusCode"] == 400


def test_function_handler_missing_key_returns_500(png_data):
    handler = make_function_handler("netlify", config_loader=AppConfig)

    response = handler({"httpMethod": "POST", "body": json.dumps({"dataUrl": _data_url(png_data)})})

    assert response["statusCode"] == 500
    assert json.loads(response["body"])["kind"] == "configuration"


def test_function_handler_broken_config_returns_500(png_data):
    def broken_loader():
        raise ValueError("Invalid configuration file")

    handler = make_function_handler("netlify", config_loader=broken_loader)

    response = handler({"httpMethod": "POST", "body": json.dumps({"dataUrl": _data_url(png_data)})})

    assert response["statusCode"] == 500


def test_function_handler_maps_provider_errors(png_data):
    handler = make_function_handler("netlify", service=_service(NetworkTimeoutError("slow")))

    response = handler({"httpMethod": "POST", "body": json.dumps({"dataUrl": _data_url(png_data)})})

    assert response["statusCode"] == 504
    assert json.loads(response["body"])["kind"] == "timeout"


# ----- FastAPI server --------------------------------------------------------


def _client(service: AnalysisService) -> TestClient:
    return TestClient(create_app(service.config, service=service))


def test_server_analyze_success(png_data):
    service = _service()
    client = _client(service)

    response = client.post("/api/analyze", json={"dataUrl": _data_url(png_data)})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["result"]["totalCalories"] == 990
    assert service._provider.platforms == [PlatformHint.ZEABUR]


def test_server_missing_data_url_is_400():
    response = _client(_service()).post("/api/analyze", json={})

    assert response.status_code == 400
    assert response.json()["kind"] == "invalid_input"


def test_server_malformed_json_is_400():
    response = _client(_service()).post(
        "/api/analyze",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 400


def test_server_maps_provider_format_error(png_data):
    client = _client(_service(ProviderFormatError("no choices")))

    response = client.post("/api/analyze", json={"dataUrl": _data_url(png_data)})

    assert response.status_code == 502
    assert response.json()["kind"] == "provider_format"


def test_server_missing_key_is_500(png_data):
    client = _client(_service(api_key=None))

    response = client.post("/api/analyze", json={"dataUrl": _data_url(png_data)})

    assert response.status_code == 500
    assert response.json()["error"] == "Server configuration error."


def test_server_health():
    response = _client(_service()).get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert response.json()["platform"] == "zeabur"


def test_function_handler_survives_non_finite_numbers(png_data):
    handler = make_function_handler(
        "netlify", service=_service('{"isFood": true, "totalCalories": NaN}')
    )

    response = handler({"httpMethod": "POST", "body": json.dumps({"dataUrl": _data_url(png_data)})})

    assert response["statusCode"] == 200
    assert json.loads(response["body"])["result"]["totalCalories"] == 0
