"""Tests for shared response DTOs."""

import warnings
from types import SimpleNamespace

from api.shared.dtos import BaseDTO, ErrorResponse, HealthCheckResponse


def test_dtos_build_from_attributes():
    source = SimpleNamespace(status="healthy", dependencies={"store": "ok"})

    health = HealthCheckResponse.model_validate(source)

    assert health.status == "healthy"
    assert health.dependencies == {"store": "ok"}


def test_subclassing_base_dto_emits_no_deprecation_warning():
    with warnings.catch_warnings():
        warnings.simplefilter("error")

        class ConversationSummary(BaseDTO):
            conversation_id: str

    assert ConversationSummary.model_config["from_attributes"] is True


def test_error_response_omits_detail_when_unset():
    body = ErrorResponse(error="Conversation not found.", status_code=404)

    assert body.model_dump(exclude_none=True) == {
        "error": "Conversation not found.",
        "status_code": 404,
    }
