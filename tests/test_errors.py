"""Tests for the response envelope and error translation."""

from httpx import ASGITransport, AsyncClient

from backend.app.api.errors import (
    MISSING_REQUIRED_MESSAGE,
    TOO_LONG_MESSAGE,
    validation_message,
)
from backend.app.db import Database
from backend.app.main import create_app
from backend.app.schemas.common import ApiResponse
from backend.app.schemas.feature import FeatureResponse

# ---------------------------------------------------------------------------
# ApiResponse
# ---------------------------------------------------------------------------


def test_envelope_omits_absent_keys():
    """Unset error or message keys are left out of the envelope."""
    assert ApiResponse.failure("nope").model_dump() == {"success": False, "error": "nope"}
    assert ApiResponse.ok([]).model_dump() == {"success": True, "data": []}


def test_envelope_keeps_nulls_inside_data():
    """Only top-level keys are dropped; null fields inside data stay."""
    feature = FeatureResponse(
        id=1,
        title="t",
        description=None,
        author_name="a",
        votes=0,
        created_at="2025-01-01T00:00:00+00:00",
        updated_at="2025-01-01T00:00:00+00:00",
    )
    dumped = ApiResponse[FeatureResponse].ok(feature, message="hi").model_dump(by_alias=True)
    assert dumped["message"] == "hi"
    assert dumped["data"]["description"] is None
    assert dumped["data"]["authorName"] == "a"


# ---------------------------------------------------------------------------
# validation_message()
# ---------------------------------------------------------------------------


def test_missing_required_field_message():
    """A missing title or author gets the fixed required-fields message."""
    errors = [{"loc": ("body", "authorName"), "type": "missing", "msg": "Field required"}]
    assert validation_message(errors) == MISSING_REQUIRED_MESSAGE


def test_too_long_message():
    """An over-long field gets the fixed length message."""
    errors = [
        {
            "loc": ("body", "title"),
            "type": "string_too_long",
            "msg": "String should have at most 255 characters",
        }
    ]
    assert validation_message(errors) == TOO_LONG_MESSAGE


def test_other_errors_are_listed():
    """Other validation errors are joined as field: message."""
    errors = [
        {"loc": ("body", "description"), "type": "string_type", "msg": "Input should be a valid string"},
        {"loc": ("body", "extra"), "type": "extra_forbidden", "msg": "Extra inputs are not permitted"},
    ]
    assert validation_message(errors) == (
        "description: Input should be a valid string; extra: Extra inputs are not permitted"
    )


def test_whole_body_missing():
    """A missing body reports the bare error message."""
    errors = [{"loc": ("body",), "type": "missing", "msg": "Field required"}]
    assert validation_message(errors) == "Field required"


# ---------------------------------------------------------------------------
# Unhandled failures
# ---------------------------------------------------------------------------


async def test_unhandled_exception_is_opaque_500(database: Database):
    """Anything unexpected becomes a generic 500 envelope without internals."""
    app = create_app()
    app.state.database = database

    @app.get("/api/boom")
    async def boom() -> dict:
        raise RuntimeError("secret internals")

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        resp = await ac.get("/api/boom")

    assert resp.status_code == 500
    assert resp.json() == {"success": False, "error": "Internal server error"}
