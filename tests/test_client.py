"""Tests for the tiered fetch engine and writes."""

import asyncio
from unittest.mock import AsyncMock

import aiohttp
import pytest

from conftest import API, DIRECT, PUBLIC, called_urls, make_response
from sms_dashboard.smsapi.exceptions import (
	APIError,
	AllTransportsFailedError,
	ConnectionExhaustedError,
	SessionExpiredError,
	TransportError,
	ValidationError,
)
from sms_dashboard.smsapi.models import FileUpload

MOCK_DEPARTMENTS = [{"id": 99, "name": "Mock", "meta": {"tags": ["offline"]}}]


async def test_tiers_run_in_order_and_mock_is_last_resort(make_client, logged_in_store):
	client, session = make_client({
		("GET", f"{API}/departments"): aiohttp.ClientConnectionError("refused"),
		("GET", f"{PUBLIC}/departments"): make_response(500, {"message": "boom"}),
		("GET", f"{DIRECT}/departments"): make_response(200, {"rows": [{"id": 1}], "count": 3}),
	}, logged_in_store)

	result = await client.fetch_resource("/departments", use_auth=True, fallback_data=MOCK_DEPARTMENTS)

	assert result.rows == [{"id": 1}]
	assert result.count == 3
	assert result.source == "direct"
	assert result.is_mock is False
	assert called_urls(session) == [
		("GET", f"{API}/departments"),
		("GET", f"{PUBLIC}/departments"),
		("GET", f"{DIRECT}/departments"),
	]


async def test_credentials_only_on_credentialed_tiers(make_client, logged_in_store):
	client, session = make_client({}, logged_in_store)
	await client.fetch_resource("/departments", use_auth=True, fallback_data=[])

	headers = [c.kwargs["headers"] for c in session.request.call_args_list]
	assert headers[0]["Authorization"] == "Bearer abc123"
	assert "Authorization" not in headers[1]
	assert headers[2]["Authorization"] == "Bearer abc123"


async def test_every_attempt_has_a_timeout(make_client, logged_in_store):
	client, session = make_client({}, logged_in_store)
	await client.fetch_resource("/departments", use_auth=True, fallback_data=[])

	for c in session.request.call_args_list:
		assert c.kwargs["timeout"].total == 1.0


async def test_authenticated_tier_skipped_without_token(make_client, token_store):
	client, session = make_client({
		("GET", f"{PUBLIC}/departments"): make_response(200, [{"id": 1}]),
	}, token_store)

	result = await client.fetch_resource("/departments", use_auth=True)

	assert result.source == "public"
	assert called_urls(session) == [("GET", f"{PUBLIC}/departments")]


async def test_mock_fallback_is_a_flagged_deep_copy(make_client, token_store):
	client, _ = make_client({}, token_store)

	result = await client.fetch_resource("/departments", fallback_data=MOCK_DEPARTMENTS)

	assert result.is_mock is True
	assert result.source == "mock"
	assert result.rows == MOCK_DEPARTMENTS
	assert result.count == 1
	assert result.rows is not MOCK_DEPARTMENTS
	assert result.rows[0]["meta"] is not MOCK_DEPARTMENTS[0]["meta"]
	assert result.to_dict()["_isMockData"] is True


async def test_empty_mock_dataset_is_still_flagged(make_client):
	client, _ = make_client({})
	result = await client.fetch_resource("/departments", fallback_data=[])
	assert result.is_mock is True
	assert result.count == 0


async def test_all_tiers_failed_without_fallback(make_client, token_store):
	client, _ = make_client({
		("GET", f"{PUBLIC}/departments"): make_response(503, {"message": "Service unavailable"}),
	}, token_store)

	with pytest.raises(AllTransportsFailedError) as exc_info:
		await client.fetch_resource("/departments", use_auth=True)

	err = exc_info.value
	assert err.path == "/departments"
	assert set(err.failures) == {"authenticated", "public", "direct"}
	assert isinstance(err.failures["public"], APIError)
	assert err.failures["public"].status == 503
	assert isinstance(err.failures["direct"], TransportError)
	assert "/departments" in str(err)


async def test_departments_end_to_end(make_client):
	client, session = make_client({
		("GET", f"{PUBLIC}/departments"): make_response(
			200, {"success": True, "data": [{"id": 1, "name": "CS"}], "total": 1}
		),
	})

	result = await client.fetch_resource(
		"/departments",
		params={"page": 1, "limit": 10},
		fallback_data=MOCK_DEPARTMENTS,
	)

	assert result.to_dict()["success"] is True
	assert result.rows == [{"id": 1, "name": "CS"}]
	assert result.count == 1
	assert result.is_mock is False
	assert session.request.call_args.kwargs["params"] == {"page": "1", "limit": "10"}


async def test_timeout_moves_to_next_tier(make_client, logged_in_store):
	client, _ = make_client({
		("GET", f"{API}/programs"): asyncio.TimeoutError(),
		("GET", f"{PUBLIC}/programs"): make_response(200, {"data": [{"id": 4}]}),
	}, logged_in_store)

	result = await client.fetch_resource("/programs", use_auth=True)
	assert result.source == "public"
	assert result.rows == [{"id": 4}]


async def test_empty_body_moves_to_next_tier(make_client):
	client, _ = make_client({
		("GET", f"{PUBLIC}/programs"): make_response(200, text=""),
		("GET", f"{DIRECT}/programs"): make_response(200, [{"id": 4}]),
	})

	result = await client.fetch_resource("/programs")
	assert result.source == "direct"


async def test_json_with_wrong_content_type_is_parsed(make_client):
	client, _ = make_client({
		("GET", f"{PUBLIC}/programs"): make_response(200, text='{"data": [{"id": 8}], "total": 1}'),
	})

	result = await client.fetch_resource("/programs")
	assert result.rows == [{"id": 8}]


async def test_undecodable_body_moves_to_next_tier(make_client):
	client, _ = make_client({
		("GET", f"{PUBLIC}/departments"): make_response(200, raw=b'["caf\xe9"]'),
		("GET", f"{DIRECT}/departments"): make_response(200, [{"id": 4}]),
	})

	result = await client.fetch_resource("/departments")
	assert result.source == "direct"
	assert result.rows == [{"id": 4}]


async def test_undecodable_html_page_falls_back_to_mock(make_client):
	page = make_response(200, text="")
	page.text = AsyncMock(side_effect=UnicodeDecodeError("utf-8", b"\xff", 0, 1, "invalid start byte"))
	client, _ = make_client({
		("GET", f"{PUBLIC}/departments"): page,
		("GET", f"{DIRECT}/departments"): make_response(200, raw=b"\xff\xfe{}"),
	})

	result = await client.fetch_resource("/departments", fallback_data=MOCK_DEPARTMENTS)
	assert result.is_mock is True
	assert result.rows == MOCK_DEPARTMENTS


async def test_undecodable_error_page_keeps_message(make_client, logged_in_store):
	client, _ = make_client({
		("DELETE", f"{API}/departments/9"): make_response(502, raw=b"Bad gateway \xff"),
	}, logged_in_store)

	with pytest.raises(APIError) as exc_info:
		await client.delete("/departments/9")

	assert exc_info.value.status == 502
	assert exc_info.value.message.startswith("Bad gateway")


async def test_expired_session_stops_the_chain(make_client, logged_in_store):
	client, session = make_client({
		("GET", f"{API}/students"): make_response(401, {"message": "Token expired"}),
		("GET", f"{PUBLIC}/students"): make_response(200, [{"id": 1}]),
	}, logged_in_store)

	with pytest.raises(SessionExpiredError) as exc_info:
		await client.fetch_resource("/students", use_auth=True, fallback_data=[])

	assert exc_info.value.status == 401
	assert session.request.call_count == 1
	# The client never logs the user out by itself
	assert logged_in_store.get_token() == "abc123"


async def test_anonymous_401_moves_to_next_tier(make_client):
	client, _ = make_client({
		("GET", f"{PUBLIC}/students"): make_response(401, {"message": "Unauthorized"}),
		("GET", f"{DIRECT}/students"): make_response(200, [{"id": 1}]),
	})

	result = await client.fetch_resource("/students")
	assert result.source == "direct"


async def test_too_many_connections_stops_the_chain(make_client):
	client, session = make_client({
		("GET", f"{PUBLIC}/students"): make_response(500, {"message": "ER_CON_COUNT_ERROR: Too many connections"}),
	})

	with pytest.raises(ConnectionExhaustedError) as exc_info:
		await client.fetch_resource("/students", fallback_data=[])

	assert isinstance(exc_info.value.cause, APIError)
	assert exc_info.value.status == 500
	assert session.request.call_count == 1


async def test_too_many_connections_in_success_body(make_client):
	client, _ = make_client({
		("GET", f"{PUBLIC}/students"): make_response(200, {"success": False, "message": "Too many connections"}),
	})

	with pytest.raises(ConnectionExhaustedError):
		await client.fetch_resource("/students")


async def test_create_validation_error_is_not_retried(make_client, logged_in_store):
	client, session = make_client({
		("POST", f"{API}/students"): make_response(422, {"success": False, "message": "Email already exists"}),
	}, logged_in_store)

	with pytest.raises(ValidationError) as exc_info:
		await client.create("/students", {"email": "a@b.c"})

	assert exc_info.value.message == "Email already exists"
	assert exc_info.value.status == 422
	assert session.request.call_count == 1


async def test_write_retries_once_against_direct_base(make_client, logged_in_store):
	client, session = make_client({
		("POST", f"{API}/departments"): aiohttp.ClientConnectionError("refused"),
		("POST", f"{DIRECT}/departments"): make_response(201, {"success": True, "data": {"id": 5}}),
	}, logged_in_store)

	body = await client.create("/departments", {"name": "Physics"})

	assert body == {"success": True, "data": {"id": 5}}
	assert called_urls(session) == [("POST", f"{API}/departments"), ("POST", f"{DIRECT}/departments")]
	for c in session.request.call_args_list:
		assert c.kwargs["json"] == {"name": "Physics"}
		assert c.kwargs["timeout"].total == 2.0


async def test_write_never_retries_more_than_once(make_client, logged_in_store):
	client, session = make_client({}, logged_in_store)

	with pytest.raises(TransportError):
		await client.update("/departments/1", {"name": "Physics"})

	assert session.request.call_count == 2


async def test_delete_not_found_is_a_plain_api_error(make_client, logged_in_store):
	client, _ = make_client({
		("DELETE", f"{API}/departments/9"): make_response(404, {"message": "Department not found"}),
	}, logged_in_store)

	with pytest.raises(APIError) as exc_info:
		await client.delete("/departments/9")

	assert not isinstance(exc_info.value, ValidationError)
	assert exc_info.value.status == 404


async def test_binary_field_switches_to_multipart(make_client, logged_in_store):
	client, session = make_client({
		("POST", f"{API}/students"): aiohttp.ClientConnectionError("refused"),
		("POST", f"{DIRECT}/students"): make_response(201, {"success": True}),
	}, logged_in_store)

	await client.create(
		"/students",
		{"name": "Ann", "profile_picture": FileUpload(b"\x89PNG", "ann.png", "image/png")},
		file_fields=("profile_picture",),
	)

	forms = [c.kwargs["data"] for c in session.request.call_args_list]
	assert all(isinstance(form, aiohttp.FormData) for form in forms)
	# Each attempt gets its own form
	assert forms[0] is not forms[1]
	assert all(c.kwargs["json"] is None for c in session.request.call_args_list)


async def test_file_field_without_binary_stays_json(make_client, logged_in_store):
	client, session = make_client({
		("PUT", f"{API}/students/1"): make_response(200, {"success": True}),
	}, logged_in_store)

	await client.update("/students/1", {"name": "Ann", "profile_picture": None}, file_fields=("profile_picture",))

	assert session.request.call_args.kwargs["json"] == {"name": "Ann", "profile_picture": None}
	assert session.request.call_args.kwargs["data"] is None


async def test_check_backend_status(make_client):
	client, _ = make_client({
		("GET", f"{API}/dashboard/stats"): make_response(200, {"success": True, "data": {}}),
	})
	assert await client.check_backend_status() is True
	assert client.is_backend_online is True

	offline, _ = make_client({})
	assert await offline.check_backend_status() is False
	assert offline.is_backend_online is False
