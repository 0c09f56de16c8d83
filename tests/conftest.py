"""Shared fixtures for the SMS dashboard tests."""

import json
from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest

from sms_dashboard.config import ClientConfig
from sms_dashboard.fallback_data import FallbackRegistry
from sms_dashboard.smsapi.client import SMSClient
from sms_dashboard.storage import TokenStore

API = "http://api.test/api"
PUBLIC = "http://api.test/api/public"
DIRECT = "http://direct.test/api"


def make_response(status=200, body=None, text=None, raw=None):
	"""Fake aiohttp response; pass ``text`` for a non-JSON body.

	``raw`` bytes that are not valid UTF-8 make both ``json`` and ``text`` fail
	to decode, as aiohttp does.
	"""
	resp = MagicMock()
	resp.status = status
	if raw is not None:
		error = UnicodeDecodeError("utf-8", raw, 0, 1, "invalid start byte")
		resp.json = AsyncMock(side_effect=error)
		resp.text = AsyncMock(side_effect=error)
		resp.read = AsyncMock(return_value=raw)
	elif text is not None:
		resp.json = AsyncMock(side_effect=aiohttp.ContentTypeError(MagicMock(), ()))
		resp.text = AsyncMock(return_value=text)
	else:
		resp.json = AsyncMock(return_value=body)
		resp.text = AsyncMock(return_value=json.dumps(body))
	return resp


def route_session(routes):
	"""MagicMock session answering by ``(method, url)``.

	A route maps to a response, an exception to raise, or a list of those
	consumed one per call. Unknown routes refuse the connection.
	"""
	session = MagicMock()

	def request(method, url, **kwargs):
		outcome = routes.get((method, url), aiohttp.ClientConnectionError("Connection refused"))
		if isinstance(outcome, list):
			outcome = outcome.pop(0)
		ctx = MagicMock()
		if isinstance(outcome, BaseException):
			ctx.__aenter__ = AsyncMock(side_effect=outcome)
		else:
			ctx.__aenter__ = AsyncMock(return_value=outcome)
		ctx.__aexit__ = AsyncMock(return_value=False)
		return ctx

	session.request = MagicMock(side_effect=request)
	return session


def called_urls(session):
	return [(c.args[0], c.args[1]) for c in session.request.call_args_list]


@pytest.fixture
def config():
	return ClientConfig(
		api_base_url=API,
		public_base_url=PUBLIC,
		direct_base_url=DIRECT,
		request_timeout=1.0,
		write_timeout=2.0,
	)


@pytest.fixture
def token_store():
	return TokenStore()


@pytest.fixture
def logged_in_store():
	store = TokenStore()
	store.set_token("abc123")
	return store


@pytest.fixture
def fallbacks():
	return FallbackRegistry({
		"departments": [{"id": 1, "name": "Mock CS"}, {"id": 2, "name": "Mock Math"}],
		"grades": [{"id": 1, "marks_obtained": 45, "max_marks": 50}],
		"recent_activity": [{"title": f"Activity {i}"} for i in range(12)],
		"upcoming_exams": [{"name": "Midterm"}],
	})


@pytest.fixture
def make_client(config):
	def _make(routes, token_store=None):
		session = route_session(routes)
		return SMSClient(config, token_store, session=session), session
	return _make
