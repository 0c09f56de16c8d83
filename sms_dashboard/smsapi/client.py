"""Main client for the SMS backend API."""

import asyncio
import copy
import json
import logging
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import aiohttp

from .endpoints import EndpointResolver
from .exceptions import (
	APIError,
	AllTransportsFailedError,
	ConnectionExhaustedError,
	SessionExpiredError,
	SMSError,
	TransportError,
	ValidationError,
)
from .models import TIER_AUTHENTICATED, TIER_DIRECT, TIER_MOCK, TIER_PUBLIC, PagedResult
from .normalizer import normalize_response
from .utils import (
	build_form_data,
	clean_params,
	extract_message,
	has_file,
	is_connection_exhausted,
	materialize_files,
)

if TYPE_CHECKING:
	from ..config import ClientConfig
	from ..storage import TokenStore

_LOGGER = logging.getLogger(__name__)

DEFAULT_HEADERS = {
	"Accept": "application/json, text/plain, */*",
}

STATUS_PROBE_PATH = "/dashboard/stats"
STATUS_PROBE_TIMEOUT = 3.0

# 4xx answers to these methods are reported as validation errors
VALIDATED_METHODS = ("POST", "PUT", "PATCH")

CONNECTION_EXHAUSTED_MESSAGE = "Too many connections to the database. Please try again later."
SESSION_EXPIRED_MESSAGE = "Your session has expired. Please log in again."


class SMSClient:
	"""Client for the SMS REST backend.

	Reads go through a fixed chain of tiers (authenticated, public, direct,
	mock) and always come back as a :class:`PagedResult`. Writes hit the
	authenticated API and are retried once against the direct base when the
	network fails; they are never faked.
	"""

	def __init__(
		self,
		config: "ClientConfig",
		token_store: Optional["TokenStore"] = None,
		session: Optional[aiohttp.ClientSession] = None,
	):
		"""Initialise the client.

		Args:
			config: Base URLs, timeouts and backend profile.
			token_store: Source of the bearer token. Without one every
				request is anonymous.
			session: Optional aiohttp session. If None, one is created on
				first use and closed with the client.
		"""
		self._config = config
		self._token_store = token_store
		self._session = session
		self._own_session = session is None
		self.resolver = EndpointResolver(config.backend_profile)
		self.is_backend_online: Optional[bool] = None

	async def __aenter__(self):
		"""Async context manager entry."""
		self._get_session()
		return self

	async def __aexit__(self, exc_type, exc_val, exc_tb):
		"""Async context manager exit."""
		await self.close()

	async def close(self) -> None:
		if self._own_session and self._session is not None:
			await self._session.close()
			self._session = None

	@property
	def config(self) -> "ClientConfig":
		return self._config

	def _get_session(self) -> aiohttp.ClientSession:
		if self._session is None:
			self._session = aiohttp.ClientSession()
			self._own_session = True
		return self._session

	def resolve(self, resource: str, action: str, *args: Any) -> str:
		"""Resolve a logical endpoint against the configured backend profile."""
		return self.resolver.resolve(resource, action, *args)

	def _has_token(self) -> bool:
		return self._token_store is not None and self._token_store.is_authenticated()

	def _headers(self, credentialed: bool) -> Dict[str, str]:
		headers = DEFAULT_HEADERS.copy()
		if credentialed and self._token_store is not None:
			headers.update(self._token_store.auth_headers())
		return headers

	@staticmethod
	def _url(base: str, path: str) -> str:
		if not path.startswith("/"):
			path = f"/{path}"
		return f"{base.rstrip('/')}{path}"

	def _read_tiers(self, use_auth: bool) -> List[Tuple[str, str, bool]]:
		tiers = []
		if use_auth:
			tiers.append((TIER_AUTHENTICATED, self._config.api_base_url, True))
		tiers.append((TIER_PUBLIC, self._config.public_base_url, False))
		tiers.append((TIER_DIRECT, self._config.direct_base_url, True))
		return tiers

	async def fetch_resource(
		self,
		path: str,
		*,
		use_auth: bool = False,
		params: Optional[Mapping[str, Any]] = None,
		fallback_data: Optional[Sequence[Any]] = None,
	) -> PagedResult:
		"""Fetch a list or record, falling back tier by tier.

		Args:
			path: Request path, e.g. ``/departments``.
			use_auth: Try the authenticated API first.
			params: Query parameters; ``None`` values are dropped.
			fallback_data: Rows served, flagged as mock data, when every
				live tier fails.

		Returns:
			The first normalised success.

		Raises:
			SessionExpiredError: A credentialed tier got HTTP 401.
			ConnectionExhaustedError: The backend ran out of DB connections.
			AllTransportsFailedError: Every tier failed and no fallback was given.
		"""
		query = clean_params(params)
		failures: Dict[str, BaseException] = {}

		for tier, base, credentialed in self._read_tiers(use_auth):
			if tier == TIER_AUTHENTICATED and not self._has_token():
				_LOGGER.debug(f"Skipping authenticated API for {path}: no auth token")
				failures[tier] = TransportError("No auth token available", tier=tier)
				continue

			url = self._url(base, path)
			try:
				result = await self._attempt(tier, url, credentialed, query)
			except (SessionExpiredError, ConnectionExhaustedError):
				raise
			except (TransportError, APIError) as err:
				_LOGGER.warning(f"{tier.capitalize()} API failed: {path} ({err})")
				failures[tier] = err
				continue

			_LOGGER.debug(f"{tier.capitalize()} API success: {path} ({result})")
			return result

		if fallback_data is not None:
			_LOGGER.warning(f"Using fallback data for: {path}")
			rows = copy.deepcopy(list(fallback_data))
			return PagedResult(success=True, rows=rows, count=len(rows), source=TIER_MOCK, is_mock=True)

		_LOGGER.error(f"All data fetching methods failed for {path}")
		raise AllTransportsFailedError(path, failures)

	async def _attempt(self, tier: str, url: str, credentialed: bool, query: Dict[str, str]) -> PagedResult:
		body = await self._request("GET", url, credentialed=credentialed, params=query, tier=tier)
		if body is None or body == "":
			raise TransportError(f"Empty response from {url}", url=url, tier=tier)
		return normalize_response(body, source=tier)

	async def send(
		self,
		method: str,
		path: str,
		payload: Optional[Mapping[str, Any]] = None,
		*,
		file_fields: Iterable[str] = (),
	) -> Any:
		"""Send a write request.

		The payload goes out as multipart when one of ``file_fields`` holds a
		binary value, as JSON otherwise. A network failure on the primary API
		is retried exactly once against the direct base; HTTP errors are not
		retried.
		"""
		method = method.upper()
		file_fields = tuple(file_fields)
		multipart = payload is not None and has_file(payload, file_fields)
		if multipart:
			payload = materialize_files(payload, file_fields)

		primary_url = self._url(self._config.api_base_url, path)
		try:
			return await self._send_once(method, primary_url, payload, file_fields, multipart, TIER_AUTHENTICATED)
		except TransportError as err:
			direct_url = self._url(self._config.direct_base_url, path)
			_LOGGER.warning(f"{method} {path} failed on primary API ({err}), retrying once against {direct_url}")
			return await self._send_once(method, direct_url, payload, file_fields, multipart, TIER_DIRECT)

	async def _send_once(
		self,
		method: str,
		url: str,
		payload: Optional[Mapping[str, Any]],
		file_fields: Tuple[str, ...],
		multipart: bool,
		tier: str,
	) -> Any:
		# FormData can only be serialised once, so build it per attempt
		form = build_form_data(payload, file_fields) if multipart else None
		json_body = None if multipart else payload
		return await self._request(
			method,
			url,
			credentialed=True,
			json_body=json_body,
			form=form,
			timeout=self._config.write_timeout,
			validate=method in VALIDATED_METHODS,
			tier=tier,
		)

	async def create(self, path: str, payload: Mapping[str, Any], file_fields: Iterable[str] = ()) -> Any:
		return await self.send("POST", path, payload, file_fields=file_fields)

	async def update(self, path: str, payload: Mapping[str, Any], file_fields: Iterable[str] = ()) -> Any:
		return await self.send("PUT", path, payload, file_fields=file_fields)

	async def delete(self, path: str) -> Any:
		return await self.send("DELETE", path)

	async def check_backend_status(self) -> bool:
		"""Probe the primary API and remember whether it answered."""
		url = self._url(self._config.api_base_url, STATUS_PROBE_PATH)
		try:
			await self._request("GET", url, credentialed=True, timeout=STATUS_PROBE_TIMEOUT)
		except SMSError as err:
			_LOGGER.info(f"Backend server is offline, using fallback methods ({err})")
			self.is_backend_online = False
		else:
			_LOGGER.info("Backend server is online")
			self.is_backend_online = True
		return self.is_backend_online

	async def _request(
		self,
		method: str,
		url: str,
		*,
		credentialed: bool = False,
		params: Optional[Dict[str, str]] = None,
		json_body: Any = None,
		form: Optional[aiohttp.FormData] = None,
		timeout: Optional[float] = None,
		validate: bool = False,
		tier: Optional[str] = None,
	) -> Any:
		headers = self._headers(credentialed)
		sent_token = "Authorization" in headers
		if timeout is None:
			timeout = self._config.request_timeout

		_LOGGER.debug(f"{method} {url} (tier={tier}, params={params or {}}, auth={sent_token})")

		try:
			async with self._get_session().request(
				method,
				url,
				headers=headers,
				params=params or None,
				json=json_body,
				data=form,
				timeout=aiohttp.ClientTimeout(total=timeout),
			) as resp:
				return await self._handle_response(resp, url, sent_token=sent_token, validate=validate, tier=tier)
		except asyncio.TimeoutError as err:
			raise TransportError(f"Request timed out after {timeout}s: {url}", url=url, tier=tier) from err
		except aiohttp.ClientError as err:
			if is_connection_exhausted(str(err)):
				_LOGGER.error(f"Database connection limit reached: {err}")
				raise ConnectionExhaustedError(CONNECTION_EXHAUSTED_MESSAGE, cause=err) from err
			raise TransportError(f"Connection error: {err}", url=url, tier=tier) from err

	async def _handle_response(
		self,
		resp: aiohttp.ClientResponse,
		url: str,
		*,
		sent_token: bool,
		validate: bool,
		tier: Optional[str],
	) -> Any:
		body = await self._read_body(resp, url, tier)
		status = resp.status
		message = extract_message(body)

		if 200 <= status < 300:
			if isinstance(body, dict) and body.get("success") is False and is_connection_exhausted(message):
				_LOGGER.error(f"Database connection limit reached: {message}")
				raise ConnectionExhaustedError(
					CONNECTION_EXHAUSTED_MESSAGE,
					cause=APIError(message, status=status, payload=body, url=url),
					status=status,
				)
			return body

		if is_connection_exhausted(message):
			_LOGGER.error(f"Database connection limit reached: {message}")
			raise ConnectionExhaustedError(
				CONNECTION_EXHAUSTED_MESSAGE,
				cause=APIError(message, status=status, payload=body, url=url),
				status=status,
			)

		if status == 401 and sent_token:
			_LOGGER.warning(f"Authentication error for {url} (HTTP 401) - session may have expired")
			raise SessionExpiredError(message or SESSION_EXPIRED_MESSAGE, status=status, payload=body, url=url)

		if validate and 400 <= status < 500 and status not in (401, 403):
			raise ValidationError(message or f"Request rejected: HTTP {status}", status=status, payload=body, url=url)

		raise APIError(message or f"HTTP {status}", status=status, payload=body, url=url)

	async def _read_body(self, resp: aiohttp.ClientResponse, url: str, tier: Optional[str]) -> Any:
		try:
			return await resp.json()
		except aiohttp.ContentTypeError as err:
			# Content-type header may be wrong while the body is still JSON
			text = await self._read_text(resp, url, tier)
			stripped = text.strip()
			if not stripped:
				return None
			if stripped.startswith(("{", "[")):
				try:
					return json.loads(stripped)
				except json.JSONDecodeError:
					_LOGGER.error(f"Failed to parse response as JSON: {stripped[:200]}...")
			if resp.status >= 400:
				return stripped
			_LOGGER.warning(f"Response from {url} doesn't look like JSON: {stripped[:200]}...")
			raise TransportError(f"Non-JSON response from {url}", url=url, tier=tier) from err
		except UnicodeDecodeError as err:
			if resp.status >= 400:
				return (await self._read_text(resp, url, tier)).strip() or None
			_LOGGER.warning(f"Response from {url} is not valid UTF-8: {err}")
			raise TransportError(f"Undecodable response from {url}", url=url, tier=tier) from err
		except json.JSONDecodeError as err:
			raise TransportError(f"Invalid JSON response from {url}: {err}", url=url, tier=tier) from err

	async def _read_text(self, resp: aiohttp.ClientResponse, url: str, tier: Optional[str]) -> str:
		try:
			return await resp.text()
		except UnicodeDecodeError as err:
			if resp.status >= 400:
				# Keep what we can of the backend's error message
				raw = await resp.read()
				return raw.decode("utf-8", errors="replace")
			_LOGGER.warning(f"Response from {url} is not valid UTF-8: {err}")
			raise TransportError(f"Undecodable response from {url}", url=url, tier=tier) from err
