"""Authentication handler for the SMS backend."""

import logging
from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional

from .exceptions import APIError, AuthenticationError

if TYPE_CHECKING:
	from ..storage import TokenStore
	from .client import SMSClient

_LOGGER = logging.getLogger(__name__)


def _extract_token(body: Any) -> Optional[str]:
	if not isinstance(body, dict):
		return None
	for key in ("token", "access_token", "accessToken"):
		if isinstance(body.get(key), str) and body[key]:
			return body[key]
	data = body.get("data")
	if isinstance(data, dict):
		return _extract_token(data)
	return None


def _extract_user(body: Any) -> Optional[Dict[str, Any]]:
	if not isinstance(body, dict):
		return None
	if isinstance(body.get("user"), dict):
		return body["user"]
	data = body.get("data")
	if isinstance(data, dict):
		return _extract_user(data)
	return None


class AuthService:
	"""Login, registration and password changes.

	Issues no tokens itself: it stores whatever the backend hands out and
	clears it on logout. Expiry is only ever detected through a 401.
	"""

	def __init__(self, client: "SMSClient", token_store: "TokenStore"):
		self._client = client
		self._token_store = token_store

	def is_authenticated(self) -> bool:
		return self._token_store.is_authenticated()

	def current_user(self) -> Optional[Dict[str, Any]]:
		return self._token_store.get_user_info()

	async def login(self, username: str, password: str) -> Dict[str, Any]:
		"""Login and persist the returned token and user profile.

		Args:
			username: Username or email
			password: Password

		Returns:
			The backend's login response body.
		"""
		path = self._client.resolve("auth", "login")
		# A stale token must not be sent along with fresh credentials
		self._token_store.set_token(None)
		try:
			body = await self._client.send("POST", path, {"username": username, "password": password})
		except APIError as err:
			if err.status in (400, 401, 403):
				raise AuthenticationError(err.message, status=err.status, payload=err.payload, url=err.url) from err
			raise

		token = _extract_token(body)
		if not token:
			raise AuthenticationError("Login response did not contain a token", payload=body)

		self._token_store.set_token(token)
		user = _extract_user(body)
		if user is not None:
			self._token_store.set_user_info(user)
		_LOGGER.info(f"Logged in as {username}")
		return body

	async def register(self, user_data: Mapping[str, Any]) -> Any:
		path = self._client.resolve("auth", "register")
		try:
			return await self._client.send("POST", path, user_data)
		except APIError as err:
			if err.status in (400, 409, 422):
				raise AuthenticationError(err.message, status=err.status, payload=err.payload, url=err.url) from err
			raise

	async def update_password(self, password_data: Mapping[str, Any]) -> Any:
		path = self._client.resolve("auth", "update_password")
		return await self._client.send("PUT", path, password_data)

	def logout(self) -> None:
		self._token_store.logout()
		_LOGGER.info("Logged out")
