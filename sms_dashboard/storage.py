"""Persistent credential storage for the SMS dashboard."""

import json
import logging
from dataclasses import asdict, is_dataclass
from datetime import date, datetime, time
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .const import STORAGE_KEY_TOKEN, STORAGE_KEY_USER_INFO

_LOGGER = logging.getLogger(__name__)


def _serialize(obj: Any) -> Any:
	"""Recursively convert dataclasses and dates into plain JSON values."""
	if is_dataclass(obj) and not isinstance(obj, type):
		return _serialize(asdict(obj))
	elif isinstance(obj, (datetime, date, time)):
		return obj.isoformat()
	elif isinstance(obj, (list, tuple)):
		return [_serialize(item) for item in obj]
	elif isinstance(obj, dict):
		return {key: _serialize(value) for key, value in obj.items()}
	else:
		return obj


class TokenStore:
	"""Holds the bearer token and user profile for the current session.

	- Two keys, ``token`` and ``userInfo`` (a JSON string), as in the
	  browser store the dashboard used originally.
	- Persisted to a JSON file when a path is given, memory only otherwise.
	- Keeps the ``Authorization`` header the transport sends in sync with
	  the token.
	"""

	def __init__(self, path: Optional[Union[str, Path]] = None) -> None:
		self._path = Path(path) if path else None
		self._data: Dict[str, str] = {}
		self._auth_headers: Dict[str, str] = {}
		self._load()

	def _load(self) -> None:
		if self._path is None or not self._path.exists():
			return
		try:
			with open(self._path, "r", encoding="utf-8") as f:
				stored = json.load(f)
		except (OSError, ValueError) as e:
			_LOGGER.warning(f"Could not read token store {self._path}: {e}")
			return
		if not isinstance(stored, dict):
			_LOGGER.warning(f"Ignoring malformed token store {self._path}")
			return
		self._data = {
			key: value for key, value in stored.items()
			if key in (STORAGE_KEY_TOKEN, STORAGE_KEY_USER_INFO) and isinstance(value, str)
		}
		self._refresh_headers()

	def _save(self) -> None:
		if self._path is None:
			return
		self._path.parent.mkdir(parents=True, exist_ok=True)
		with open(self._path, "w", encoding="utf-8") as f:
			json.dump(self._data, f)

	def _refresh_headers(self) -> None:
		token = self._data.get(STORAGE_KEY_TOKEN)
		if token:
			self._auth_headers = {"Authorization": f"Bearer {token}"}
		else:
			self._auth_headers = {}

	def get_token(self) -> Optional[str]:
		return self._data.get(STORAGE_KEY_TOKEN)

	def set_token(self, token: Optional[str]) -> None:
		"""Persist a token, or clear it together with the cached auth header."""
		if token:
			_LOGGER.debug("Setting auth token")
			self._data[STORAGE_KEY_TOKEN] = token
		else:
			_LOGGER.debug("Removing auth token")
			self._data.pop(STORAGE_KEY_TOKEN, None)
		self._refresh_headers()
		self._save()

	def remove_token(self) -> None:
		self.set_token(None)

	def is_authenticated(self) -> bool:
		return self.get_token() is not None

	def auth_headers(self) -> Dict[str, str]:
		"""Default headers for credentialed requests (empty without a token)."""
		return dict(self._auth_headers)

	def get_user_info(self) -> Optional[Dict[str, Any]]:
		raw = self._data.get(STORAGE_KEY_USER_INFO)
		if not raw:
			return None
		try:
			return json.loads(raw)
		except ValueError as e:
			_LOGGER.warning(f"Stored user info is not valid JSON: {e}")
			return None

	def set_user_info(self, info: Any) -> None:
		if info:
			self._data[STORAGE_KEY_USER_INFO] = json.dumps(_serialize(info))
		else:
			self._data.pop(STORAGE_KEY_USER_INFO, None)
		self._save()

	def clear_user_info(self) -> None:
		self.set_user_info(None)

	def logout(self) -> None:
		"""Clear token and user info."""
		self._data.clear()
		self._refresh_headers()
		self._save()
