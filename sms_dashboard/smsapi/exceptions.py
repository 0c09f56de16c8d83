"""Custom exceptions for the SMS backend client."""

from typing import Any, Dict, Optional


class SMSError(Exception):
	"""Base exception for SMS client errors."""
	pass


class ConfigurationError(SMSError):
	"""Resource, action or setting is not configured."""
	pass


class TransportError(SMSError):
	"""A single tier's network call failed."""

	def __init__(self, message: str, url: Optional[str] = None, tier: Optional[str] = None):
		super().__init__(message)
		self.url = url
		self.tier = tier


class APIError(SMSError):
	"""Backend answered with an HTTP error."""

	def __init__(self, message: str, status: Optional[int] = None, payload: Any = None, url: Optional[str] = None):
		super().__init__(message)
		self.message = message
		self.status = status
		self.payload = payload
		self.url = url

	def __str__(self) -> str:
		if self.status is not None:
			return f"HTTP {self.status}: {self.message}"
		return self.message


class ValidationError(APIError):
	"""Backend rejected a create or update payload."""
	pass


class SessionExpiredError(APIError):
	"""Bearer token was rejected (HTTP 401)."""
	pass


class AuthenticationError(APIError):
	"""Login or registration was rejected."""
	pass


class ConnectionExhaustedError(SMSError):
	"""Backend reported that its database connections are exhausted."""

	def __init__(self, message: str, cause: Optional[BaseException] = None, status: Optional[int] = None):
		super().__init__(message)
		self.cause = cause
		self.status = status


class AllTransportsFailedError(SMSError):
	"""Every tier failed and no fallback data was available."""

	def __init__(self, path: str, failures: Dict[str, BaseException]):
		self.path = path
		self.failures = dict(failures)
		details = "; ".join(f"{tier}: {err}" for tier, err in self.failures.items())
		super().__init__(f"All data fetching methods failed for {path} ({details or 'no tiers attempted'})")
