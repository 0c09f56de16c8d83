"""Loading and staleness tracking for views that list backend data."""

import logging
from typing import Any, Awaitable, Callable, Optional

from .smsapi.models import PagedResult

_LOGGER = logging.getLogger(__name__)


class LoadingState:
	"""Scoped "loading" flag.

	Entering the context raises the flag before anything is awaited;
	leaving it, normally or through an exception, releases it. Nested or
	overlapping scopes keep the flag up until the last one exits.
	"""

	def __init__(self, on_change: Optional[Callable[[bool], None]] = None):
		self._depth = 0
		self._on_change = on_change

	@property
	def is_loading(self) -> bool:
		return self._depth > 0

	def _notify(self) -> None:
		if self._on_change is not None:
			self._on_change(self.is_loading)

	async def __aenter__(self) -> "LoadingState":
		self._depth += 1
		if self._depth == 1:
			self._notify()
		return self

	async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
		self._depth -= 1
		if self._depth == 0:
			self._notify()


class RequestSequence:
	"""Monotonic request ids for one view."""

	def __init__(self):
		self._latest = 0

	@property
	def latest(self) -> int:
		return self._latest

	def issue(self) -> int:
		self._latest += 1
		return self._latest

	def is_latest(self, request_id: int) -> bool:
		return request_id == self._latest


class ListView:
	"""Holds the latest list result for one view.

	Every refresh takes a new request id; a response that arrives after a
	newer refresh was started is dropped instead of overwriting it.
	"""

	def __init__(
		self,
		loader: Callable[..., Awaitable[PagedResult]],
		on_loading_change: Optional[Callable[[bool], None]] = None,
	):
		self._loader = loader
		self.loading = LoadingState(on_loading_change)
		self.sequence = RequestSequence()
		self.result: Optional[PagedResult] = None
		self.error: Optional[BaseException] = None

	@property
	def is_loading(self) -> bool:
		return self.loading.is_loading

	@property
	def is_degraded(self) -> bool:
		"""True while the view shows mock data."""
		return self.result is not None and self.result.is_mock

	async def refresh(self, *args: Any, **kwargs: Any) -> Optional[PagedResult]:
		"""Reload the list.

		Returns the new result, or None when the response was stale. Errors
		from the latest request are stored on ``error`` and re-raised; errors
		from stale requests are dropped.
		"""
		request_id = self.sequence.issue()
		async with self.loading:
			try:
				result = await self._loader(*args, **kwargs)
			except Exception as err:
				if not self.sequence.is_latest(request_id):
					_LOGGER.debug(f"Ignoring error from stale request {request_id}: {err}")
					return None
				self.error = err
				raise

		if not self.sequence.is_latest(request_id):
			_LOGGER.debug(f"Discarding stale response for request {request_id} (latest is {self.sequence.latest})")
			return None

		self.result = result
		self.error = None
		return result
