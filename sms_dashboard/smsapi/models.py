"""Data models for SMS backend responses."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

# Tier names, in the order the fetch engine tries them.
TIER_AUTHENTICATED = "authenticated"
TIER_PUBLIC = "public"
TIER_DIRECT = "direct"
TIER_MOCK = "mock"


@dataclass
class Pagination:
	"""Pagination block some backends attach to list responses."""
	page: Optional[int] = None
	limit: Optional[int] = None
	total: Optional[int] = None
	pages: Optional[int] = None

	@classmethod
	def from_dict(cls, data: Dict[str, Any]) -> "Pagination":
		return cls(
			page=data.get("page") if data.get("page") is not None else data.get("currentPage"),
			limit=data.get("limit"),
			total=data.get("total"),
			pages=data.get("pages") if data.get("pages") is not None else data.get("totalPages"),
		)

	def to_dict(self) -> Dict[str, Any]:
		return {"page": self.page, "limit": self.limit, "total": self.total, "pages": self.pages}


@dataclass
class PagedResult:
	"""Canonical list result every façade returns.

	``count`` is the server-side total, not the size of the current page.
	``data`` is the same list object as ``rows``.
	"""
	success: bool
	rows: List[Any] = field(default_factory=list)
	count: int = 0
	pagination: Optional[Pagination] = None
	message: Optional[str] = None
	source: Optional[str] = None
	is_mock: bool = False
	raw: Any = None

	@property
	def data(self) -> List[Any]:
		return self.rows

	@property
	def is_empty(self) -> bool:
		return self.count == 0 and not self.rows

	def to_dict(self) -> Dict[str, Any]:
		"""Plain dict with the ``{success, rows, data, count}`` contract."""
		result: Dict[str, Any] = {
			"success": self.success,
			"rows": self.rows,
			"data": self.rows,
			"count": self.count,
		}
		if self.pagination is not None:
			result["pagination"] = self.pagination.to_dict()
		if self.message:
			result["message"] = self.message
		if self.is_mock:
			result["_isMockData"] = True
		return result

	def __str__(self) -> str:
		origin = f" from {self.source}" if self.source else ""
		return f"{len(self.rows)} of {self.count} rows{origin}"


@dataclass
class DashboardStats:
	"""Consolidated dashboard statistics."""
	success: bool
	data: Dict[str, Any]
	source: str
	message: Optional[str] = None
	is_estimated: bool = False
	is_mock: bool = False
	estimated_fields: List[str] = field(default_factory=list)
	error: Optional[str] = None

	def to_dict(self) -> Dict[str, Any]:
		result: Dict[str, Any] = {
			"success": self.success,
			"data": self.data,
			"source": self.source,
		}
		if self.message:
			result["message"] = self.message
		if self.is_estimated:
			result["_isEstimated"] = True
			result["estimatedFields"] = list(self.estimated_fields)
		if self.is_mock:
			result["_isMockData"] = True
		if self.error:
			result["error"] = self.error
		return result


@dataclass
class FileUpload:
	"""A binary file attached to a create or update payload."""
	content: bytes
	filename: str = "upload"
	content_type: str = "application/octet-stream"

	def __str__(self) -> str:
		return f"{self.filename} ({len(self.content)} bytes)"
