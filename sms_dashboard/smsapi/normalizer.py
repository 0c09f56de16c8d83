"""Normalise the response shapes the SMS backends return.

Node.js controllers answer with ``{success, data}`` or Sequelize-style
``{rows, count}``, the FastAPI backend with ``{data, total}`` and some routes
with a bare list. Everything is folded into one :class:`PagedResult` here so
the façades never probe shapes themselves.
"""

from typing import Any, Dict, List, Optional

from .models import PagedResult, Pagination

SHAPE_CANONICAL = "canonical"
SHAPE_ARRAY = "array"
SHAPE_DATA_LIST = "data_list"
SHAPE_DATA_OBJECT = "data_object"
SHAPE_ROWS = "rows"
SHAPE_SINGLE = "single"


def detect_shape(body: Any) -> str:
	"""Return the shape tag for a decoded JSON body, first match wins."""
	if isinstance(body, dict) and isinstance(body.get("success"), bool):
		return SHAPE_CANONICAL
	if isinstance(body, list):
		return SHAPE_ARRAY
	if isinstance(body, dict) and "data" in body:
		return SHAPE_DATA_LIST if isinstance(body["data"], list) else SHAPE_DATA_OBJECT
	if isinstance(body, dict) and isinstance(body.get("rows"), list):
		return SHAPE_ROWS
	return SHAPE_SINGLE


def _first_not_none(*values: Any) -> Any:
	for value in values:
		if value is not None:
			return value
	return None


def _as_count(value: Any, default: int) -> int:
	try:
		return int(value)
	except (TypeError, ValueError):
		return default


def _pagination(body: Dict[str, Any]) -> Optional[Pagination]:
	block = body.get("pagination")
	if isinstance(block, dict):
		return Pagination.from_dict(block)
	return None


def _canonical_rows(body: Dict[str, Any]) -> List[Any]:
	if isinstance(body.get("rows"), list):
		return body["rows"]
	data = body.get("data")
	if isinstance(data, list):
		return data
	if data is None:
		return []
	return [data]


def normalize_response(body: Any, source: Optional[str] = None) -> PagedResult:
	"""Map any known backend body onto a :class:`PagedResult`."""
	shape = detect_shape(body)

	if shape == SHAPE_CANONICAL:
		rows = _canonical_rows(body)
		pagination = _pagination(body)
		count = _first_not_none(
			body.get("count"),
			body.get("total"),
			pagination.total if pagination else None,
		)
		return PagedResult(
			success=body["success"],
			rows=rows,
			count=_as_count(count, len(rows)),
			pagination=pagination,
			message=body.get("message"),
			source=source,
			raw=body,
		)

	if shape == SHAPE_ARRAY:
		return PagedResult(success=True, rows=body, count=len(body), source=source, raw=body)

	if shape == SHAPE_DATA_LIST:
		rows = body["data"]
		count = _first_not_none(body.get("total"), body.get("count"))
		return PagedResult(
			success=True,
			rows=rows,
			count=_as_count(count, len(rows)),
			pagination=_pagination(body),
			message=body.get("message"),
			source=source,
			raw=body,
		)

	if shape == SHAPE_DATA_OBJECT:
		rows = [] if body["data"] is None else [body["data"]]
		return PagedResult(
			success=True,
			rows=rows,
			count=len(rows),
			message=body.get("message"),
			source=source,
			raw=body,
		)

	if shape == SHAPE_ROWS:
		rows = body["rows"]
		return PagedResult(
			success=True,
			rows=rows,
			count=_as_count(body.get("count"), len(rows)),
			pagination=_pagination(body),
			source=source,
			raw=body,
		)

	return PagedResult(success=True, rows=[body], count=1, source=source, raw=body)
