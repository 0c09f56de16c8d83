"""Helpers shared by the SMS client and façades."""

import io
import json
import logging
import os
from typing import Any, Dict, Iterable, Mapping, Optional

import aiohttp

from .models import FileUpload

_LOGGER = logging.getLogger(__name__)

CONNECTION_EXHAUSTED_MARKERS = (
	"too many connections",
	"too many clients",
	"connection limit",
)

BINARY_TYPES = (bytes, bytearray, FileUpload)


def clean_params(params: Optional[Mapping[str, Any]]) -> Dict[str, str]:
	"""Drop ``None`` values and stringify the rest for aiohttp."""
	if not params:
		return {}
	cleaned = {}
	for key, value in params.items():
		if value is None:
			continue
		if isinstance(value, bool):
			cleaned[key] = "true" if value else "false"
		else:
			cleaned[key] = str(value)
	return cleaned


def pick(record: Optional[Mapping[str, Any]], *keys: str, default: Any = None) -> Any:
	"""Return the first present, non-empty value among alternate field names."""
	if not record:
		return default
	for key in keys:
		value = record.get(key)
		if value is not None and value != "":
			return value
	return default


def extract_message(body: Any) -> Optional[str]:
	"""Pull a human readable message out of an error body."""
	if body is None:
		return None
	if isinstance(body, str):
		return body.strip() or None
	if isinstance(body, dict):
		for key in ("message", "error", "detail", "msg"):
			value = body.get(key)
			if isinstance(value, str) and value:
				return value
			# FastAPI validation errors come back as a list of dicts
			if isinstance(value, list) and value:
				return "; ".join(str(item.get("msg", item)) if isinstance(item, dict) else str(item) for item in value)
	return None


def is_connection_exhausted(message: Optional[str]) -> bool:
	if not message:
		return False
	lowered = message.lower()
	return any(marker in lowered for marker in CONNECTION_EXHAUSTED_MARKERS)


def is_binary(value: Any) -> bool:
	if isinstance(value, BINARY_TYPES):
		return True
	return isinstance(value, (io.BufferedIOBase, io.RawIOBase))


def has_file(payload: Optional[Mapping[str, Any]], file_fields: Iterable[str]) -> bool:
	"""True when any of ``file_fields`` currently holds a binary value."""
	if not payload:
		return False
	return any(is_binary(payload.get(name)) for name in file_fields)


def materialize_files(payload: Mapping[str, Any], file_fields: Iterable[str]) -> Dict[str, Any]:
	"""Read open file objects into :class:`FileUpload` so a payload can be sent twice."""
	result = dict(payload)
	for name in file_fields:
		value = result.get(name)
		if isinstance(value, (io.BufferedIOBase, io.RawIOBase)):
			filename = os.path.basename(getattr(value, "name", "") or name)
			result[name] = FileUpload(content=value.read(), filename=filename)
		elif isinstance(value, (bytes, bytearray)):
			result[name] = FileUpload(content=bytes(value), filename=name)
	return result


def build_form_data(payload: Mapping[str, Any], file_fields: Iterable[str]) -> aiohttp.FormData:
	"""Encode a payload as multipart, file fields as file parts."""
	file_fields = set(file_fields)
	form = aiohttp.FormData()
	for key, value in payload.items():
		if value is None:
			continue
		if key in file_fields and isinstance(value, FileUpload):
			form.add_field(key, value.content, filename=value.filename, content_type=value.content_type)
		elif isinstance(value, (dict, list)):
			form.add_field(key, json.dumps(value))
		elif isinstance(value, bool):
			form.add_field(key, "true" if value else "false")
		else:
			form.add_field(key, str(value))
	return form
