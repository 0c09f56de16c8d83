"""Per-entity façades over the SMS client."""

import logging
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from .const import (
	FAILING_GRADE,
	GRADE_THRESHOLDS,
	RECEIPT_ID_WIDTH,
	RECEIPT_PREFIX,
	RECEIPT_PREVIEW,
)
from .fallback_data import FallbackRegistry
from .smsapi.client import SMSClient
from .smsapi.models import PagedResult
from .smsapi.utils import pick

_LOGGER = logging.getLogger(__name__)


class EntityService:
	"""CRUD for one logical resource.

	Reads go through the client's fallback chain with this resource's mock
	dataset; writes go straight to the backend. Subclasses set ``resource``
	and, for entities that carry uploads, ``file_fields``.
	"""

	resource: str = ""
	file_fields: Tuple[str, ...] = ()

	def __init__(self, client: SMSClient, fallbacks: Optional[FallbackRegistry] = None):
		self._client = client
		self._fallbacks = fallbacks

	def _path(self, action: str, *args: Any) -> str:
		return self._client.resolve(self.resource, action, *args)

	def _fallback(self, use_fallback: bool) -> Optional[List[Any]]:
		if not use_fallback or self._fallbacks is None:
			return None
		return self._fallbacks.get(self.resource)

	def _process(self, result: PagedResult) -> PagedResult:
		"""Hook for subclasses that derive fields on fetched rows."""
		return result

	async def _fetch(
		self,
		path: str,
		params: Optional[Mapping[str, Any]] = None,
		fallback_data: Optional[List[Any]] = None,
	) -> PagedResult:
		result = await self._client.fetch_resource(
			path,
			use_auth=True,
			params=params,
			fallback_data=fallback_data,
		)
		return self._process(result)

	async def get_all(
		self,
		page: int = 1,
		limit: Optional[int] = None,
		search: str = "",
		use_fallback: bool = True,
		**filters: Any,
	) -> PagedResult:
		"""Fetch one page of records.

		An empty page comes back as a successful result with ``count == 0``;
		a failed fetch raises.
		"""
		params: Dict[str, Any] = {
			"page": page,
			"limit": self._client.config.clamp_page_size(limit),
			"search": search or None,
		}
		params.update(filters)
		return await self._fetch(self._path("get_all"), params, self._fallback(use_fallback))

	async def get_by_id(self, id_: Any, use_fallback: bool = True) -> PagedResult:
		fallback = self._fallback(use_fallback)
		if fallback is not None:
			fallback = [row for row in fallback if isinstance(row, dict) and str(row.get("id")) == str(id_)]
		return await self._fetch(self._path("get_by_id", id_), fallback_data=fallback)

	async def create(self, data: Mapping[str, Any]) -> Any:
		return await self._client.create(self._path("create"), data, file_fields=self.file_fields)

	async def update(self, id_: Any, data: Mapping[str, Any]) -> Any:
		return await self._client.update(self._path("update", id_), data, file_fields=self.file_fields)

	async def delete(self, id_: Any) -> Any:
		return await self._client.delete(self._path("delete", id_))


class StudentService(EntityService):
	resource = "students"
	file_fields = ("profile_picture",)

	async def get_by_program(self, program_id: Any) -> PagedResult:
		return await self._fetch(self._path("get_by_program", program_id))

	async def get_by_parent(self, parent_id: Any) -> PagedResult:
		return await self._fetch(self._path("get_by_parent", parent_id))


class TeacherService(EntityService):
	resource = "teachers"
	file_fields = ("photo", "profile_picture")


class DepartmentService(EntityService):
	resource = "departments"


class ProgramService(EntityService):
	resource = "programs"


class MajorService(EntityService):
	resource = "majors"


class SubjectService(EntityService):
	resource = "subjects"


class BatchService(EntityService):
	resource = "batches"

	@staticmethod
	def display_name(batch: Optional[Mapping[str, Any]]) -> str:
		# Older backends call the field batch_name
		return str(pick(batch, "batch_name", "name", default=""))


class AcademicYearService(EntityService):
	resource = "academic_years"


class AttendanceService(EntityService):
	resource = "attendance"

	async def get_by_student(self, student_id: Any, **params: Any) -> PagedResult:
		return await self._fetch(self._path("get_by_student", student_id), params)

	async def get_by_course(self, course_id: Any, **params: Any) -> PagedResult:
		return await self._fetch(self._path("get_by_course", course_id), params)

	async def get_report(self, **params: Any) -> PagedResult:
		return await self._fetch(self._path("report"), params)

	async def get_stats(self, **params: Any) -> PagedResult:
		return await self._fetch(self._path("stats"), params)

	async def bulk_create(self, records: Iterable[Mapping[str, Any]]) -> Any:
		return await self._client.create(self._path("bulk_create"), {"records": list(records)})

	async def update_status(self, id_: Any, status: str, notes: str = "") -> Any:
		return await self._client.send("PATCH", self._path("update_status", id_), {"status": status, "notes": notes})


class GradeService(EntityService):
	"""Grades, with the letter derived from marks when the backend omits it."""

	resource = "grades"

	@staticmethod
	def calculate_grade_letter(marks_obtained: Any, max_marks: Any) -> str:
		"""Map marks to a letter grade.

		Returns an empty string when either value is missing or zero, so a
		score of 0 is left blank rather than graded "F".
		"""
		if not marks_obtained or not max_marks:
			return ""
		try:
			percentage = float(marks_obtained) * 100 / float(max_marks)
		except (TypeError, ValueError, ZeroDivisionError):
			return ""
		for threshold, letter in GRADE_THRESHOLDS:
			if percentage >= threshold:
				return letter
		return FAILING_GRADE

	@classmethod
	def _letter_for(cls, record: Mapping[str, Any]) -> str:
		return cls.calculate_grade_letter(
			pick(record, "marks_obtained", "grade_value"),
			pick(record, "max_marks", "max_grade"),
		)

	def _process(self, result: PagedResult) -> PagedResult:
		for row in result.rows:
			if isinstance(row, dict) and not row.get("grade_letter"):
				row["grade_letter"] = self._letter_for(row)
		return result

	def _with_letter(self, data: Mapping[str, Any]) -> Dict[str, Any]:
		payload = dict(data)
		if not payload.get("grade_letter"):
			letter = self._letter_for(payload)
			if letter:
				payload["grade_letter"] = letter
		return payload

	async def get_by_student(self, student_id: Any) -> PagedResult:
		return await self._fetch(self._path("get_by_student", student_id))

	async def bulk_create(self, records: Iterable[Mapping[str, Any]]) -> Any:
		grades = [self._with_letter(record) for record in records]
		return await self._client.create(self._path("bulk_create"), {"grades": grades})

	async def create(self, data: Mapping[str, Any]) -> Any:
		return await super().create(self._with_letter(data))

	async def update(self, id_: Any, data: Mapping[str, Any]) -> Any:
		return await super().update(id_, self._with_letter(data))


class ExamService(EntityService):
	resource = "exams"

	async def get_upcoming(self, **params: Any) -> PagedResult:
		return await self._fetch(self._path("upcoming"), params)


def _receipt_date(value: Any, today: date) -> date:
	if isinstance(value, datetime):
		return value.date()
	if isinstance(value, date):
		return value
	if not value:
		return today
	try:
		# Only the calendar date matters; ignore any time or offset suffix
		return date.fromisoformat(str(value)[:10])
	except ValueError:
		_LOGGER.warning(f"Unparseable payment date {value!r}, using {today.isoformat()}")
		return today


class PaymentService(EntityService):
	resource = "payments"

	@staticmethod
	def generate_receipt_number(payment: Optional[Mapping[str, Any]], today: Optional[date] = None) -> str:
		"""Receipt number like ``REC-20240305-000042``.

		Unsaved payments (no id yet) get a fixed preview placeholder.
		"""
		payment_id = pick(payment, "id")
		if payment_id is None:
			return RECEIPT_PREVIEW
		stamp = _receipt_date(payment.get("payment_date"), today or date.today())
		return f"{RECEIPT_PREFIX}-{stamp:%Y%m%d}-{str(payment_id).zfill(RECEIPT_ID_WIDTH)}"

	async def get_by_student(self, student_id: Any) -> PagedResult:
		return await self._fetch(self._path("get_by_student", student_id))


class ParentService(EntityService):
	resource = "parents"


class UserService(EntityService):
	resource = "users"
	file_fields = ("profile_picture", "avatar")

	async def get_by_role(self, role_id: Any) -> PagedResult:
		return await self._fetch(self._path("get_by_role", role_id))

	async def update_password(self, id_: Any, password_data: Mapping[str, Any]) -> Any:
		return await self._client.update(self._path("update_password", id_), password_data)

	async def update_status(self, id_: Any, status: str) -> Any:
		return await self._client.update(self._path("update_status", id_), {"status": status})
