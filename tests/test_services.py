"""Tests for the entity façades."""

from dataclasses import replace
from datetime import date

import pytest

from conftest import API, PUBLIC, make_response
from sms_dashboard.services import (
	AttendanceService,
	BatchService,
	DepartmentService,
	GradeService,
	PaymentService,
	StudentService,
	UserService,
)
from sms_dashboard.smsapi.client import SMSClient
from sms_dashboard.smsapi.exceptions import AllTransportsFailedError, ConfigurationError

calculate_grade_letter = GradeService.calculate_grade_letter
generate_receipt_number = PaymentService.generate_receipt_number


@pytest.mark.parametrize(
	"marks, max_marks, letter",
	[
		(90, 100, "A+"),
		(89.999, 100, "A"),
		(80, 100, "A"),
		(70, 100, "B+"),
		(60, 100, "B"),
		(50, 100, "C+"),
		(40, 100, "C"),
		(33, 100, "D"),
		(32.999, 100, "F"),
		(45, 50, "A+"),
		("72", "100", "B+"),
	],
)
def test_grade_letter_thresholds(marks, max_marks, letter):
	assert calculate_grade_letter(marks, max_marks) == letter


def test_grade_letter_blank_for_missing_values():
	assert calculate_grade_letter(0, 0) == ""
	assert calculate_grade_letter(0, 100) == ""
	assert calculate_grade_letter(50, None) == ""
	assert calculate_grade_letter("abc", 100) == ""


def test_receipt_number():
	assert generate_receipt_number({"id": 42, "payment_date": "2024-03-05"}) == "REC-20240305-000042"


def test_receipt_preview_without_id():
	assert generate_receipt_number({}) == "RECEIPT-PREVIEW"
	assert generate_receipt_number(None) == "RECEIPT-PREVIEW"


def test_receipt_ignores_time_of_day():
	payment = {"id": 7, "payment_date": "2024-12-31T23:30:00.000Z"}
	assert generate_receipt_number(payment) == "REC-20241231-000007"


def test_receipt_uses_today_without_date():
	assert generate_receipt_number({"id": 3}, today=date(2025, 1, 2)) == "REC-20250102-000003"
	assert generate_receipt_number({"id": 3, "payment_date": "soon"}, today=date(2025, 1, 2)) == "REC-20250102-000003"


def test_batch_display_name_probes_alternate_keys():
	assert BatchService.display_name({"batch_name": "CS-A", "name": "ignored"}) == "CS-A"
	assert BatchService.display_name({"name": "CS-B"}) == "CS-B"
	assert BatchService.display_name({}) == ""


async def test_get_all_sends_paging_params(make_client, fallbacks):
	client, session = make_client({
		("GET", f"{PUBLIC}/departments"): make_response(200, {"success": True, "data": [{"id": 1}], "total": 31}),
	})
	service = DepartmentService(client, fallbacks)

	result = await service.get_all(page=2, limit=500, search="sci")

	assert result.count == 31
	assert result.is_mock is False
	assert session.request.call_args.kwargs["params"] == {"page": "2", "limit": "100", "search": "sci"}


async def test_empty_page_is_a_valid_result(make_client, fallbacks):
	client, _ = make_client({
		("GET", f"{PUBLIC}/departments"): make_response(200, {"success": True, "rows": [], "count": 0}),
	})

	result = await DepartmentService(client, fallbacks).get_all(search="zzz")

	assert result.success is True
	assert result.count == 0
	assert result.is_empty is True
	assert result.is_mock is False


async def test_get_all_falls_back_to_registered_dataset(make_client, fallbacks):
	client, _ = make_client({})

	result = await DepartmentService(client, fallbacks).get_all()

	assert result.is_mock is True
	assert [row["name"] for row in result.rows] == ["Mock CS", "Mock Math"]


async def test_get_all_without_fallback_raises(make_client, fallbacks):
	client, _ = make_client({})

	with pytest.raises(AllTransportsFailedError):
		await DepartmentService(client, fallbacks).get_all(use_fallback=False)


async def test_get_by_id_fallback_filters_dataset(make_client, fallbacks):
	client, session = make_client({})

	result = await DepartmentService(client, fallbacks).get_by_id(2)

	assert result.rows == [{"id": 2, "name": "Mock Math"}]
	assert session.request.call_args.args[1].endswith("/departments/2")


async def test_grade_rows_get_a_letter(make_client, fallbacks):
	client, _ = make_client({
		("GET", f"{PUBLIC}/grades"): make_response(200, [
			{"id": 1, "marks_obtained": 81, "max_marks": 100},
			{"id": 2, "grade_value": 30, "max_grade": 100},
			{"id": 3, "marks_obtained": 10, "max_marks": 100, "grade_letter": "X"},
		]),
	})

	result = await GradeService(client, fallbacks).get_all()

	assert [row["grade_letter"] for row in result.rows] == ["A", "F", "X"]


async def test_grade_create_fills_letter(make_client, logged_in_store):
	client, session = make_client({
		("POST", f"{API}/grades"): make_response(201, {"success": True}),
	}, logged_in_store)

	await GradeService(client).create({"student_id": 1, "marks_obtained": 66, "max_marks": 100})

	assert session.request.call_args.kwargs["json"]["grade_letter"] == "B"


async def test_student_create_with_photo_is_multipart(make_client, logged_in_store):
	client, session = make_client({
		("POST", f"{API}/students"): make_response(201, {"success": True, "data": {"id": 9}}),
	}, logged_in_store)

	await StudentService(client).create({"name": "Ann", "profile_picture": b"\xff\xd8\xff"})

	assert session.request.call_args.kwargs["json"] is None
	assert session.request.call_args.kwargs["data"] is not None


async def test_student_extension_paths(make_client):
	client, _ = make_client({
		("GET", f"{PUBLIC}/students/program/4"): make_response(200, [{"id": 1}]),
	})

	result = await StudentService(client).get_by_program(4)

	assert result.rows == [{"id": 1}]


async def test_user_status_update(make_client, logged_in_store):
	client, session = make_client({
		("PUT", f"{API}/users/5/status"): make_response(200, {"success": True}),
	}, logged_in_store)

	await UserService(client).update_status(5, "inactive")

	assert session.request.call_args.kwargs["json"] == {"status": "inactive"}


async def test_resource_missing_from_profile(config, token_store):
	client = SMSClient(replace(config, backend_profile="fastapi"), token_store)

	with pytest.raises(ConfigurationError):
		await DepartmentService(client).get_all()


async def test_attendance_extensions(make_client, logged_in_store):
	client, session = make_client({
		("GET", f"{API}/attendance/report"): make_response(200, {"success": True, "data": {"present": 40, "absent": 2}}),
		("PATCH", f"{API}/attendance/3/status"): make_response(200, {"success": True}),
		("POST", f"{API}/attendance/bulk"): make_response(201, {"success": True}),
	}, logged_in_store)
	service = AttendanceService(client)

	report = await service.get_report(course_id=1)
	await service.update_status(3, "late", "bus delay")
	await service.bulk_create([{"student_id": 1, "status": "present"}])

	assert report.rows == [{"present": 40, "absent": 2}]
	calls = session.request.call_args_list
	assert calls[0].kwargs["params"] == {"course_id": "1"}
	assert calls[1].kwargs["json"] == {"status": "late", "notes": "bus delay"}
	assert calls[2].kwargs["json"] == {"records": [{"student_id": 1, "status": "present"}]}
