"""Offline datasets served when every live tier fails."""

import copy
from typing import Any, Dict, List, Mapping, Optional, Sequence

DEFAULT_FALLBACK_DATASETS: Dict[str, List[Dict[str, Any]]] = {
	"departments": [
		{"id": 1, "department_name": "Computer Science", "name": "Computer Science", "teacher_id": 1},
		{"id": 2, "department_name": "Business Administration", "name": "Business Administration", "teacher_id": 2},
		{"id": 3, "department_name": "Engineering", "name": "Engineering", "teacher_id": 5},
		{"id": 4, "department_name": "Mathematics", "name": "Mathematics", "teacher_id": 4},
		{"id": 5, "department_name": "English Literature", "name": "English Literature", "teacher_id": 6},
	],
	"programs": [
		{"id": 1, "program_name": "Computer Science Program", "department_id": 1, "degree_level_id": 1},
		{"id": 2, "program_name": "Business Administration Program", "department_id": 2, "degree_level_id": 1},
		{"id": 3, "program_name": "Software Engineering Program", "department_id": 1, "degree_level_id": 1},
		{"id": 4, "program_name": "Information Technology Program", "department_id": 1, "degree_level_id": 2},
	],
	"majors": [
		{"id": 1, "major_name": "Software Development", "department_id": 1, "description": "Focus on programming and software design"},
		{"id": 2, "major_name": "Database Systems", "department_id": 1, "description": "Specialization in database design and management"},
		{"id": 3, "major_name": "Business Management", "department_id": 2, "description": "General business management and leadership"},
		{"id": 4, "major_name": "Marketing", "department_id": 2, "description": "Marketing strategies and consumer behavior"},
	],
	"students": [
		{"id": 1, "student_code": "S2024001", "name": "Alice", "surname": "Johnson", "email": "alice.johnson@student.sms.edu", "batch_id": 1, "major_id": 1},
		{"id": 2, "student_code": "S2024002", "name": "Bob", "surname": "Wilson", "email": "bob.wilson@student.sms.edu", "batch_id": 1, "major_id": 1},
		{"id": 3, "student_code": "S2024003", "name": "Carol", "surname": "Brown", "email": "carol.brown@student.sms.edu", "batch_id": 2, "major_id": 2},
		{"id": 4, "student_code": "S2024004", "name": "David", "surname": "Miller", "email": "david.miller@student.sms.edu", "batch_id": 3, "major_id": 3},
	],
	"teachers": [
		{"id": 1, "teacher_code": "T001", "first_name": "John", "last_name": "Doe", "email": "john.doe@sms.edu", "department_id": 1},
		{"id": 2, "teacher_code": "T002", "first_name": "Jane", "last_name": "Smith", "email": "jane.smith@sms.edu", "department_id": 2},
		{"id": 3, "teacher_code": "T003", "first_name": "Michael", "last_name": "Johnson", "email": "michael.johnson@sms.edu", "department_id": 1},
		{"id": 4, "teacher_code": "T004", "first_name": "Sarah", "last_name": "Davis", "email": "sarah.davis@sms.edu", "department_id": 4},
	],
	"subjects": [
		{"id": 1, "subject_code": "CS101", "subject_name": "Introduction to Programming", "credits": 3, "department_id": 1},
		{"id": 2, "subject_code": "CS201", "subject_name": "Data Structures", "credits": 4, "department_id": 1},
		{"id": 3, "subject_code": "CS301", "subject_name": "Database Systems", "credits": 3, "department_id": 1},
		{"id": 4, "subject_code": "BA101", "subject_name": "Business Fundamentals", "credits": 3, "department_id": 2},
	],
	"batches": [
		{"id": 1, "name": "CS-2024-A", "code": "CS24A", "program_id": 1, "academic_year_id": 1, "capacity": 30},
		{"id": 2, "name": "CS-2024-B", "code": "CS24B", "program_id": 1, "academic_year_id": 1, "capacity": 30},
		{"id": 3, "name": "BA-2024-A", "code": "BA24A", "program_id": 2, "academic_year_id": 1, "capacity": 25},
		{"id": 4, "name": "SE-2024-A", "code": "SE24A", "program_id": 3, "academic_year_id": 1, "capacity": 25},
	],
	"academic_years": [
		{"id": 1, "academic_year": "2024-2025", "start_date": "2024-09-01", "end_date": "2025-06-30", "is_current": 1},
		{"id": 2, "academic_year": "2023-2024", "start_date": "2023-09-01", "end_date": "2024-06-30", "is_current": 0},
		{"id": 3, "academic_year": "2025-2026", "start_date": "2025-09-01", "end_date": "2026-06-30", "is_current": 0},
	],
	"grades": [
		{"id": 1, "student_id": 1, "subject_id": 1, "exam_id": 1, "marks_obtained": 85.5, "max_marks": 100.0},
		{"id": 2, "student_id": 1, "subject_id": 1, "exam_id": 2, "marks_obtained": 92.0, "max_marks": 100.0},
		{"id": 3, "student_id": 2, "subject_id": 1, "exam_id": 1, "marks_obtained": 78.0, "max_marks": 100.0},
		{"id": 4, "student_id": 3, "subject_id": 3, "exam_id": 1, "marks_obtained": 91.0, "max_marks": 100.0},
	],
	"attendance": [
		{"id": 1, "student_id": 1, "course_id": 1, "attendance_date": "2024-09-02", "status": "present"},
		{"id": 2, "student_id": 1, "course_id": 1, "attendance_date": "2024-09-04", "status": "present"},
		{"id": 3, "student_id": 1, "course_id": 1, "attendance_date": "2024-09-06", "status": "absent"},
		{"id": 4, "student_id": 2, "course_id": 1, "attendance_date": "2024-09-02", "status": "present"},
	],
	"payments": [
		{"id": 1, "student_id": 1, "academic_year_id": 1, "semester": 1, "fee_type": "tuition", "amount": 2500.00, "status": "paid", "payment_date": "2024-09-05"},
		{"id": 2, "student_id": 2, "academic_year_id": 1, "semester": 1, "fee_type": "tuition", "amount": 2500.00, "status": "paid", "payment_date": "2024-09-06"},
		{"id": 3, "student_id": 1, "academic_year_id": 1, "semester": 1, "fee_type": "library", "amount": 50.00, "status": "paid", "payment_date": "2024-09-10"},
	],
	"exams": [
		{"id": 1, "exam_name": "Midterm Exam", "subject": "Computer Science", "exam_date": "2025-07-15", "start_time": "09:00", "status": "Scheduled"},
		{"id": 2, "exam_name": "Final Exam", "subject": "Mathematics", "exam_date": "2025-07-20", "start_time": "10:30", "status": "Scheduled"},
		{"id": 3, "exam_name": "Quiz", "subject": "English", "exam_date": "2025-07-12", "start_time": "14:00", "status": "Ongoing"},
	],
	"recent_activity": [
		{"title": "New Student Registered", "description": "John Doe registered as a new student", "time": "10 minutes ago"},
		{"title": "Payment Received", "description": "Payment of $500 received from Sarah Johnson", "time": "1 hour ago"},
		{"title": "Exam Results Published", "description": "Results for Computer Science midterm published", "time": "3 hours ago"},
		{"title": "Attendance Marked", "description": "Attendance for Batch CS-2023 marked by Prof. Smith", "time": "5 hours ago"},
		{"title": "New Course Added", "description": "Advanced Database Systems added to curriculum", "time": "1 day ago"},
	],
	"upcoming_exams": [
		{"name": "Midterm Exam", "subject": "Computer Science", "date": "2025-07-15", "time": "09:00 AM", "status": "Scheduled"},
		{"name": "Final Exam", "subject": "Mathematics", "date": "2025-07-20", "time": "10:30 AM", "status": "Scheduled"},
		{"name": "Quiz", "subject": "English", "date": "2025-07-12", "time": "02:00 PM", "status": "Ongoing"},
	],
}

# Served when neither the stats endpoint nor the composed counts are available.
STATIC_DASHBOARD_STATS: Dict[str, Any] = {
	"students": {"total": 1250, "active": 1180, "inactive": 70, "graduated": 0, "suspended": 0},
	"teachers": {"total": 75, "active": 75, "departments": 12},
	"academics": {"programs": 12, "academic_years": 8, "departments": 12},
	"enrollments": {"recent": 45, "total": 1250},
}


class FallbackRegistry:
	"""Per-resource fallback datasets, loaded once."""

	def __init__(self, datasets: Optional[Mapping[str, Sequence[Any]]] = None):
		source = DEFAULT_FALLBACK_DATASETS if datasets is None else datasets
		self._datasets: Dict[str, List[Any]] = {
			name: copy.deepcopy(list(rows)) for name, rows in source.items()
		}

	def __contains__(self, resource: str) -> bool:
		return resource in self._datasets

	def get(self, resource: str) -> Optional[List[Any]]:
		"""Deep copy of the dataset, or None when nothing is registered."""
		rows = self._datasets.get(resource)
		if rows is None:
			return None
		return copy.deepcopy(rows)

	def register(self, resource: str, rows: Sequence[Any]) -> None:
		self._datasets[resource] = copy.deepcopy(list(rows))

	def static_dashboard_stats(self) -> Dict[str, Any]:
		return copy.deepcopy(STATIC_DASHBOARD_STATS)
