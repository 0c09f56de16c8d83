"""Endpoint registry for the supported SMS backends."""

import logging
from typing import Any, Callable, Dict, Union

from .exceptions import ConfigurationError

_LOGGER = logging.getLogger(__name__)

PathTemplate = Union[str, Callable[..., str]]

DEFAULT_PROFILE = "nodejs"


def _crud(base: str) -> Dict[str, PathTemplate]:
	"""Standard REST actions for one collection."""
	return {
		"get_all": base,
		"get_by_id": lambda id_: f"{base}/{id_}",
		"create": base,
		"update": lambda id_: f"{base}/{id_}",
		"delete": lambda id_: f"{base}/{id_}",
	}


def _with(base: str, **extra: PathTemplate) -> Dict[str, PathTemplate]:
	actions = _crud(base)
	actions.update(extra)
	return actions


_AUTH = {
	"login": "/auth/login",
	"register": "/auth/register",
	"update_password": "/auth/update-password",
}

_STUDENTS = _with(
	"/students",
	get_by_program=lambda program_id: f"/students/program/{program_id}",
	get_by_parent=lambda parent_id: f"/students/parent/{parent_id}",
)

BACKEND_PROFILES: Dict[str, Dict[str, Dict[str, PathTemplate]]] = {
	"nodejs": {
		"students": _STUDENTS,
		"teachers": _crud("/teachers"),
		"departments": _crud("/departments"),
		"programs": _crud("/programs"),
		"majors": _crud("/majors"),
		"subjects": _crud("/subjects"),
		"batches": _crud("/batches"),
		"academic_years": _crud("/academic-years"),
		"attendance": _with(
			"/attendance",
			get_by_student=lambda student_id: f"/attendance/student/{student_id}",
			get_by_course=lambda course_id: f"/attendance/course/{course_id}",
			report="/attendance/report",
			stats="/attendance/stats",
			bulk_create="/attendance/bulk",
			update_status=lambda id_: f"/attendance/{id_}/status",
		),
		"grades": _with(
			"/grades",
			get_by_student=lambda student_id: f"/grades/student/{student_id}",
			bulk_create="/grades/bulk",
		),
		"exams": _with(
			"/exams",
			upcoming="/exams/upcoming",
		),
		"payments": _with(
			"/payments",
			get_by_student=lambda student_id: f"/payments/student/{student_id}",
		),
		"parents": _crud("/parents"),
		"users": _with(
			"/users",
			get_by_role=lambda role_id: f"/users/role/{role_id}",
			update_password=lambda id_: f"/users/{id_}/password",
			update_status=lambda id_: f"/users/{id_}/status",
		),
		"auth": dict(_AUTH),
		"dashboard": {
			"stats": "/dashboard/stats",
			"recent_activity": "/dashboard/recent-activity",
			"upcoming_exams": "/dashboard/upcoming-exams",
		},
	},
	# The FastAPI backend only ever served this subset.
	"fastapi": {
		"students": dict(_STUDENTS),
		"programs": _crud("/programs"),
		"batches": _crud("/batches"),
		"auth": dict(_AUTH),
	},
}


def resolve_endpoint(profile: str, resource: str, action: str, *args: Any) -> str:
	"""Return the request path for ``resource.action`` on ``profile``."""
	endpoints = BACKEND_PROFILES.get(profile)
	if endpoints is None:
		raise ConfigurationError(f"Unknown backend profile: {profile!r}")

	actions = endpoints.get(resource)
	if actions is None:
		raise ConfigurationError(f"Resource {resource!r} is not registered for backend {profile!r}")

	template = actions.get(action)
	if template is None:
		raise ConfigurationError(f"Action {resource}.{action} is not registered for backend {profile!r}")

	if not callable(template):
		return template

	try:
		return template(*args)
	except TypeError as err:
		raise ConfigurationError(f"Bad arguments for {resource}.{action}: {args!r}") from err


class EndpointResolver:
	"""Resolves logical endpoints for one backend profile."""

	def __init__(self, profile: str = DEFAULT_PROFILE):
		if profile not in BACKEND_PROFILES:
			raise ConfigurationError(
				f"Unknown backend profile: {profile!r} (known: {sorted(BACKEND_PROFILES)})"
			)
		self.profile = profile
		_LOGGER.debug(f"Endpoint resolver using {profile} backend profile")

	def resolve(self, resource: str, action: str, *args: Any) -> str:
		return resolve_endpoint(self.profile, resource, action, *args)

	def has(self, resource: str, action: str) -> bool:
		return action in BACKEND_PROFILES[self.profile].get(resource, {})
