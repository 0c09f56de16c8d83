"""The SMS dashboard data-access layer."""

import logging
from typing import Dict, Optional

import aiohttp

from .config import ClientConfig, load_config
from .coordinator import DashboardAggregator
from .fallback_data import FallbackRegistry
from .services import (
	AcademicYearService,
	AttendanceService,
	BatchService,
	DepartmentService,
	EntityService,
	ExamService,
	GradeService,
	MajorService,
	ParentService,
	PaymentService,
	ProgramService,
	StudentService,
	SubjectService,
	TeacherService,
	UserService,
)
from .smsapi.auth import AuthService
from .smsapi.client import SMSClient
from .storage import TokenStore

_LOGGER = logging.getLogger(__name__)

__version__ = "1.0.0"


class SMSDashboard:
	"""Everything a dashboard front end needs, wired to one client."""

	def __init__(
		self,
		config: Optional[ClientConfig] = None,
		session: Optional[aiohttp.ClientSession] = None,
		token_store: Optional[TokenStore] = None,
		fallbacks: Optional[FallbackRegistry] = None,
	):
		self.config = config or load_config()
		self.token_store = token_store or TokenStore(self.config.storage_path)
		self.fallbacks = fallbacks or FallbackRegistry()
		self.client = SMSClient(self.config, self.token_store, session=session)
		self.auth = AuthService(self.client, self.token_store)

		self.students = StudentService(self.client, self.fallbacks)
		self.teachers = TeacherService(self.client, self.fallbacks)
		self.departments = DepartmentService(self.client, self.fallbacks)
		self.programs = ProgramService(self.client, self.fallbacks)
		self.majors = MajorService(self.client, self.fallbacks)
		self.subjects = SubjectService(self.client, self.fallbacks)
		self.batches = BatchService(self.client, self.fallbacks)
		self.academic_years = AcademicYearService(self.client, self.fallbacks)
		self.attendance = AttendanceService(self.client, self.fallbacks)
		self.grades = GradeService(self.client, self.fallbacks)
		self.exams = ExamService(self.client, self.fallbacks)
		self.payments = PaymentService(self.client, self.fallbacks)
		self.parents = ParentService(self.client, self.fallbacks)
		self.users = UserService(self.client, self.fallbacks)

		self.dashboard = DashboardAggregator(self.client, self.services, self.fallbacks)
		_LOGGER.debug(f"SMS dashboard ready ({self.config.backend_profile} backend)")

	@property
	def services(self) -> Dict[str, EntityService]:
		"""Façades keyed by resource name."""
		return {
			service.resource: service
			for service in (
				self.students,
				self.teachers,
				self.departments,
				self.programs,
				self.majors,
				self.subjects,
				self.batches,
				self.academic_years,
				self.attendance,
				self.grades,
				self.exams,
				self.payments,
				self.parents,
				self.users,
			)
		}

	async def __aenter__(self) -> "SMSDashboard":
		await self.client.__aenter__()
		return self

	async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
		await self.close()

	async def close(self) -> None:
		await self.client.close()
