"""Constants for the SMS dashboard."""

# Configuration (environment variable names)
CONF_BACKEND_PROFILE = "SMS_BACKEND_PROFILE"
CONF_API_BASE_URL = "SMS_API_BASE_URL"
CONF_PUBLIC_API_BASE_URL = "SMS_PUBLIC_API_BASE_URL"
CONF_DIRECT_API_BASE_URL = "SMS_DIRECT_API_BASE_URL"
CONF_REQUEST_TIMEOUT = "SMS_REQUEST_TIMEOUT"
CONF_WRITE_TIMEOUT = "SMS_WRITE_TIMEOUT"
CONF_DEFAULT_PAGE_SIZE = "SMS_DEFAULT_PAGE_SIZE"
CONF_MAX_PAGE_SIZE = "SMS_MAX_PAGE_SIZE"
CONF_STORAGE_PATH = "SMS_STORAGE_PATH"

# Default values
DEFAULT_BACKEND_PROFILE = "nodejs"
DEFAULT_API_BASE_URL = "http://localhost:3000/api"  # behind the front-end proxy
DEFAULT_DIRECT_API_BASE_URL = "http://localhost:5000/api"  # backend port, no proxy
DEFAULT_REQUEST_TIMEOUT = 5.0  # seconds per tier attempt
DEFAULT_WRITE_TIMEOUT = 15.0
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100

# Persisted client state
STORAGE_KEY_TOKEN = "token"
STORAGE_KEY_USER_INFO = "userInfo"

# Dashboard sources
SOURCE_DASHBOARD_ENDPOINT = "dashboard-stats-endpoint"
SOURCE_COMPILED = "compiled-from-working-endpoints"
SOURCE_FALLBACK_ESTIMATES = "fallback-estimates"

# Heuristics used when the stats endpoint is unavailable
STUDENTS_PER_DEPARTMENT = 50
STUDENTS_PER_PROGRAM = 25
MIN_ESTIMATED_STUDENTS = 100
TEACHERS_PER_DEPARTMENT = 3
MIN_ESTIMATED_TEACHERS = 15
ACTIVE_STUDENT_PERCENT = 90
RECENT_ENROLLMENT_PERCENT = 15

# Grade letters, highest threshold first
GRADE_THRESHOLDS = (
	(90, "A+"),
	(80, "A"),
	(70, "B+"),
	(60, "B"),
	(50, "C+"),
	(40, "C"),
	(33, "D"),
)
FAILING_GRADE = "F"

# Receipts
RECEIPT_PREFIX = "REC"
RECEIPT_PREVIEW = "RECEIPT-PREVIEW"
RECEIPT_ID_WIDTH = 6
