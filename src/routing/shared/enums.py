"""Enumerations shared across the routing domain."""

from enum import Enum


class SourceService(Enum):
    CENSUS_AUTOMATION = "CensusAutomation"
    PAYROLL_FILE_GENERATION = "PayrollFileGeneration"
    CENSUS_RECONCILIATION = "CensusReconciliation"
    CENSUS_ORCHESTRATION = "CensusOrchestration"
    PLAN_SOURCE_INTEGRATION = "PlanSourceIntegration"
    IMPORT_HISTORY_PROCESSOR = "ImportHistoryProcessor"
    IMPORT_PROCESSOR = "ImportProcessor"
    ONE_TIME_SPREADSHEET_SERVICE = "OneTimeSpreadsheetService"


class Topic(Enum):
    DAILY_IMPORT_SUCCESS = "DailyImportSuccess"
    DAILY_IMPORT_FAILURE = "DailyImportFailure"
    SCHEMA_VALIDATION_ERROR = "SchemaValidationError"
    RECORD_COUNT_MISMATCH = "RecordCountMismatch"
    FILE_PROCESSING_STARTED = "FileProcessingStarted"
    FILE_PROCESSING_COMPLETED = "FileProcessingCompleted"
    PAYROLL_FILE_GENERATED = "PayrollFileGenerated"
    PAYROLL_FILE_ERROR = "PayrollFileError"
    PAYROLL_FILE_PENDING = "PayrollFilePending"
    PAYROLL_FILE_APPROVED = "PayrollFileApproved"
    RECONCILIATION_COMPLETE = "ReconciliationComplete"
    RECONCILIATION_ESCALATION = "ReconciliationEscalation"
    WORKFLOW_STUCK = "WorkflowStuck"
    MANUAL_INTERVENTION_REQUIRED = "ManualInterventionRequired"
    RETRY_LIMIT_EXCEEDED = "RetryLimitExceeded"
    SYSTEM_ALERT = "SystemAlert"
    HEALTH_CHECK_FAILURE = "HealthCheckFailure"
    CUSTOM = "Custom"
    IMPORT_PROCESSOR_ERROR = "ImportProcessorError"
    IMPORT_HISTORY_PROCESSOR_ERROR = "ImportHistoryProcessorError"
    ORCHESTRATION_SERVICE_ERROR = "OrchestrationServiceError"
    SERVICE_HEALTH_DEGRADED = "ServiceHealthDegraded"
    SERVICE_RECOVERED = "ServiceRecovered"
    DATABASE_CONNECTION_ERROR = "DatabaseConnectionError"
    EXTERNAL_SERVICE_TIMEOUT = "ExternalServiceTimeout"
    UNHANDLED_EXCEPTION = "UnhandledException"
    OTS_SCHEDULED_RUN_SUCCESS = "OTSScheduledRunSuccess"
    OTS_SCHEDULED_RUN_FAILURE = "OTSScheduledRunFailure"


class Severity(Enum):
    INFO = "Info"
    WARNING = "Warning"
    URGENT = "Urgent"
    CRITICAL = "Critical"


# Severity ordering; never compare severity strings directly
_SEVERITY_RANK = {
    Severity.INFO.value: 0,
    Severity.WARNING.value: 1,
    Severity.URGENT.value: 2,
    Severity.CRITICAL.value: 3,
}


def severity_rank(severity) -> int:
    """Rank of a severity (enum member or value). Unknown values raise ValueError."""
    value = severity.value if isinstance(severity, Severity) else severity
    if value not in _SEVERITY_RANK:
        raise ValueError(f"Unknown severity: {value}")
    return _SEVERITY_RANK[value]


def meets_threshold(severity, min_severity) -> bool:
    """True when ``severity`` is at or above ``min_severity`` (None means no threshold)."""
    if min_severity is None:
        return True
    return severity_rank(severity) >= severity_rank(min_severity)


class Channel(Enum):
    EMAIL = "Email"
    SMS = "SMS"
    SLACK = "Slack"
    IN_APP = "InApp"


class DeliveryRole(Enum):
    TO = "To"
    CC = "Cc"
    BCC = "Bcc"


class GroupPurpose(Enum):
    PRODUCTION = "Production"
    TEST_ONLY = "TestOnly"
    BOTH = "Both"


class DeliveryStatus(Enum):
    PENDING = "Pending"
    PROCESSING = "Processing"
    DELIVERED = "Delivered"
    FAILED = "Failed"
    BOUNCED = "Bounced"


class HealthStatus(Enum):
    HEALTHY = "Healthy"
    DEGRADED = "Degraded"
    UNHEALTHY = "Unhealthy"
