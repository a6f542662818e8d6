"""Configuration settings for the Namespace Debt Controller."""

# Namespace annotation carrying the debt status
DEBT_STATUS_ANNOTATION = "debt.sealos/status"

# Debt status values
NORMAL_DEBT_STATUS = "Normal"
SUSPEND_DEBT_STATUS = "SuspendRequested"
RESUME_DEBT_STATUS = "ResumeRequested"

# Scheduler that never places pods; parked pods are stamped with it
DEBT_SCHEDULER_NAME = "debt-scheduler"

# Pod annotation holding the scheduler a parked pod had before suspension
PREVIOUS_SCHEDULER_ANNOTATION = "debt.sealos/previous-scheduler"

# Zero-limit quota installed while a namespace is suspended
DEBT_QUOTA_NAME = "debt-limit0"
DEBT_QUOTA_HARD_LIMITS = {
    "limits.cpu": "0",
    "limits.memory": "0",
    "requests.storage": "0",
}

# Recreate settings
RECREATE_TIMEOUT_SECONDS = 10
# None = use the pod's own terminationGracePeriodSeconds, capped to half
# the recreate timeout
POD_DELETE_GRACE_PERIOD_SECONDS = None
DEFAULT_TERMINATION_GRACE_PERIOD_SECONDS = 30
# Extra seconds the client waits on a watch past the server-side timeout
WATCH_REQUEST_TIMEOUT_MARGIN_SECONDS = 2

# Watch settings
WATCH_TIMEOUT_SECONDS = 300
RECONCILE_INTERVAL_SECONDS = 30
WATCH_RETRY_DELAY_SECONDS = 5
