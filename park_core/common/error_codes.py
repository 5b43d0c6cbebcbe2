# park_core/common/error_codes.py
"""
Stable error codes returned in the error envelope. Clients branch on these.
"""

# Conflicts (409)
CONFLICT = "conflict"
INVALID_STATE = "INVALID_STATE"
NO_SHIFT_OPEN = "NO_SHIFT_OPEN"
SHIFT_ALREADY_OPEN = "SHIFT_ALREADY_OPEN"
SHIFT_NOT_OPEN = "SHIFT_NOT_OPEN"
SHIFT_HAS_OPERATIONS = "SHIFT_HAS_OPERATIONS"
SESSION_ALREADY_ACTIVE = "SESSION_ALREADY_ACTIVE"
DEBT_NOT_PENDING = "DEBT_NOT_PENDING"
PLAN_LIMIT_EXCEEDED = "PLAN_LIMIT_EXCEEDED"
NO_APPLICABLE_RULE = "NO_APPLICABLE_RULE"
APPEND_ONLY = "APPEND_ONLY"

# Validation (400)
VALIDATION_ERROR = "validation_error"
INSUFFICIENT_PAYMENT = "INSUFFICIENT_PAYMENT"
AMOUNT_EXCEEDS_DEBT = "AMOUNT_EXCEEDS_DEBT"
OVERPAYMENT_NOT_ALLOWED = "OVERPAYMENT_NOT_ALLOWED"
INVALID_TIME_RANGE = "INVALID_TIME_RANGE"

# Infrastructure
NOT_FOUND = "not_found"
PERSISTENCE_ERROR = "PERSISTENCE_ERROR"
EXTERNAL_SERVICE_ERROR = "EXTERNAL_SERVICE_ERROR"
