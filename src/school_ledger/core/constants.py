"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

STUDENT_NUMBER_PREFIX = "CGA"
STUDENT_NUMBER_DIGITS = 6

DEFAULT_SCHOOL_NAME = "Chosen Generation Academy"
DEFAULT_PREPARED_BY = "Bursar / Accounts"
DEFAULT_APPROVED_BY = "Principal"

REFUND_REASON_RETURN = "return"
REFUND_REASON_HOLDING_DELETE = "holding_delete"
