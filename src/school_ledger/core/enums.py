from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Role carried by the session identity, used for capability checks."""

    ADMIN = "admin"
    STAFF = "staff"


class Population(str, Enum):
    """Roster population; each has its own day records and counters."""

    STUDENTS = "students"
    TEACHERS = "teachers"


class AttendanceStatus(str, Enum):
    PRESENT = "present"
    ABSENT = "absent"


class FeeStatus(str, Enum):
    """Status label derived from running total vs. class fee."""

    PAID = "Paid"
    OWING = "Owing"
    NOT_PAID = "Not Paid"
    NOT_APPLICABLE = "N/A"


class Level(str, Enum):
    """School level used to split inventory stock and prices."""

    NURSERY = "Nursery"
    JUNIOR_BASIC = "JuniorBasic"
    SENIOR_BASIC = "SeniorBasic"
    JUNIOR_SECONDARY = "JuniorSecondary"
    SENIOR_SECONDARY = "SeniorSecondary"


class Section(str, Enum):
    """Dashboard sections a non-admin user can be granted."""

    STUDENTS = "students"
    TEACHERS = "teachers"
    ATTENDANCE = "attendance"
    FEES = "fees"
    INVENTORY = "inventory"
    EXPENSES = "expenses"
    RESULTS = "results"
    DOCUMENTS = "documents"
    PARENTS = "parents"
