# Database Models
from src.models.account_deletion_log import (
    AccountDeletionLog,
    DeletionInitiator,
    DeletionOutcome,
)
from src.models.base import LOOKUP_NAME, USER_REFERENCE, Base, TimestampMixin
from src.models.calendar_event import CalendarEvent
from src.models.client import Client, ClientStatus
from src.models.email_message import EmailMessage, EmailStatus
from src.models.finance_entry import FinanceEntry, FinanceEntryStatus, FinanceEntryType
from src.models.project import Project, ProjectStatus
from src.models.user import DeletionStatus, User, UserRole

__all__ = [
    "AccountDeletionLog",
    "Base",
    "CalendarEvent",
    "Client",
    "ClientStatus",
    "DeletionInitiator",
    "DeletionOutcome",
    "DeletionStatus",
    "EmailMessage",
    "EmailStatus",
    "FinanceEntry",
    "FinanceEntryStatus",
    "FinanceEntryType",
    "LOOKUP_NAME",
    "Project",
    "ProjectStatus",
    "TimestampMixin",
    "USER_REFERENCE",
    "User",
    "UserRole",
]
