from sqlmodel import SQLModel
from .tenant import Tenant
from .user import User
from .patient import Patient
from .visit import Visit, ClinicalNote
from .queue_item import QueueItem
from .counter import QueueCounter

__all__ = [
    "SQLModel",
    "Tenant",
    "User",
    "Patient",
    "Visit",
    "ClinicalNote",
    "QueueItem",
    "QueueCounter",
]
