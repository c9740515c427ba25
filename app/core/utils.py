import secrets
import string
import re
from datetime import date, datetime, timezone, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo

from app.core.config import settings

def generate_password():
    adjectives = ["Happy", "Sunny", "Clever", "Brave", "Calm", "Eager", "Fancy", "Jolly", "Kind", "Lively"]
    nouns = ["Tiger", "Lion", "Eagle", "Panda", "Bear", "Wolf", "Fox", "Hawk", "Owl", "Deer"]

    adj = secrets.choice(adjectives)
    noun = secrets.choice(nouns)
    number = secrets.randbelow(1000)

    return f"{adj}-{noun}-{number:03d}"

def generate_username(name: str):
    # Simple username generation: lowercase name + random suffix
    base = name.lower().replace(" ", "")[:10]
    suffix = ''.join(secrets.choice(string.digits) for i in range(4))
    return f"{base}{suffix}"

def generate_slug(name: str) -> str:
    slug = name.lower()
    slug = re.sub(r'[^a-z0-9\s-]', '', slug)
    slug = re.sub(r'\s+', '-', slug)
    slug = slug.strip('-')
    # Random suffix keeps slugs unique across clinics with the same name
    suffix = ''.join(secrets.choice(string.digits) for i in range(4))
    return f"{slug}-{suffix}"

def utc_now() -> datetime:
    """Current time as naive UTC, the way timestamps are stored."""
    return datetime.now(timezone.utc).replace(tzinfo=None)

def queue_timezone() -> tzinfo:
    if settings.QUEUE_TIMEZONE.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(settings.QUEUE_TIMEZONE)

def queue_day(as_of: Optional[datetime] = None) -> date:
    """
    Calendar day of ``as_of`` in the queue reference timezone.

    Naive datetimes are taken as UTC.
    """
    if as_of is None:
        as_of = utc_now()
    if as_of.tzinfo is None:
        as_of = as_of.replace(tzinfo=timezone.utc)
    return as_of.astimezone(queue_timezone()).date()
