"""ABOUTME: Value objects and enums shared by the rate limiting domain
ABOUTME: Defines user roles and the normalisation applied to login identifiers"""

from enum import Enum


class UserRole(Enum):
    FIELD_WORKER = "field-worker"
    NGO_STAFF = "ngo-staff"
    UN_STAFF = "un-staff"
    ADMIN = "admin"


def parse_role(value: str | None) -> UserRole | None:
    """Map a role string (value or name, any case) to a UserRole, or None if unknown."""
    if not value:
        return None
    cleaned = value.strip().lower().replace("_", "-")
    for role in UserRole:
        if role.value == cleaned:
            return role
    return None


def normalize_identifier(identifier: str) -> str:
    """Emails are case insensitive for login purposes, so bucket them lower-cased."""
    return identifier.strip().lower()
