"""Domain models for the user-record store."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

ROLE_ADMIN = "admin"
ROLE_CLIENT = "client"
ROLES = frozenset({ROLE_ADMIN, ROLE_CLIENT})


def serialize_datetime(value: datetime) -> str:
    """Render ``value`` the way ``Date.prototype.toISOString`` does."""

    utc_value = value.astimezone(timezone.utc)
    return utc_value.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_datetime(value: str) -> datetime:
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(frozen=True)
class UserRecord:
    """Represents a user account stored in the serialized collection."""

    id: int
    username: str
    email: str
    password: str
    first_name: str
    last_name: str
    name: str
    role: str
    company: str
    created_at: datetime
    last_login: Optional[datetime] = None
    is_active: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "password": self.password,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "name": self.name,
            "role": self.role,
            "company": self.company,
            "createdAt": serialize_datetime(self.created_at),
            "lastLogin": serialize_datetime(self.last_login) if self.last_login else None,
            "isActive": self.is_active,
        }

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> "UserRecord":
        """Create a :class:`UserRecord` from a deserialized JSON object.

        ``id``, ``username``, ``email``, ``password`` and ``createdAt`` are
        required; the remaining keys fall back to the defaults used at
        registration time.
        """

        required_fields = {"id", "username", "email", "password", "createdAt"}
        missing = required_fields - data.keys()
        if missing:
            raise ValueError(f"User record is missing fields: {', '.join(sorted(missing))}")

        role = str(data.get("role") or ROLE_CLIENT)
        if role not in ROLES:
            raise ValueError(f"Unknown user role '{role}'")

        raw_id = data["id"]
        if isinstance(raw_id, bool) or not isinstance(raw_id, int):
            raise ValueError(f"User id must be an integer, got {raw_id!r}")

        last_login = data.get("lastLogin")
        username = str(data["username"])
        return UserRecord(
            id=raw_id,
            username=username,
            email=str(data["email"]),
            password=str(data["password"]),
            first_name=str(data.get("firstName") or ""),
            last_name=str(data.get("lastName") or ""),
            name=str(data.get("name") or username),
            role=role,
            company=str(data.get("company") or ""),
            created_at=parse_datetime(str(data["createdAt"])),
            last_login=parse_datetime(str(last_login)) if last_login else None,
            is_active=data.get("isActive", True) is True,
        )


@dataclass(frozen=True)
class StoreResult:
    """Outcome of a store command; callers branch on ``success``."""

    success: bool
    message: str = ""
    user: Optional[UserRecord] = None


__all__ = [
    "ROLE_ADMIN",
    "ROLE_CLIENT",
    "ROLES",
    "StoreResult",
    "UserRecord",
    "parse_datetime",
    "serialize_datetime",
]
