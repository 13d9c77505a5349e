"""User-record store persisted as one JSON blob in a key-value backend."""
from __future__ import annotations

import hmac
import json
import logging
import threading
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, List, Mapping, Optional, Union

from pydantic import ValidationError

from .models import ROLE_ADMIN, ROLE_CLIENT, StoreResult, UserRecord
from .schemas import RegistrationRequest
from .storage import KeyValueStorage, StorageError

logger = logging.getLogger("userstore.store")

DEFAULT_STORAGE_KEY = "motionTechUserDB"

MSG_MISSING_FIELDS = "Missing required fields"
MSG_INVALID_DATA = "Invalid registration data"
MSG_USERNAME_TAKEN = "Username already exists"
MSG_EMAIL_TAKEN = "Email already registered"
MSG_SAVE_FAILED = "Failed to save user data"
MSG_REGISTERED = "Registration successful!"
MSG_UNKNOWN_IDENTIFIER = "Invalid username/email"
MSG_BAD_PASSWORD = "Invalid password"
MSG_AUTHENTICATED = "Login successful"

Clock = Callable[[], datetime]


def _current_timestamp() -> datetime:
    return datetime.now(timezone.utc)


def _normalize(value: str) -> str:
    return value.strip().lower()


def _passwords_match(provided: str, stored: str) -> bool:
    return hmac.compare_digest(provided.encode("utf-8"), stored.encode("utf-8"))


def _seed_users(now: datetime) -> List[UserRecord]:
    return [
        UserRecord(
            id=1,
            username="admin",
            email="admin@motiontech.com",
            password="admin123",
            first_name="System",
            last_name="Administrator",
            name="System Administrator",
            role=ROLE_ADMIN,
            company="Motion Tech",
            created_at=now,
            last_login=None,
            is_active=True,
        ),
        UserRecord(
            id=2,
            username="motion",
            # Not a valid address; preserved verbatim.
            email="motiontech.com",
            password="motion123",
            first_name="Demo",
            last_name="Client",
            name="Demo Client",
            role=ROLE_CLIENT,
            company="Demo Corp",
            created_at=now,
            last_login=None,
            is_active=True,
        ),
    ]


class UserStore:
    """Registration, lookup and authentication over a stored user list.

    The whole collection lives under a single key of ``storage`` and every
    operation reads it in full; commands that write hold the store lock for
    the complete read-modify-write cycle.
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        *,
        key: str = DEFAULT_STORAGE_KEY,
        clock: Optional[Clock] = None,
    ) -> None:
        if not key:
            raise ValueError("Storage key must not be empty")
        self._storage = storage
        self._key = key
        self._clock: Clock = clock or _current_timestamp
        self._lock = threading.RLock()

    @property
    def key(self) -> str:
        return self._key

    def _now(self) -> datetime:
        # Millisecond precision matches what the serialized form can carry.
        now = self._clock().astimezone(timezone.utc)
        return now.replace(microsecond=now.microsecond // 1000 * 1000)

    # ------------------------------------------------------------------
    # Bootstrap
    # ------------------------------------------------------------------
    def initialize(self) -> List[UserRecord]:
        """Seed the default users when nothing is stored yet."""

        with self._lock:
            try:
                existing = self._storage.get(self._key)
            except StorageError as exc:
                logger.error("Unable to read user database %r: %s", self._key, exc)
                return []

            if not existing:
                logger.info("No user database found under %r; creating default users", self._key)
                if self.save_all(_seed_users(self._now())):
                    logger.info("Default user database created with 2 users")
            else:
                logger.info("User database %r found and loaded", self._key)

            users = self.get_all()
            logger.info("Total users: %d", len(users))
            return users

    def reset(self) -> List[UserRecord]:
        """Drop the stored collection and bootstrap it again."""

        with self._lock:
            try:
                self._storage.remove(self._key)
            except StorageError as exc:
                logger.error("Unable to clear user database %r: %s", self._key, exc)
            else:
                logger.info("User database %r cleared", self._key)
            return self.initialize()

    # ------------------------------------------------------------------
    # Collection access
    # ------------------------------------------------------------------
    def get_all(self) -> List[UserRecord]:
        try:
            raw = self._storage.get(self._key)
        except StorageError as exc:
            logger.error("Error reading user database %r: %s", self._key, exc)
            return []

        if not raw:
            return []

        try:
            payload = json.loads(raw)
            if not isinstance(payload, list):
                raise ValueError(f"expected a list of users, got {type(payload).__name__}")
        except (ValueError, TypeError) as exc:
            logger.error("Error reading user database %r: %s", self._key, exc)
            return []

        users: List[UserRecord] = []
        for position, item in enumerate(payload):
            try:
                users.append(UserRecord.from_dict(item))
            except (ValueError, TypeError, AttributeError) as exc:
                logger.error("Skipping malformed user record #%d in %r: %s", position, self._key, exc)
        return users

    def save_all(self, records: Iterable[UserRecord]) -> bool:
        ordered = sorted(records, key=lambda record: record.id)
        try:
            blob = json.dumps([record.to_dict() for record in ordered])
            self._storage.set(self._key, blob)
        except (StorageError, TypeError, ValueError) as exc:
            logger.error("Error saving user database %r: %s", self._key, exc)
            return False
        return True

    def count(self) -> int:
        return len(self.get_all())

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------
    def add(self, data: Union[RegistrationRequest, Mapping[str, Any]]) -> StoreResult:
        """Register a new client account.

        Validation and uniqueness failures come back as unsuccessful
        results. The collection is only changed when the write succeeds.
        """

        if isinstance(data, RegistrationRequest):
            request = data
        else:
            try:
                request = RegistrationRequest.model_validate(dict(data))
            except (ValidationError, TypeError, ValueError) as exc:
                logger.info("Rejected registration payload: %s", exc)
                return StoreResult(success=False, message=MSG_INVALID_DATA)

        logger.info("Adding new user: %s", request.username)

        if request.missing_required():
            return StoreResult(success=False, message=MSG_MISSING_FIELDS)

        username = (request.username or "").strip()
        email = (request.email or "").strip().lower()
        password = request.password or ""

        with self._lock:
            users = self.get_all()

            if any(_normalize(user.username) == username.lower() for user in users):
                return StoreResult(success=False, message=MSG_USERNAME_TAKEN)

            if any(_normalize(user.email) == email for user in users):
                return StoreResult(success=False, message=MSG_EMAIL_TAKEN)

            new_id = max((user.id for user in users), default=0) + 1
            first_name = (request.first_name or "").strip()
            last_name = (request.last_name or "").strip()
            if first_name and last_name:
                name = f"{first_name} {last_name}"
            else:
                name = username

            user = UserRecord(
                id=new_id,
                username=username,
                email=email,
                password=password,
                first_name=first_name,
                last_name=last_name,
                name=name,
                role=ROLE_CLIENT,
                company=(request.company or "").strip(),
                created_at=self._now(),
                last_login=None,
                is_active=True,
            )

            if not self.save_all([*users, user]):
                return StoreResult(success=False, message=MSG_SAVE_FAILED)

        logger.info("User added successfully: %s (id=%d)", user.username, user.id)
        return StoreResult(success=True, message=MSG_REGISTERED, user=user)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------
    def find_by_username(self, username: str) -> Optional[UserRecord]:
        wanted = _normalize(username)
        for user in self.get_all():
            if _normalize(user.username) == wanted:
                return user
        return None

    def find_by_email(self, email: str) -> Optional[UserRecord]:
        wanted = _normalize(email)
        for user in self.get_all():
            if _normalize(user.email) == wanted:
                return user
        return None

    def is_username_available(self, username: str) -> bool:
        return self.find_by_username(username) is None

    def is_email_available(self, email: str) -> bool:
        return self.find_by_email(email) is None

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------
    def authenticate(self, identifier: str, password: str) -> StoreResult:
        """Check credentials against active users and record the login time.

        Unknown identifiers and wrong passwords are reported with different
        messages.
        """

        wanted = _normalize(identifier or "")

        with self._lock:
            users = self.get_all()
            match_index: Optional[int] = None
            for index, user in enumerate(users):
                if not user.is_active:
                    continue
                if _normalize(user.username) == wanted or _normalize(user.email) == wanted:
                    match_index = index
                    break

            if match_index is None:
                logger.warning("Failed login attempt for unknown identifier %r", identifier)
                return StoreResult(success=False, message=MSG_UNKNOWN_IDENTIFIER)

            user = users[match_index]
            if password is None or not _passwords_match(password, user.password):
                logger.warning("Failed login attempt for user %s", user.id)
                return StoreResult(success=False, message=MSG_BAD_PASSWORD)

            user = replace(user, last_login=self._now())
            users[match_index] = user
            if not self.save_all(users):
                logger.warning("Could not persist last login time for user %s", user.id)

        logger.info("User %s authenticated", user.id)
        return StoreResult(success=True, message=MSG_AUTHENTICATED, user=user)

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------
    def diagnostic_dump(self) -> List[UserRecord]:
        users = self.get_all()
        logger.info("=== USER DATABASE ===")
        logger.info("Storage key: %s", self._key)
        logger.info("Total users: %d", len(users))
        if not users:
            logger.info("No users in database")
        for position, user in enumerate(users, start=1):
            serialized = user.to_dict()
            logger.info(
                "User %d: id=%d username=%s email=%s name=%s created=%s last_login=%s",
                position,
                user.id,
                user.username,
                user.email,
                user.name,
                serialized["createdAt"],
                serialized["lastLogin"],
            )
        return users


__all__ = ["DEFAULT_STORAGE_KEY", "UserStore"]
