from __future__ import annotations

from datetime import datetime, timezone

import pytest

from userstore.models import UserRecord, parse_datetime, serialize_datetime


def _record(**overrides: object) -> UserRecord:
    values = dict(
        id=3,
        username="kim",
        email="kim@example.com",
        password="pw",
        first_name="Kim",
        last_name="Lee",
        name="Kim Lee",
        role="client",
        company="",
        created_at=datetime(2024, 5, 1, 12, 0, 0, 123000, tzinfo=timezone.utc),
    )
    values.update(overrides)
    return UserRecord(**values)  # type: ignore[arg-type]


def test_serialize_datetime_matches_javascript_iso_format() -> None:
    value = datetime(2024, 5, 1, 12, 0, 0, 123456, tzinfo=timezone.utc)

    assert serialize_datetime(value) == "2024-05-01T12:00:00.123Z"


def test_parse_datetime_accepts_zulu_and_naive_values() -> None:
    assert parse_datetime("2024-05-01T12:00:00.123Z") == datetime(2024, 5, 1, 12, 0, 0, 123000, tzinfo=timezone.utc)
    assert parse_datetime("2024-05-01T12:00:00").tzinfo == timezone.utc


def test_to_dict_uses_camel_case_keys() -> None:
    payload = _record().to_dict()

    assert payload == {
        "id": 3,
        "username": "kim",
        "email": "kim@example.com",
        "password": "pw",
        "firstName": "Kim",
        "lastName": "Lee",
        "name": "Kim Lee",
        "role": "client",
        "company": "",
        "createdAt": "2024-05-01T12:00:00.123Z",
        "lastLogin": None,
        "isActive": True,
    }


def test_from_dict_applies_defaults_for_optional_keys() -> None:
    record = UserRecord.from_dict(
        {
            "id": 4,
            "username": "lee",
            "email": "lee@example.com",
            "password": "pw",
            "createdAt": "2024-05-01T12:00:00.000Z",
        }
    )

    assert record.name == "lee"
    assert record.first_name == ""
    assert record.role == "client"
    assert record.last_login is None
    assert record.is_active is True


@pytest.mark.parametrize(
    "overrides",
    [
        {"role": "superuser"},
        {"id": "4"},
        {"id": True},
        {"createdAt": "yesterday"},
    ],
)
def test_from_dict_rejects_malformed_records(overrides: dict) -> None:
    data = {
        "id": 4,
        "username": "lee",
        "email": "lee@example.com",
        "password": "pw",
        "createdAt": "2024-05-01T12:00:00.000Z",
    }
    data.update(overrides)

    with pytest.raises(ValueError):
        UserRecord.from_dict(data)


def test_from_dict_treats_non_boolean_active_flag_as_inactive() -> None:
    record = UserRecord.from_dict(
        {
            "id": 4,
            "username": "lee",
            "email": "lee@example.com",
            "password": "pw",
            "createdAt": "2024-05-01T12:00:00.000Z",
            "isActive": "yes",
        }
    )

    assert record.is_active is False
