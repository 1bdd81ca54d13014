"""Integration tests for the user seeding script against a stub backend."""
from __future__ import annotations

import random
from typing import Any, Sequence

import pytest
from faker import Faker

from hobbyme.core.entities import SKILL_LEVELS, Hobby
from hobbyme.infrastructure.store.supabase_store import BackendError
from scripts.generate_users import (
    LIVERPOOL,
    SEED_LOCATION,
    SeedUser,
    UserSeeder,
    build_fake_users,
    is_rate_limited,
    retry_with_backoff,
)

HOBBIES = [
    Hobby(id=f"h{index}", name=name, category=category)
    for index, (name, category) in enumerate(
        [("Chess", "indoor"), ("Reading", "indoor"), ("Hiking", "outdoor"), ("Cycling", "outdoor"), ("Yoga", "indoor")]
    )
]


def rate_limit_error() -> BackendError:
    return BackendError("sign_up", RuntimeError("Email rate limit exceeded"))


class StubBackend:
    def __init__(self, failing_emails: Sequence[str] = ()) -> None:
        self.failing_emails = set(failing_emails)
        self.profiles: list[dict[str, Any]] = []
        self.memberships: list[dict[str, Any]] = []

    def fetch_hobbies(self) -> list[Hobby]:
        return HOBBIES

    def sign_up(self, email: str, password: str) -> str:
        if email in self.failing_emails:
            raise BackendError("sign_up", RuntimeError("User already registered"))
        return f"id-{email}"

    def insert_profile(self, row: dict[str, Any]) -> None:
        self.profiles.append(row)

    def insert_memberships(self, rows: Sequence[dict[str, Any]]) -> None:
        self.memberships.extend(rows)


def make_user(name: str) -> SeedUser:
    email = f"{name}@example.com"
    return SeedUser(email=email, password="secret123456", profile={"full_name": name.title(), "email": email})


@pytest.mark.parametrize(
    ("message", "expected"),
    [("Email rate limit exceeded", True), ("RATE LIMIT", True), ("duplicate key", False)],
)
def test_rate_limit_detection(message, expected):
    assert is_rate_limited(BackendError("op", RuntimeError(message))) is expected


def test_retry_doubles_delay_then_gives_up():
    sleeps: list[float] = []
    calls = 0

    def operation():
        nonlocal calls
        calls += 1
        raise rate_limit_error()

    with pytest.raises(BackendError):
        retry_with_backoff(operation, sleep=sleeps.append)

    assert sleeps == [5.0, 10.0, 20.0]
    assert calls == 4


def test_retry_returns_once_the_limit_clears():
    sleeps: list[float] = []
    outcomes = [rate_limit_error(), rate_limit_error(), "ok"]

    def operation():
        outcome = outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    assert retry_with_backoff(operation, sleep=sleeps.append) == "ok"
    assert sleeps == [5.0, 10.0]


def test_other_failures_are_not_retried():
    sleeps: list[float] = []

    def operation():
        raise BackendError("insert_profile", RuntimeError("duplicate key"))

    with pytest.raises(BackendError):
        retry_with_backoff(operation, sleep=sleeps.append)

    assert sleeps == []


def test_seeder_places_users_around_liverpool_and_assigns_hobbies():
    backend = StubBackend()
    sleeps: list[float] = []
    seeder = UserSeeder(backend, rng=random.Random(7), sleep=sleeps.append)

    summary = seeder.run([make_user("ann"), make_user("ben")], HOBBIES)

    assert summary.created == ["id-ann@example.com", "id-ben@example.com"]
    assert summary.failed == []
    assert sleeps == [2.0, 2.0, 2.0, 10.0, 2.0, 2.0, 2.0]

    for row in backend.profiles:
        assert row["location"] == SEED_LOCATION
        assert abs(row["latitude"] - LIVERPOOL.latitude) <= 0.035
        assert abs(row["longitude"] - LIVERPOOL.longitude) <= 0.035

    for user_id in summary.created:
        rows = [row for row in backend.memberships if row["user_id"] == user_id]
        assert 2 <= len(rows) <= 4
        assert len({row["hobby_id"] for row in rows}) == len(rows)
        assert all(row["skill_level"] in SKILL_LEVELS for row in rows)


def test_seeder_skips_failed_users_and_continues():
    backend = StubBackend(failing_emails=["ann@example.com"])
    seeder = UserSeeder(backend, rng=random.Random(1), sleep=lambda seconds: None)

    summary = seeder.run([make_user("ann"), make_user("ben")], HOBBIES)

    assert summary.failed == ["Ann"]
    assert summary.created == ["id-ben@example.com"]
    assert [row["email"] for row in backend.profiles] == ["ben@example.com"]


def test_hobby_count_is_capped_by_catalogue_size():
    backend = StubBackend()
    seeder = UserSeeder(backend, rng=random.Random(3), sleep=lambda seconds: None)

    seeder.assign_hobbies("u1", HOBBIES[:1])

    assert [row["hobby_id"] for row in backend.memberships] == ["h0"]


def test_build_fake_users_generates_consistent_accounts():
    faker = Faker()
    faker.seed_instance(42)

    users = build_fake_users(faker, 3)

    assert len(users) == 3
    for user in users:
        assert user.email == user.email.lower()
        assert user.email.startswith(f"{user.profile['username']}@")
        assert user.profile["is_admin"] is False
        assert len(user.password) == 12
        assert user.full_name
