"""Seed the backend with fake users living around Liverpool."""
from __future__ import annotations

import argparse
import random
import sys
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Optional, Protocol, Sequence, TypeVar

from faker import Faker

if __package__ is None or __package__ == "":
    _SCRIPT_PARENT = Path(__file__).resolve().parents[1]
    _SCRIPT_PARENT_STR = str(_SCRIPT_PARENT)
    if _SCRIPT_PARENT_STR not in sys.path:
        sys.path.insert(0, _SCRIPT_PARENT_STR)

from scripts.bootstrap import bootstrap_project, resolve_project_path

_PROJECT_ROOT = bootstrap_project()

from hobbyme.config import get_log_level, get_supabase_credentials, load_config
from hobbyme.core.entities import SKILL_LEVELS, Coordinates, Hobby
from hobbyme.infrastructure.store.supabase_store import BackendError, SupabaseBackend
from hobbyme.utils.logger import configure_logging, logger

T = TypeVar("T")

TOTAL_USERS = 20
DELAY_BETWEEN_USERS = 10.0
DELAY_BETWEEN_OPERATIONS = 2.0
MAX_RETRIES = 3
INITIAL_RETRY_DELAY = 5.0

SEED_LOCATION = "Liverpool, UK"
LIVERPOOL = Coordinates(latitude=53.4084, longitude=-2.9916)
COORDINATE_SPREAD = 0.07  # roughly five miles
MIN_HOBBIES = 2
MAX_HOBBIES = 4


class SeedBackend(Protocol):
    def fetch_hobbies(self) -> list[Hobby]:
        ...

    def sign_up(self, email: str, password: str) -> str:
        ...

    def insert_profile(self, row: dict[str, Any]) -> None:
        ...

    def insert_memberships(self, rows: Sequence[dict[str, Any]]) -> None:
        ...


def is_rate_limited(error: BaseException) -> bool:
    return "rate limit" in str(error).lower()


def retry_with_backoff(
    operation: Callable[[], T],
    *,
    sleep: Callable[[float], None] = time.sleep,
    max_retries: int = MAX_RETRIES,
    initial_delay: float = INITIAL_RETRY_DELAY,
) -> T:
    """Run ``operation``, retrying only rate-limit failures with doubling delays."""

    attempt = 0
    while True:
        try:
            return operation()
        except BackendError as error:
            if not is_rate_limited(error) or attempt >= max_retries:
                raise
            backoff = initial_delay * (2**attempt)
            attempt += 1
            logger.warning(
                "Rate limit hit. Waiting {} seconds before retry {}/{}",
                backoff,
                attempt,
                max_retries,
            )
            sleep(backoff)


def jittered_coordinates(rng: random.Random, centre: Coordinates = LIVERPOOL) -> Coordinates:
    return Coordinates(
        latitude=centre.latitude + (rng.random() - 0.5) * COORDINATE_SPREAD,
        longitude=centre.longitude + (rng.random() - 0.5) * COORDINATE_SPREAD,
    )


@dataclass(frozen=True)
class SeedUser:
    email: str
    password: str
    profile: dict[str, Any]

    @property
    def full_name(self) -> str:
        return str(self.profile.get("full_name", ""))


@dataclass
class SeedSummary:
    created: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


def build_fake_users(faker: Faker, count: int) -> list[SeedUser]:
    users: list[SeedUser] = []
    for _ in range(count):
        first_name = faker.first_name()
        last_name = faker.last_name()
        username = f"{first_name}.{last_name}{faker.random_int(1, 999)}".lower()
        email = f"{username}@{faker.free_email_domain()}".lower()
        now = datetime.now(timezone.utc).isoformat()
        users.append(
            SeedUser(
                email=email,
                password=faker.password(length=12),
                profile={
                    "username": username,
                    "full_name": f"{first_name} {last_name}",
                    "email": email,
                    "phone": faker.phone_number(),
                    "bio": faker.paragraph(),
                    "is_admin": False,
                    "created_at": now,
                    "updated_at": now,
                },
            )
        )
    return users


class UserSeeder:
    """Create users one at a time; a failed user is logged and skipped."""

    def __init__(
        self,
        backend: SeedBackend,
        *,
        rng: Optional[random.Random] = None,
        sleep: Callable[[float], None] = time.sleep,
        operation_delay: float = DELAY_BETWEEN_OPERATIONS,
        user_delay: float = DELAY_BETWEEN_USERS,
    ) -> None:
        self._backend = backend
        self._rng = rng or random.Random()
        self._sleep = sleep
        self._operation_delay = operation_delay
        self._user_delay = user_delay

    def _retry(self, operation: Callable[[], T]) -> T:
        return retry_with_backoff(operation, sleep=self._sleep)

    def create_user(self, user: SeedUser) -> Optional[str]:
        try:
            user_id = self._retry(lambda: self._backend.sign_up(user.email, user.password))
            self._sleep(self._operation_delay)

            coordinates = jittered_coordinates(self._rng)
            row = {
                **user.profile,
                "id": user_id,
                "location": SEED_LOCATION,
                "latitude": coordinates.latitude,
                "longitude": coordinates.longitude,
            }
            self._retry(lambda: self._backend.insert_profile(row))
            self._sleep(self._operation_delay)
        except BackendError as error:
            logger.error("Error creating {}: {}", user.full_name, error)
            return None
        return user_id

    def assign_hobbies(self, user_id: str, hobbies: Sequence[Hobby]) -> None:
        if not hobbies:
            return
        count = min(len(hobbies), self._rng.randint(MIN_HOBBIES, MAX_HOBBIES))
        rows = [
            {
                "user_id": user_id,
                "hobby_id": hobby.id,
                "skill_level": self._rng.choice(SKILL_LEVELS),
            }
            for hobby in self._rng.sample(list(hobbies), count)
        ]
        try:
            self._retry(lambda: self._backend.insert_memberships(rows))
            self._sleep(self._operation_delay)
        except BackendError as error:
            logger.error("Error assigning hobbies to {}: {}", user_id, error)

    def run(self, users: Sequence[SeedUser], hobbies: Sequence[Hobby]) -> SeedSummary:
        summary = SeedSummary()
        for index, user in enumerate(users, start=1):
            logger.info("Processing user {}/{}: {}", index, len(users), user.full_name)
            user_id = self.create_user(user)
            if user_id is None:
                logger.info("Failed to create user: {}", user.full_name)
                summary.failed.append(user.full_name)
            else:
                self.assign_hobbies(user_id, hobbies)
                logger.info("Created user and assigned hobbies: {}", user.full_name)
                summary.created.append(user_id)

            if index < len(users):
                logger.info("Waiting {} seconds before next user...", self._user_delay)
                self._sleep(self._user_delay)

        logger.info(
            "User generation completed: {} created, {} failed",
            len(summary.created),
            len(summary.failed),
        )
        return summary


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Seed the backend with fake HobbyMe users")
    parser.add_argument("--config", type=Path, default=Path("configs/config.yaml"))
    parser.add_argument("--total", type=int, default=TOTAL_USERS)
    parser.add_argument("--seed", type=int, default=None, help="Random seed for reproducible data")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    config = load_config(resolve_project_path(args.config))
    configure_logging(get_log_level(config))

    url, key = get_supabase_credentials(config)
    backend = SupabaseBackend.from_credentials(url, key)

    faker = Faker()
    if args.seed is not None:
        faker.seed_instance(args.seed)

    logger.info("Starting user generation...")
    hobbies = backend.fetch_hobbies()
    users = build_fake_users(faker, args.total)
    UserSeeder(backend, rng=random.Random(args.seed)).run(users, hobbies)


if __name__ == "__main__":
    main()
