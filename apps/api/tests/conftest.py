import math
import os
import re
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

API_ROOT = Path(__file__).resolve().parents[1]
if str(API_ROOT) not in sys.path:
    sys.path.insert(0, str(API_ROOT))

# Minimal required settings for importing app.core.config.settings in tests.
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("BOOTSTRAP_SEARCH_INDEX", "false")

from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.core.errors import ServiceUnavailableError  # noqa: E402
from app.db.base import Base  # noqa: E402
from app.infra.search_client import content_to_document  # noqa: E402
from app.models.content import Content  # noqa: E402
from app.models.user import User  # noqa: E402
from app.models.user_interaction import InteractionKind, UserInteraction  # noqa: E402

DURATION_RE = re.compile(r"^(\d+)([smhd])$")
DURATION_UNITS = {"s": 1, "m": 60, "h": 3600, "d": 86400}


class FakeSearchIndex:
    """In-process stand-in for the content index.

    Evaluates the subset of the query DSL the services emit: match_all, bool
    should with minimum_should_match, term, terms, multi_match and
    function_score with filtered weights and a gauss date decay.
    """

    def __init__(self, index_name: str = "content-test") -> None:
        self.index_name = index_name
        self.documents: dict[str, dict] = {}
        self.exists = False
        self.fail_search = False
        self.fail_writes = False
        self.search_calls: list[dict] = []

    def ping(self) -> bool:
        return not self.fail_search

    def ensure_index_exists(self) -> bool:
        if self.fail_writes:
            raise ServiceUnavailableError("search index unavailable")
        self.exists = True
        return True

    def index_document(self, content: Content) -> None:
        if self.fail_writes:
            raise ServiceUnavailableError("search index unavailable")
        self.documents[str(content.id)] = content_to_document(content)

    def delete_document(self, content_id) -> None:
        if self.fail_writes:
            raise ServiceUnavailableError("search index unavailable")
        self.documents.pop(str(content_id), None)

    def reindex_all(self, contents) -> int:
        indexed = 0
        for content in contents:
            self.index_document(content)
            indexed += 1
        return indexed

    def search_ids(self, query, *, offset, size, sort=None) -> list[str]:
        self.search_calls.append({"query": query, "offset": offset, "size": size, "sort": sort})
        if self.fail_search:
            raise ServiceUnavailableError("search index unavailable")

        scored = []
        for doc in self.documents.values():
            score = self._score(query, doc)
            if score is not None:
                scored.append((score, doc))

        for clause in reversed(sort or [{"_score": {"order": "desc"}}]):
            (field, options), = clause.items()
            reverse = options.get("order") == "desc"
            if field == "_score":
                scored.sort(key=lambda item: item[0], reverse=reverse)
            else:
                scored.sort(key=lambda item: item[1][field], reverse=reverse)
        return [doc["id"] for _, doc in scored[offset : offset + size]]

    def _score(self, query: dict, doc: dict) -> float | None:
        (kind, body), = query.items()
        if kind == "match_all":
            return 1.0
        if kind == "term":
            (field, value), = body.items()
            return 1.0 if _matches(doc, field, [value]) else None
        if kind == "terms":
            (field, values), = body.items()
            return 1.0 if _matches(doc, field, values) else None
        if kind == "bool":
            matched = [clause for clause in body.get("should", []) if self._score(clause, doc) is not None]
            if len(matched) < body.get("minimum_should_match", 1):
                return None
            return float(len(matched))
        if kind == "multi_match":
            needle = body["query"].lower()
            haystack = " ".join(
                [doc["title"], doc["description"], doc["body"], *doc["tags"], *doc["categories"]]
            ).lower()
            return 1.0 if needle in haystack else None
        if kind == "function_score":
            base = self._score(body["query"], doc)
            if base is None:
                return None
            applied = [
                self._function_value(function, doc)
                for function in body["functions"]
                if "filter" not in function or self._score(function["filter"], doc) is not None
            ]
            boost = sum(applied) if applied else 1.0
            return base * boost
        raise AssertionError(f"unsupported query clause: {kind}")

    def _function_value(self, function: dict, doc: dict) -> float:
        if "gauss" in function:
            (field, params), = function["gauss"].items()
            origin = _parse_time(params["origin"])
            scale = _parse_duration(params["scale"])
            distance = abs((origin - _parse_time(doc[field])).total_seconds())
            return params["decay"] ** ((distance / scale) ** 2)
        return function["weight"]


def _matches(doc: dict, field: str, values: list) -> bool:
    stored = doc.get(field)
    if isinstance(stored, list):
        return any(value in stored for value in values)
    return stored in values


def _parse_time(value: str) -> datetime:
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _parse_duration(value: str) -> float:
    match = DURATION_RE.match(value)
    assert match, value
    return int(match.group(1)) * DURATION_UNITS[match.group(2)]


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory) -> Session:
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def search_index() -> FakeSearchIndex:
    index = FakeSearchIndex()
    index.exists = True
    return index


@pytest.fixture
def now() -> datetime:
    return datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def make_user(db):
    def _make_user(username: str, *, preferences=None, interests=None) -> User:
        user = User(
            username=username,
            email=f"{username}@example.com",
            preferences_json=list(preferences or []),
            interests_json=list(interests or []),
        )
        db.add(user)
        db.commit()
        return user

    return _make_user


@pytest.fixture
def make_content(db, search_index, now):
    def _make_content(
        creator: User,
        *,
        title: str = "Untitled",
        categories=None,
        tags=None,
        age: timedelta = timedelta(0),
        indexed: bool = True,
    ) -> Content:
        content = Content(
            creator_id=creator.id,
            title=title,
            description=f"{title} description",
            body=f"{title} body",
            categories_json=list(categories or []),
            tags_json=list(tags or []),
            created_at=now - age,
        )
        db.add(content)
        db.commit()
        if indexed:
            search_index.index_document(content)
        return content

    return _make_content


@pytest.fixture
def add_interaction(db):
    def _add_interaction(
        kind: InteractionKind,
        user: User,
        *,
        content: Content | None = None,
        followed: User | None = None,
        created_at: datetime | None = None,
        comment_text: str | None = None,
    ) -> UserInteraction:
        interaction = UserInteraction(
            kind=kind.value,
            user_id=user.id,
            content_id=content.id if content else None,
            followed_user_id=followed.id if followed else None,
            comment_text=comment_text or ("nice" if kind is InteractionKind.COMMENT else None),
        )
        if created_at is not None:
            interaction.created_at = created_at
        db.add(interaction)
        db.commit()
        return interaction

    return _add_interaction
