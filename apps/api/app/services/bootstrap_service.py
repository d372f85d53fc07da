import logging

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import ServiceUnavailableError
from app.db import base as _db_models
from app.infra.search_client import SearchIndex
from app.models.user_interaction import InteractionKind
from app.repositories.content_repo import ContentRepository
from app.repositories.interaction_repo import InteractionRepository
from app.repositories.user_repo import UserRepository

logger = logging.getLogger(__name__)

DEMO_USERS = [
    ("user1", ["database", "search"], ["elasticsearch", "performance"]),
    ("user2", ["programming", "web development"], ["dotnet", "docker"]),
    ("user3", ["personalization", "user experience"], ["recommendation"]),
    ("user4", ["devops"], ["docker", "containerization"]),
    ("user5", [], []),
]

DEMO_CONTENT = [
    (
        "user1",
        "Introduction to Elasticsearch",
        "Learn the basics of Elasticsearch",
        ["database", "search"],
        ["elasticsearch", "search", "database"],
    ),
    (
        "user2",
        "Advanced .NET Core Development",
        "Deep dive into .NET Core features",
        ["programming", "web development"],
        ["dotnet", "csharp", "programming"],
    ),
    (
        "user3",
        "Building Personalized Content Feeds",
        "How to build personalized feeds from user interactions",
        ["user experience", "personalization"],
        ["personalization", "recommendation", "user-experience"],
    ),
    (
        "user1",
        "SQL Server Performance Tuning",
        "Optimize relational database performance",
        ["database", "performance"],
        ["sql", "database", "performance"],
    ),
    (
        "user4",
        "Getting Started with Docker",
        "Containerize your first application",
        ["devops", "containers"],
        ["docker", "containerization", "devops"],
    ),
]

DEMO_FOLLOWS = [("user1", "user3"), ("user2", "user4"), ("user3", "user1"), ("user5", "user1")]
DEMO_CONTENT_INTERACTIONS = [
    ("user1", 2, InteractionKind.LIKE),
    ("user1", 4, InteractionKind.SHARE),
    ("user2", 0, InteractionKind.LIKE),
    ("user3", 0, InteractionKind.SHARE),
    ("user3", 3, InteractionKind.COMMENT),
    ("user4", 1, InteractionKind.LIKE),
]


class BootstrapService:
    def __init__(self, db: Session, *, search_index: SearchIndex) -> None:
        self.db = db
        self.search_index = search_index
        self.user_repo = UserRepository(db)
        self.content_repo = ContentRepository(db)
        self.interaction_repo = InteractionRepository(db)

    def ensure_schema(self) -> None:
        _db_models.Base.metadata.create_all(bind=self.db.get_bind())

    def ensure_search_index(self) -> bool:
        try:
            return self.search_index.ensure_index_exists()
        except ServiceUnavailableError:
            logger.warning(
                "search index bootstrap skipped, index unavailable",
                extra={"index": self.search_index.index_name},
            )
            return False

    def seed_demo_data(self) -> bool:
        if self.user_repo.has_any():
            return False

        users = {}
        for username, preferences, interests in DEMO_USERS:
            users[username] = self.user_repo.create(
                username=username,
                email=f"{username}@example.com",
                preferences=preferences,
                interests=interests,
            )

        contents = []
        for creator, title, description, categories, tags in DEMO_CONTENT:
            contents.append(
                self.content_repo.create(
                    creator_id=users[creator].id,
                    title=title,
                    description=description,
                    body=description,
                    categories=categories,
                    tags=tags,
                )
            )

        for follower, followed in DEMO_FOLLOWS:
            self.interaction_repo.create(
                kind=InteractionKind.FOLLOW,
                user_id=users[follower].id,
                followed_user_id=users[followed].id,
            )
        for username, content_index, kind in DEMO_CONTENT_INTERACTIONS:
            self.interaction_repo.create(
                kind=kind,
                user_id=users[username].id,
                content_id=contents[content_index].id,
                comment_text="Great read" if kind is InteractionKind.COMMENT else None,
            )
        self.db.commit()
        logger.info("seeded demo data", extra={"users": len(users), "contents": len(contents)})

        try:
            self.search_index.reindex_all(contents)
        except ServiceUnavailableError:
            logger.warning("demo data seeded but not indexed", extra={"index": self.search_index.index_name})
        return True

    def run(self) -> None:
        self.ensure_schema()
        if settings.bootstrap_search_index:
            self.ensure_search_index()
        if settings.seed_demo_data:
            self.seed_demo_data()
