from datetime import timedelta
from unittest.mock import MagicMock
from uuid import uuid4

import pytest

from app.core.config import PersonalizationWeights
from app.core.errors import NotFoundError, ServiceUnavailableError
from app.models.user_interaction import InteractionKind
from app.services.personalization_service import PersonalizationService


@pytest.fixture
def service(db, search_index) -> PersonalizationService:
    return PersonalizationService(db, search_index=search_index, weights=PersonalizationWeights())


def test_score_is_base_for_user_without_signals(service, make_user, make_content) -> None:
    user = make_user("newcomer")
    creator = make_user("creator")
    content = make_content(creator, categories=["tech"], tags=["ai"])

    assert service.calculate_score(user_id=user.id, content_id=content.id) == 1.0


def test_score_with_half_matching_preferences(service, make_user, make_content) -> None:
    user = make_user("reader", preferences=["tech"])
    creator = make_user("creator")
    content = make_content(creator, categories=["tech", "ai"])

    assert service.calculate_score(user_id=user.id, content_id=content.id) == 2.0


def test_score_with_like_and_share(service, make_user, make_content, add_interaction) -> None:
    user = make_user("reader")
    creator = make_user("creator")
    content = make_content(creator)
    add_interaction(InteractionKind.LIKE, user, content=content)
    add_interaction(InteractionKind.SHARE, user, content=content)

    assert service.calculate_score(user_id=user.id, content_id=content.id) == 9.0


def test_score_counts_comment_and_followed_creator(service, make_user, make_content, add_interaction) -> None:
    user = make_user("reader")
    creator = make_user("creator")
    content = make_content(creator)
    add_interaction(InteractionKind.COMMENT, user, content=content)
    add_interaction(InteractionKind.COMMENT, user, content=content)
    add_interaction(InteractionKind.FOLLOW, user, followed=creator)

    assert service.calculate_score(user_id=user.id, content_id=content.id) == 1.0 + 4.0 + 4.5


def test_score_ignores_interactions_on_other_content(service, make_user, make_content, add_interaction) -> None:
    user = make_user("reader")
    creator = make_user("creator")
    liked = make_content(creator, title="liked")
    other = make_content(creator, title="other")
    add_interaction(InteractionKind.LIKE, user, content=liked)

    assert service.calculate_score(user_id=user.id, content_id=other.id) == 1.0


def test_score_for_unknown_user_or_content_raises_not_found(service, make_user, make_content) -> None:
    user = make_user("reader")
    content = make_content(make_user("creator"))

    with pytest.raises(NotFoundError) as exc:
        service.calculate_score(user_id=uuid4(), content_id=content.id)
    assert exc.value.status_code == 404

    with pytest.raises(NotFoundError):
        service.calculate_score(user_id=user.id, content_id=uuid4())


def test_get_score_wraps_calculated_value(service, make_user, make_content) -> None:
    user = make_user("reader", preferences=["tech"])
    content = make_content(make_user("creator"), categories=["tech"])

    response = service.get_score(user_id=user.id, content_id=content.id)

    assert response.user_id == user.id
    assert response.content_id == content.id
    assert response.score == 3.0


def test_factors_aggregate_weighted_counts(service, make_user, make_content, add_interaction) -> None:
    user = make_user("reader", preferences=["tech", "science"], interests=["python"])
    creator = make_user("creator")
    first = make_content(creator, title="first")
    second = make_content(creator, title="second")
    add_interaction(InteractionKind.SHARE, user, content=first)
    add_interaction(InteractionKind.SHARE, user, content=second)
    add_interaction(InteractionKind.LIKE, user, content=first)
    add_interaction(InteractionKind.COMMENT, user, content=second)
    add_interaction(InteractionKind.FOLLOW, user, followed=creator)

    factors = service.get_factors(user_id=user.id)

    assert factors.user_id == user.id
    assert factors.share_factor == 10.0
    assert factors.like_factor == 3.0
    assert factors.comment_factor == 4.0
    assert factors.follow_factor == 4.5
    assert factors.preference_factor == 4.0
    assert factors.interest_factor == 1.5
    assert factors.active_preferences == ["tech", "science"]
    assert factors.active_interests == ["python"]


def test_factors_for_user_without_signals_are_zero(service, make_user) -> None:
    user = make_user("newcomer")

    factors = service.get_factors(user_id=user.id)

    assert factors.share_factor == 0.0
    assert factors.follow_factor == 0.0
    assert factors.most_influential_follows == []
    assert factors.recent_interactions == []


def test_factors_rank_followed_users_by_influence(service, make_user, make_content, add_interaction) -> None:
    user = make_user("reader")
    quiet = make_user("quiet")
    active = make_user("active")
    content = make_content(quiet)
    add_interaction(InteractionKind.FOLLOW, user, followed=quiet)
    add_interaction(InteractionKind.FOLLOW, user, followed=active)
    add_interaction(InteractionKind.SHARE, active, content=content)
    add_interaction(InteractionKind.LIKE, active, content=content)
    add_interaction(InteractionKind.COMMENT, active, content=content)

    factors = service.get_factors(user_id=user.id)

    follows = factors.most_influential_follows
    assert [follow.username for follow in follows] == ["active", "quiet"]
    assert follows[0].influence_score == 4.5 + (5.0 + 4.0 + 3.0) / 10
    assert follows[1].influence_score == 4.5


def test_factors_keep_at_most_five_influential_follows(service, make_user, add_interaction) -> None:
    user = make_user("reader")
    for index in range(7):
        add_interaction(InteractionKind.FOLLOW, user, followed=make_user(f"followed{index}"))

    factors = service.get_factors(user_id=user.id)

    assert len(factors.most_influential_follows) == 5
    scores = [follow.influence_score for follow in factors.most_influential_follows]
    assert scores == sorted(scores, reverse=True)


def test_factors_list_recent_significant_interactions(
    service, make_user, make_content, add_interaction, now
) -> None:
    user = make_user("reader")
    creator = make_user("creator")
    contents = [make_content(creator, title=f"post{i}", age=timedelta(days=i)) for i in range(5)]
    for index, content in enumerate(contents):
        add_interaction(InteractionKind.LIKE, user, content=content, created_at=now - timedelta(hours=index))
    add_interaction(InteractionKind.SHARE, user, content=contents[4], created_at=now - timedelta(days=10))
    add_interaction(InteractionKind.COMMENT, user, content=contents[3], created_at=now - timedelta(days=9))

    factors = service.get_factors(user_id=user.id)

    recent = factors.recent_interactions
    assert len(recent) == 5
    assert [(item.interaction_type, item.content_title) for item in recent] == [
        ("share", "post4"),
        ("comment", "post3"),
        ("like", "post0"),
        ("like", "post1"),
        ("like", "post2"),
    ]
    assert [item.influence_score for item in recent] == [5.0, 4.0, 3.0, 3.0, 3.0]


def test_factors_for_unknown_user_raise_not_found(service) -> None:
    with pytest.raises(NotFoundError):
        service.get_factors(user_id=uuid4())


def test_feed_ranks_preferred_content_and_attaches_scores(service, make_user, make_content, now) -> None:
    user = make_user("reader", preferences=["tech"])
    creator = make_user("creator")
    fresh = make_content(creator, title="fresh", categories=["tech"])
    stale = make_content(creator, title="stale", categories=["tech"], age=timedelta(days=14))
    make_content(creator, title="sports", categories=["sports"])

    feed = service.get_personalized_feed(user_id=user.id, page=1, page_size=10, now=now)

    assert [item.id for item in feed.items] == [fresh.id, stale.id]
    assert [item.personalization_score for item in feed.items] == [3.0, 3.0]
    assert feed.items[0].creator_username == "creator"


def test_feed_without_signals_falls_back_to_recency(service, search_index, make_user, make_content, now) -> None:
    user = make_user("newcomer")
    creator = make_user("creator")
    old = make_content(creator, title="old", categories=["sports"], age=timedelta(days=20))
    new = make_content(creator, title="new", categories=["tech"], age=timedelta(hours=1))
    middle = make_content(creator, title="middle", tags=["ai"], age=timedelta(days=5))

    feed = service.get_personalized_feed(user_id=user.id, page=1, page_size=10, now=now)

    assert [item.id for item in feed.items] == [new.id, middle.id, old.id]
    assert all(item.personalization_score == 1.0 for item in feed.items)
    assert search_index.search_calls[-1]["query"]["function_score"]["query"] == {"match_all": {}}


def test_feed_includes_followed_creators_and_boosts_them(
    service, make_user, make_content, add_interaction, now
) -> None:
    user = make_user("reader", interests=["python"])
    followed = make_user("followed")
    stranger = make_user("stranger")
    add_interaction(InteractionKind.FOLLOW, user, followed=followed)
    from_followed = make_content(followed, title="followed post", age=timedelta(days=1))
    python_post = make_content(stranger, title="python post", tags=["python"], age=timedelta(days=1))
    make_content(stranger, title="unrelated", tags=["cooking"])

    feed = service.get_personalized_feed(user_id=user.id, page=1, page_size=10, now=now)

    ids = [item.id for item in feed.items]
    assert set(ids) == {from_followed.id, python_post.id}
    scores = {item.id: item.personalization_score for item in feed.items}
    assert scores[from_followed.id] == 1.0 + 4.5
    assert scores[python_post.id] == 1.0 + 1.5


def test_feed_preserves_index_order_and_drops_missing_content(service, search_index, make_user, make_content) -> None:
    user = make_user("reader")
    creator = make_user("creator")
    first = make_content(creator, title="first", indexed=False)
    second = make_content(creator, title="second", indexed=False)
    search_index.search_ids = MagicMock(
        return_value=[str(second.id), str(uuid4()), "not-a-uuid", str(first.id), str(second.id)]
    )

    feed = service.get_personalized_feed(user_id=user.id)

    assert [item.id for item in feed.items] == [second.id, first.id]
    kwargs = search_index.search_ids.call_args.kwargs
    assert kwargs["offset"] == 0
    assert kwargs["size"] == 20


def test_feed_pages_are_disjoint_under_equal_scores(service, make_user, make_content, now) -> None:
    user = make_user("newcomer")
    creator = make_user("creator")
    created = [make_content(creator, title=f"post{i}") for i in range(25)]

    first_page = service.get_personalized_feed(user_id=user.id, page=1, page_size=10, now=now)
    second_page = service.get_personalized_feed(user_id=user.id, page=2, page_size=10, now=now)

    first_ids = [item.id for item in first_page.items]
    second_ids = [item.id for item in second_page.items]
    assert len(first_ids) == 10
    assert len(second_ids) == 10
    assert not set(first_ids) & set(second_ids)
    expected = sorted((content.id for content in created), key=str)[:20]
    assert first_ids + second_ids == expected


def test_feed_surfaces_search_failure(service, search_index, make_user) -> None:
    user = make_user("reader", preferences=["tech"])
    search_index.fail_search = True

    with pytest.raises(ServiceUnavailableError) as exc:
        service.get_personalized_feed(user_id=user.id)

    assert exc.value.status_code == 503


def test_feed_for_unknown_user_raises_not_found(service, search_index) -> None:
    with pytest.raises(NotFoundError):
        service.get_personalized_feed(user_id=uuid4())

    assert search_index.search_calls == []
