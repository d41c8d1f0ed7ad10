"""
Tests for the dream query engine: filters, sort and pagination.
"""
from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from app.domain.dream_operations import DreamOperations
from app.models.database.dreams import DreamCreate
from app.models.dto.dreams import DreamFilters, PageRequest


BASE = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


def _add(session, owner_id, text, days=0, **fields):
    dream = DreamOperations.create(session, owner_id, DreamCreate(dream_text=text, date=BASE + timedelta(days=days), **fields))
    dream.created_at = BASE + timedelta(days=days)
    return dream


@pytest.fixture
def journal(session, user, other_user):
    dreams = {
        "flying": _add(session, user.id, "I was flying over the sea", days=0, title="Sky", tags=["flying", "sea"], mood="happy", lucidity=4, is_favorite=True),
        "teeth": _add(session, user.id, "My teeth fell out", days=1, title="Teeth", tags=["body"], mood="anxious", lucidity=1),
        "exam": _add(session, user.id, "An exam I never studied for", days=2, title="Exam", tags=["school"], mood="anxious"),
        "percent": _add(session, user.id, "100% certain the door was locked", days=3, title="Door", story="A tale of a door"),
        "ocean": _add(session, user.id, "Swimming in a warm ocean", days=4, title="Ocean", tags=["sea"], mood="peaceful", is_favorite=True),
    }
    _add(session, other_user.id, "Someone else flying", days=0, tags=["flying"], mood="happy")
    session.commit()
    return dreams


def _query(session, owner_id, page=None, **filters):
    return DreamOperations.query(session, owner_id, DreamFilters(**filters), page or PageRequest())


def _texts(page):
    return [d.dream_text for d in page.dreams]


def test_anonymous_caller_gets_empty_page(session, journal):
    page = DreamOperations.query(session, None, DreamFilters(), PageRequest())

    assert page.dreams == []
    assert page.total == 0
    assert page.has_more is False


def test_default_listing_is_owner_scoped_newest_first(session, user, journal):
    page = _query(session, user.id)

    assert page.total == 5
    assert _texts(page)[0] == "Swimming in a warm ocean"
    assert _texts(page)[-1] == "I was flying over the sea"
    assert "Someone else flying" not in _texts(page)


def test_favorites_only(session, user, journal):
    page = _query(session, user.id, favorites_only=True)

    assert page.total == 2
    assert all(d.is_favorite for d in page.dreams)


def test_pagination_totals_and_has_more(session, user, journal):
    first = _query(session, user.id, page=PageRequest(page=1, size=2))
    last = _query(session, user.id, page=PageRequest(page=3, size=2))
    beyond = _query(session, user.id, page=PageRequest(page=4, size=2))

    assert (len(first.dreams), first.total, first.has_more) == (2, 5, True)
    assert (len(last.dreams), last.total, last.has_more) == (1, 5, False)
    assert (beyond.dreams, beyond.total, beyond.has_more) == ([], 5, False)


def test_pages_do_not_overlap(session, user, journal):
    seen = []
    for number in (1, 2, 3):
        seen += [d.id for d in _query(session, user.id, page=PageRequest(page=number, size=2)).dreams]

    assert len(seen) == len(set(seen)) == 5


def test_search_is_case_insensitive_over_text_story_and_title(session, user, journal):
    assert _texts(_query(session, user.id, search="FLYING")) == ["I was flying over the sea"]
    assert _texts(_query(session, user.id, search="tale of")) == ["100% certain the door was locked"]
    assert _texts(_query(session, user.id, search="exam")) == ["An exam I never studied for"]


def test_search_wildcards_match_literally(session, user, journal):
    assert _texts(_query(session, user.id, search="100%")) == ["100% certain the door was locked"]
    assert _query(session, user.id, search="%").total == 1
    assert _query(session, user.id, search="_").total == 0


def test_blank_search_is_ignored(session, user, journal):
    assert _query(session, user.id, search="   ").total == 5


def test_tags_match_any(session, user, journal):
    page = _query(session, user.id, page=PageRequest(order_by="date", order="asc"), tags=["sea", "school"])

    assert _texts(page) == [
        "I was flying over the sea",
        "An exam I never studied for",
        "Swimming in a warm ocean",
    ]


def test_date_bounds_are_inclusive(session, user, journal):
    page = _query(
        session,
        user.id,
        start_date=BASE + timedelta(days=1),
        end_date=BASE + timedelta(days=3),
    )
    assert page.total == 3


def test_mood_filter(session, user, journal):
    assert _query(session, user.id, mood="anxious").total == 2


def test_filters_are_anded(session, user, journal):
    page = _query(session, user.id, mood="anxious", tags=["body"])
    assert _texts(page) == ["My teeth fell out"]


def test_sort_by_title_ascending(session, user, journal):
    page = _query(session, user.id, page=PageRequest(order_by="title", order="asc"))
    assert [d.title for d in page.dreams] == ["Door", "Exam", "Ocean", "Sky", "Teeth"]


def test_unknown_sort_field_falls_back_to_created_at(session, user, journal):
    fallback = _query(session, user.id, page=PageRequest(order_by="password; DROP TABLE dreams"))
    default = _query(session, user.id)

    assert [d.id for d in fallback.dreams] == [d.id for d in default.dreams]


def test_sort_accepts_camel_case_field_names(session, user, journal):
    page = _query(session, user.id, page=PageRequest(order_by="createdAt", order="asc"))
    assert _texts(page)[0] == "I was flying over the sea"


def test_sort_options_are_not_filters():
    with pytest.raises(ValidationError):
        DreamFilters(tags=["sea"], order_by="date")


def test_page_carries_analysis_counts(session, user, journal):
    DreamOperations.create_analysis(session, user.id, journal["exam"].id, "one", [], [])
    DreamOperations.create_analysis(session, user.id, journal["exam"].id, "two", [], [])
    session.commit()

    page = _query(session, user.id, mood="anxious")
    counts = {d.dream_text: d.analysis_count for d in page.dreams}

    assert counts == {"An exam I never studied for": 2, "My teeth fell out": 0}
