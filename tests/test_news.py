import sys
from pathlib import Path
import random

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / 'src'))

import events  # type: ignore
import news  # type: ignore
from companies import create_company  # type: ignore
from objects import NewsCategory, Severity  # type: ignore


def test_feed_is_newest_first_and_bounded():
    feed = news.create_news_feed(max_items=3)
    for i in range(5):
        news.add_news_item(feed, news.player_action_news(f"Action {i}", "", i))
    assert [item.title for item in feed.items] == ["Action 4", "Action 3", "Action 2"]


def test_crisis_news_maps_critical_to_high():
    event = events.create_big_event("market_crash", Severity.CRITICAL, 0)
    item = news.crisis_news(event, 0)
    assert item.title.startswith("BREAKING: ")
    assert item.severity == "high"
    assert item.category == NewsCategory.CRISIS


def test_market_shift_severity():
    assert news.market_shift_news("steel", 100, 130, 0).severity == "high"
    assert news.market_shift_news("steel", 100, 85, 0).severity == "medium"
    assert news.market_shift_news("steel", 100, 105, 0).severity == "low"
    assert "slides" in news.market_shift_news("steel", 100, 50, 0).title


def test_takeover_and_bankruptcy_items():
    a = create_company("a", "Alpha", "tech", "a")
    b = create_company("b", "Beta", "tech", "b")
    takeover = news.takeover_news(a, b, True, 0)
    assert takeover.title == "Alpha acquires Beta"
    assert takeover.metadata["fire_sale"] is True
    assert news.bankruptcy_news(b, 0).title == "Beta declares bankruptcy"


def test_ambient_news_includes_rumor_after_quiet_period():
    companies = [create_company("a", "Alpha", "tech", "a")]
    calm = news.generate_ambient_news(companies, 0, 10_000, 0, random.Random(1))
    quiet = news.generate_ambient_news(companies, 1, 120_000, 0, random.Random(1))
    assert NewsCategory.RUMOR not in {i.category for i in calm}
    assert NewsCategory.RUMOR in {i.category for i in quiet}
    assert calm[0].category == NewsCategory.ANALYST


def test_ensure_not_empty_fills_empty_feed():
    feed = news.create_news_feed(ambient_interval_ms=30_000)
    added = news.ensure_not_empty(feed, [], 0, 0, 1000, random.Random(0))
    assert added > 0
    assert len(feed.items) == added
    assert feed.last_ambient_at == 1000
    # fresh items: nothing to add
    assert news.ensure_not_empty(feed, [], 0, 0, 2000, random.Random(0)) == 0
    assert news.ensure_not_empty(feed, [], 0, 0, 31_000, random.Random(0)) > 0


def test_queries():
    feed = news.create_news_feed()
    news.add_news_item(feed, news.player_action_news("Built Factory", "", 0))
    news.add_news_item(feed, news.government_news("New tax", "", 1))
    assert len(news.get_recent_news(feed, 1)) == 1
    assert [i.title for i in news.get_news_by_category(feed, NewsCategory.PLAYER_ACTION)] == ["Built Factory"]
    assert [i.title for i in news.get_headlines(feed)] == ["New tax"]
