"""
News feed: builders for every kind of headline, plus ambient filler so the
feed never runs dry between events. Items are stored newest first.
"""
import random
from typing import Iterable, List, Optional

import objects as G
from objects import NewsCategory

_CRISIS_SEVERITY = {"low": "low", "medium": "medium", "high": "high", "critical": "high"}

_ANALYST_TEMPLATES = {
    1: ("Market Analysts Weigh In", "Analysts report bullish momentum across sectors as investors pile in."),
    0: ("Economic Outlook", "Analysts expect steady conditions with little movement in the weeks ahead."),
    -1: ("Market Analysts Weigh In", "Analysts warn of a bearish turn as investors grow cautious."),
}
_RUMORS = [
    ("Insider Leak: Merger Talks?", "Sources hint at closed-door merger discussions between major players."),
    ("Whispers of Regulatory Changes", "Lobbyists report that new regulations may be on the table."),
    ("Rumor: Major Investment", "An unnamed firm is said to be preparing a major capital push."),
]
_COMPANY_TEMPLATES = [
    ("{name} Expands Operations", "{name} is reportedly scaling up production."),
    ("{name} Reports Strong Quarter", "{name} posts results ahead of expectations."),
    ("{name} Announces Leadership Changes", "{name} reshuffles its executive team."),
]
_SENTIMENT_TEMPLATES = [
    ("Retail Investor Sentiment Shifts", "Retail traders are rotating between sectors."),
    ("Public Trust in Corporations", "A new poll measures public attitudes towards big business."),
]
RUMOR_QUIET_MS = 60_000


def create_news_feed(max_items: int = 100, ambient_interval_ms: float = 30_000) -> G._NewsFeed:
    return G._NewsFeed(max_items=max_items, ambient_interval_ms=ambient_interval_ms)


def add_news_item(feed: G._NewsFeed, item: G.NewsItem) -> G.NewsItem:
    feed.items.insert(0, item)
    del feed.items[feed.max_items:]
    return item


def _item(category: NewsCategory, title: str, content: str, now: float,
          severity: G.NewsSeverity = "low", related_ids: Iterable[str] = (), **metadata) -> G.NewsItem:
    return G.NewsItem(
        category=category,
        title=title,
        content=content,
        timestamp=now,
        severity=severity,
        related_ids=list(related_ids),
        metadata=metadata,
    )

# -----------------------------------
# Generators
# -----------------------------------

def player_action_news(action: str, details: str, now: float) -> G.NewsItem:
    return _item(NewsCategory.PLAYER_ACTION, action, details, now, related_ids=[G.PLAYER_ID])


def ai_action_news(company: G._CompanyInstance, action: str, details: str, now: float) -> G.NewsItem:
    return _item(NewsCategory.AI_ACTION, f"{company.name}: {action}", details, now, related_ids=[company.id])


def market_shift_news(resource_type: str, old_price: float, new_price: float, now: float) -> G.NewsItem:
    change = (new_price - old_price) / old_price * 100 if old_price else 0.0
    direction = "surges" if change > 0 else "slides"
    severity: G.NewsSeverity = "high" if abs(change) > 25 else "medium" if abs(change) > 10 else "low"
    return _item(
        NewsCategory.MARKET_SHIFT,
        f"{resource_type.replace('_', ' ').title()} {direction} {abs(change):.0f}%",
        f"Price moved from {old_price:.0f} to {new_price:.0f}.",
        now,
        severity=severity,
        resource=resource_type,
    )


def crisis_news(event: G.BigEvent, now: float) -> G.NewsItem:
    return _item(
        NewsCategory.CRISIS,
        f"BREAKING: {event.title}",
        event.description,
        now,
        severity=_CRISIS_SEVERITY[event.severity.value],
        related_ids=[event.id],
        event_type=event.type,
    )


def alliance_news(alliance_name: str, action: str, member_names: List[str], now: float) -> G.NewsItem:
    return _item(NewsCategory.ALLIANCE, f"{alliance_name}: {action}", ", ".join(member_names), now,
                 severity="medium")


def betrayal_news(traitor_name: str, alliance_name: str, now: float) -> G.NewsItem:
    return _item(NewsCategory.BETRAYAL, f"{traitor_name} betrays {alliance_name}",
                 f"{traitor_name} walked off with a share of the pooled resources.", now, severity="high")


def takeover_news(acquirer: G._CompanyInstance, target: G._CompanyInstance, fire_sale: bool, now: float) -> G.NewsItem:
    content = (f"{target.name} was sold at a distressed valuation." if fire_sale
               else f"{acquirer.name} takes control of {target.name}.")
    return _item(NewsCategory.TAKEOVER, f"{acquirer.name} acquires {target.name}", content, now,
                 severity="high", related_ids=[acquirer.id, target.id], fire_sale=fire_sale)


def bankruptcy_news(company: G._CompanyInstance, now: float) -> G.NewsItem:
    return _item(NewsCategory.HEADLINE, f"{company.name} declares bankruptcy",
                 f"After a prolonged period of distress, {company.name} has been liquidated.",
                 now, severity="high", related_ids=[company.id])


def scandal_news(company: G._CompanyInstance, description: str, now: float) -> G.NewsItem:
    return _item(NewsCategory.SCANDAL, f"Scandal at {company.name}", description, now,
                 severity="medium", related_ids=[company.id])


def government_news(title: str, content: str, now: float, related_ids: Iterable[str] = ()) -> G.NewsItem:
    return _item(NewsCategory.GOVERNMENT, title, content, now, severity="medium", related_ids=related_ids)


def generate_ambient_news(companies: List[G._CompanyInstance], market_trend: int,
                          since_last_event_ms: float, now: float, rng: random.Random) -> List[G.NewsItem]:
    items = []
    title, content = _ANALYST_TEMPLATES[max(-1, min(1, market_trend))]
    items.append(_item(NewsCategory.ANALYST, title, content, now))
    if since_last_event_ms > RUMOR_QUIET_MS:
        title, content = rng.choice(_RUMORS)
        items.append(_item(NewsCategory.RUMOR, title, content, now))
    if companies:
        company = rng.choice(companies)
        title, content = rng.choice(_COMPANY_TEMPLATES)
        items.append(_item(NewsCategory.AMBIENT, title.format(name=company.name),
                           content.format(name=company.name), now, related_ids=[company.id]))
    title, content = rng.choice(_SENTIMENT_TEMPLATES)
    items.append(_item(NewsCategory.SENTIMENT, title, content, now))
    return items


def ensure_not_empty(feed: G._NewsFeed, companies: List[G._CompanyInstance], market_trend: int,
                     since_last_event_ms: float, now: float, rng: random.Random) -> int:
    """Top the feed up with ambient items when it is empty or has gone stale."""
    if feed.items and now - feed.items[0].timestamp < feed.ambient_interval_ms:
        return 0
    generated = generate_ambient_news(companies, market_trend, since_last_event_ms, now, rng)
    for item in generated:
        add_news_item(feed, item)
    feed.last_ambient_at = now
    return len(generated)

# -----------------------------------
# Queries
# -----------------------------------

def get_recent_news(feed: G._NewsFeed, count: int = 10) -> List[G.NewsItem]:
    return feed.items[:count]


def get_news_by_category(feed: G._NewsFeed, category: NewsCategory, count: Optional[int] = None) -> List[G.NewsItem]:
    items = [i for i in feed.items if i.category == category]
    return items if count is None else items[:count]


def get_headlines(feed: G._NewsFeed, count: int = 5) -> List[G.NewsItem]:
    """Medium and high severity items only."""
    return [i for i in feed.items if i.severity != "low"][:count]
