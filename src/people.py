"""Public sentiment and retail investor mood, all scalars clamped to 0..100."""
from typing import Iterable, NamedTuple

import objects as G
from objects import clamp


class SentimentFactors(NamedTuple):
    corporate_scandal: bool = False
    monopoly_reveal: bool = False
    environmental_disaster: bool = False
    economic_boom: bool = False
    economic_crisis: bool = False
    nationalist_policy: bool = False
    globalist_policy: bool = False


class InvestorFactors(NamedTuple):
    market_crash: bool = False
    market_boom: bool = False
    meme_stock_event: bool = False
    hyped_industries: Iterable[str] = ()


def create_people_state() -> G._PeopleState:
    return G._PeopleState()


def update_sentiment(people: G._PeopleState, factors: SentimentFactors) -> None:
    s = people.sentiment
    if factors.corporate_scandal:
        s.trust_in_corporations -= 10
        s.anger_at_monopolies += 5
    if factors.monopoly_reveal:
        s.anger_at_monopolies += 15
        s.trust_in_corporations -= 5
    if factors.environmental_disaster:
        s.environmental_concern += 20
        s.trust_in_corporations -= 5
    if factors.economic_boom:
        s.economic_optimism += 10
        s.trust_in_corporations += 5
    if factors.economic_crisis:
        s.economic_optimism -= 20
        s.trust_in_corporations -= 10
    if factors.nationalist_policy:
        s.nationalism += 10
    if factors.globalist_policy:
        s.nationalism -= 10
    s.trust_in_corporations = clamp(s.trust_in_corporations)
    s.anger_at_monopolies = clamp(s.anger_at_monopolies)
    s.environmental_concern = clamp(s.environmental_concern)
    s.economic_optimism = clamp(s.economic_optimism)
    s.nationalism = clamp(s.nationalism)


def update_retail_investors(people: G._PeopleState, factors: InvestorFactors) -> None:
    r = people.retail_investors
    if factors.market_crash:
        r.risk_appetite -= 20
        r.meme_stock_mania -= 10
    if factors.market_boom:
        r.risk_appetite += 15
        r.meme_stock_mania += 5
    if factors.meme_stock_event:
        r.meme_stock_mania += 30
        r.risk_appetite += 10
    for industry in factors.hyped_industries:
        r.favorite_industries[industry] = min(100.0, r.favorite_industries.get(industry, 50) + 20)
    r.risk_appetite = clamp(r.risk_appetite)
    r.meme_stock_mania = clamp(r.meme_stock_mania)


def adjust_industry_enthusiasm(people: G._PeopleState, industry: str, change: float) -> None:
    r = people.retail_investors
    r.favorite_industries[industry] = clamp(r.favorite_industries.get(industry, 50) + change)


def adjust_trust(people: G._PeopleState, change: float) -> None:
    s = people.sentiment
    s.trust_in_corporations = clamp(s.trust_in_corporations + change)


def get_sentiment_reputation_impact(people: G._PeopleState, industry: str) -> int:
    impact = (people.sentiment.trust_in_corporations - 50) / 50 * 5
    enthusiasm = people.retail_investors.favorite_industries.get(industry, 50)
    impact += (enthusiasm - 50) / 50 * 3
    if industry == "energy":
        impact -= (people.sentiment.environmental_concern - 50) / 50 * 5
    return round(impact)


def get_sentiment_score(people: G._PeopleState) -> float:
    """Public mood in [-1, 1], fed into share price updates."""
    s = people.sentiment
    return ((s.trust_in_corporations - 50) + (s.economic_optimism - 50)) / 100
