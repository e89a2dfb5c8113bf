"""
The action surface shared by the player and the AI companies.

Every method validates all of its preconditions before the first mutation
and reports success as a bool; a failed action leaves the world untouched.
Phase gating and action points are the Simulation's concern, not this one's.
"""
from __future__ import annotations
import logging
import random
from typing import Callable, Dict, Literal, Mapping, Optional

import objects as G
import alliances
import departments
import markets
import media
import news
import politics
from assets import create_asset, get_build_cost, get_upgrade_cost, upgrade_in_place
from companies import buy_shares, execute_buyout, get_ownership_percentage, sell_shares
from config import SimulationConfig
from objects import MAX_ASSET_LEVEL, clamp, get_instance_id
from people import adjust_trust
from register import AssetTypeDefs, TerritoryDefs

logger = logging.getLogger(__name__)

HEALTHY_BUYOUT_PREMIUM = 1.3
DISTRESSED_BUYOUT_PREMIUM = 1.1
SHUTDOWN_REPUTATION_COST = 2
SABOTAGE_REPUTATION_HIT = 5
LOBBYING_PER_POINT = 1000
MANIPULATION_BASE_COST = 50_000
MANIPULATION_DURATION_MS = 60_000
CONTRIBUTION_LOYALTY_GAIN = 5


class Toolset:
    def __init__(self, world: G._WorldState, now_provider: Callable[[], float],
                 config: SimulationConfig, rng: random.Random):
        self.world = world
        self.now = now_provider
        self.config = config
        self.random = rng

    def _company(self, company_id: str) -> Optional[G._CompanyInstance]:
        return self.world.companies.get(company_id)

    def _owned_asset(self, company: G._CompanyInstance, asset_id: str) -> Optional[G._AssetInstance]:
        if asset_id not in company.assets:
            return None
        return self.world.assets.get(asset_id)

    def _announce(self, company: G._CompanyInstance, action: str, details: str = "") -> None:
        now = self.now()
        if company.is_player:
            item = news.player_action_news(action, details, now)
        else:
            item = news.ai_action_news(company, action, details, now)
        news.add_news_item(self.world.news, item)

    def prices(self) -> Dict[str, float]:
        return markets.get_prices(self.world.market)

    # ---- Assets ----
    def build_asset(self, company_id: str, asset_type: str, level: int = 1) -> bool:
        company = self._company(company_id)
        if company is None or asset_type not in AssetTypeDefs or not 1 <= level <= MAX_ASSET_LEVEL:
            return False
        cost = get_build_cost(asset_type, level)
        if company.cash < cost:
            return False
        asset = create_asset(asset_type, company_id, level, now=self.now())
        company.cash -= cost
        self.world.assets[asset.id] = asset
        company.assets.append(asset.id)
        self._announce(company, f"Built {AssetTypeDefs[asset_type].display_name}", f"Level {level} for {cost:,.0f}")
        return True

    def upgrade_asset(self, company_id: str, asset_id: str) -> bool:
        company = self._company(company_id)
        asset = self._owned_asset(company, asset_id) if company else None
        if asset is None or asset.level >= MAX_ASSET_LEVEL:
            return False
        cost = get_upgrade_cost(asset)
        if company.cash < cost:
            return False
        company.cash -= cost
        upgrade_in_place(asset)
        self._announce(company, f"Upgraded {asset.type}", f"Now level {asset.level}")
        return True

    def shutdown_asset(self, company_id: str, asset_id: str) -> bool:
        company = self._company(company_id)
        asset = self._owned_asset(company, asset_id) if company else None
        if asset is None:
            return False
        company.assets.remove(asset_id)
        del self.world.assets[asset_id]
        company.reputation = clamp(company.reputation - SHUTDOWN_REPUTATION_COST)
        self._announce(company, f"Shut down {asset.type}")
        return True

    # ---- Finance ----
    def max_loan(self, company: G._CompanyInstance) -> float:
        return min(company.cash * self.config.loan_cash_multiple, self.config.max_loan)

    def take_loan(self, company_id: str, amount: float) -> bool:
        company = self._company(company_id)
        if company is None or amount <= 0 or amount > self.max_loan(company):
            return False
        company.cash += amount
        company.debt += amount
        return True

    def repay_loan(self, company_id: str, amount: float) -> bool:
        company = self._company(company_id)
        if company is None or amount <= 0 or amount > company.debt or amount > company.cash:
            return False
        company.cash -= amount
        company.debt -= amount
        return True

    # ---- Equity ----
    def buy_shares(self, buyer_id: str, target_id: str, amount: int) -> bool:
        buyer, target = self._company(buyer_id), self._company(target_id)
        if buyer is None or target is None or buyer_id == target_id:
            return False
        if amount <= 0 or amount > target.free_float:
            return False
        if buyer.cash < amount * target.share_price:
            return False
        cost, ok = buy_shares(target, buyer_id, amount)
        if ok:
            buyer.cash -= cost
        return ok

    def sell_shares(self, holder_id: str, target_id: str, amount: int) -> bool:
        holder, target = self._company(holder_id), self._company(target_id)
        if holder is None or target is None:
            return False
        proceeds, ok = sell_shares(target, holder_id, amount)
        if ok:
            holder.cash += proceeds
        return ok

    def buyout_premium(self, target_id: str) -> float:
        return DISTRESSED_BUYOUT_PREMIUM if self.world.is_distressed(target_id) else HEALTHY_BUYOUT_PREMIUM

    def buyout_cost(self, target_id: str) -> float:
        target = self._company(target_id)
        if target is None:
            return 0.0
        asset_value = sum(a.build_cost for a in self.world.company_assets(target_id))
        return max(0.0, (target.market_cap + asset_value - target.debt) * self.buyout_premium(target_id))

    def attempt_buyout(self, acquirer_id: str, target_id: str) -> bool:
        acquirer, target = self._company(acquirer_id), self._company(target_id)
        if acquirer is None or target is None or acquirer_id == target_id:
            return False
        if target.parent_company_id == acquirer_id:
            return False
        cost = self.buyout_cost(target_id)
        if get_ownership_percentage(target, acquirer_id) <= 50 and acquirer.cash < cost:
            return False
        combined_share = (acquirer.market_share.get(target.industry, 0)
                          + target.market_share.get(target.industry, 0))
        if politics.would_block_merger(self.world.government, acquirer.market_cap,
                                       target.market_cap, combined_share):
            logger.info("Merger of %s and %s blocked by regulators", acquirer.name, target.name)
            return False

        fire_sale = self.world.is_distressed(target_id)
        premium = self.buyout_premium(target_id)
        now = self.now()
        acquirer.cash = max(0.0, acquirer.cash - cost + target.cash)
        target.cash = 0
        execute_buyout(target, acquirer_id, acquirer.name, premium)
        for asset_id in target.assets:
            asset = self.world.assets.pop(asset_id, None)
            if asset is None:
                continue
            asset.id = get_instance_id(f"asset-{acquirer_id}-{asset.type}")
            self.world.assets[asset.id] = asset
            acquirer.assets.append(asset.id)
        target.assets = []
        if fire_sale:
            self.world.distressed_companies.remove(target_id)
        self.world.company_distress_ticks.pop(target_id, None)
        news.add_news_item(self.world.news, news.takeover_news(acquirer, target, fire_sale, now))
        return True

    # ---- Resources ----
    def trade_resource(self, company_id: str, resource_type: str, amount: float,
                       target_id: Optional[str] = None) -> bool:
        """Sell held resources at the market price, to `target_id` or to the market."""
        company = self._company(company_id)
        if company is None or resource_type not in self.world.market.prices or amount <= 0:
            return False
        if company.resources.get(resource_type, 0) < amount:
            return False
        target = None
        if target_id is not None:
            target = self._company(target_id)
            if target is None or target_id == company_id:
                return False
        value = amount * markets.get_price(self.world.market, resource_type)
        company.resources[resource_type] -= amount
        company.cash += value
        if target is not None:
            target.cash = max(0.0, target.cash - value)
            target.resources[resource_type] = target.resources.get(resource_type, 0) + amount
        else:
            markets.update_supply_demand(self.world.market, resource_type, amount, 0)
        return True

    def buy_resource(self, company_id: str, resource_type: str, amount: float) -> bool:
        company = self._company(company_id)
        if company is None or resource_type not in self.world.market.prices or amount <= 0:
            return False
        cost = amount * markets.get_price(self.world.market, resource_type)
        if company.cash < cost:
            return False
        company.cash -= cost
        company.resources[resource_type] = company.resources.get(resource_type, 0) + amount
        markets.update_supply_demand(self.world.market, resource_type, 0, amount)
        return True

    # ---- Operations ----
    def upgrade_department(self, company_id: str, department: str) -> bool:
        company = self._company(company_id)
        if company is None or not departments.can_upgrade(company, department):
            return False
        cost = departments.upgrade(company, department)
        self._announce(company, f"Expanded {department} department",
                       f"Level {company.departments[department]} for {cost:,.0f}")
        return True

    def claim_territory(self, company_id: str, territory_id: str) -> bool:
        company = self._company(company_id)
        territory = TerritoryDefs.get(territory_id)
        if company is None or territory is None:
            return False
        if territory_id not in self.world.territories or self.world.territories[territory_id] is not None:
            return False
        if company.cash < territory.claim_cost:
            return False
        company.cash -= territory.claim_cost
        self.world.territories[territory_id] = company_id
        company.territories_owned.append(territory_id)
        self._announce(company, f"Claimed {territory.name}")
        return True

    # ---- Influence ----
    def lobby(self, company_id: str, amount: float) -> bool:
        company = self._company(company_id)
        if company is None or amount <= 0 or company.cash < amount:
            return False
        points = amount / LOBBYING_PER_POINT
        company.cash -= amount
        company.lobbying_power = clamp(company.lobbying_power + points)
        politics.update_lobbying_influence(self.world.government, company_id, points, self.now())
        return True

    def acquire_media_outlet(self, company_id: str, outlet_id: str) -> bool:
        company = self._company(company_id)
        outlet = self.world.media.outlets.get(outlet_id)
        if company is None or outlet is None or not outlet.for_sale or company.cash < outlet.price:
            return False
        media.acquire_media_outlet(self.world.media, outlet_id, company_id)
        company.cash -= outlet.price
        company.media_influence = media.get_company_media_influence(self.world.media, company_id)
        self._announce(company, f"Acquired {outlet.name}")
        return True

    def launch_pr_campaign(self, company_id: str, campaign_type: media.CampaignType, cost: float) -> bool:
        company = self._company(company_id)
        if company is None or cost <= 0 or company.cash < cost:
            return False
        if campaign_type not in media.CAMPAIGN_TYPES:
            return False
        now = self.now()
        campaign = media.plan_pr_campaign(company, campaign_type, cost, now)
        company.cash -= cost
        if media.check_campaign_backfire(campaign, self.random):
            campaign.backfired = True
            company.reputation = clamp(company.reputation - campaign.reputation_change)
            adjust_trust(self.world.people, -campaign.public_trust_change)
            news.add_news_item(self.world.news, news.scandal_news(
                company, f"A {campaign_type.replace('_', ' ')} campaign by {company.name} backfired.", now))
        else:
            company.reputation = clamp(company.reputation + campaign.reputation_change)
            if campaign.stock_price_boost:
                company.share_price *= 1 + campaign.stock_price_boost
                company.market_cap = company.share_price * company.total_shares
            adjust_trust(self.world.people, campaign.public_trust_change)
        media.launch_pr_campaign(self.world.media, campaign)
        return True

    def manipulate_market(self, company_id: str, resource_type: str, direction: Literal["up", "down"],
                          strength: float, duration_ms: float = MANIPULATION_DURATION_MS,
                          cost: Optional[float] = None) -> bool:
        company = self._company(company_id)
        if company is None or resource_type not in self.world.market.prices or direction not in ("up", "down"):
            return False
        strength = max(0.0, min(1.0, strength))
        if cost is None:
            cost = MANIPULATION_BASE_COST * strength
        if strength <= 0 or company.cash < cost:
            return False
        company.cash -= cost
        markets.manipulate_market(self.world.market, resource_type, direction, strength,
                                  duration_ms, self.now(), company_id)
        self._announce(company, f"Moved the {resource_type} market {direction}")
        return True

    def sabotage(self, company_id: str, target_id: str, cost: float) -> bool:
        company, target = self._company(company_id), self._company(target_id)
        if company is None or target is None or company_id == target_id or company.cash < cost:
            return False
        company.cash -= cost
        target.reputation = clamp(target.reputation - SABOTAGE_REPUTATION_HIT)
        news.add_news_item(self.world.news, news.scandal_news(
            target, f"A smear campaign hits {target.name}.", self.now()))
        return True

    # ---- Alliances ----
    def _alliance_of(self, company: G._CompanyInstance) -> Optional[G._Alliance]:
        if company.alliance_id is None:
            return None
        return self.world.alliances.get(company.alliance_id)

    def form_alliance(self, company_id: str, name: str) -> bool:
        company = self._company(company_id)
        if company is None or self._alliance_of(company) is not None:
            return False
        now = self.now()
        alliance = alliances.create_alliance(company_id, company.name, name, now, leader_is_ai=not company.is_player)
        self.world.alliances[alliance.id] = alliance
        company.alliance_id = alliance.id
        news.add_news_item(self.world.news, news.alliance_news(name, "formed", [company.name], now))
        return True

    def invite_to_alliance(self, inviter_id: str, invitee_id: str) -> bool:
        inviter, invitee = self._company(inviter_id), self._company(invitee_id)
        if inviter is None or invitee is None or invitee.alliance_id is not None:
            return False
        alliance = self._alliance_of(inviter)
        if alliance is None:
            return False
        now = self.now()
        joined = alliances.invite_to_alliance(alliance, inviter_id, invitee_id, invitee.name,
                                              not invitee.is_player, now, self.random)
        if joined:
            invitee.alliance_id = alliance.id
            news.add_news_item(self.world.news, news.alliance_news(alliance.name, "new member", [invitee.name], now))
        return joined

    def _drop_membership(self, company: G._CompanyInstance, alliance: G._Alliance) -> None:
        company.alliance_id = None
        if not alliance.members:
            del self.world.alliances[alliance.id]

    def leave_alliance(self, company_id: str) -> bool:
        company = self._company(company_id)
        alliance = self._alliance_of(company) if company else None
        if alliance is None:
            return False
        alliances.leave_alliance(alliance, company_id)
        self._drop_membership(company, alliance)
        return True

    def betray_alliance(self, company_id: str) -> bool:
        company = self._company(company_id)
        alliance = self._alliance_of(company) if company else None
        if alliance is None:
            return False
        stolen = alliances.betray_alliance(alliance, company_id)
        for res, amount in stolen.items():
            company.resources[res] = company.resources.get(res, 0) + amount
        self._drop_membership(company, alliance)
        news.add_news_item(self.world.news, news.betrayal_news(company.name, alliance.name, self.now()))
        return True

    def expel_from_alliance(self, leader_id: str, member_id: str) -> bool:
        leader, member = self._company(leader_id), self._company(member_id)
        if leader is None or member is None:
            return False
        alliance = self._alliance_of(leader)
        if alliance is None or member.alliance_id != alliance.id:
            return False
        alliances.expel_from_alliance(alliance, leader_id, member_id)
        member.alliance_id = None
        return True

    def contribute_to_alliance(self, company_id: str, resources: Mapping[str, float]) -> bool:
        company = self._company(company_id)
        alliance = self._alliance_of(company) if company else None
        if alliance is None or not resources:
            return False
        if any(amount <= 0 or company.resources.get(res, 0) < amount for res, amount in resources.items()):
            return False
        for res, amount in resources.items():
            company.resources[res] -= amount
        alliances.contribute_resources(alliance, company_id, resources)
        alliances.update_loyalty(alliance, company_id, CONTRIBUTION_LOYALTY_GAIN)
        return True
