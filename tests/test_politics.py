import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / 'src'))

import politics  # type: ignore


def test_enact_raises_antitrust_and_stance():
    gov = politics.create_government_state()
    policy = politics.policy_from_definition("antitrust_tech", 0)
    politics.enact_policy(gov, policy, 0)
    assert gov.antitrust_enforcement == 60
    assert gov.regulatory_stance == "moderate"

    politics.enact_policy(gov, politics.policy_from_definition("green_regulations", 0), 0)
    assert gov.regulatory_stance == "strict"


def test_reenacting_does_not_stack():
    gov = politics.create_government_state()
    politics.enact_policy(gov, politics.policy_from_definition("price_cap_oil", 0), 0)
    politics.enact_policy(gov, politics.policy_from_definition("price_cap_oil", 10), 10)
    assert len(gov.active_policies) == 1


def test_unknown_policy():
    assert politics.policy_from_definition("free_lunch", 0) is None


def test_policies_expire():
    gov = politics.create_government_state()
    politics.enact_policy(gov, politics.policy_from_definition("green_regulations", 0, expires_at=1000), 0)
    assert politics.expire_policies(gov, 999) == []
    expired = politics.expire_policies(gov, 1000)
    assert [p.id for p in expired] == ["green_regulations"]
    assert gov.active_policies == []
    assert gov.regulatory_stance == "moderate"


def test_repeal():
    gov = politics.create_government_state()
    politics.enact_policy(gov, politics.policy_from_definition("price_cap_oil", 0), 0)
    assert politics.repeal_policy(gov, "price_cap_oil", 5)
    assert not politics.repeal_policy(gov, "price_cap_oil", 5)


def test_effective_tax_rate():
    gov = politics.create_government_state()
    assert politics.get_effective_tax_rate(gov, 0) == 25
    assert politics.get_effective_tax_rate(gov, 50) == 20
    # lobbying can shave at most ten points
    assert politics.get_effective_tax_rate(gov, 1000) == 15
    politics.enact_policy(gov, politics.policy_from_definition("green_regulations", 0), 0)
    assert politics.get_effective_tax_rate(gov, 0) == 28


def test_lobbying_influence_clamped():
    gov = politics.create_government_state()
    assert politics.update_lobbying_influence(gov, "c1", 60) == 60
    assert politics.update_lobbying_influence(gov, "c1", 60) == 100
    assert politics.update_lobbying_influence(gov, "c1", -500) == 0


def test_investigations_progress_and_conclude():
    gov = politics.create_government_state()
    investigation = politics.start_investigation(gov, "c1", "antitrust", "medium", 0)
    concluded = []
    for _ in range(199):
        concluded += politics.advance_investigations(gov)
    assert concluded == []
    assert investigation.progress == pytest.approx(99.5)
    assert politics.advance_investigations(gov) == [investigation]
    assert politics.advance_investigations(gov) == []


def test_merger_blocking():
    gov = politics.create_government_state()
    assert not politics.would_block_merger(gov, 100_000, 100_000, 80)
    gov.antitrust_enforcement = 55
    assert politics.would_block_merger(gov, 100_000, 100_000, 41)
    assert not politics.would_block_merger(gov, 100_000, 100_000, 40)
    gov.antitrust_enforcement = 75
    assert politics.would_block_merger(gov, 400_000_000, 200_000_000, 0)


def test_subsidy_targets_industry():
    gov = politics.create_government_state()
    policy = politics.policy_from_definition("price_cap_oil", 0)
    policy.effect.subsidy_amount = 100
    politics.enact_policy(gov, policy, 0)
    assert politics.get_subsidy(gov, "energy") == 100
    assert politics.get_subsidy(gov, "tech") == 0
