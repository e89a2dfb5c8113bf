import sys
from pathlib import Path
import random

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / 'src'))

import alliances  # type: ignore


class Fixed(random.Random):
    def __init__(self, value):
        super().__init__(0)
        self.value = value

    def random(self):
        return self.value


def make_alliance():
    alliance = alliances.create_alliance("p", "Player", "Cartel", 0)
    alliances.add_member(alliance, "a", "Alpha", True, 0)
    return alliance


def test_create_alliance_leader():
    alliance = alliances.create_alliance("p", "Player", "Cartel", 0)
    leader = alliance.member("p")
    assert alliance.leader_id == "p"
    assert leader.loyalty == 100
    assert leader.betrayal_risk == alliances.LEADER_BETRAYAL_RISK


def test_duplicate_member_raises():
    alliance = make_alliance()
    with pytest.raises(ValueError):
        alliances.add_member(alliance, "a", "Alpha", True, 0)


def test_invite_rules():
    alliance = make_alliance()
    with pytest.raises(ValueError):
        alliances.invite_to_alliance(alliance, "outsider", "b", "Beta", True, 0, Fixed(0))
    with pytest.raises(ValueError):
        alliances.invite_to_alliance(alliance, "p", "a", "Alpha", True, 0, Fixed(0))
    assert not alliances.invite_to_alliance(alliance, "p", "b", "Beta", True, 0, Fixed(0.6))
    assert alliances.invite_to_alliance(alliance, "p", "b", "Beta", True, 0, Fixed(0.59))
    assert alliance.member("b").betrayal_risk == alliances.AI_BETRAYAL_RISK
    # humans always accept
    assert alliances.invite_to_alliance(alliance, "p", "h", "Human", False, 0, Fixed(0.99))


def test_expel_rules():
    alliance = make_alliance()
    with pytest.raises(ValueError):
        alliances.expel_from_alliance(alliance, "a", "p")
    with pytest.raises(ValueError):
        alliances.expel_from_alliance(alliance, "p", "p")
    alliances.expel_from_alliance(alliance, "p", "a")
    assert alliance.member("a") is None


def test_leader_leaving_promotes_next_member():
    alliance = make_alliance()
    assert alliances.leave_alliance(alliance, "p")
    assert alliance.leader_id == "a"
    assert not alliances.leave_alliance(alliance, "a")


def test_contributions_and_shared_pool():
    alliance = make_alliance()
    alliances.contribute_resources(alliance, "a", {"steel": 100})
    assert alliance.shared_resources == {"steel": 100}
    assert alliance.member("a").contribution == 100
    with pytest.raises(ValueError):
        alliances.contribute_resources(alliance, "a", {"steel": 0})
    assert not alliances.use_shared_resources(alliance, {"steel": 50, "fuel": 1})
    assert alliance.shared_resources == {"steel": 100}
    assert alliances.use_shared_resources(alliance, {"steel": 50})
    assert alliance.shared_resources == {"steel": 50}


def test_betrayal_takes_proportional_share():
    alliance = make_alliance()
    alliances.add_member(alliance, "b", "Beta", True, 0)
    alliances.contribute_resources(alliance, "a", {"steel": 2000})
    alliances.contribute_resources(alliance, "b", {"steel": 8000})
    stolen = alliances.betray_alliance(alliance, "a")
    # contribution 2000 / 10000 -> 20% of the pool
    assert stolen == {"steel": 2000}
    assert alliance.shared_resources == {"steel": 8000}
    assert alliance.member("a") is None
    assert alliance.member("p").loyalty == 90


def test_betrayal_share_capped_at_half():
    alliance = make_alliance()
    alliances.contribute_resources(alliance, "a", {"fuel": 50_000})
    assert alliances.betray_alliance(alliance, "a") == {"fuel": 25_000}


def test_should_betray_depends_on_loyalty():
    alliance = make_alliance()
    # risk 0.3 at loyalty 50 -> 0.15
    assert alliances.should_betray(alliance, "a", Fixed(0.14))
    assert not alliances.should_betray(alliance, "a", Fixed(0.15))
    alliances.update_loyalty(alliance, "a", 100)
    assert not alliances.should_betray(alliance, "a", Fixed(0.0))
    with pytest.raises(ValueError):
        alliances.should_betray(alliance, "ghost", Fixed(0.0))


def test_alliance_strength():
    alliance = make_alliance()
    # two members, mean loyalty 75
    assert alliances.alliance_strength(alliance) == pytest.approx(15)
