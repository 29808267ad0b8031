import time
from datetime import timedelta

import pytest

from santa.core.errors import AllocationTimeout, ConfigInvalid, RuleInvalid, SetupInvalid
from santa.services.allocator import Allocator
from santa.services.config_file import Rule, load_config_from_yaml

NAMES = ["sam", "tom", "jim", "grace", "bill"]
PASSWORDS = ["p1", "p2", "p3", "p4", "p5"]

CONFIG_YAML = """
names:
  data: ["sam", "tom", "jim", "grace", "bill"]
passwords:
  data: ["password1", "password2", "password3", "password4", "password5"]
rules:
  - name: sam
    cannotGet: ["tom", "bill"]
  - name: tom
    cannotGet: ["grace"]
    inverse: true
"""


def assert_valid_allocation(allocation, names, passwords):
    aliases = allocation.alias_book()
    assert set(aliases) == set(names)
    assert len(set(aliases.values())) == len(names)
    assert set(aliases.values()) <= set(passwords)

    allocations = allocation.name_to_name()
    assert set(allocations) == set(names)
    assert sorted(allocations.values()) == sorted(names)
    assert all(giver != receiver for giver, receiver in allocations.items())


def test_minimal_valid_allocation():
    allocator = Allocator(NAMES, PASSWORDS)
    for _ in range(100):
        assert_valid_allocation(allocator.allocate(), NAMES, PASSWORDS)


def test_last_allocation_is_kept():
    allocator = Allocator(NAMES, PASSWORDS)
    allocation = allocator.allocate()
    assert allocator.last_allocation is allocation


def test_fails_on_one_name():
    with pytest.raises(SetupInvalid):
        Allocator(["sam"], PASSWORDS).allocate()


def test_fails_on_one_password():
    with pytest.raises(SetupInvalid):
        Allocator(["sam", "tom"], ["p1"]).allocate()


def test_fails_on_fewer_passwords_than_names():
    names = ["sam", "john", "billiam", "john4", "john3", "extra name"]
    with pytest.raises(SetupInvalid):
        Allocator(names, PASSWORDS).allocate()


def test_non_positive_timeout():
    with pytest.raises(ConfigInvalid):
        Allocator(NAMES, PASSWORDS, timeout=timedelta(0))


def test_forbid_pairs_with_inverse():
    allocator = Allocator.from_config(load_config_from_yaml(CONFIG_YAML))
    rule_set = allocator.validate_rules()
    assert rule_set.forbid["sam"] == {"tom", "bill"}
    assert rule_set.forbid["tom"] == {"grace"}
    assert rule_set.forbid["grace"] == {"tom"}

    for _ in range(100):
        allocations = allocator.allocate().name_to_name()
        assert allocations["sam"] not in {"tom", "bill"}
        assert allocations["tom"] != "grace"
        assert allocations["grace"] != "tom"


def test_forced_edge():
    allocator = Allocator(NAMES, PASSWORDS, rules=[Rule(name="sam", mustGet="jim")])
    for _ in range(100):
        allocation = allocator.allocate()
        assert_valid_allocation(allocation, NAMES, PASSWORDS)
        assert allocation.name_to_name()["sam"] == "jim"


def test_conflicting_forced_edges():
    rules = [Rule(name="sam", mustGet="jim"), Rule(name="grace", mustGet="jim")]
    with pytest.raises(RuleInvalid):
        Allocator(NAMES, PASSWORDS, rules=rules).allocate()


def test_infeasible_rules_time_out():
    names = ["sam", "tom", "jim"]
    rules = [Rule(name="tom", cannotGet=["sam"]), Rule(name="jim", cannotGet=["sam"])]
    timeout = timedelta(milliseconds=500)
    allocator = Allocator(names, PASSWORDS, rules=rules, timeout=timeout, max_picks=100)

    started = time.monotonic()
    with pytest.raises(AllocationTimeout):
        allocator.allocate()
    assert time.monotonic() - started < timeout.total_seconds() + 1
    assert allocator.last_allocation is None


def test_two_people_swap():
    allocation = Allocator(["sam", "tom"], ["p1", "p2"]).allocate()
    assert allocation.name_to_name() == {"sam": "tom", "tom": "sam"}


def test_self_allocation_allowed():
    allocator = Allocator(["sam", "tom"], ["p1", "p2"], can_allocate_self=True)
    allocation = allocator.allocate()
    assert sorted(allocation.name_to_name().values()) == ["sam", "tom"]


def test_envelope_uses_allocation_name():
    allocator = Allocator(NAMES, PASSWORDS, name="Friendmas 2024")
    allocation = allocator.allocate()
    envelope = allocator.envelope(allocation)
    assert envelope.allocation_name == "Friendmas 2024"
    assert envelope.created == allocation.created
    assert envelope.allocated_passwords == allocation.gift_sheet()


def test_names_and_passwords_are_normalised():
    allocator = Allocator(
        ["Sam", " Tom ", "Jim", "SAM"],
        ["p1", " p2", "p2", "p3"],
        rules=[Rule(name="Sam", cannotGet=["Tom"])],
    )
    assert allocator.names == ["sam", "tom", "jim"]
    assert allocator.passwords == ["p1", "p2", "p3"]
    for _ in range(20):
        allocations = allocator.allocate().name_to_name()
        assert set(allocations) == {"sam", "tom", "jim"}
        assert allocations["sam"] != "tom"
