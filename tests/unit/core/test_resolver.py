"""Tests for effective criteria resolution."""

from __future__ import annotations

import pytest

from job_readiness_core.models.config import JobReadinessConfig
from job_readiness_core.resolver import (
    ConfigResolver,
    config_precedence,
    is_applicable,
    order_configs,
    resolve_effective_criteria,
)
from tests.mocks.mock_factories import BUSINESS, PROGRAMMING, make_config, make_criterion

PUNE = "campus-pune"
DELHI = "campus-delhi"


def _ids(criteria: list) -> list[str]:
    return [c.criteria_id for c in criteria]


class FakeConfigStore:
    """In-memory config store recording list_applicable calls."""

    def __init__(self, configs: list[JobReadinessConfig]) -> None:
        self.configs = configs
        self.calls: list[tuple[list[str], str | None]] = []

    async def list_applicable(
        self, schools: list[str], campus_id: str | None
    ) -> list[JobReadinessConfig]:
        self.calls.append((schools, campus_id))
        return [
            c
            for c in self.configs
            if c.is_active and c.school in schools and c.campus_id in (None, campus_id)
        ]


@pytest.mark.unit
class TestIsApplicable:
    """Tests for is_applicable."""

    def test_common_global_applies_everywhere(self) -> None:
        """The global Common config applies to any school and campus."""
        config = make_config()
        assert is_applicable(config, PROGRAMMING, PUNE)
        assert is_applicable(config, BUSINESS, None)

    def test_other_school_excluded(self) -> None:
        """A different school's config does not apply."""
        assert not is_applicable(make_config(school=BUSINESS), PROGRAMMING, PUNE)

    def test_other_campus_excluded(self) -> None:
        """A config scoped to another campus does not apply."""
        config = make_config(school=PROGRAMMING, campus_id=DELHI)
        assert not is_applicable(config, PROGRAMMING, PUNE)

    def test_campus_config_excluded_without_campus(self) -> None:
        """A student with no campus only sees global configs."""
        assert not is_applicable(make_config(campus_id=PUNE), PROGRAMMING, None)

    def test_inactive_excluded(self) -> None:
        """Inactive configs never apply."""
        assert not is_applicable(make_config(is_active=False), PROGRAMMING, PUNE)


@pytest.mark.unit
class TestOrdering:
    """Tests for config precedence."""

    def test_merge_order(self) -> None:
        """Common global, school global, Common campus, school campus."""
        school_campus = make_config(school=PROGRAMMING, campus_id=PUNE)
        common_campus = make_config(campus_id=PUNE)
        school_global = make_config(school=PROGRAMMING)
        common_global = make_config()
        ordered = order_configs([school_campus, common_campus, school_global, common_global])
        assert ordered == [common_global, school_global, common_campus, school_campus]

    def test_precedence_keys(self) -> None:
        """Precedence ranks campus scope before school."""
        assert config_precedence(make_config()) == (0, 0)
        assert config_precedence(make_config(school=PROGRAMMING, campus_id=PUNE)) == (1, 1)


@pytest.mark.unit
class TestResolveEffectiveCriteria:
    """Tests for the pure merge."""

    def test_no_configs(self) -> None:
        """No configs resolve to an empty set."""
        assert resolve_effective_criteria([], PROGRAMMING, PUNE) == []

    def test_campus_overrides_common(self) -> None:
        """A campus-scoped school definition replaces the Common one."""
        common = make_config(criteria=[make_criterion("dsa", weight=1)])
        campus = make_config(
            school=PROGRAMMING, campus_id=PUNE, criteria=[make_criterion("dsa", weight=3)]
        )
        effective = resolve_effective_criteria([campus, common], PROGRAMMING, PUNE)
        assert len(effective) == 1
        assert effective[0].weight == 3

    def test_school_overrides_common_global(self) -> None:
        """A school-wide definition replaces the Common global one."""
        common = make_config(criteria=[make_criterion("resume", is_mandatory=True)])
        school = make_config(
            school=PROGRAMMING, criteria=[make_criterion("resume", is_mandatory=False)]
        )
        effective = resolve_effective_criteria([common, school], PROGRAMMING, None)
        assert effective[0].is_mandatory is False

    def test_layers_union(self) -> None:
        """Distinct criteria from every layer are combined once each."""
        configs = [
            make_config(criteria=[make_criterion("profile"), make_criterion("resume")]),
            make_config(school=PROGRAMMING, criteria=[make_criterion("dsa")]),
            make_config(school=PROGRAMMING, campus_id=PUNE, criteria=[make_criterion("resume")]),
        ]
        effective = resolve_effective_criteria(configs, PROGRAMMING, PUNE)
        assert sorted(_ids(effective)) == ["dsa", "profile", "resume"]

    def test_inactive_criterion_dropped(self) -> None:
        """Inactive criteria are skipped."""
        config = make_config(
            criteria=[make_criterion("a"), make_criterion("b", is_active=False)]
        )
        assert _ids(resolve_effective_criteria([config], PROGRAMMING, None)) == ["a"]

    def test_inactive_override_keeps_inherited(self) -> None:
        """An inactive override does not replace an inherited active definition."""
        common = make_config(criteria=[make_criterion("a", weight=2)])
        school = make_config(school=PROGRAMMING, criteria=[make_criterion("a", is_active=False)])
        effective = resolve_effective_criteria([common, school], PROGRAMMING, None)
        assert effective[0].weight == 2

    def test_inactive_config_ignored(self) -> None:
        """Criteria in inactive configs are ignored."""
        config = make_config(school=PROGRAMMING, is_active=False)
        assert resolve_effective_criteria([config], PROGRAMMING, None) == []

    def test_other_campus_ignored(self) -> None:
        """A config for another campus is filtered out even if passed in."""
        config = make_config(school=PROGRAMMING, campus_id=DELHI)
        assert resolve_effective_criteria([config], PROGRAMMING, PUNE) == []

    def test_target_schools_on_common_config(self) -> None:
        """Common criteria apply regardless of target_schools."""
        config = make_config(criteria=[make_criterion("a", target_schools={BUSINESS})])
        assert _ids(resolve_effective_criteria([config], PROGRAMMING, None)) == ["a"]

    def test_deterministic(self) -> None:
        """Input order does not change the resolved definitions."""
        common = make_config(criteria=[make_criterion("a", weight=1)])
        school = make_config(school=PROGRAMMING, criteria=[make_criterion("a", weight=4)])
        one = resolve_effective_criteria([common, school], PROGRAMMING, None)
        two = resolve_effective_criteria([school, common], PROGRAMMING, None)
        assert one == two

    def test_custom_common_school(self) -> None:
        """The sentinel name is configurable."""
        config = make_config(school="Global", criteria=[make_criterion("a")])
        assert resolve_effective_criteria([config], PROGRAMMING, None, common_school="Global")


@pytest.mark.unit
class TestConfigResolver:
    """Tests for the store-backed resolver."""

    @pytest.mark.asyncio
    async def test_queries_school_and_common(self) -> None:
        """The resolver asks the store for the school and the sentinel."""
        store = FakeConfigStore([make_config(criteria=[make_criterion("a")])])
        resolver = ConfigResolver(store)
        effective = await resolver.resolve(PROGRAMMING, PUNE)
        assert _ids(effective) == ["a"]
        assert store.calls == [([PROGRAMMING, "Common"], PUNE)]

    @pytest.mark.asyncio
    async def test_reads_current_configs_every_call(self) -> None:
        """Config edits are visible on the next resolution."""
        store = FakeConfigStore([make_config(criteria=[make_criterion("a")])])
        resolver = ConfigResolver(store)
        assert len(await resolver.resolve(PROGRAMMING, None)) == 1
        store.configs.append(make_config(school=PROGRAMMING, criteria=[make_criterion("b")]))
        assert len(await resolver.resolve(PROGRAMMING, None)) == 2
        assert len(store.calls) == 2

    @pytest.mark.asyncio
    async def test_empty_resolution(self) -> None:
        """No matching configs resolve to an empty list."""
        resolver = ConfigResolver(FakeConfigStore([]))
        assert await resolver.resolve(BUSINESS, None) == []
