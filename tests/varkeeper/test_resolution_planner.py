"""Tests for the resolution planner: merge plans, resolve groups, strategy actions."""

from __future__ import annotations

import pytest

from varkeeper.engines.classifier import classify
from varkeeper.engines.resolution_planner import (
    ResolveGroup,
    ResolveStrategy,
    choose_keeper,
    plan_all,
    plan_for_package,
    plan_group,
    resolve_actions,
    resolve_target,
)
from varkeeper.models.package import PackageIdentity, PackageRecord


def _kinds(actions):
    return [(a.kind, a.record.identity.version) for a in actions]


# ── choose_keeper ────────────────────────────────────────────────────────────


class TestChooseKeeper:
    def test_root_wins(self, make_record, library_root):
        sub = make_record("Pack", "1", folder="/lib/sub")
        root = make_record("Pack", "1", enabled=False)
        assert choose_keeper([sub, root], library_root) is root

    def test_enabled_wins_outside_root(self, make_record, library_root):
        off = make_record("Pack", "1", enabled=False, folder="/lib/a")
        on = make_record("Pack", "1", folder="/lib/b")
        assert choose_keeper([off, on], library_root) is on

    def test_first_seen_breaks_ties(self, make_record, library_root):
        a = make_record("Pack", "1", folder="/lib/a")
        b = make_record("Pack", "1", folder="/lib/b")
        assert choose_keeper([a, b], library_root) is a


# ── plan_group ───────────────────────────────────────────────────────────────


class TestPlanGroup:
    def test_root_and_subfolder_copy(self, make_record, library_root):
        root = make_record("Pack", "1")
        sub = make_record("Pack", "1", folder="/lib/sub")
        plan = plan_group([sub, root], "Alice.Pack", library_root)

        assert len(plan.merge_plan) == 1
        entry = plan.merge_plan[0]
        assert entry.keep is root
        assert entry.delete == [sub]
        assert entry.savings_bytes == 100
        assert plan.resolve_group is None

    def test_versions_form_resolve_group(self, make_record, library_root):
        v1 = make_record("Pack", "1", enabled=False)
        v3 = make_record("Pack", "3")
        v2 = make_record("Pack", "2", enabled=False)
        plan = plan_group([v1, v3, v2], "Alice.Pack", library_root)

        assert plan.merge_plan == []
        assert plan.resolve_group.id == "Alice.Pack"
        assert [r.identity.version for r in plan.resolve_group.candidates] == ["3", "2", "1"]

    def test_resolve_group_uses_keepers_only(self, make_record, library_root):
        v1_root = make_record("Pack", "1")
        v1_sub = make_record("Pack", "1", folder="/lib/sub")
        v2 = make_record("Pack", "2", enabled=False)
        plan = plan_group([v1_sub, v1_root, v2], "Alice.Pack", library_root)

        assert plan.merge_plan[0].keep is v1_root
        assert plan.resolve_group.candidates == [v2, v1_root]

    def test_single_record_is_nothing_to_do(self, make_record, library_root):
        plan = plan_group([make_record("Pack", "1")], "Alice.Pack", library_root)
        assert plan.is_empty

    def test_unknown_bucket_never_planned(self, library_root):
        records = [
            PackageRecord(file_path=f"/lib/{n}.var", file_name=f"{n}.var", size_bytes=1, identity=PackageIdentity())
            for n in ("a", "b")
        ]
        assert plan_group(records, "Unknown", library_root).is_empty


# ── plan_all / plan_for_package ──────────────────────────────────────────────


class TestPlanAll:
    def _library(self, make_record):
        return [
            make_record("Pack", "1"),
            make_record("Pack", "1", folder="/lib/sub"),
            make_record("Pack", "2", enabled=False),
            make_record("Other", "1"),
            make_record("Hair", "1", creator="Bob"),
            make_record("Hair", "2", creator="Bob"),
        ]

    def test_whole_library(self, make_record, library_root):
        plan = plan_all(self._library(make_record), library_root)
        assert len(plan.merge_plan) == 1
        assert [g.id for g in plan.resolve_groups] == ["Alice.Pack", "Bob.Hair"]
        assert plan.merge_delete_count == 1
        assert plan.potential_savings_bytes == 100

    def test_scope_filter_selects_groups(self, make_record, library_root):
        records = classify(self._library(make_record))
        plan = plan_all(records, library_root, lambda r: r.group_key == "Bob.Hair")
        assert plan.merge_plan == []
        assert [g.id for g in plan.resolve_groups] == ["Bob.Hair"]

    def test_deterministic(self, make_record, library_root):
        records = self._library(make_record)
        assert plan_all(records, library_root) == plan_all(records, library_root)

    def test_empty_library(self, library_root):
        plan = plan_all([], library_root)
        assert plan.is_empty

    def test_plan_for_package(self, make_record, library_root):
        records = self._library(make_record)
        plan = plan_for_package(records, records[2].file_path, library_root)
        assert plan.group_key == "Alice.Pack"
        assert len(plan.merge_plan) == 1
        assert plan_for_package(records, "/lib/nope.var", library_root) is None


# ── resolve_actions ──────────────────────────────────────────────────────────


class TestResolveActions:
    def _group(self, make_record, enabled=("3",)):
        candidates = [make_record("Pack", v, enabled=v in enabled) for v in ("3", "2", "1")]
        return ResolveGroup(id="Alice.Pack", candidates=candidates)

    def test_keep_latest_noop_when_latest_sole_enabled(self, make_record):
        group = self._group(make_record, enabled=("3",))
        assert resolve_actions(group, ResolveStrategy.KEEP_LATEST) == []

    def test_keep_latest_enables_and_disables(self, make_record):
        group = self._group(make_record, enabled=("2", "1"))
        actions = resolve_actions(group, "keep-latest")
        assert _kinds(actions) == [("enable", "3"), ("disable", "2"), ("disable", "1")]

    def test_delete_older(self, make_record):
        group = self._group(make_record, enabled=("3", "1"))
        actions = resolve_actions(group, ResolveStrategy.DELETE_OLDER)
        assert _kinds(actions) == [("delete", "2"), ("delete", "1")]

    def test_manual_target(self, make_record):
        group = self._group(make_record, enabled=("3",))
        target = group.candidates[2].file_path
        actions = resolve_actions(group, ResolveStrategy.MANUAL, {"Alice.Pack": target})
        assert _kinds(actions) == [("disable", "3"), ("enable", "1")]

    @pytest.mark.parametrize("selection", [None, "none", "/lib/unknown.var"])
    def test_manual_without_usable_target_skips(self, make_record, selection):
        group = self._group(make_record, enabled=("3", "2"))
        plan = {"Alice.Pack": selection} if selection else {}
        assert resolve_target(group, ResolveStrategy.MANUAL, plan) is None
        assert resolve_actions(group, ResolveStrategy.MANUAL, plan) == []

    def test_none_strategy_does_nothing(self, make_record):
        group = self._group(make_record, enabled=("3", "2", "1"))
        assert resolve_actions(group, ResolveStrategy.NONE) == []

    def test_removed_files_are_skipped(self, make_record):
        group = self._group(make_record, enabled=("2", "1"))
        removed = {group.candidates[0].file_path}
        actions = resolve_actions(group, ResolveStrategy.KEEP_LATEST, removed=removed)
        assert _kinds(actions) == [("disable", "1")]

    def test_group_reduced_to_one_is_left_alone(self, make_record):
        group = self._group(make_record, enabled=("2", "1"))
        removed = {group.candidates[0].file_path, group.candidates[1].file_path}
        assert resolve_actions(group, ResolveStrategy.KEEP_LATEST, removed=removed) == []
