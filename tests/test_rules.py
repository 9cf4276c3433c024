"""Tests for pg_standards.rules: glob matching and rule merging."""

from __future__ import annotations

from conftest import rule

from pg_standards.rules import find_conflicts, match_rules, matches, matching_patterns, specificity


class TestMatches:
    def test_suffix_wildcard(self):
        assert matches("*_types", "lookup_types")

    def test_suffix_wildcard_requires_full_suffix(self):
        assert not matches("*_types", "lookup_type")

    def test_prefix_wildcard(self):
        assert matches("permissions*", "permissions")
        assert matches("permissions*", "permissions_roles")

    def test_case_sensitive(self):
        assert not matches("Users", "users")

    def test_exact_name(self):
        assert matches("orders", "orders")
        assert not matches("orders", "orders_archive")


class TestSpecificity:
    def test_literal_characters_counted(self):
        assert specificity("users*")[0] == 5
        assert specificity("*s")[0] == 1

    def test_ordering_least_specific_first(self):
        rules = {"users*": rule(), "*": rule(), "*s": rule()}
        assert matching_patterns("users", rules) == ["*", "*s", "users*"]

    def test_non_matching_excluded(self):
        rules = {"users*": rule(), "orders": rule()}
        assert matching_patterns("users", rules) == ["users*"]


class TestMatchRules:
    def test_union_of_required_columns(self):
        rules = {
            "users*": rule(required_columns=["a"]),
            "*s": rule(required_columns=["b"]),
        }
        merged = match_rules("users", rules)
        assert merged.required_columns == {"a", "b"}

    def test_union_of_required_indexes(self):
        rules = {
            "*_types": rule(required_indexes=["name_unique"]),
            "lookup_*": rule(required_indexes=["code_idx"]),
        }
        merged = match_rules("lookup_types", rules)
        assert merged.required_indexes == {"name_unique", "code_idx"}

    def test_no_match_is_empty(self):
        rules = {"*_types": rule(required_columns=["id"])}
        assert match_rules("lookup_type", rules).is_empty

    def test_more_specific_pattern_wins_on_conflict(self):
        rules = {
            "*": rule(column_types={"id": "integer"}),
            "users": rule(column_types={"id": "bigint"}),
        }
        assert match_rules("users", rules).column_types == {"id": "bigint"}

    def test_merge_independent_of_insertion_order(self):
        a = {"*": rule(column_types={"id": "integer"}), "users": rule(column_types={"id": "bigint"})}
        b = {"users": rule(column_types={"id": "bigint"}), "*": rule(column_types={"id": "integer"})}
        assert match_rules("users", a) == match_rules("users", b)

    def test_source_rules_not_mutated(self):
        rules = {"users*": rule(required_columns=["a"]), "*s": rule(required_columns=["b"])}
        match_rules("users", rules)
        assert rules["users*"].required_columns == {"a"}


class TestFindConflicts:
    def test_reports_conflicting_column_type(self):
        rules = {
            "*": rule(column_types={"id": "integer"}),
            "users": rule(column_types={"id": "bigint"}),
        }
        conflicts = find_conflicts("users", rules)
        assert len(conflicts) == 1
        assert "column_types[id]" in conflicts[0]

    def test_reports_conflicting_constraint_kind(self):
        rules = {
            "*s": rule(required_constraints={"users_email_key": "u"}),
            "users": rule(required_constraints={"users_email_key": "c"}),
        }
        assert len(find_conflicts("users", rules)) == 1

    def test_same_value_is_not_a_conflict(self):
        rules = {
            "*": rule(column_types={"id": "bigint"}),
            "users": rule(column_types={"id": "bigint"}),
        }
        assert find_conflicts("users", rules) == []
