"""Tests for CommandOrchestrator sequencing."""

from __future__ import annotations

import logging

import pytest

from tfvc_bridge.core.exceptions import ToolInvocationError
from tfvc_bridge.core.types import AutoResolveType, ConflictType, Workspace, WorkspaceMapping
from tfvc_bridge.core.workspace_diff import diff_workspace_mappings

OLD_WORKSPACE = Workspace(
    name="dev",
    comment="old comment",
    mappings=(
        WorkspaceMapping("$/Project/A", "/src/a"),
        WorkspaceMapping("$/Project/B", "/src/b"),
        WorkspaceMapping("$/Project/C", cloaked=True),
    ),
)

NEW_WORKSPACE = Workspace(
    name="dev-renamed",
    comment="new comment",
    mappings=(
        WorkspaceMapping("$/Project/A", "/src/a"),
        WorkspaceMapping("$/Project/B", "/src/b2"),
        WorkspaceMapping("$/Project/D", "/src/d"),
    ),
)


class TestMappingDiff:
    def test_identical_workspaces_have_no_diff(self):
        assert not diff_workspace_mappings(OLD_WORKSPACE, OLD_WORKSPACE).are_different

    def test_removed_and_changed_mappings(self):
        diff = diff_workspace_mappings(OLD_WORKSPACE, NEW_WORKSPACE)

        assert [m.server_path for m in diff.to_remove] == ["$/Project/C"]
        assert [m.server_path for m in diff.to_change] == ["$/Project/B", "$/Project/D"]

    def test_server_paths_compare_case_insensitively(self):
        upper = Workspace(name="dev", mappings=(WorkspaceMapping("$/PROJECT/A", "/src/a"),))
        lower = Workspace(name="dev", mappings=(WorkspaceMapping("$/project/a", "/src/a"),))

        assert not diff_workspace_mappings(upper, lower).are_different


class TestUpdateWorkspace:
    def test_identical_mappings_issue_only_property_update(self, orchestrator, fake_runner, context):
        fake_runner.queue("workspace")

        orchestrator.update_workspace(context, OLD_WORKSPACE, OLD_WORKSPACE)

        assert fake_runner.subcommands() == ["workspace"]
        assert "/edit" in fake_runner.argv()

    def test_remove_then_change_then_properties(self, orchestrator, fake_runner, context):
        for _ in range(3):
            fake_runner.queue("workfold")
        fake_runner.queue("workspace")
        events: list[tuple[str, str]] = []

        orchestrator.update_workspace(
            context, OLD_WORKSPACE, NEW_WORKSPACE, progress=lambda key, detail: events.append((key, detail))
        )

        assert fake_runner.subcommands() == ["workfold", "workfold", "workfold", "workspace"]
        assert "/unmap" in fake_runner.argv(0)
        assert fake_runner.calls[1].positional == ["$/Project/B", "/src/b2"]
        assert fake_runner.calls[2].positional == ["$/Project/D", "/src/d"]
        for index in range(3):
            assert "/workspace:dev" in fake_runner.argv(index)
        assert "/newname:dev-renamed" in fake_runner.argv(3)
        assert "/comment:new comment" in fake_runner.argv(3)
        assert [key for key, _ in events] == ["remove", "change", "change", "properties"]

    def test_first_failure_stops_the_sequence(self, orchestrator, fake_runner, context):
        fake_runner.queue("workfold", stderr="TF10141: No appropriate mapping exists for $/Project/C.")

        with pytest.raises(ToolInvocationError):
            orchestrator.update_workspace(context, OLD_WORKSPACE, NEW_WORKSPACE)

        assert fake_runner.subcommands() == ["workfold"]


class TestWorkspaceLookups:
    def test_workspace_name_empty_when_unmapped(self, orchestrator, fake_runner, context):
        fake_runner.queue("workfold", stdout="")
        assert orchestrator.get_workspace_name(context, "/tmp/elsewhere") == ""

    def test_get_workspace_chains_lookup_and_details(self, orchestrator, fake_runner, context):
        fake_runner.queue("workfold", stdout="Workspace : dev (Alice)\n $/Project: /src\n")
        fake_runner.queue("workspaces", stdout="Workspace : dev\nOwner : Alice\n")

        workspace = orchestrator.get_workspace(context, "/src")

        assert workspace.name == "dev"
        assert fake_runner.calls[1].positional == ["dev"]


class TestHistoryAndStatus:
    def test_last_history_entry_none_when_empty(self, orchestrator, fake_runner, context):
        fake_runner.queue("history", stdout="")

        assert orchestrator.get_last_history_entry_for_any_user(context, "/src/a.txt") is None
        assert "/stopafter:1" in fake_runner.argv()

    def test_last_history_entry(self, orchestrator, fake_runner, context):
        fake_runner.queue("history", stdout="Changeset: 4\nUser: Bob\n")

        entry = orchestrator.get_last_history_entry_for_any_user(context, "/src/a.txt")

        assert entry.id == 4
        assert entry.owner == "Bob"

    def test_status_for_file_none_without_changes(self, orchestrator, fake_runner, context):
        fake_runner.queue("status", stdout="There are no pending changes.\n")
        assert orchestrator.get_status_for_file(context, "/src/a.txt") is None

    def test_sync_workspace_is_recursive(self, orchestrator, fake_runner, context):
        fake_runner.queue("get", stdout="All files are up to date.\n")

        assert orchestrator.sync_workspace(context, "/src").up_to_date
        assert fake_runner.calls[0].positional == ["/src"]
        assert "/recursive" in fake_runner.argv()


class TestConflicts:
    def test_resolve_by_conflict_uses_local_paths(self, orchestrator, fake_runner, context):
        from tfvc_bridge.core.types import Conflict

        fake_runner.queue("resolve", stdout="Resolved /src/a.txt as KeepYours\n")

        resolved = orchestrator.resolve_conflicts_by_conflict(
            context, [Conflict("/src/a.txt", ConflictType.CONTENT)], AutoResolveType.KEEP_YOURS
        )

        assert [c.local_path for c in resolved] == ["/src/a.txt"]
        assert fake_runner.calls[0].positional == ["/src/a.txt"]
        assert "/auto:KeepYours" in fake_runner.argv()

    def test_unresolvable_rename_conflicts_are_dropped(self, orchestrator, fake_runner, context, caplog):
        fake_runner.queue(
            "resolve",
            stdout="/src/a.txt: The source and target both have changes\n"
            "$/Project/b.txt: The item name has changed\n",
        )
        # Bounded and fallback passes both come back empty
        fake_runner.queue("history", stdout="")
        fake_runner.queue("history", stdout="")

        with caplog.at_level(logging.WARNING):
            conflicts = orchestrator.get_conflicts(context, "/src")

        assert [(c.local_path, c.conflict_type) for c in conflicts] == [("/src/a.txt", ConflictType.CONTENT)]
        assert "$/Project/b.txt" in caplog.text
        assert fake_runner.subcommands() == ["resolve", "history", "history"]
