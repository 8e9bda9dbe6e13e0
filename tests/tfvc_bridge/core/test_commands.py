"""Tests for the command variants: argument vectors, error rules and output parsing."""

from __future__ import annotations

import os

import pytest

from tfvc_bridge.core.commands import (
    COMMAND_TYPES,
    AddCommand,
    DownloadCommand,
    FindConflictsCommand,
    FindWorkspaceCommand,
    GetLocalPathCommand,
    GetWorkspaceCommand,
    HistoryCommand,
    LabelCommand,
    RenameCommand,
    ResolveConflictsCommand,
    StatusCommand,
    SyncCommand,
    UndoCommand,
    UpdateWorkspaceCommand,
    UpdateWorkspaceMappingCommand,
)
from tfvc_bridge.core.exceptions import InvalidArgumentError, ToolInvocationError, ToolParseFailure
from tfvc_bridge.core.types import AutoResolveType, ChangeType, ConflictType, ServerContext, WorkspaceMapping

RULE = "-" * 80

HISTORY_OUTPUT = f"""{RULE}
Changeset: 12
User: Alice
Checked in by: Build Agent
Date: Tuesday, March 3, 2026 10:15:00 AM

Comment:
  Move the readme
  into docs

Items:
  rename                $/Project/docs/README.md

{RULE}
Changeset: 11
User: Bob
Date: Monday, March 2, 2026 4:00:00 PM

Comment:
  Tweak wording

Items:
  edit                  $/Project/README.md
  add, encoding         $/Project/NOTES.md

{RULE}
Changeset: 3
User: Alice
Date: Sunday, March 1, 2026 9:00:00 AM

Comment:

Items:
  add                   $/Project/README.md
"""

STATUS_OUTPUT = """$/Project/docs/README.md;C12
  User       : alice
  Date       : Wednesday, March 4, 2026 9:00:00 AM
  Lock       : none
  Change     : rename, edit
  Workspace  : dev
  Source item: $/Project/README.md
  Local item : [WS01] /home/alice/main/docs/README.md
  File type  : utf-8

$/Project/new.txt
  User       : alice
  Change     : add
  Workspace  : dev
  Local item : [WS01] /home/alice/main/new.txt

2 change(s)
"""

WORKFOLD_OUTPUT = """===============================================================================
Workspace : dev (Alice)
Collection: http://tfs.example.com:8080/tfs/DefaultCollection
 $/Project/Main: /home/alice/main
 (cloaked) $/Project/Main/Big:
"""

WORKSPACES_OUTPUT = """===============================================================================
Workspace  : dev
Owner      : Alice
Computer   : WS01
Comment    : Main development
Collection : http://tfs.example.com:8080/tfs/DefaultCollection
Permissions: Private
Location   : Local
File Time  : Current

Working folders:

 $/Project/Main: /home/alice/main
 (cloaked) $/Project/Main/Big:
"""

PREVIEW_OUTPUT = """/home/alice/main/a.txt: The source and target both have changes
$/Project/Main/b.txt: The item name has changed
$/Project/Main/c.txt: The item name and content have changed
"""


def run(command, fake_runner, stdout="", stderr="", exit_code=0):
    fake_runner.queue(command.name, stdout=stdout, stderr=stderr, exit_code=exit_code)
    return command.run_synchronously(fake_runner)


class TestCommandContract:
    def test_command_types_cover_every_variant(self):
        assert len(COMMAND_TYPES) == 15
        assert HistoryCommand in COMMAND_TYPES
        assert LabelCommand in COMMAND_TYPES

    def test_server_context_switches_are_seeded(self, context):
        argv = HistoryCommand(context, "$/Project").get_argument_builder().build()

        assert argv[:2] == ["history", "$/Project"]
        assert "/noprompt" in argv
        assert "/collection:http://tfs.example.com:8080/tfs/DefaultCollection" in argv
        assert "/login:alice,s3cret" in argv

    def test_no_context_only_noprompt(self):
        argv = StatusCommand(None, "/src").get_argument_builder().build()
        assert argv == ["status", "/src", "/noprompt", "/recursive", "/format:detailed"]

    def test_stderr_raises_even_with_zero_exit(self, fake_runner, context):
        with pytest.raises(ToolInvocationError) as excinfo:
            run(StatusCommand(context, "/src"), fake_runner, stdout=STATUS_OUTPUT, stderr="TF14061: The workspace dev does not exist.\n")

        assert str(excinfo.value) == "TF14061: The workspace dev does not exist."
        assert excinfo.value.stderr == "TF14061: The workspace dev does not exist.\n"

    def test_nonzero_exit_with_empty_stderr_raises(self, fake_runner, context):
        with pytest.raises(ToolInvocationError) as excinfo:
            run(RenameCommand(context, "a.txt", "b.txt"), fake_runner, stdout="boom", exit_code=100)

        assert excinfo.value.exit_code == 100
        assert "boom" in str(excinfo.value)

    def test_whitespace_only_stderr_raises(self):
        with pytest.raises(ToolInvocationError) as excinfo:
            StatusCommand(None, "/src").parse_output("", " \n")

        assert excinfo.value.stderr == " \n"
        assert str(excinfo.value).strip()

    def test_whitespace_only_stderr_fails_a_run(self, fake_runner, context):
        with pytest.raises(ToolInvocationError):
            run(StatusCommand(context, "/src"), fake_runner, stdout=STATUS_OUTPUT, stderr=" \n")

    def test_nonzero_exit_with_stderr_keeps_exit_code(self, fake_runner, context):
        with pytest.raises(ToolInvocationError) as excinfo:
            run(RenameCommand(context, "a.txt", "b.txt"), fake_runner, stderr="TF10187: locked\n", exit_code=100)

        assert str(excinfo.value) == "TF10187: locked"
        assert excinfo.value.exit_code == 100

    def test_login_without_password_sends_user_only(self):
        context = ServerContext(username="alice")

        builder = StatusCommand(context, "/src").get_argument_builder()

        assert "/login:alice" in builder.build()
        assert not any(token.startswith("/login:alice,") for token in builder.build())
        assert "/login:alice" in str(builder)

    @pytest.mark.parametrize(
        "factory",
        [
            lambda c: HistoryCommand(c, ""),
            lambda c: StatusCommand(c, "   "),
            lambda c: UndoCommand(c, []),
            lambda c: AddCommand(c, ["a.txt", ""]),
            lambda c: ResolveConflictsCommand(c, ["a.txt"], None),
            lambda c: DownloadCommand(c, "a.txt", 0, ""),
            lambda c: UpdateWorkspaceMappingCommand(c, "dev", WorkspaceMapping("$/P"), False),
        ],
    )
    def test_invalid_arguments_fail_before_spawn(self, fake_runner, context, factory):
        with pytest.raises(InvalidArgumentError):
            factory(context)
        assert fake_runner.calls == []

    def test_invalid_argument_is_a_value_error(self):
        with pytest.raises(ValueError):
            RenameCommand(None, "", "b.txt")

    def test_sequence_fields_are_frozen(self, context):
        command = UndoCommand(context, ["a.txt", "b.txt"])
        assert command.files == ("a.txt", "b.txt")
        assert hash(command) == hash(UndoCommand(context, ("a.txt", "b.txt")))


class TestHistoryCommand:
    def test_parses_changesets_newest_first(self, fake_runner, context):
        change_sets = run(HistoryCommand(context, "$/Project/docs/README.md"), fake_runner, stdout=HISTORY_OUTPUT)

        assert [cs.id for cs in change_sets] == [12, 11, 3]
        newest = change_sets[0]
        assert newest.owner == "Alice"
        assert newest.committer == "Build Agent"
        assert newest.comment == "Move the readme\ninto docs"
        assert newest.first_change.server_item == "$/Project/docs/README.md"
        assert newest.first_change.change_types == frozenset({ChangeType.RENAME})

    def test_committer_defaults_to_owner(self, fake_runner, context):
        change_sets = run(HistoryCommand(context, "$/Project"), fake_runner, stdout=HISTORY_OUTPUT)

        assert change_sets[1].committer == "Bob"
        assert change_sets[1].changes[1].change_types == frozenset({ChangeType.ADD, ChangeType.ENCODING})
        assert change_sets[2].comment == ""

    def test_empty_output_is_empty_history(self, fake_runner, context):
        assert run(HistoryCommand(context, "$/Project"), fake_runner, stdout="") == []

    def test_switches(self, context):
        argv = HistoryCommand(
            context,
            "$/Project",
            version="C10~C20",
            stop_after=50,
            recursive=True,
            user="bob",
            item_mode=True,
        ).get_argument_builder().build()

        assert "/format:detailed" in argv
        assert "/version:C10~C20" in argv
        assert "/stopafter:50" in argv
        assert "/recursive" in argv
        assert "/user:bob" in argv
        assert "/itemmode" in argv

    def test_unbounded_sends_no_stopafter(self, context):
        argv = HistoryCommand(context, "$/Project", version="").get_argument_builder().build()
        assert not any(token.startswith("/stopafter") for token in argv)
        assert not any(token.startswith("/version") for token in argv)

    def test_bad_changeset_id_is_parse_failure(self, fake_runner, context):
        output = f"{RULE}\nChangeset: abc\nUser: Alice\n"
        with pytest.raises(ToolParseFailure) as excinfo:
            run(HistoryCommand(context, "$/Project"), fake_runner, stdout=output)
        assert excinfo.value.output == output

    def test_deletion_id_is_stripped_from_items(self, fake_runner, context):
        output = f"{RULE}\nChangeset: 20\nUser: Alice\nItems:\n  delete                $/Project/old.txt;X12\n"

        change_sets = run(HistoryCommand(context, "$/Project"), fake_runner, stdout=output)

        assert change_sets[0].first_change.server_item == "$/Project/old.txt"
        assert change_sets[0].first_change.change_types == frozenset({ChangeType.DELETE})


class TestStatusCommand:
    def test_deletion_id_is_stripped_from_header(self, fake_runner, context):
        output = "$/Project/old.txt;X12;C7\n  Change     : undelete\n  Local item : [WS01] /home/alice/main/old.txt\n"

        changes = run(StatusCommand(context, "/home/alice/main"), fake_runner, stdout=output)

        assert changes[0].server_item == "$/Project/old.txt"
        assert changes[0].version == 7

    def test_parses_pending_changes(self, fake_runner, context):
        changes = run(StatusCommand(context, "/home/alice/main"), fake_runner, stdout=STATUS_OUTPUT)

        assert len(changes) == 2
        renamed = changes[0]
        assert renamed.server_item == "$/Project/docs/README.md"
        assert renamed.version == 12
        assert renamed.local_item == "/home/alice/main/docs/README.md"
        assert renamed.computer == "WS01"
        assert renamed.source_item == "$/Project/README.md"
        assert renamed.change_types == frozenset({ChangeType.RENAME, ChangeType.EDIT})
        assert changes[1].version == 0
        assert changes[1].source_item == ""

    def test_missing_local_item_is_parse_failure(self, fake_runner, context):
        with pytest.raises(ToolParseFailure):
            run(StatusCommand(context, "/src"), fake_runner, stdout="$/Project/a.txt;C1\n  Change : edit\n")


class TestWorkspaceCommands:
    def test_find_workspace(self, fake_runner, context):
        workspace = run(FindWorkspaceCommand(context, "/home/alice/main"), fake_runner, stdout=WORKFOLD_OUTPUT)

        assert workspace.name == "dev"
        assert workspace.owner == "Alice"
        assert workspace.server == "http://tfs.example.com:8080/tfs/DefaultCollection"
        assert workspace.mappings == (
            WorkspaceMapping("$/Project/Main", "/home/alice/main"),
            WorkspaceMapping("$/Project/Main/Big", "", cloaked=True),
        )

    def test_find_workspace_none(self, fake_runner, context):
        assert run(FindWorkspaceCommand(context, "/tmp"), fake_runner, stdout="") is None

    def test_get_workspace_details(self, fake_runner, context):
        workspace = run(GetWorkspaceCommand(context, "dev"), fake_runner, stdout=WORKSPACES_OUTPUT)

        assert workspace.name == "dev"
        assert workspace.computer == "WS01"
        assert workspace.comment == "Main development"
        assert len(workspace.mappings) == 2
        assert workspace.mappings[1].cloaked

    def test_get_workspace_without_name_fails(self, fake_runner, context):
        with pytest.raises(ToolParseFailure):
            run(GetWorkspaceCommand(context, "dev"), fake_runner, stdout="Owner : Alice\n")

    @pytest.mark.parametrize(
        ("server_path", "expected"),
        [
            ("$/Project/Main", "/home/alice/main"),
            ("$/Project/Main/src/app.py", os.path.join("/home/alice/main", "src", "app.py")),
            ("$/Project/Main/Big/blob.bin", ""),
            ("$/Other/file.txt", ""),
        ],
    )
    def test_get_local_path(self, fake_runner, context, server_path, expected):
        command = GetLocalPathCommand(context, server_path, "dev")
        assert run(command, fake_runner, stdout=WORKFOLD_OUTPUT) == expected
        assert "/workspace:dev" in fake_runner.argv()

    def test_update_workspace_switches(self, context):
        argv = UpdateWorkspaceCommand(context, "dev", new_name="dev2", comment="").get_argument_builder().build()
        assert argv[:2] == ["workspace", "dev"]
        assert "/edit" in argv
        assert "/newname:dev2" in argv
        assert "/comment:" in argv

    @pytest.mark.parametrize(
        ("mapping", "remove", "positional", "switch"),
        [
            (WorkspaceMapping("$/P/Main", "/src"), False, ["$/P/Main", "/src"], "/map"),
            (WorkspaceMapping("$/P/Main", "/src"), True, ["$/P/Main"], "/unmap"),
            (WorkspaceMapping("$/P/Main/Big", cloaked=True), False, ["$/P/Main/Big"], "/cloak"),
        ],
    )
    def test_update_mapping(self, context, mapping, remove, positional, switch):
        builder = UpdateWorkspaceMappingCommand(context, "dev", mapping, remove).get_argument_builder()

        assert builder.positional == positional
        assert switch in builder.switches
        assert builder.switches[-1] == "/workspace:dev"


class TestConflictCommands:
    def test_preview_classifies_reasons(self, fake_runner, context):
        results = run(FindConflictsCommand(context, "/home/alice/main"), fake_runner, stdout=PREVIEW_OUTPUT)

        assert results.content_conflicts == ("/home/alice/main/a.txt",)
        assert results.rename_conflicts == ("$/Project/Main/b.txt",)
        assert results.both_conflicts == ("$/Project/Main/c.txt",)
        assert results.total == 3
        assert fake_runner.argv()[-2:] == ["/recursive", "/preview"]

    def test_preview_without_conflicts(self, fake_runner, context):
        results = run(
            FindConflictsCommand(context, "/home/alice/main"),
            fake_runner,
            stdout="There are no conflicts to resolve.\n",
        )
        assert results.total == 0

    def test_resolve_reports_resolved_paths(self, fake_runner, context):
        command = ResolveConflictsCommand(context, ["/home/alice/main/a.txt"], AutoResolveType.TAKE_THEIRS)

        resolved = run(command, fake_runner, stdout="Resolved /home/alice/main/a.txt as TakeTheirs\n")

        assert [c.local_path for c in resolved] == ["/home/alice/main/a.txt"]
        assert resolved[0].conflict_type is ConflictType.RESOLVED
        assert fake_runner.argv()[-1] == "/auto:TakeTheirs"


class TestFileCommands:
    def test_sync_results(self, fake_runner, context):
        output = (
            "/home/alice/main:\n"
            "Getting new.txt\n"
            "Replacing changed.txt\n"
            "\n"
            "/home/alice/main/sub:\n"
            "Deleting old.txt\n"
        )
        results = run(SyncCommand(context, "/home/alice/main"), fake_runner, stdout=output)

        assert not results.up_to_date
        assert results.new_files == (os.path.join("/home/alice/main", "new.txt"),)
        assert results.updated_files == (os.path.join("/home/alice/main", "changed.txt"),)
        assert results.deleted_files == (os.path.join("/home/alice/main/sub", "old.txt"),)
        assert "/recursive" in fake_runner.argv()

    def test_sync_up_to_date(self, fake_runner, context):
        results = run(SyncCommand(context, ["/src"], force=True), fake_runner, stdout="All files are up to date.\n")
        assert results.up_to_date
        assert "/force" in fake_runner.argv()

    def test_undo_lists_undone_files(self, fake_runner, context):
        output = "/home/alice/main:\nUndoing edit: a.txt\nUndoing add: b.txt\n"
        undone = run(UndoCommand(context, ["a.txt", "b.txt"]), fake_runner, stdout=output)
        assert undone == [os.path.join("/home/alice/main", "a.txt"), os.path.join("/home/alice/main", "b.txt")]

    def test_add_lists_added_files(self, fake_runner, context):
        added = run(AddCommand(context, ["a.txt"]), fake_runner, stdout="/home/alice/main:\na.txt\n")
        assert added == [os.path.join("/home/alice/main", "a.txt")]

    def test_label_created_and_updated(self, fake_runner, context):
        command = LabelCommand(context, "v1.0", "$/Project", comment="release", recursive=True)
        assert run(command, fake_runner, stdout="Created label v1.0@$/Project\n") is True
        assert run(command, fake_runner, stdout="Updated label v1.0@$/Project\n") is False
        assert fake_runner.calls[0].positional == ["v1.0", "$/Project"]
        assert "/comment:release" in fake_runner.argv()

    def test_label_without_confirmation_fails(self, fake_runner, context):
        with pytest.raises(ToolParseFailure):
            run(LabelCommand(context, "v1.0", "$/Project"), fake_runner, stdout="")

    def test_download_overwrites_existing_file(self, fake_runner, context, tmp_path):
        destination = tmp_path / "nested" / "README.md"
        destination.parent.mkdir()
        destination.write_text("stale content that is longer than the new one\n", encoding="utf-8")
        content = "first line\r\nsecond line\n"

        written = run(DownloadCommand(context, "$/Project/README.md", 7, str(destination)), fake_runner, stdout=content)

        assert written == str(destination)
        assert destination.read_bytes() == content.encode("utf-8")
        assert "/version:7" in fake_runner.argv()

    def test_download_latest_version_has_no_version_switch(self, fake_runner, context, tmp_path):
        destination = tmp_path / "deep" / "dir" / "file.txt"

        run(DownloadCommand(context, "$/Project/file.txt", 0, str(destination)), fake_runner, stdout="x")

        assert destination.read_text(encoding="utf-8") == "x"
        assert not any(token.startswith("/version") for token in fake_runner.argv())

    def test_download_write_failure_is_parse_failure(self, fake_runner, context, tmp_path):
        with pytest.raises(ToolParseFailure) as excinfo:
            run(DownloadCommand(context, "$/Project/file.txt", 0, str(tmp_path)), fake_runner, stdout="content")

        assert isinstance(excinfo.value.__cause__, OSError)
        assert excinfo.value.output == "content"
        assert "Unable to write" in str(excinfo.value)
