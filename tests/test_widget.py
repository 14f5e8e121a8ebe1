"""Tests for the JsonViewer widget key handling and pane rendering."""

from types import SimpleNamespace

from textual.geometry import Region

from jexview.cursor import FocusPosition, ValuePath
from jexview.session import Focus, Session
from jexview.values import load_documents
from jexview.view import ErrorView, JsonView
from jexview.widget import AppMode, JsonViewer, render_view

DOC = '{"a": [1, 2], "b": "Text"}'


def make_viewer(text=DOC):
    return JsonViewer(Session.from_documents(load_documents(text), "doc.json"))


class TestRenderView:
    """Drawing each kind of view."""

    def test_json_view(self):
        view = JsonView.new(load_documents("[1, 2]"))
        text = render_view(view, Region(0, 0, 20, 3), has_focus=True)
        assert text.plain == "[\n  1,\n  2"
        assert view.rect == Region(0, 0, 20, 3)

    def test_error_view(self):
        text = render_view(ErrorView(("bad\nquery",)), Region(0, 0, 20, 3), True)
        assert text.plain == "bad\nquery"
        assert text.style == "white on red"

    def test_absent_view(self):
        assert render_view(None, Region(0, 0, 20, 3), True).plain == ""


class TestNormalMode:
    """Keys handled in NORMAL mode."""

    def _key(self, char, key=None):
        return SimpleNamespace(key=key or char, character=char)

    def test_move(self):
        viewer = make_viewer()
        view = viewer.session.focused_view()
        viewer._handle_normal(self._key("j"))
        viewer._handle_normal(self._key(None, "down"))
        assert view.selection.to_path() == ValuePath(0, (0, 0), FocusPosition.VALUE)
        viewer._handle_normal(self._key("k"))
        assert view.selection.to_path() == ValuePath(0, (0,), FocusPosition.START)

    def test_page(self):
        viewer = make_viewer()
        view = viewer.session.focused_view()
        viewer._handle_normal(self._key(None, "ctrl+f"))
        assert view.selection.to_path() == ValuePath(0, (), FocusPosition.END)
        viewer._handle_normal(self._key(None, "pageup"))
        assert view.selection.to_path() == ValuePath(0, (), FocusPosition.START)

    def test_fold_keys(self):
        viewer = make_viewer()
        view = viewer.session.focused_view()
        viewer._handle_normal(self._key("z"))
        assert view.folds == {(0, ())}
        viewer._handle_normal(self._key("Z"))
        assert view.folds == set()
        viewer._handle_normal(self._key("M"))
        assert view.folds == {(0, ())}

    def test_fold_leaf(self):
        viewer = make_viewer("[1]")
        viewer._handle_normal(self._key("j"))
        viewer._handle_normal(self._key("z"))
        assert viewer.session.status_msg == "Not a container"

    def test_status_cleared_on_next_key(self):
        viewer = make_viewer()
        viewer.session.status_msg = "old"
        viewer._handle_normal(self._key("j"))
        assert viewer.session.status_msg == ""

    def test_enter_prompts(self):
        viewer = make_viewer()
        viewer._handle_normal(self._key("/", "slash"))
        assert viewer.mode is AppMode.SEARCH
        assert viewer._prompt_text().plain == "/"

        viewer = make_viewer()
        viewer._handle_normal(self._key("?", "question_mark"))
        assert viewer.mode is AppMode.SEARCH
        assert viewer._prompt_text().plain == "?"

        viewer = make_viewer()
        viewer._handle_normal(self._key(":", "colon"))
        assert viewer.mode is AppMode.COMMAND
        assert viewer._prompt_text().plain == ":"

    def test_query_prompt_starts_from_current_query(self):
        viewer = make_viewer()
        viewer._handle_normal(self._key("q"))
        assert viewer.mode is AppMode.QUERY
        assert viewer.prompt_buffer == "$"
        assert viewer._prompt_text().plain == "query: $"

    def test_panes(self):
        viewer = make_viewer()
        viewer._handle_normal(self._key(None, "tab"))
        assert viewer.session.focus is Focus.RIGHT
        viewer._handle_normal(self._key("]", "right_square_bracket"))
        assert viewer.session.status_msg == "Already at the last pane"
        viewer._handle_normal(self._key("t"))
        assert viewer.session.show_tree

    def test_search_next_without_search(self):
        viewer = make_viewer()
        viewer._handle_normal(self._key("n"))
        assert viewer.session.status_msg == "No previous search"

    def test_status_line(self):
        viewer = make_viewer()
        assert viewer._prompt_text().plain == "Root Node"
        viewer.session.swap_focus()
        assert viewer._prompt_text().plain == "$"
        viewer.session.status_msg = "hello"
        assert viewer._prompt_text().plain == "hello"


class TestPromptMode:
    """Editing and submitting the prompt line."""

    def _key(self, char, key=None):
        return SimpleNamespace(key=key or char, character=char)

    def _type(self, viewer, text):
        for ch in text:
            viewer._handle_prompt(self._key(ch))

    def _enter(self, viewer):
        viewer._handle_prompt(self._key(None, "enter"))

    def test_query(self):
        viewer = make_viewer()
        viewer._handle_normal(self._key("q"))
        self._type(viewer, ".a")
        self._enter(viewer)
        session = viewer.session
        assert viewer.mode is AppMode.NORMAL
        assert session.focus is Focus.RIGHT
        assert session.focused_frame().name == "$.a"
        assert session.focused_view().values == ((1, 2),)

    def test_edit_query_reruns_on_parent(self):
        viewer = make_viewer('{"items": [1, 2]}')
        viewer._handle_normal(self._key(None, "tab"))
        viewer._handle_normal(self._key("Q"))
        assert viewer._prompt_text().plain == "new query: $"
        self._type(viewer, ".items")
        self._enter(viewer)
        session = viewer.session
        assert session.focused_view().values == ((1, 2),)

        viewer._handle_normal(self._key("q"))
        assert viewer.prompt_buffer == "$.items"
        assert viewer._prompt_text().plain == "query: $.items"
        self._type(viewer, "[0]")
        self._enter(viewer)
        assert session.focused_frame().name == "$.items[0]"
        assert session.focused_view().values == (1,)
        assert session.current_query() == "$.items[0]"

    def test_blank_query_ignored(self):
        viewer = make_viewer()
        viewer._handle_normal(self._key("q"))
        viewer._handle_prompt(self._key(None, "backspace"))
        self._type(viewer, "  ")
        self._enter(viewer)
        assert len(viewer.session.forest.trees[0].children) == 1

    def test_search(self):
        viewer = make_viewer()
        viewer._handle_normal(self._key("/", "slash"))
        self._type(viewer, "text")
        self._enter(viewer)
        view = viewer.session.focused_view()
        assert view.selection.to_path() == ValuePath(0, (1,), FocusPosition.VALUE)

    def test_escape(self):
        viewer = make_viewer()
        viewer._handle_normal(self._key(":", "colon"))
        self._type(viewer, "w x")
        viewer._handle_prompt(self._key(None, "escape"))
        assert viewer.mode is AppMode.NORMAL
        assert viewer.prompt_buffer == ""

    def test_backspace(self):
        viewer = make_viewer()
        viewer._handle_normal(self._key(":", "colon"))
        self._type(viewer, "ab")
        viewer._handle_prompt(self._key(None, "backspace"))
        assert viewer.prompt_buffer == "a"
        viewer._handle_prompt(self._key(None, "backspace"))
        assert viewer.mode is AppMode.COMMAND
        viewer._handle_prompt(self._key(None, "backspace"))
        assert viewer.mode is AppMode.NORMAL

    def test_control_characters_ignored(self):
        viewer = make_viewer()
        viewer._handle_normal(self._key(":", "colon"))
        viewer._handle_prompt(self._key("\x01", "ctrl+a"))
        assert viewer.prompt_buffer == ""

    def test_history(self):
        viewer = make_viewer()
        viewer.session.query_history[:] = ["$.b", "$.a"]
        viewer._handle_normal(self._key("q"))
        viewer._handle_prompt(self._key(None, "up"))
        assert viewer.prompt_buffer == "$.b"
        viewer._handle_prompt(self._key(None, "up"))
        assert viewer.prompt_buffer == "$.a"
        viewer._handle_prompt(self._key(None, "up"))
        assert viewer.prompt_buffer == "$.a"
        viewer._handle_prompt(self._key(None, "down"))
        assert viewer.prompt_buffer == "$.b"
        viewer._handle_prompt(self._key(None, "down"))
        assert viewer.prompt_buffer == ""

    def _command(self, viewer, text):
        viewer._handle_normal(self._key(":", "colon"))
        self._type(viewer, text)
        self._enter(viewer)

    def test_write_usage(self):
        viewer = make_viewer()
        self._command(viewer, "w")
        assert viewer.session.status_msg == "Usage: :w <file>"
        self._command(viewer, "e")
        assert viewer.session.status_msg == "Usage: :e <file>"

    def test_write_and_edit(self, tmp_path):
        viewer = make_viewer()
        path = tmp_path / "out.json"
        self._command(viewer, f"w {path}")
        assert path.exists()
        self._command(viewer, f"e {path}")
        assert len(viewer.session.forest.trees) == 2
        assert viewer.session.status_msg == f'"{path}" loaded'
        assert viewer._command_history[0] == f"e {path}"

    def test_unknown_command(self):
        viewer = make_viewer()
        self._command(viewer, "frobnicate now")
        assert viewer.session.status_msg == "unknown command: :frobnicate now"

    def test_empty_command(self):
        viewer = make_viewer()
        self._command(viewer, "")
        assert viewer.session.status_msg == ""
        assert viewer.mode is AppMode.NORMAL
