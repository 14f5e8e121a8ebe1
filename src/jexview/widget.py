"""Modal JSON viewer widget."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto

from rich.text import Text
from textual import events
from textual.app import ComposeResult
from textual.containers import Horizontal
from textual.geometry import Region
from textual.message import Message
from textual.widget import Widget
from textual.widgets import Static

from jexview.lines import MIN_WIDTH
from jexview.query import IDENTITY_QUERY
from jexview.session import Focus, Session, remember
from jexview.view import ErrorView, JsonView, View
from jexview.view_tree import ViewFrame


class AppMode(Enum):
    NORMAL = auto()
    QUERY = auto()
    SEARCH = auto()
    COMMAND = auto()


def render_view(view: View, rect: Region, has_focus: bool) -> Text:
    """Draw a view into *rect*; a populated pane is resized to it first."""
    if isinstance(view, JsonView):
        view.resize_to(rect)
        lines = view.render_lines(has_focus)
        return Text("\n", no_wrap=True, overflow="crop").join(lines)
    if isinstance(view, ErrorView):
        return Text("\n".join(view.lines()), style="white on red", overflow="fold")
    return Text()


class JsonPane(Widget):
    """One side of the pane pair."""

    DEFAULT_CSS = """
    JsonPane {
        height: 1fr;
        width: 1fr;
        border: solid $primary-darken-2;
        background: $surface;
    }
    JsonPane.focused {
        border: solid $accent;
    }
    """

    def __init__(self, *, id: str | None = None) -> None:
        super().__init__(id=id)
        self.frame: ViewFrame | None = None
        self.has_focus_pane = False

    def show(self, frame: ViewFrame, focused: bool) -> None:
        self.frame = frame
        self.has_focus_pane = focused
        self.border_title = frame.name
        self.set_class(focused, "focused")
        self.refresh()

    def pane_region(self) -> Region:
        size = self.content_region
        return Region(0, 0, max(MIN_WIDTH, size.width), max(1, size.height))

    def render(self) -> Text:
        if self.frame is None:
            return Text()
        return render_view(self.frame.view, self.pane_region(), self.has_focus_pane)


class JsonViewer(Widget, can_focus=True):
    """Two query panes, the view tree and a prompt line.

    Supported commands:
      NORMAL: j k  PgUp/PgDn ^f ^b  z Z M  / ? n N  q Q  :  Tab  ] [  t  F1
      COMMAND: :q :w <file> :e <file> :help
    """

    DEFAULT_CSS = """
    JsonViewer {
        height: 1fr;
        layout: vertical;
    }
    JsonViewer #panes {
        height: 1fr;
    }
    JsonViewer #tree-panel {
        height: 1fr;
        border: solid $primary-darken-2;
        display: none;
    }
    JsonViewer #tree-panel.visible {
        display: block;
    }
    JsonViewer #prompt {
        height: 1;
        padding: 0 1;
        background: $panel;
    }
    """

    # -- Messages ----------------------------------------------------------

    @dataclass
    class Quit(Message):
        pass

    @dataclass
    class HelpToggleRequested(Message):
        pass

    # -- Init --------------------------------------------------------------

    def __init__(
        self,
        session: Session,
        *,
        name: str | None = None,
        id: str | None = None,
        classes: str | None = None,
    ) -> None:
        super().__init__(name=name, id=id, classes=classes)
        self.session = session
        self._mode: AppMode = AppMode.NORMAL
        self.prompt_buffer: str = ""
        self._search_backward: bool = False
        self._derive_query: bool = False
        self._history_idx: int = -1
        self._command_history: list[str] = []

    @property
    def mode(self) -> AppMode:
        return self._mode

    def compose(self) -> ComposeResult:
        with Horizontal(id="panes"):
            yield Static(id="tree-panel")
            yield JsonPane(id="left")
            yield JsonPane(id="right")
        yield Static(id="prompt")

    def on_mount(self) -> None:
        tree_panel = self.query_one("#tree-panel", Static)
        tree_panel.styles.width = self.session.config.tree_width
        self.sync()

    def on_resize(self) -> None:
        self.sync()

    def sync(self) -> None:
        """Push session state into the child widgets."""
        session = self.session
        left, right, _ = session.current_frames()
        left_pane = self.query_one("#left", JsonPane)
        right_pane = self.query_one("#right", JsonPane)
        if left_pane.content_region.width and right_pane.content_region.width:
            session.resize(left_pane.pane_region(), right_pane.pane_region())
        left_pane.show(left, session.focus is Focus.LEFT)
        right_pane.show(right, session.focus is Focus.RIGHT)

        tree_panel = self.query_one("#tree-panel", Static)
        tree_panel.set_class(session.show_tree, "visible")
        if session.show_tree:
            tree_panel.update(session.forest.render_tree(session.index))
        self.query_one("#prompt", Static).update(self._prompt_text())
        self.app.sub_title = session.focused_frame().name

    def _prompt_text(self) -> Text:
        if self._mode is AppMode.QUERY:
            label = "new query" if self._derive_query else "query"
            return Text(f"{label}: {self.prompt_buffer}")
        if self._mode is AppMode.SEARCH:
            return Text(("?" if self._search_backward else "/") + self.prompt_buffer)
        if self._mode is AppMode.COMMAND:
            return Text(f":{self.prompt_buffer}")
        if self.session.status_msg:
            return Text(self.session.status_msg, style="bold")
        query = self.session.current_query()
        if query is None:
            return Text("Root Node", style="dim")
        return Text(query)

    # -- Keys --------------------------------------------------------------

    def on_key(self, event: events.Key) -> None:
        event.prevent_default()
        event.stop()

        if self._mode == AppMode.NORMAL:
            self._handle_normal(event)
        else:
            self._handle_prompt(event)

        self.sync()

    def _focused_json_view(self) -> JsonView | None:
        view = self.session.focused_view()
        return view if isinstance(view, JsonView) else None

    def _enter_prompt(self, mode: AppMode, initial: str = "") -> None:
        self._mode = mode
        self.prompt_buffer = initial
        self._history_idx = -1
        self.session.status_msg = ""

    def _handle_normal(self, event: events.Key) -> None:
        key = event.key
        char = event.character or ""
        session = self.session
        session.status_msg = ""
        view = self._focused_json_view()

        if key in ("j", "down"):
            if view:
                view.advance_cursor()
        elif key in ("k", "up"):
            if view:
                view.regress_cursor()
        elif key in ("pagedown", "ctrl+f"):
            if view:
                view.page_down()
        elif key in ("pageup", "ctrl+b"):
            if view:
                view.page_up()
        elif char == "z":
            if view and not view.toggle_fold():
                session.status_msg = "Not a container"
        elif char == "Z":
            if view:
                view.unfold_all()
        elif char == "M":
            if view:
                view.fold_all()
        elif char in ("/", "?"):
            self._search_backward = char == "?"
            self._enter_prompt(AppMode.SEARCH)
        elif char == "n":
            session.search_next()
        elif char == "N":
            session.search_next(reverse=True)
        elif char == "q":
            self._derive_query = False
            self._enter_prompt(AppMode.QUERY, session.current_query() or IDENTITY_QUERY)
        elif char == "Q":
            self._derive_query = True
            self._enter_prompt(AppMode.QUERY, IDENTITY_QUERY)
        elif char == ":":
            self._enter_prompt(AppMode.COMMAND)
        elif key == "tab":
            session.swap_focus()
        elif char == "]":
            session.next_pane()
        elif char == "[":
            session.prev_pane()
        elif char == "t":
            session.toggle_tree()
        elif key == "f1":
            self.post_message(self.HelpToggleRequested())

    # -- Prompt ------------------------------------------------------------

    def _history(self) -> list[str]:
        if self._mode is AppMode.QUERY:
            return self.session.query_history
        if self._mode is AppMode.SEARCH:
            return self.session.search_history
        return self._command_history

    def _handle_prompt(self, event: events.Key) -> None:
        key = event.key
        char = event.character

        if key == "escape":
            self._mode = AppMode.NORMAL
            self.prompt_buffer = ""
            self._history_idx = -1
            return

        if key == "enter":
            mode = self._mode
            text = self.prompt_buffer
            self._mode = AppMode.NORMAL
            self.prompt_buffer = ""
            self._history_idx = -1
            self._submit(mode, text)
            return

        if key == "backspace":
            if self.prompt_buffer:
                self.prompt_buffer = self.prompt_buffer[:-1]
                self._history_idx = -1
            else:
                self._mode = AppMode.NORMAL
                self._history_idx = -1
            return

        # History navigation
        if key == "up":
            self._history_prev()
            return
        if key == "down":
            self._history_next()
            return

        if char and char.isprintable():
            self.prompt_buffer += char
            self._history_idx = -1

    def _history_prev(self) -> None:
        history = self._history()
        if not history:
            return
        if self._history_idx < len(history) - 1:
            self._history_idx += 1
            self.prompt_buffer = history[self._history_idx]

    def _history_next(self) -> None:
        history = self._history()
        if self._history_idx > 0:
            self._history_idx -= 1
            self.prompt_buffer = history[self._history_idx]
        elif self._history_idx == 0:
            self._history_idx = -1
            self.prompt_buffer = ""

    def _submit(self, mode: AppMode, text: str) -> None:
        if mode is AppMode.QUERY:
            if not text.strip():
                return
            if self._derive_query:
                self.session.submit_query(text)
            else:
                self.session.edit_query(text)
        elif mode is AppMode.SEARCH:
            self.session.search(text, reverse=self._search_backward)
        elif mode is AppMode.COMMAND:
            cmd = text.strip()
            remember(self._command_history, cmd, self.session.config.history_size)
            self._exec_command(cmd)

    def _exec_command(self, cmd: str) -> None:
        parts = cmd.split(None, 1)
        verb = parts[0] if parts else ""
        arg = parts[1].strip() if len(parts) > 1 else ""

        if not verb:
            return
        if verb in ("q", "q!", "quit"):
            self.post_message(self.Quit())
        elif verb == "w":
            if not arg:
                self.session.status_msg = "Usage: :w <file>"
            else:
                self.session.save(arg)
        elif verb == "e":
            if not arg:
                self.session.status_msg = "Usage: :e <file>"
            else:
                self.session.open_file(arg)
        elif verb == "help":
            self.post_message(self.HelpToggleRequested())
        else:
            self.session.status_msg = f"unknown command: :{cmd}"
