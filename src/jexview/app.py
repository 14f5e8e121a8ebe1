"""Terminal JSON viewer with incremental query panes."""

from __future__ import annotations

import argparse
import json
import logging
import sys

from textual.app import App, ComposeResult
from textual.containers import Horizontal, Vertical
from textual.widgets import Button, Header, Static

from jexview.config import ViewerConfig, load_config
from jexview.session import Session
from jexview.widget import JsonViewer

HELP_TEXT = """\
[b]Move[/b]     j/Down  k/Up    PgDn/^f  PgUp/^b
[b]Fold[/b]     z [dim]toggle[/]  Z [dim]unfold all[/]  M [dim]fold all[/]
[b]Search[/b]   /pattern  ?pattern  n  N   [dim]\\c ignore case, \\C match case[/]
[b]Query[/b]    q [dim]edit the focused pane's query[/]  Q [dim]new pane from the focused one, e.g.[/] $.items[*].name
[b]Panes[/b]    Tab [dim]swap focus[/]  ] [dim]next pair[/]  [ [dim]previous pair[/]  t [dim]tree[/]
[b]Cmd :[/b]    :w <file> [dim]save pane[/]  :e <file> [dim]open file[/]  :q [dim]quit[/]  :help
"""


class JexApp(App):
    """TUI app that wraps the JsonViewer widget."""

    CSS = """
    Screen {
        layout: vertical;
    }
    #help-panel {
        display: none;
        height: auto;
        max-height: 12;
        border: solid $accent;
        background: $surface;
    }
    #help-panel.visible {
        display: block;
    }
    #help-header {
        height: 1;
    }
    #help-title {
        width: 1fr;
    }
    #help-close {
        min-width: 3;
        height: 1;
        border: none;
    }
    #help-body {
        padding: 0 1;
    }
    """

    TITLE = "jex"
    BINDINGS = []
    ENABLE_COMMAND_PALETTE = False

    def __init__(self, session: Session, **kwargs) -> None:
        super().__init__(**kwargs)
        self.session = session

    def compose(self) -> ComposeResult:
        yield Header()
        yield JsonViewer(self.session, id="viewer")
        with Vertical(id="help-panel"):
            with Horizontal(id="help-header"):
                yield Static("[b]Help[/b]", id="help-title")
                yield Button("✕", id="help-close", variant="error")
            yield Static(HELP_TEXT, id="help-body")

    def on_mount(self) -> None:
        self.query_one("#viewer").focus()

    def on_json_viewer_quit(self, event: JsonViewer.Quit) -> None:
        self.exit()

    def on_json_viewer_help_toggle_requested(self) -> None:
        self.query_one("#help-panel").toggle_class("visible")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "help-close":
            self.query_one("#help-panel").remove_class("visible")
            self.query_one("#viewer").focus()


def _configure_logging(log_file: str, level: str) -> None:
    if log_file:
        logging.basicConfig(
            filename=log_file,
            level=level,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
    else:
        # The terminal belongs to the TUI; drop records instead of printing them.
        logging.getLogger("jexview").addHandler(logging.NullHandler())
        logging.getLogger("jexview").setLevel(level)


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="jex",
        description="Interactive JSON viewer with query panes",
    )
    parser.add_argument(
        "file",
        help="JSON file to view (one or more whitespace separated documents)",
    )
    parser.add_argument(
        "-t", "--tree",
        action="store_true",
        default=None,
        help="show the view tree panel",
    )
    parser.add_argument(
        "--log-file",
        default="",
        help="write debug logs to this file",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="log level (default from config, WARNING)",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="config file (default ~/.config/jexview.json)",
    )
    args = parser.parse_args()

    config: ViewerConfig = load_config(args.config)
    _configure_logging(args.log_file, args.log_level or config.log_level)

    try:
        session = Session.from_file(args.file, config)
    except json.JSONDecodeError as exc:
        print(f"jex: {args.file}: invalid JSON: {exc}", file=sys.stderr)
        sys.exit(1)
    except (OSError, UnicodeDecodeError) as exc:
        print(f"jex: {exc}", file=sys.stderr)
        sys.exit(1)
    if args.tree:
        session.show_tree = True

    app = JexApp(session)
    app.run()


if __name__ == "__main__":
    main()
