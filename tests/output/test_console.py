"""Tests for the Rich console factory and style lookups."""

from rich.text import Text

from gtdctl.output.console import create_console, get_output, style_for_kind, style_for_status


class TestCreateConsole:
    def test_renders_to_buffer(self) -> None:
        console = create_console()
        console.print("hello")
        assert get_output(console) == "hello\n"

    def test_theme_styles_resolve(self) -> None:
        console = create_console()
        console.print(Text("OK", style="gtd.ok"), Text("task", style="gtd.kind.task"))
        assert "OK task" in get_output(console)

    def test_plain_text_without_terminal(self) -> None:
        console = create_console()
        console.print("[gtd.error]ERROR[/gtd.error]")
        assert "\x1b[" not in get_output(console)

    def test_width_override(self) -> None:
        assert create_console(width=60).width == 60


class TestStyles:
    def test_kind_styles(self) -> None:
        assert style_for_kind("task") == "gtd.kind.task"
        assert style_for_kind("area") == "gtd.kind.area"
        assert style_for_kind("note") == ""

    def test_status_styles(self) -> None:
        assert style_for_status("done") == "gtd.status.closed"
        assert style_for_status("archived") == "gtd.status.closed"
        assert style_for_status("in-progress") == "gtd.status.active"
        assert style_for_status("inbox") == ""
        assert style_for_status(None) == ""
