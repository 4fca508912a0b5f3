"""Tests for pi.prompt.render: frame layout, row accounting and in-place redraw."""

from __future__ import annotations

from pi.prompt.render import (
    FOOTER_HINT,
    EditorView,
    Renderer,
    build_frame,
    highlight_file_references,
    physical_rows,
)
from pi.prompt.theme import plain_theme

WIDTH = 100
RULE = "─" * WIDTH


def render_views(term, *views: EditorView) -> Renderer:
    renderer = Renderer(term, plain_theme())
    for view in views:
        renderer.render(view)
    return renderer


def expected_screen(view: EditorView) -> list[str]:
    """Screen rows for *view* on a terminal wide enough that nothing wraps."""
    rows = [view.message]
    if view.placeholder is not None:
        rows.append("  " + view.placeholder)
    rows.append("")
    rows.append(RULE)
    rows.extend(" " + line for line in view.lines)
    rows.append(RULE)
    for i, candidate in enumerate(view.candidates):
        marker = "→" if i == view.selected_index else " "
        rows.append(f"  {marker} {candidate}")
    if view.paste_summary is not None:
        rows.append("  " + view.paste_summary)
    rows.append(FOOTER_HINT)
    return [row.rstrip() for row in rows]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class TestPhysicalRows:
    def test_empty_line_is_one_row(self) -> None:
        assert physical_rows("", 10) == 1

    def test_exact_width_is_one_row(self) -> None:
        assert physical_rows("x" * 10, 10) == 1

    def test_wrapped(self) -> None:
        assert physical_rows("x" * 11, 10) == 2
        assert physical_rows("x" * 25, 10) == 3

    def test_ansi_not_counted(self) -> None:
        assert physical_rows("\x1b[36m" + "x" * 10 + "\x1b[0m", 10) == 1

    def test_wide_characters(self) -> None:
        assert physical_rows("日本語", 4) == 2


class TestHighlight:
    def test_wraps_each_reference(self) -> None:
        styled = highlight_file_references("see @a.py and @b/c.md.", lambda s: f"<{s}>")
        assert styled == "see <@a.py> and <@b/c.md.>"

    def test_no_reference(self) -> None:
        assert highlight_file_references("plain @ text", str.upper) == "plain @ text"


# ---------------------------------------------------------------------------
# Frame layout
# ---------------------------------------------------------------------------


class TestBuildFrame:
    def test_header_without_placeholder(self) -> None:
        frame = build_frame(EditorView(message="Prompt"), WIDTH, plain_theme())
        assert frame.header == ["Prompt", ""]

    def test_header_with_placeholder(self) -> None:
        frame = build_frame(EditorView(message="Prompt", placeholder="hint"), WIDTH, plain_theme())
        assert frame.header == ["Prompt", "  hint", ""]

    def test_body_row_count(self) -> None:
        view = EditorView(
            message="m",
            lines=["a", "b", "c"],
            candidates=["x", "y"],
            paste_summary="[text 2 lines · 3 chars · chunk #1]",
        )
        frame = build_frame(view, WIDTH, plain_theme())
        # rule + lines + rule + candidates + summary + hint
        assert len(frame.body) == 1 + 3 + 1 + 2 + 1 + 1

    def test_candidate_marker(self) -> None:
        view = EditorView(message="m", candidates=["one", "two"], selected_index=1)
        frame = build_frame(view, WIDTH, plain_theme())
        assert frame.body[3] == "    one"
        assert frame.body[4] == "  → two"

    def test_cursor_position(self) -> None:
        view = EditorView(message="m", lines=["first", "hello"], cursor_row=1, cursor_column=3)
        frame = build_frame(view, WIDTH, plain_theme())
        assert frame.cursor_body_line == 2
        assert frame.cursor_offset == 4


# ---------------------------------------------------------------------------
# Renderer
# ---------------------------------------------------------------------------


class TestRendererFirstFrame:
    def test_first_frame_layout(self, make_terminal) -> None:
        term = make_terminal(columns=WIDTH)
        view = EditorView(message="Describe:", lines=["hello"], cursor_column=5)
        render_views(term, view)
        assert term.screen().lines() == expected_screen(view)

    def test_cursor_placed_after_text(self, make_terminal) -> None:
        term = make_terminal(columns=WIDTH)
        view = EditorView(message="Describe:", lines=["hello"], cursor_column=5)
        render_views(term, view)
        # header (2) + rule (1) -> row 3; leading space + 5 chars -> column 6
        assert term.screen().cursor == (3, 6)

    def test_row_accounting(self, make_terminal) -> None:
        term = make_terminal(columns=WIDTH)
        view = EditorView(
            message="m",
            placeholder="p",
            lines=["a", "b"],
            candidates=["x", "y", "z"],
            paste_summary="[text 2 lines · 3 chars · chunk #1]",
        )
        renderer = render_views(term, view)
        state = renderer.state
        assert state.header_rows == 3
        assert state.previous_dynamic_rows == 2 + 2 + 3 + 1 + 1
        assert state.previous_total_rows == 3 + 2 + 2 + 3 + 1 + 1
        assert not state.is_first_frame

    def test_cursor_hidden_while_drawing(self, make_terminal) -> None:
        term = make_terminal(columns=WIDTH)
        render_views(term, EditorView(message="m"))
        out = term.get_output()
        assert out.startswith("\x1b[?25l")
        assert "\x1b[?25h" in out


class TestRendererRedraw:
    def test_shrinking_frame_leaves_no_stale_rows(self, make_terminal) -> None:
        term = make_terminal(columns=WIDTH)
        big = EditorView(message="m", lines=["a", "b", "c", "d"], cursor_row=3, candidates=["x", "y"])
        small = EditorView(message="m", lines=["a"], cursor_column=1)
        render_views(term, big, small)
        assert term.screen().lines() == expected_screen(small)

    def test_growing_frame(self, make_terminal) -> None:
        term = make_terminal(columns=WIDTH)
        small = EditorView(message="m", placeholder="p")
        big = EditorView(message="m", placeholder="p", lines=["a", "b", "c"], cursor_row=1, cursor_column=1)
        render_views(term, small, big)
        screen = term.screen()
        assert screen.lines() == expected_screen(big)
        assert screen.cursor == (3 + 1 + 1, 2)

    def test_many_redraws_keep_header_once(self, make_terminal) -> None:
        term = make_terminal(columns=WIDTH)
        views = [EditorView(message="Title", lines=["x" * n], cursor_column=n) for n in range(8)]
        render_views(term, *views)
        lines = term.screen().lines()
        assert lines.count("Title") == 1
        assert lines == expected_screen(views[-1])

    def test_cursor_on_earlier_line(self, make_terminal) -> None:
        term = make_terminal(columns=WIDTH)
        first = EditorView(message="m", lines=["one", "two", "three"], cursor_row=2, cursor_column=5)
        moved = EditorView(message="m", lines=["one", "two", "three"], cursor_row=0, cursor_column=2)
        render_views(term, first, moved)
        screen = term.screen()
        assert screen.lines() == expected_screen(moved)
        assert screen.cursor == (3, 3)

    def test_reentrant_render_ignored(self, make_terminal) -> None:
        term = make_terminal(columns=WIDTH)
        renderer = Renderer(term, plain_theme())
        renderer._rendering = True
        renderer.render(EditorView(message="m"))
        assert term.get_output() == ""


class TestRendererWrapping:
    def test_wrapped_line_counted_exactly(self, make_terminal) -> None:
        width = 20
        term = make_terminal(columns=width)
        long_line = "y" * 30
        view = EditorView(message="m", lines=[long_line], cursor_column=30)
        renderer = render_views(term, view)
        hint_rows = physical_rows(FOOTER_HINT, width)
        # rule + wrapped line (2) + rule + hint
        assert renderer.state.previous_dynamic_rows == 1 + 2 + 1 + hint_rows
        # 31 columns of content: second row of the line, column 11
        assert term.screen().cursor == (2 + 1 + 1, 11)

    def test_cursor_after_line_filling_its_row_stays_on_last_column(self, make_terminal) -> None:
        width = 20
        term = make_terminal(columns=width)
        view = EditorView(message="m", lines=["y" * 19], cursor_column=19)
        renderer = render_views(term, view)
        assert renderer.state.cursor_row_offset_from_top == 3
        assert "\x1b[20G" in term.get_output()
        assert "\x1b[21G" not in term.get_output()
        assert term.screen().cursor == (3, 19)

    def test_wrapped_frame_redraw_has_no_leftovers(self, make_terminal) -> None:
        width = 20
        term = make_terminal(columns=width)
        wide = EditorView(message="m", lines=["y" * 45, "z"], cursor_row=1, cursor_column=1)
        narrow = EditorView(message="m", lines=["ok"], cursor_column=2)
        render_views(term, wide, narrow)

        fresh = make_terminal(columns=width)
        render_views(fresh, narrow)
        assert term.screen().lines() == fresh.screen().lines()


class TestRendererClear:
    def test_clear_with_header_erases_everything(self, make_terminal) -> None:
        term = make_terminal(columns=WIDTH)
        renderer = render_views(
            term,
            EditorView(message="m", placeholder="p", lines=["a", "b"], cursor_row=1, candidates=["c"]),
        )
        renderer.clear(include_header=True)
        screen = term.screen()
        assert screen.lines() == []
        assert screen.cursor == (0, 0)
        assert renderer.state.is_first_frame

    def test_clear_body_keeps_header(self, make_terminal) -> None:
        term = make_terminal(columns=WIDTH)
        renderer = render_views(term, EditorView(message="m", lines=["a", "b"], cursor_row=1))
        renderer.clear()
        assert term.screen().lines() == ["m"]

    def test_clear_before_first_frame_is_noop(self, make_terminal) -> None:
        term = make_terminal(columns=WIDTH)
        Renderer(term, plain_theme()).clear(include_header=True)
        assert term.get_output() == ""

    def test_render_after_body_clear(self, make_terminal) -> None:
        term = make_terminal(columns=WIDTH)
        view = EditorView(message="m", lines=["a"], cursor_column=1)
        renderer = render_views(term, view)
        renderer.clear()
        renderer.render(view)
        assert term.screen().lines() == expected_screen(view)
