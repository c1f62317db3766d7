"""Tests for pi.composer.engine.BufferEngine."""

from __future__ import annotations

import pytest

from pi.composer.commands import (
    DeleteLeft,
    DeleteRight,
    DeleteWordLeft,
    DeleteWordRight,
    EditCommand,
    InsertChar,
    InsertText,
    KillLine,
    KillLineEnd,
    KillLineStart,
    KillWrappedLineEnd,
    KillWrappedLineStart,
    MoveChar,
    MoveLine,
    MoveToBufferBoundary,
    MoveToLineBoundary,
    MoveWord,
    Redo,
    SetBuffer,
    SetCursor,
    Undo,
    Yank,
    YankPop,
)
from pi.composer.engine import BufferEngine, BufferState, CommandRejected


def type_text(engine: BufferEngine, text: str) -> None:
    for ch in text:
        engine.apply(InsertChar(ch))


# ---------------------------------------------------------------------------
# Basics
# ---------------------------------------------------------------------------


class TestConstruction:
    def test_defaults(self) -> None:
        engine = BufferEngine()
        assert engine.snapshot() == BufferState("", 0)
        assert not engine.can_undo
        assert engine.wrap_width == 80

    def test_initial_text_puts_cursor_at_end(self) -> None:
        engine = BufferEngine("hello")
        assert engine.cursor == 5

    def test_initial_cursor_is_clamped(self) -> None:
        assert BufferEngine("hi", cursor=10).cursor == 2

    def test_rejects_non_commands(self) -> None:
        with pytest.raises(CommandRejected):
            BufferEngine().apply("insert")  # type: ignore[arg-type]


class TestInsertion:
    def test_insert_char(self) -> None:
        engine = BufferEngine()
        delta = engine.apply(InsertChar("a"))
        assert delta.changed
        assert delta.before == BufferState("", 0)
        assert delta.after == BufferState("a", 1)

    def test_typing_is_one_undo_group(self) -> None:
        engine = BufferEngine()
        type_text(engine, "hello")
        assert engine.undo_depth == 1
        engine.apply(Undo())
        assert engine.text == ""

    def test_movement_seals_typing_group(self) -> None:
        engine = BufferEngine()
        type_text(engine, "ab")
        engine.apply(MoveChar("left"))
        engine.apply(MoveChar("right"))
        type_text(engine, "cd")
        assert engine.undo_depth == 2
        engine.apply(Undo())
        assert engine.text == "ab"

    def test_lone_surrogates_are_replaced(self) -> None:
        engine = BufferEngine()
        engine.apply(InsertText("ab\udcffcd"))
        engine.apply(InsertChar("\ud800"))
        assert engine.snapshot() == BufferState("ab?cd?", 6)
        engine.apply(SetBuffer("x\udcff"))
        assert engine.text == "x?"

    def test_insert_in_middle(self) -> None:
        engine = BufferEngine("ac", cursor=1)
        engine.apply(InsertChar("b"))
        assert engine.snapshot() == BufferState("abc", 2)

    def test_paste_normalizes_newlines_and_is_one_group(self) -> None:
        engine = BufferEngine()
        engine.apply(InsertText("a\r\nb\rc"))
        assert engine.text == "a\nb\nc"
        type_text(engine, "d")
        assert engine.undo_depth == 2


class TestDeletion:
    def test_delete_left(self) -> None:
        engine = BufferEngine("abc")
        engine.apply(DeleteLeft())
        assert engine.snapshot() == BufferState("ab", 2)

    def test_delete_left_at_start_is_noop(self) -> None:
        engine = BufferEngine("abc", cursor=0)
        delta = engine.apply(DeleteLeft())
        assert not delta.changed
        assert not engine.can_undo

    def test_delete_right_at_end_is_noop(self) -> None:
        engine = BufferEngine("abc")
        delta = engine.apply(DeleteRight())
        assert not delta.changed

    def test_delete_right(self) -> None:
        engine = BufferEngine("abc", cursor=1)
        engine.apply(DeleteRight())
        assert engine.snapshot() == BufferState("ac", 1)

    def test_backspaces_coalesce(self) -> None:
        engine = BufferEngine("hello")
        engine.apply(DeleteLeft())
        engine.apply(DeleteLeft())
        assert engine.undo_depth == 1
        engine.apply(Undo())
        assert engine.snapshot() == BufferState("hello", 5)

    def test_delete_word_left(self) -> None:
        engine = BufferEngine("hello big world")
        engine.apply(DeleteWordLeft())
        assert engine.snapshot() == BufferState("hello big ", 10)

    def test_delete_word_right(self) -> None:
        engine = BufferEngine("hello big world", cursor=5)
        engine.apply(DeleteWordRight())
        assert engine.snapshot() == BufferState("hello world", 5)

    def test_char_deletes_do_not_feed_kill_ring(self) -> None:
        engine = BufferEngine("hello world", cursor=5)
        engine.apply(DeleteLeft())
        engine.apply(DeleteRight())
        assert engine.text == "hellworld"
        assert engine.kill_ring.length == 0

    def test_word_delete_left_can_be_yanked_back(self) -> None:
        engine = BufferEngine("hello world")
        engine.apply(DeleteWordLeft())
        assert engine.text == "hello "
        assert engine.kill_ring.peek() == "world"
        engine.apply(Yank())
        assert engine.snapshot() == BufferState("hello world", 11)

    def test_word_delete_right_feeds_kill_ring(self) -> None:
        engine = BufferEngine("hello big world", cursor=5)
        engine.apply(DeleteWordRight())
        assert engine.kill_ring.peek() == " big"

    def test_each_word_delete_is_own_undo_group(self) -> None:
        engine = BufferEngine("one two three")
        engine.apply(DeleteWordLeft())
        engine.apply(DeleteWordLeft())
        assert engine.text == "one "
        assert engine.undo_depth == 2
        assert engine.kill_ring.length == 2
        engine.apply(Undo())
        assert engine.snapshot() == BufferState("one two ", 8)


# ---------------------------------------------------------------------------
# Kills and yanks
# ---------------------------------------------------------------------------


class TestKills:
    def test_kill_line_end(self) -> None:
        engine = BufferEngine("hello world", cursor=5)
        engine.apply(KillLineEnd())
        assert engine.snapshot() == BufferState("hello", 5)
        assert engine.kill_ring.peek() == " world"

    def test_kill_line_end_at_line_end_joins_lines(self) -> None:
        engine = BufferEngine("ab\ncd", cursor=2)
        engine.apply(KillLineEnd())
        assert engine.snapshot() == BufferState("abcd", 2)
        assert engine.kill_ring.peek() == "\n"

    def test_kill_line_start(self) -> None:
        engine = BufferEngine("ab\ncdef", cursor=5)
        engine.apply(KillLineStart())
        assert engine.snapshot() == BufferState("ab\nef", 3)
        assert engine.kill_ring.peek() == "cd"

    def test_kill_line_start_at_line_start_removes_newline(self) -> None:
        engine = BufferEngine("ab\ncd", cursor=3)
        engine.apply(KillLineStart())
        assert engine.snapshot() == BufferState("abcd", 2)

    def test_kill_at_buffer_edges_is_noop(self) -> None:
        engine = BufferEngine("abc", cursor=0)
        assert not engine.apply(KillLineStart()).changed
        engine.apply(MoveToBufferBoundary("right"))
        assert not engine.apply(KillLineEnd()).changed
        assert engine.kill_ring.length == 0

    def test_kill_line_removes_line_and_newline(self) -> None:
        engine = BufferEngine("one\ntwo\nthree", cursor=5)
        engine.apply(KillLine())
        assert engine.snapshot() == BufferState("one\nthree", 4)
        assert engine.kill_ring.peek() == "two\n"

    def test_kill_last_line_takes_preceding_newline(self) -> None:
        engine = BufferEngine("one\ntwo")
        engine.apply(KillLine())
        assert engine.snapshot() == BufferState("one", 0)
        assert engine.kill_ring.peek() == "\ntwo"

    def test_kill_only_line(self) -> None:
        engine = BufferEngine("solo", cursor=2)
        engine.apply(KillLine())
        assert engine.snapshot() == BufferState("", 0)

    def test_kill_then_undo_restores_exactly(self) -> None:
        engine = BufferEngine("one\ntwo\nthree", cursor=6)
        before = engine.snapshot()
        engine.apply(KillLineEnd())
        killed = engine.kill_ring.peek()
        assert before.text[6:7] == killed
        engine.apply(Undo())
        assert engine.snapshot() == before

    def test_each_kill_is_own_undo_group(self) -> None:
        engine = BufferEngine("a b c")
        engine.apply(KillLineStart())
        assert engine.undo_depth == 1
        type_text(engine, "xy")
        engine.apply(KillLineStart())
        assert engine.undo_depth == 3


class TestWrappedKills:
    def test_kill_wrapped_line_end(self) -> None:
        engine = BufferEngine("hello world foo", cursor=8, wrap_width=11)
        engine.apply(KillWrappedLineEnd())
        assert engine.text == "hello wo"
        assert engine.kill_ring.peek() == "rld foo"

    def test_kill_wrapped_line_start(self) -> None:
        engine = BufferEngine("hello world foo", cursor=9, wrap_width=11)
        engine.apply(KillWrappedLineStart())
        assert engine.snapshot() == BufferState("hello ld foo", 6)
        assert engine.kill_ring.peek() == "wor"

    def test_on_wrap_point_takes_previous_visual_line(self) -> None:
        engine = BufferEngine("hello world foo", cursor=6, wrap_width=11)
        engine.apply(KillWrappedLineStart())
        assert engine.snapshot() == BufferState("world foo", 0)

    def test_unwrapped_line_behaves_like_logical_kill(self) -> None:
        engine = BufferEngine("short", cursor=2, wrap_width=80)
        engine.apply(KillWrappedLineEnd())
        assert engine.text == "sh"


class TestYank:
    def test_yank_inserts_newest_kill(self) -> None:
        engine = BufferEngine("hello world", cursor=5)
        engine.apply(KillLineEnd())
        engine.apply(MoveToBufferBoundary("left"))
        engine.apply(Yank())
        assert engine.snapshot() == BufferState(" worldhello", 6)

    def test_yank_with_empty_ring_is_noop(self) -> None:
        engine = BufferEngine("abc")
        assert not engine.apply(Yank()).changed

    def test_yank_pop_cycles_older_kills(self) -> None:
        engine = BufferEngine("one two")
        engine.apply(DeleteWordLeft())  # kills "two"
        engine.apply(KillLineStart())  # kills "one "
        engine.apply(SetBuffer("x y", cursor=1))
        engine.apply(KillLineEnd())  # kills " y"
        engine.apply(Yank())
        assert engine.text == "x y"
        engine.apply(YankPop())
        assert engine.snapshot() == BufferState("xone ", 5)
        engine.apply(YankPop())
        assert engine.snapshot() == BufferState("xtwo", 4)

    def test_yank_pop_requires_preceding_yank(self) -> None:
        engine = BufferEngine("a b")
        engine.apply(KillLineStart())
        engine.apply(SetBuffer("c d"))
        engine.apply(KillLineStart())
        assert not engine.apply(YankPop()).changed
        engine.apply(Yank())
        engine.apply(MoveChar("left"))
        assert not engine.apply(YankPop()).changed

    def test_undo_after_yank(self) -> None:
        engine = BufferEngine("abc")
        engine.apply(KillLineStart())
        engine.apply(Yank())
        engine.apply(Undo())
        assert engine.snapshot() == BufferState("", 0)


# ---------------------------------------------------------------------------
# Movement
# ---------------------------------------------------------------------------


class TestMovement:
    def test_move_char_clamps(self) -> None:
        engine = BufferEngine("ab", cursor=0)
        assert not engine.apply(MoveChar("left")).changed
        engine.apply(MoveChar("right"))
        engine.apply(MoveChar("right"))
        engine.apply(MoveChar("right"))
        assert engine.cursor == 2

    def test_move_word(self) -> None:
        engine = BufferEngine("foo bar.baz", cursor=0)
        engine.apply(MoveWord("right"))
        assert engine.cursor == 3
        engine.apply(MoveWord("right"))
        assert engine.cursor == 7
        engine.apply(MoveWord("left"))
        assert engine.cursor == 4

    def test_line_boundaries(self) -> None:
        engine = BufferEngine("ab\ncdef", cursor=4)
        engine.apply(MoveToLineBoundary("left"))
        assert engine.cursor == 3
        engine.apply(MoveToLineBoundary("right"))
        assert engine.cursor == 7

    def test_buffer_boundaries(self) -> None:
        engine = BufferEngine("ab\ncd", cursor=1)
        engine.apply(MoveToBufferBoundary("right"))
        assert engine.cursor == 5
        engine.apply(MoveToBufferBoundary("left"))
        assert engine.cursor == 0

    def test_move_line_keeps_sticky_column(self) -> None:
        engine = BufferEngine("abcdef\nab\nabcdef", cursor=5)
        engine.apply(MoveLine("down"))
        assert engine.cursor == 9  # clamped to end of "ab"
        engine.apply(MoveLine("down"))
        assert engine.cursor == 15  # column 5 restored

    def test_move_line_at_edges_is_noop(self) -> None:
        engine = BufferEngine("one\ntwo", cursor=1)
        assert not engine.apply(MoveLine("up")).changed
        engine.apply(MoveToBufferBoundary("right"))
        assert not engine.apply(MoveLine("down")).changed

    def test_movement_does_not_touch_undo_or_kill_ring(self) -> None:
        engine = BufferEngine("hello world")
        engine.apply(MoveWord("left"))
        engine.apply(MoveLine("up"))
        assert not engine.can_undo
        assert engine.kill_ring.length == 0


# ---------------------------------------------------------------------------
# Direct state
# ---------------------------------------------------------------------------


class TestSetBufferAndCursor:
    def test_set_buffer_defaults_cursor_to_end(self) -> None:
        engine = BufferEngine()
        engine.apply(SetBuffer("Hello"))
        assert engine.snapshot() == BufferState("Hello", 5)

    def test_set_buffer_clamps_cursor(self) -> None:
        engine = BufferEngine()
        engine.apply(SetBuffer("Hi", cursor=50))
        assert engine.cursor == 2

    def test_set_buffer_is_one_undo_group(self) -> None:
        engine = BufferEngine("old")
        engine.apply(SetBuffer("new text"))
        engine.apply(Undo())
        assert engine.snapshot() == BufferState("old", 3)

    def test_set_buffer_same_text_only_moves_cursor(self) -> None:
        engine = BufferEngine("same")
        engine.apply(SetBuffer("same", cursor=1))
        assert engine.cursor == 1
        assert not engine.can_undo

    def test_set_cursor_clamps(self) -> None:
        engine = BufferEngine("Hello")
        engine.apply(SetCursor(999))
        assert engine.cursor == 5
        engine.apply(SetCursor(-3))
        assert engine.cursor == 0


# ---------------------------------------------------------------------------
# Undo / redo
# ---------------------------------------------------------------------------


class TestUndoRedo:
    def test_empty_stacks_are_noops(self) -> None:
        engine = BufferEngine("abc")
        assert not engine.apply(Undo()).changed
        assert not engine.apply(Redo()).changed

    def test_new_edit_clears_redo(self) -> None:
        engine = BufferEngine()
        type_text(engine, "a")
        engine.apply(Undo())
        type_text(engine, "b")
        assert not engine.can_redo

    @pytest.mark.parametrize("k", [1, 2, 3, 5])
    def test_undo_then_redo_restores_state(self, k: int) -> None:
        engine = BufferEngine()
        commands: list[EditCommand] = [
            InsertChar("a"),
            InsertChar("b"),
            MoveChar("left"),
            InsertText("XY"),
            MoveToBufferBoundary("right"),
            DeleteLeft(),
            SetBuffer("replaced", cursor=3),
            KillLineEnd(),
        ]
        for cmd in commands:
            engine.apply(cmd)
        assert engine.undo_depth == 5
        after = engine.snapshot()
        for _ in range(k):
            engine.apply(Undo())
        for _ in range(k):
            engine.apply(Redo())
        assert engine.snapshot() == after

    def test_undo_restores_pre_group_cursor(self) -> None:
        engine = BufferEngine("abc", cursor=1)
        type_text(engine, "xy")
        engine.apply(Undo())
        assert engine.snapshot() == BufferState("abc", 1)


class TestResetAndCallbacks:
    def test_reset_clears_undo(self) -> None:
        engine = BufferEngine()
        type_text(engine, "draft")
        engine.reset()
        assert engine.snapshot() == BufferState("", 0)
        assert not engine.can_undo

    def test_on_change_fires_only_on_change(self) -> None:
        engine = BufferEngine()
        seen: list[BufferState] = []
        engine.on_change = seen.append
        engine.apply(InsertChar("a"))
        engine.apply(MoveChar("right"))
        assert seen == [BufferState("a", 1)]

    def test_on_change_errors_are_contained(self) -> None:
        engine = BufferEngine()

        def boom(_state: BufferState) -> None:
            raise RuntimeError("boom")

        engine.on_change = boom
        delta = engine.apply(InsertChar("a"))
        assert delta.after.text == "a"
