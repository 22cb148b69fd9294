import pytest
import trio

from calamus.device.keysources import ChannelKeySource
from calamus.editor.controller import Finished
from calamus.editor.hooks import HookType
from calamus.editor.keymap import Keymap
from calamus.editor.keys import kbd
from calamus.editor.prefix import Minus, Universal


async def test_chord_invokes_command_once(harness):
    h = harness("a", "C-x C-c")
    result = await h.run()
    assert result == Finished()
    assert h.calls == [("quit", None)]
    assert h.controller.key_sequence == []
    assert h.controller.last_command == "quit"
    assert h.controller.this_command_keys == kbd("C-x C-c")
    assert h.buffer.text == "a"


async def test_chord_after_prefix_argument(harness):
    h = harness("C-u", "C-x C-c", "C-x C-c")
    await h.run()
    assert h.calls == [("quit", Universal(4)), ("quit", None)]
    assert h.controller.overriding_map is None


async def test_prefix_argument_is_used_once(harness):
    h = harness("C-u", "a", "b")
    await h.run()
    assert h.buffer.text == "aaaab"
    assert not h.controller.prefix_arg_state.is_set


@pytest.mark.parametrize(
    "notations,expected",
    [
        (("C-u",), Universal(4)),
        (("C-u", "C-u"), Universal(16)),
        (("C-u", "1", "2"), 12),
        (("M-5",), 5),
        (("M-1", "M-0"), 10),
        (("C-u", "-"), Minus()),
        (("C-u", "-", "3"), -3),
        (("M--",), Minus()),
        (("M--", "4", "2"), -42),
        (("M-3", "-"), -3),
    ],
)
async def test_prefix_argument_composition(harness, notations, expected):
    h = harness(*notations, "C-c p")
    await h.run()
    assert h.calls == [("note_prefix", expected)]


async def test_digits_insert_once_prefix_is_done(harness):
    h = harness("C-u", "3", "x", "4")
    await h.run()
    assert h.buffer.text == "xxx4"


async def test_overriding_map_beats_local_and_global(harness):
    h = harness("a", "b", "c")
    h.buffer.local_keymap = Keymap({"a": "note_prefix", "b": "note_prefix"})
    h.controller.overriding_map = Keymap({"a": "note_depth"})
    await h.run()
    assert h.calls == [("note_depth", 0), ("note_prefix", None)]
    assert h.buffer.text == "c"


async def test_undefined_sequence_is_reported(harness):
    h = harness("C-x z", "C-u", "C-c z", "a")
    await h.run()
    assert "C-x z is undefined" in h.echo_area.history
    assert "C-c z is undefined" in h.echo_area.history
    assert h.buffer.text == "a"
    assert h.controller.key_sequence == []


async def test_editor_error_is_contained(harness):
    h = harness("C-b", "x")
    await h.run()
    assert h.echo_area.history == ["Beginning of buffer"]
    assert h.echo_area.message is None
    assert h.buffer.text == "x"
    assert h.controller.key_sequence == []


async def test_unexpected_error_is_contained(harness):
    h = harness("C-u", "C-c b", "a")
    await h.run()
    assert "RuntimeError: boom" in h.echo_area.history
    assert h.buffer.text == "a"
    assert not h.controller.prefix_arg_state.is_set


async def test_error_cancels_macro_recording(harness):
    h = harness("C-x (", "a", "C-b", "C-b", "C-x )")
    await h.run()
    assert not h.controller.recording_keyboard_macro
    assert h.echo_area.history[-2:] == ["Beginning of buffer", "Not recording keyboard macro"]


async def test_multibyte_input_is_inserted(harness):
    h = harness("\\303 \\251", "\\377", "!")
    await h.run()
    assert h.buffer.text == "é!"
    assert "\\377 is undefined" in h.echo_area.history


async def test_abort_restores_depth(harness):
    h = harness("C-x r", "a", "C-c d", "C-]", "b", "C-c d")
    await h.run()
    assert h.calls == [("note_depth", 1), ("note_depth", 0)]
    assert h.buffer.text == "ab"
    assert "Quit" in h.echo_area.history
    assert h.controller.recursive_edit_level == 0


async def test_nested_quits_unwind_one_level_at_a_time(harness):
    h = harness("C-x r", "C-x r", "C-c d", "C-]", "C-c d", "C-]", "C-c d")
    await h.run()
    assert h.calls == [("note_depth", 2), ("note_depth", 1), ("note_depth", 0)]


async def test_exit_recursive_edit(harness):
    h = harness("C-x r", "C-M-c", "C-c d", "C-M-c")
    await h.run()
    assert h.calls == [("note_depth", 0)]
    assert h.echo_area.history == ["No recursive edit is in progress"]


async def test_top_level_unwinds_every_recursive_edit(harness):
    h = harness("C-x r", "C-x r", "C-c C-g", "C-c d", "a")
    await h.run()
    assert h.calls == [("note_depth", 0)]
    assert h.buffer.text == "a"
    assert h.controller.last_command == "self_insert"


async def test_end_of_input_inside_recursive_edit(harness):
    h = harness("C-x r", "a")
    result = await h.run()
    assert result == Finished()
    assert h.controller.recursive_edit_level == 0
    assert h.controller.input_exhausted


async def test_last_command_survives_recursive_edit(harness):
    h = harness("C-x r", "C-M-c")
    await h.run()
    assert h.controller.last_command == "recursive_edit"


async def test_failing_hook_is_removed(harness):
    h = harness("a", "b")
    seen = []

    def bad_hook():
        raise ValueError("nope")

    def good_hook(controller):
        seen.append(controller.this_command)

    h.controller.hooks.add(HookType.PRE_COMMAND, bad_hook)
    h.controller.hooks.add(HookType.POST_COMMAND, good_hook)
    await h.run()
    assert h.controller.hooks[HookType.PRE_COMMAND] == ()
    assert seen == ["self_insert", "self_insert"]
    assert h.buffer.text == "ab"


async def test_post_command_hook_runs_after_failure(harness):
    h = harness("C-c b")
    seen = []
    h.controller.hooks.add(HookType.POST_COMMAND, lambda controller: seen.append(controller.this_command))
    await h.run()
    assert seen == ["explode"]


async def test_received_keyboard_quit(harness):
    h = harness("a", "C-g", "b")
    assert h.controller.received_keyboard_quit()
    assert h.controller.read_key_nowait() == ord("b")
    assert not h.controller.received_keyboard_quit()


async def test_redraw_after_every_key(harness):
    h = harness("a", "C-x", "C-c")
    await h.run()
    assert h.display.redraws == 3


async def test_chord_echoes_after_idle_delay(harness, autojump_clock):
    send_channel, receive_channel = trio.open_memory_channel(10)
    h = harness(key_source=ChannelKeySource(receive_channel), bindings={"C-c a b": "note_depth"})
    async with trio.open_nursery() as nursery:
        nursery.start_soon(h.run)
        await send_channel.send(kbd("C-c")[0])
        await trio.sleep(0.5)
        assert h.echo_area.message is None
        await trio.sleep(1)
        assert h.echo_area.message == "C-c-"

        # once echoing has started, later keys of the same chord echo right away
        await send_channel.send(ord("a"))
        await trio.sleep(0.01)
        assert h.echo_area.message == "C-c a-"

        await send_channel.send(ord("b"))
        await trio.sleep(0.01)
        assert h.calls == [("note_depth", 0)]
        await send_channel.aclose()
    assert h.controller.input_exhausted


async def test_prefix_argument_echo(harness, autojump_clock):
    send_channel, receive_channel = trio.open_memory_channel(10)
    h = harness(key_source=ChannelKeySource(receive_channel))
    async with trio.open_nursery() as nursery:
        nursery.start_soon(h.run)
        await send_channel.send(kbd("C-u")[0])
        await trio.sleep(0.5)
        await send_channel.send(ord("5"))
        await trio.sleep(1.5)
        assert h.echo_area.message == "C-u(5)-"
        await send_channel.aclose()


async def test_quick_chord_is_not_echoed(harness, autojump_clock):
    send_channel, receive_channel = trio.open_memory_channel(10)
    h = harness(key_source=ChannelKeySource(receive_channel))
    async with trio.open_nursery() as nursery:
        nursery.start_soon(h.run)
        await send_channel.send(kbd("C-x")[0])
        await trio.sleep(0.2)
        await send_channel.send(kbd("C-c")[0])
        await trio.sleep(2)
        await send_channel.aclose()
    assert h.echo_area.history == []
    assert h.calls == [("quit", None)]


@pytest.mark.parametrize(
    "notations,expected",
    [
        (("C-u", "C-c z", "5", "a"), "5a"),
        (("M-5", "C-x z", "7"), "7"),
        (("C-u 2", "C-c u", "3", "-"), "3-"),
    ],
)
async def test_reset_prefix_argument_stops_digit_capture(harness, notations, expected):
    h = harness(*notations, bindings={"C-c u": "no_such_command"})
    await h.run()
    assert h.buffer.text == expected
    assert h.controller.overriding_map is None
    assert h.controller.hooks[HookType.PRE_COMMAND] == ()


async def test_unresolved_command_keeps_last_command(harness):
    h = harness("a", "C-c u", bindings={"C-c u": "no_such_command"})
    await h.run()
    assert h.echo_area.history == ["Undefined command: no_such_command"]
    assert h.controller.last_command == "self_insert"
    assert h.controller.this_command is None


async def test_error_message_pause(harness, autojump_clock):
    send_channel, receive_channel = trio.open_memory_channel(10)
    h = harness(key_source=ChannelKeySource(receive_channel), error_pause=2.0)
    async with trio.open_nursery() as nursery:
        nursery.start_soon(h.run)
        await send_channel.send(kbd("C-b")[0])
        await trio.sleep(1.5)
        assert h.echo_area.message == "Beginning of buffer"
        await trio.sleep(1)
        assert h.echo_area.message is None

        # a key typed during the pause ends it and is then dispatched as usual
        await send_channel.send(kbd("C-b")[0])
        await trio.sleep(0.5)
        assert h.echo_area.message == "Beginning of buffer"
        await send_channel.send(ord("x"))
        await trio.sleep(0.01)
        assert h.echo_area.message is None
        assert h.buffer.text == "x"
        await send_channel.aclose()
    assert h.echo_area.history == ["Beginning of buffer", "Beginning of buffer"]
