import io
import pathlib

from calamus.app import Calamus, parser
from calamus.device.keysources import Recorder, ScriptedKeySource
from calamus.device.terminal import TerminalScreen
from calamus.editor.buffer import Buffer, BufferList
from calamus.editor.keys import KeyCode, kbd
from calamus.settings import Settings


def make_app(path: pathlib.Path, keys, settings=None):
    buffers = BufferList(Buffer.visit(path))
    outfile = io.StringIO()
    screen = TerminalScreen(buffers, outfile=outfile)
    app = Calamus(settings or Settings.for_test(), ScriptedKeySource(keys), screen, buffers)
    return app, buffers, outfile


async def test_edit_save_and_exit(tmp_path: pathlib.Path):
    path = tmp_path / "draft.txt"
    path.write_text("world")
    keys = [*kbd("h e l l o SPC C-x C-s C-x C-c"), *kbd("z")]
    app, buffers, outfile = make_app(path, keys)
    await app.run()
    assert path.read_text() == "hello world"
    # keys after exit_editor are never read
    assert app.key_source.remaining == 1
    assert "draft.txt" in outfile.getvalue()


async def test_runs_until_input_ends(tmp_path: pathlib.Path):
    app, buffers, _ = make_app(tmp_path / "new.txt", kbd("a b"))
    await app.run()
    assert buffers.current_buffer.text == "ab"
    assert app.controller.input_exhausted


async def test_user_keybindings(tmp_path: pathlib.Path):
    settings = Settings.for_test()
    settings.bind("C-c d", "delete_char")
    app, buffers, _ = make_app(tmp_path / "new.txt", kbd("a b C-a C-c d C-x r C-c C-g"), settings=settings)
    await app.run()
    assert buffers.current_buffer.text == "b"
    assert app.controller.recursive_edit_level == 0


async def test_resize_key_is_handled(tmp_path: pathlib.Path):
    app, buffers, _ = make_app(tmp_path / "new.txt", [KeyCode.RESIZE, *kbd("a")])
    await app.run()
    assert app.controller.last_command == "self_insert"
    assert app.screen.columns == 80
    assert buffers.current_buffer.text == "a"


async def test_mode_line_shows_recursive_edit_depth(tmp_path: pathlib.Path):
    app, _, _ = make_app(tmp_path / "new.txt", kbd("C-x r"))
    app.screen.depth = 2
    assert "[[(Fundamental)]]" in app.screen.mode_line()


async def test_recorder_wraps_live_source(tmp_path: pathlib.Path):
    buffers = BufferList(Buffer.visit(tmp_path / "new.txt"))
    screen = TerminalScreen(buffers, outfile=io.StringIO())
    recorder = Recorder(ScriptedKeySource(kbd("x y")))
    app = Calamus(Settings.for_test(), recorder, screen, buffers)
    await app.run()
    assert [key for _, key in recorder.events] == list(kbd("x y"))
    assert buffers.current_buffer.text == "xy"


def test_argument_parser():
    parsed = parser.parse_args(["notes.txt", "--settings", "s.json", "--record", "keys.json"])
    assert parsed.file == pathlib.Path("notes.txt")
    assert parsed.settings == pathlib.Path("s.json")
    assert parsed.record == pathlib.Path("keys.json")
    assert parsed.replay is None
