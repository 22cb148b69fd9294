import dataclasses
import json
import pathlib
import typing

import cattrs

from .editor.controller import ECHO_DELAY, ERROR_PAUSE
from .editor.keymap import ByName, Keymap
from .editor.keys import key_sequence_string

# Laid over the built-in bindings; see calamus.editor.commands.make_global_map
DEFAULT_KEYBINDINGS = {
    "C-x r": "recursive_edit",
    "C-c C-g": "top_level",
}


def unstructure_keymap(keymap: Keymap):
    return {key_sequence_string(k): b.name for k, b in keymap.items() if isinstance(b, ByName)}


def structure_keymap(d: dict, typ: type[Keymap]):
    if not all(isinstance(v, str) for v in d.values()):
        raise ValueError("Key bindings must map key sequences to command names")
    return Keymap(d)


settings_converter = cattrs.Converter()
settings_converter.register_unstructure_hook(Keymap, unstructure_keymap)
settings_converter.register_structure_hook(Keymap, structure_keymap)
settings_converter.register_unstructure_hook(pathlib.Path, str)
settings_converter.register_structure_hook(pathlib.Path, lambda v, _: pathlib.Path(v))


@dataclasses.dataclass(kw_only=True)
class Settings:
    _path: typing.Optional[pathlib.Path] = None
    keybindings: Keymap = dataclasses.field(default_factory=Keymap)
    echo_delay: float = ECHO_DELAY
    error_pause: float = ERROR_PAUSE
    log_path: typing.Optional[pathlib.Path] = None

    def bind(self, keys: str, command: str):
        self.keybindings.define_key(keys, command)

    def save(self, dest: typing.Optional[pathlib.Path] = None):
        if dest is None:
            dest = self._path
        if dest is None:
            raise ValueError("No path to save settings to")
        raw = settings_converter.unstructure(self)
        del raw["_path"]
        with dest.open("w") as outfile:
            json.dump(raw, outfile, indent=2)

    @classmethod
    def load(cls, src: pathlib.Path):
        with src.open() as infile:
            raw = json.load(infile)
        raw["_path"] = str(src)
        return settings_converter.structure(raw, cls)

    @classmethod
    def default(cls, path: typing.Optional[pathlib.Path] = None):
        return settings_converter.structure(
            {
                "_path": None if path is None else str(path),
                "keybindings": DEFAULT_KEYBINDINGS,
            },
            cls,
        )

    @classmethod
    def for_test(cls):
        return settings_converter.structure(
            {
                "_path": "test.settings.json",
                "keybindings": DEFAULT_KEYBINDINGS,
                "echo_delay": 1.0,
                "error_pause": 0,
                "log_path": None,
            },
            cls,
        )


settings_converter.register_structure_hook(Settings, cattrs.gen.make_dict_structure_fn(Settings, settings_converter))
