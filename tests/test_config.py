"""
Tests for the top-level loaders (confbind.config).

File reads go through set_reader_file(), so no configuration files are
needed except in the test that exercises the default reader.
"""

import json
from dataclasses import dataclass

import pytest

from confbind import config
from confbind.config import Mode, load_from_env, load_from_file, set_mode, set_reader_file
from confbind.decoders import JSON_DECODER, YAML_DECODER, DecoderFunc
from confbind.errors import DecodeError, InvalidArgumentError
from confbind.fields import env_field


@dataclass
class WithMode:
    addr: str = env_field("test_env1", default="", file="addr")
    config_mode: Mode = Mode.UNKNOWN


@dataclass
class WithoutMode:
    addr: str = env_field("test_env1", default="", file="addr")
    config_mode: int = 0


@dataclass
class WithFloat:
    ratio: float = env_field("RATIO", default=0.0)
    config_mode: Mode = Mode.UNKNOWN


@pytest.fixture
def reader():
    """Install a fake file reader and restore the real one afterwards."""
    files = {}

    def read(file_name):
        if file_name not in files:
            raise FileNotFoundError(file_name)
        return files[file_name]

    previous = set_reader_file(read)
    yield files
    set_reader_file(previous)


class TestLoadFromEnv:
    def test_sets_value_and_mode(self):
        v = WithMode()
        load_from_env(v, {"test_env1": "server_addr"})
        assert v.addr == "server_addr"
        assert v.config_mode is Mode.ENVIRONMENT

    def test_non_record_target(self):
        with pytest.raises(InvalidArgumentError, match=r"load_from_env\(non-record"):
            load_from_env(object(), {})

    def test_mode_field_with_other_type_is_ignored(self):
        v = WithoutMode()
        load_from_env(v, {"test_env1": "x"})
        assert v.config_mode == 0

    def test_decode_error_propagates_and_mode_is_kept(self):
        v = WithFloat()
        with pytest.raises(DecodeError):
            load_from_env(v, {"RATIO": "not-a-number"})
        assert v.config_mode is Mode.UNKNOWN


class TestLoadFromFile:
    def test_json(self, reader):
        reader["file.json"] = b'{"addr": "test"}'
        v = WithMode()
        load_from_file(v, "file.json", JSON_DECODER)
        assert v.addr == "test"
        assert v.config_mode is Mode.FILE

    def test_yaml(self, reader):
        reader["file.yaml"] = b"addr: from-yaml\n"
        v = WithMode()
        load_from_file(v, "file.yaml", YAML_DECODER)
        assert v.addr == "from-yaml"
        assert v.config_mode is Mode.FILE

    def test_without_mode(self, reader):
        reader["file.json"] = b'{"addr": "test"}'
        v = WithoutMode()
        load_from_file(v, "file.json", JSON_DECODER)
        assert v.addr == "test"
        assert v.config_mode == 0

    def test_non_record_target(self, reader):
        with pytest.raises(InvalidArgumentError, match=r"load_from_file\(non-record"):
            load_from_file({}, "file.json", JSON_DECODER)

    def test_reader_error(self, reader):
        with pytest.raises(FileNotFoundError, match="missing.json"):
            load_from_file(WithMode(), "missing.json", JSON_DECODER)

    def test_decoder_error(self, reader):
        reader["file.json"] = b"{"
        v = WithMode()
        with pytest.raises(DecodeError):
            load_from_file(v, "file.json", JSON_DECODER)
        assert v.config_mode is Mode.UNKNOWN

    def test_custom_decoder(self, reader):
        reader["file.json"] = b'{"addr": "custom"}'

        def decode(data, target):
            target.addr = json.loads(data)["addr"].upper()

        v = WithMode()
        load_from_file(v, "file.json", DecoderFunc(decode))
        assert v.addr == "CUSTOM"

    def test_default_reader(self, tmp_path):
        path = tmp_path / "app.json"
        path.write_bytes(b'{"addr": "disk"}')
        v = WithMode()
        load_from_file(v, str(path), JSON_DECODER)
        assert v.addr == "disk"


class TestMode:
    @pytest.mark.parametrize(
        "mode, expected",
        [(Mode.UNKNOWN, "unknown"), (Mode.FILE, "file"), (Mode.ENVIRONMENT, "environment")],
    )
    def test_str(self, mode, expected):
        assert str(mode) == expected

    def test_set_mode_on_record_without_field(self):
        @dataclass
        class Plain:
            value: int = 0

        target = Plain()
        set_mode(target, Mode.FILE)
        assert target == Plain()


def test_set_reader_file_returns_previous():
    def fake(_):
        return b""

    previous = set_reader_file(fake)
    try:
        assert config._reader_file is fake
    finally:
        assert set_reader_file(previous) is fake
