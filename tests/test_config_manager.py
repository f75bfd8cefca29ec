import json
import logging

from config_manager import ConfigManager
from models import QuiltSettings, ShapeType


def test_missing_file_gives_defaults(tmp_path):
    manager = ConfigManager(tmp_path / "none.json")
    assert manager.load() == QuiltSettings()


def test_save_and_load(tmp_path):
    path = tmp_path / "config.json"
    manager = ConfigManager(path)
    settings = QuiltSettings(shape_type=ShapeType.TRIANGLE, grid_width=12, random_seed=3)

    ok, error = manager.save(settings)
    assert ok and error is None
    assert json.loads(path.read_text())["shape_type"] == "triangle"
    assert manager.load() == settings


def test_camel_case_file(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"gridWidth": 40, "numColors": 8, "shapeType": "hexagon"}))
    settings = ConfigManager(path).load()
    assert settings.grid_width == 40
    assert settings.num_colors == 8
    assert settings.shape_type is ShapeType.HEXAGON


def test_corrupt_file_logs_warning_and_gives_defaults(tmp_path, caplog):
    path = tmp_path / "config.json"
    path.write_text("{not json")
    with caplog.at_level(logging.WARNING):
        settings = ConfigManager(path).load()
    assert settings == QuiltSettings()
    assert "Could not load config file" in caplog.text


def test_non_object_file_gives_defaults(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("[1, 2, 3]")
    assert ConfigManager(path).load() == QuiltSettings()


def test_save_failure_is_reported(tmp_path):
    manager = ConfigManager(tmp_path / "missing-dir" / "config.json")
    ok, error = manager.save(QuiltSettings())
    assert not ok
    assert error
