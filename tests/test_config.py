import pytest

from perception_libs.config import DEFAULT_CONFIG, get_default_config, load_config


def test_defaults():
    cfg = load_config()
    assert cfg.drawing.thickness == DEFAULT_CONFIG["drawing"]["thickness"]
    assert cfg.crop.offset == 0


def test_yaml_overrides_are_merged(tmp_path):
    path = tmp_path / "config.yml"
    path.write_text("drawing:\n  thickness: 4\n")

    cfg = load_config(path)
    assert cfg.drawing.thickness == 4
    assert cfg.drawing.font_scale == DEFAULT_CONFIG["drawing"]["font_scale"]
    assert cfg.crop.offset == 0


def test_defaults_are_not_shared():
    cfg = load_config()
    cfg.drawing.thickness = 100
    assert load_config().drawing.thickness == DEFAULT_CONFIG["drawing"]["thickness"]


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "missing.yml")


def test_non_mapping_config(tmp_path):
    path = tmp_path / "config.yml"
    path.write_text("- 1\n- 2\n")
    with pytest.raises(ValueError):
        load_config(path)


def test_default_config_is_a_fresh_copy():
    cfg = get_default_config()
    cfg.drawing.thickness = 99
    assert get_default_config().drawing.thickness == DEFAULT_CONFIG["drawing"]["thickness"]
    assert DEFAULT_CONFIG["drawing"]["thickness"] == 2
