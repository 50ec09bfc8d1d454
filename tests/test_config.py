"""
Tests for setup INI files and JSON design files.
"""

import json

import pytest

from mtb_kinematics.config import ConfigManager, geometry_from_dict, geometry_to_dict
from mtb_kinematics.model import IdlerType, default_geometry


SETUPS_INI = """\
# two bikes
[Default]
bb_height = 335   ; lowered cups
shockStroke = 62.5
chainringTeeth = 34

[Park]
head_angle = 63.5
idler_type = Frame Mounted
unknown_key = 12
"""


@pytest.fixture
def setups_file(tmp_path):
    path = tmp_path / "setups.ini"
    path.write_text(SETUPS_INI, encoding="utf-8")
    return path


def test_read_setups_ini(setups_file):
    setups = ConfigManager().read_setups_ini(setups_file)
    assert set(setups) == {"Default", "Park"}

    default = setups["Default"]
    assert default.bb_height == 335.0
    assert default.shock_stroke == 62.5
    assert default.chainring_teeth == 34
    assert isinstance(default.chainring_teeth, int)
    # missing keys come from the reference bike
    assert default.reach == default_geometry().reach

    park = setups["Park"]
    assert park.head_angle == 63.5
    assert park.idler_type is IdlerType.FRAME_MOUNTED


def test_read_setups_ini_bad_number(tmp_path):
    path = tmp_path / "bad.ini"
    path.write_text("[Broken]\nreach = long\n", encoding="utf-8")
    with pytest.raises(ValueError, match=r"Section \[Broken\] key 'reach' must be a number"):
        ConfigManager().read_setups_ini(path)


def test_read_setups_ini_bad_idler(tmp_path):
    path = tmp_path / "bad.ini"
    path.write_text("[Broken]\nidler_type = Chain Tensioner\n", encoding="utf-8")
    with pytest.raises(ValueError, match="must be one of"):
        ConfigManager().read_setups_ini(path)


def test_read_setups_ini_fractional_teeth(tmp_path):
    path = tmp_path / "bad.ini"
    path.write_text("[Broken]\ncog_teeth = 32.7\n", encoding="utf-8")
    with pytest.raises(ValueError, match=r"Section \[Broken\] key 'cog_teeth' must be a whole number"):
        ConfigManager().read_setups_ini(path)


def test_teeth_must_be_whole():
    assert geometry_from_dict({"chainringTeeth": "34.0"}).chainring_teeth == 34
    with pytest.raises(ValueError, match="chainringTeeth"):
        geometry_from_dict({"chainringTeeth": 32.7})
    assert not ConfigManager().validate_setup({"idler_teeth": 14.5})


def test_read_setups_ini_empty(tmp_path):
    path = tmp_path / "empty.ini"
    path.write_text("", encoding="utf-8")
    with pytest.raises(RuntimeError):
        ConfigManager().read_setups_ini(path)


def test_read_setups_ini_missing_file(tmp_path):
    with pytest.raises(RuntimeError, match="Unable to read"):
        ConfigManager().read_setups_ini(tmp_path / "missing.ini")


def test_write_and_read_setups(tmp_path):
    path = tmp_path / "setups.ini"
    manager = ConfigManager()
    bikes = {
        "Default": default_geometry(),
        "Idler": default_geometry(idler_type=IdlerType.SWINGARM_MOUNTED, idler_teeth=14),
    }
    manager.save_setups(path, bikes)
    assert manager.current_setups_path == path

    loaded = ConfigManager().load_setups(path)
    assert loaded == bikes


def test_write_setups_keeps_existing_sections(setups_file):
    manager = ConfigManager()
    manager.write_setups_ini(setups_file, {"Trail": default_geometry(head_angle=65.5)})

    setups = manager.read_setups_ini(setups_file)
    assert set(setups) == {"Default", "Park", "Trail"}
    assert setups["Trail"].head_angle == 65.5
    assert setups["Default"].bb_height == 335.0


def test_setup_management():
    manager = ConfigManager()
    manager.add_setup("Zed", default_geometry())
    manager.add_setup("Alpha", default_geometry(reach=470.0))
    assert manager.get_setup_names() == ["Alpha", "Zed"]
    assert manager.get_setup("Alpha").reach == 470.0
    assert manager.get_setup("Missing") is None


def test_validate_setup():
    manager = ConfigManager()
    assert manager.validate_setup({"reach": "480", "shockStroke": 60})
    assert manager.validate_setup({"not_a_field": "anything"})
    assert not manager.validate_setup({"reach": "far"})
    assert not manager.validate_setup({"idler_type": "Belt Drive"})
    assert not manager.validate_setup(["reach", 480])


# --------------------------- Designs ---------------------------
def test_geometry_dict_round_trip():
    geometry = default_geometry(idler_type=IdlerType.FRAME_MOUNTED)
    data = geometry_to_dict(geometry)
    assert data["idler_type"] == "Frame Mounted"
    assert geometry_from_dict(data) == geometry


def test_geometry_from_dict_accepts_camel_case():
    geometry = geometry_from_dict({
        "bbHeight": 340, "bbToPivotX": -75, "shockETE": 230, "idlerType": "Swingarm Mounted",
    })
    assert geometry.bb_height == 340.0
    assert geometry.bb_to_pivot_x == -75.0
    assert geometry.shock_ete == 230.0
    assert geometry.idler_type is IdlerType.SWINGARM_MOUNTED


def test_geometry_from_dict_rejects_bad_value():
    with pytest.raises(ValueError, match="bbHeight"):
        geometry_from_dict({"bbHeight": "tall"})


def test_load_design_camel_case(tmp_path):
    path = tmp_path / "design.json"
    path.write_text(json.dumps({"name": "Web Export", "geometry": {"headAngle": 63.0}}))
    name, geometry = ConfigManager().load_design(path)
    assert name == "Web Export"
    assert geometry.head_angle == 63.0
    assert geometry.reach == default_geometry().reach


def test_load_design_default_name(tmp_path):
    path = tmp_path / "design.json"
    path.write_text(json.dumps({"geometry": {}}))
    name, geometry = ConfigManager().load_design(path)
    assert name == "Loaded Design"
    assert geometry == default_geometry()


def test_load_design_without_geometry(tmp_path):
    path = tmp_path / "design.json"
    path.write_text(json.dumps({"name": "Empty"}))
    with pytest.raises(ValueError, match="no geometry object"):
        ConfigManager().load_design(path)


def test_load_design_invalid_json(tmp_path):
    path = tmp_path / "design.json"
    path.write_text("{not json")
    with pytest.raises(ValueError, match="not valid JSON"):
        ConfigManager().load_design(path)


def test_save_design_layout(tmp_path):
    path = tmp_path / "design.json"
    ConfigManager().save_design(path, "My Bike", default_geometry())
    data = json.loads(path.read_text())
    assert data["name"] == "My Bike"
    assert data["geometry"]["shock_ete"] == 210.0
    assert data["geometry"]["idler_type"] == "No Idler"
