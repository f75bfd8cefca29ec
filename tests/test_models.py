import pytest

from errors import InvalidInputError, InvalidSettingsError
from models import QuiltSettings, ShapeType
from quilt_processing.grid import build_grid_design


def test_default_settings_are_valid():
    settings = QuiltSettings()
    settings.validate()
    assert settings.shape_type is ShapeType.PIXEL
    assert settings.grid_width == 30
    assert settings.num_colors == 6
    assert settings.cell_size_mm == 25.0
    assert settings.seam_allowance_mm == 6.35
    assert settings.num_seeds == 100
    assert settings.relaxation_iterations == 3
    assert settings.edge_weighted is True
    assert settings.border_width == 1.0
    assert settings.random_seed is None


@pytest.mark.parametrize(
    "field, value",
    [
        ("grid_width", 0),
        ("grid_width", 2.5),
        ("num_colors", 0),
        ("cell_size_mm", 0),
        ("cell_size_mm", -1.0),
        ("seam_allowance_mm", float("nan")),
        ("num_seeds", 0),
        ("relaxation_iterations", -1),
        ("edge_weighted", "yes"),
        ("border_width", -0.5),
        ("random_seed", -3),
        ("shape_type", "square"),
    ],
)
def test_validation_names_the_field(field, value):
    settings = QuiltSettings(**{field: value})
    with pytest.raises(InvalidSettingsError) as excinfo:
        settings.validate()
    assert excinfo.value.field == field
    assert field in str(excinfo.value)
    assert isinstance(excinfo.value, (InvalidInputError, ValueError))


def test_zero_border_and_iterations_are_allowed():
    QuiltSettings(border_width=0, relaxation_iterations=0).validate()


def test_from_dict_accepts_camel_case_and_ignores_unknown_keys():
    settings = QuiltSettings.from_dict(
        {
            "shapeType": "Voronoi",
            "numSeeds": 250,
            "relaxationIterations": 5,
            "edgeWeighted": False,
            "seam_allowance_mm": 10.0,
            "somethingElse": 1,
        }
    )
    assert settings.shape_type is ShapeType.VORONOI
    assert settings.num_seeds == 250
    assert settings.relaxation_iterations == 5
    assert settings.edge_weighted is False
    assert settings.seam_allowance_mm == 10.0
    assert settings.grid_width == 30


def test_from_dict_rejects_unknown_shape():
    with pytest.raises(InvalidSettingsError) as excinfo:
        QuiltSettings.from_dict({"shapeType": "octagon"})
    assert excinfo.value.field == "shape_type"


def test_settings_dict_round_trip():
    settings = QuiltSettings(shape_type=ShapeType.HEXAGON, num_colors=8, random_seed=4)
    data = settings.to_dict()
    assert data["shape_type"] == "hexagon"
    assert QuiltSettings.from_dict(data) == settings


def test_shape_type_properties():
    assert ShapeType.PIXEL.edge_count == 4
    assert ShapeType.TRIANGLE.edge_count == 3
    assert ShapeType.HEXAGON.edge_count == 6
    assert ShapeType.HEXAGON.is_grid
    assert not ShapeType.VORONOI.is_grid


def test_design_record():
    black, white, red = (0, 0, 0), (255, 255, 255), (255, 0, 0)
    design = build_grid_design(
        [[black, black], [white, black]], [black, white, red], ShapeType.PIXEL, 20.0, 5.0
    )
    assert design.color_counts() == {black: 3, white: 1, red: 0}

    record = design.to_dict()
    assert record["gridWidth"] == 2
    assert record["shapeType"] == "pixel"
    assert record["colorPalette"] == ["#000000", "#ffffff", "#ff0000"]
    assert record["pieceCounts"] == {"#000000": 3, "#ffffff": 1, "#ff0000": 0}
    assert record["fabricData"]["total_width_mm"] == 40.0
    shape = record["shapes"][2]
    assert shape["id"] == "shape-1-0"
    assert shape["color"] == "#ffffff"
    assert shape["geometry"] == {"x": 0, "y": 20, "width": 20, "height": 20}
    assert shape["stitch"]["neighbors"] == ["shape-0-0", "shape-1-1"]
    assert shape["stitch"]["grid_position"] == {"row": 1, "col": 0}


def test_design_is_immutable():
    design = build_grid_design([[(0, 0, 0)]], [(0, 0, 0)], ShapeType.PIXEL, 20.0, 5.0)
    with pytest.raises(AttributeError):
        design.width = 5
