import pytest

from visodom.calib_yaml import (
    CalibrationFormatError,
    ModelType,
    PinholeParameters,
    ScaramuzzaParameters,
    dump_calibration,
    load_calibration,
)

PINHOLE_FILE = """%YAML:1.0
---
model_type: PINHOLE
camera_name: camera
image_width: 640
image_height: 480
distortion_parameters:
   k1: -0.28
   k2: 0.07
   p1: 0.0002
   p2: 0.00002
projection_parameters:
   fx: 458.6
   fy: 457.3
   cx: 367.2
   cy: 248.3
"""


def _pinhole():
    return PinholeParameters(
        camera_name="cam0",
        image_width=752,
        image_height=480,
        k1=-0.28,
        k2=0.07,
        p1=0.0002,
        p2=1.7e-05,
        fx=458.6,
        fy=457.3,
        cx=367.2,
        cy=248.3,
    )


def _scaramuzza():
    return ScaramuzzaParameters(
        camera_name="omni",
        image_width=1280,
        image_height=960,
        poly=[-216.9657476318, 0.0, 0.0017866911, -1.9866e-06, 7.7e-09],
        inv_poly=[float(i) * 0.5 for i in range(20)],
        C=1.0,
        D=0.25,
        E=-0.125,
        center_x=640.5,
        center_y=480.25,
    )


def test_reads_file_with_opencv_header(tmp_path):
    path = tmp_path / "cam.yaml"
    path.write_text(PINHOLE_FILE)
    params = PinholeParameters.from_yaml(path)
    assert params.camera_name == "camera"
    assert params.image_width == 640
    assert params.image_height == 480
    assert params.k1 == -0.28
    assert params.fx == 458.6
    assert params.cy == 248.3
    assert params.model_type is ModelType.PINHOLE


def test_pinhole_round_trip(tmp_path):
    path = tmp_path / "pinhole.yaml"
    original = _pinhole()
    original.to_yaml(path)
    assert PinholeParameters.from_yaml(path) == original


def test_written_file_has_header_and_model(tmp_path):
    path = tmp_path / "pinhole.yaml"
    _pinhole().to_yaml(path)
    text = path.read_text()
    assert text.startswith("%YAML:1.0\n")
    assert load_calibration(path)["model_type"] == "PINHOLE"


def test_pinhole_rejects_other_model(tmp_path):
    path = tmp_path / "omni.yaml"
    _scaramuzza().to_yaml(path)
    with pytest.raises(CalibrationFormatError):
        PinholeParameters.from_yaml(path)


def test_pinhole_model_name_is_case_sensitive(tmp_path):
    path = tmp_path / "cam.yaml"
    dump_calibration(path, {"model_type": "pinhole", "image_width": 10})
    with pytest.raises(CalibrationFormatError):
        PinholeParameters.from_yaml(path)


def test_missing_entries_default_to_zero(tmp_path):
    path = tmp_path / "cam.yaml"
    dump_calibration(path, {"image_width": 320})
    params = PinholeParameters.from_yaml(path)
    assert params.image_width == 320
    assert params.image_height == 0
    assert params.camera_name == ""
    assert (params.k1, params.fx, params.cy) == (0.0, 0.0, 0.0)


def test_scaramuzza_round_trip(tmp_path):
    path = tmp_path / "omni.yaml"
    original = _scaramuzza()
    original.to_yaml(path)
    loaded = ScaramuzzaParameters.from_yaml(path)
    assert loaded == original
    assert loaded.model_type is ModelType.SCARAMUZZA


def test_scaramuzza_model_name_any_case(tmp_path):
    path = tmp_path / "omni.yaml"
    dump_calibration(
        path,
        {"model_type": "SCARAMUZZA", "affine_parameters": {"ac": 1.0, "cx": 12.0}},
    )
    params = ScaramuzzaParameters.from_yaml(path)
    assert params.C == 1.0
    assert params.center_x == 12.0
    assert params.poly == [0.0] * 5


def test_scaramuzza_rejects_pinhole_file(tmp_path):
    path = tmp_path / "cam.yaml"
    path.write_text(PINHOLE_FILE)
    with pytest.raises(CalibrationFormatError):
        ScaramuzzaParameters.from_yaml(path)


def test_scaramuzza_wrong_polynomial_length():
    with pytest.raises(ValueError):
        ScaramuzzaParameters(poly=[1.0, 2.0])
    with pytest.raises(ValueError):
        ScaramuzzaParameters(inv_poly=[0.0] * 5)


def test_pinhole_str_layout():
    text = str(_pinhole())
    lines = text.splitlines()
    assert lines[0] == "Camera Parameters:"
    assert lines[1] == "    model_type PINHOLE"
    assert lines[2] == "   camera_name cam0"
    assert "Distortion Parameters" in lines
    assert "            fx 458.6" in lines
    assert text.endswith("\n")


def test_scaramuzza_str_layout():
    lines = str(_scaramuzza()).splitlines()
    assert lines[1] == "    model_type scaramuzza"
    assert "p1: 0.0000000000" in lines
    assert "            ad 0.2500000000" in lines
    assert lines.count("Inverse Poly Parameters") == 1


def test_load_rejects_non_mapping(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("- 1\n- 2\n")
    with pytest.raises(CalibrationFormatError):
        load_calibration(path)


def test_load_rejects_broken_yaml(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("key: [unclosed\n")
    with pytest.raises(CalibrationFormatError):
        load_calibration(path)


def test_non_numeric_value_rejected(tmp_path):
    path = tmp_path / "cam.yaml"
    dump_calibration(path, {"projection_parameters": {"fx": "wide"}})
    with pytest.raises(CalibrationFormatError):
        PinholeParameters.from_yaml(path)


def test_opencv_matrix_tag_is_read(tmp_path):
    path = tmp_path / "cam.yaml"
    path.write_text(
        "%YAML:1.0\n---\nextrinsic: !!opencv-matrix\n   rows: 1\n   cols: 2\n"
        "   dt: d\n   data: [ 1.5, 2.5 ]\n"
    )
    data = load_calibration(path)
    assert data["extrinsic"]["data"] == [1.5, 2.5]
    assert data["extrinsic"]["rows"] == 1


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        PinholeParameters.from_yaml(tmp_path / "absent.yaml")