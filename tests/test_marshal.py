from __future__ import annotations

import dataclasses
import json
from pathlib import Path

import numpy as np
import pytest

import tagdetect
from tagdetect._marshal import marshal_detections
from conftest import make_raw


def test_marshal_preserves_count_order_and_duplicates() -> None:
    raw = [make_raw(9), make_raw(2, offset=4.0), make_raw(9, offset=8.0)]

    out = marshal_detections(raw)

    assert len(out) == len(raw)
    assert [d.id for d in out] == [9, 2, 9]
    for r, d in zip(raw, out):
        assert d.corners == [list(p) for p in r.corners]
        assert d.center == list(r.center)


def test_marshal_empty() -> None:
    assert marshal_detections([]) == []


def test_homography_is_flattened_row_major() -> None:
    raw = make_raw(0)
    raw.homography = np.array([[1.0, 2.0, 3.0], [4.0, 5.0, 6.0], [7.0, 8.0, 9.0]])

    (tag,) = marshal_detections([raw])

    assert tag.homography == [1.0, 2.0, 3.0, 4.0, 5.0, 6.0, 7.0, 8.0, 9.0]
    assert np.array_equal(tag.homography_matrix(), raw.homography)


def test_homography_from_fortran_ordered_matrix_is_still_row_major() -> None:
    raw = make_raw(0)
    raw.homography = np.asfortranarray(np.arange(9.0).reshape(3, 3))

    (tag,) = marshal_detections([raw])

    assert tag.homography == [float(v) for v in range(9)]


def test_marshal_keeps_full_precision_and_python_types() -> None:
    raw = make_raw(np.int32(4), hamming=np.int64(1))
    raw.center = np.array([1.1, 2.2], dtype=np.float32)
    raw.good = np.bool_(True)

    (tag,) = marshal_detections([raw])

    assert type(tag.id) is int and tag.id == 4
    assert type(tag.hamming_distance) is int and tag.hamming_distance == 1
    assert tag.good is True
    assert tag.center == [float(np.float32(1.1)), float(np.float32(2.2))]


@pytest.mark.parametrize(
    "field,value",
    [
        ("corners", [(0.0, 0.0)] * 3),
        ("corners", [(0.0, 0.0)] * 5),
        ("corners", [(0.0, 0.0, 0.0)] * 4),
        ("center", (1.0,)),
        ("homography", np.zeros(9)),
        ("homography", np.zeros((2, 3))),
        ("id", -1),
        ("id", 1.5),
        ("hamming_distance", -2),
    ],
)
def test_malformed_raw_detection_is_a_contract_error(field: str, value) -> None:
    raw = make_raw(0)
    setattr(raw, field, value)

    with pytest.raises(tagdetect.EngineContractError):
        marshal_detections([raw])


def test_detection_dict_roundtrip_uses_camel_case_keys() -> None:
    (tag,) = marshal_detections([make_raw(12, hamming=1)])

    data = tag.to_dict()
    assert set(data) == {"id", "hammingDistance", "good", "center", "corners", "homography"}
    assert data["hammingDistance"] == 1
    assert tagdetect.TagDetection.from_dict(data) == tag


def test_detections_json_text_and_path(tmp_path: Path) -> None:
    detections = marshal_detections([make_raw(1), make_raw(2, offset=2.0)])

    text = tagdetect.detections_to_json(detections)
    assert isinstance(text, str)
    assert [d["id"] for d in json.loads(text)] == [1, 2]
    assert tagdetect.detections_from_json(text) == detections

    out = tmp_path / "detections.json"
    assert tagdetect.detections_to_json(detections, out) is None
    assert tagdetect.detections_from_json(out) == detections
    assert tagdetect.detections_from_json(str(out)) == detections


def test_detections_from_json_requires_list() -> None:
    with pytest.raises(ValueError):
        tagdetect.detections_from_json('{"id": 1}')


def test_detection_record_is_immutable() -> None:
    (tag,) = marshal_detections([make_raw(3)])

    with pytest.raises(dataclasses.FrozenInstanceError):
        tag.id = 7
    assert not hasattr(tag, "__dict__")
