"""Object Keys — deterministic hierarchical key construction."""

from exam_gateway.core.object_keys import build_object_key, object_key_prefix
from exam_gateway.core.transform_exam import transform_exam
from tests.exam_factory import FIXED_NOW, FIXED_TIMESTAMP, hex64, make_payload


def _durable():
    durable, _ = transform_exam(make_payload(), FIXED_NOW)
    return durable


def test_key_is_exam_hospital_patient_timestamp():
    assert build_object_key(_durable()) == (
        f"ecg_exam/{hex64('b')}/{hex64('a')}/{FIXED_TIMESTAMP}.parquet"
    )


def test_key_is_deterministic():
    assert build_object_key(_durable()) == build_object_key(_durable())


def test_suffix_keeps_prefix():
    durable = _durable()
    key = build_object_key(durable, suffix="abc123")
    assert key.startswith(object_key_prefix(durable) + "/")
    assert key.endswith(f"{FIXED_TIMESTAMP}-abc123.parquet")
