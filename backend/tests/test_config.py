import logging

import pytest
from pydantic import ValidationError

from laprank.config import RatingConfig, _canon_prefix, load_rating_config


@pytest.mark.parametrize(
    "raw, expected",
    [
        (None, "/api"),
        ("", "/api"),
        ("api", "/api"),
        ("/api/", "/api"),
        ("/", "/"),
        (" /v1 ", "/v1"),
    ],
)
def test_canon_prefix(raw, expected):
    assert _canon_prefix(raw) == expected


def test_load_rating_config_defaults(monkeypatch):
    for name in ("LAPRANK_MATCH_WEIGHT", "LAPRANK_INITIAL_RATING"):
        monkeypatch.delenv(name, raising=False)

    assert load_rating_config() == RatingConfig()


def test_load_rating_config_reads_env(monkeypatch):
    monkeypatch.setenv("LAPRANK_MATCH_WEIGHT", "0.25")
    monkeypatch.setenv("LAPRANK_LAP_RATING_SCALE", "400")

    config = load_rating_config()

    assert config.match_weight == 0.25
    assert config.lap_rating_scale == 400
    assert config.initial_rating == 1200


def test_bad_float_falls_back_with_warning(monkeypatch, caplog):
    monkeypatch.setenv("LAPRANK_PRIOR_WEIGHT", "lots")

    with caplog.at_level(logging.WARNING, logger="laprank.config"):
        config = load_rating_config()

    assert config.prior_weight == 1.0
    assert "LAPRANK_PRIOR_WEIGHT is not a valid float" in caplog.text


def test_out_of_range_value_falls_back_with_warning(monkeypatch, caplog):
    monkeypatch.setenv("LAPRANK_MATCH_WEIGHT", "2")
    monkeypatch.setenv("LAPRANK_TRACK_MATURITY_LAPS", "0")
    monkeypatch.setenv("LAPRANK_PRIOR_WEIGHT", "3")

    with caplog.at_level(logging.WARNING, logger="laprank.config"):
        config = load_rating_config()

    assert config.match_weight == 0.5
    assert config.track_maturity_laps == 5
    assert config.prior_weight == 3
    assert "LAPRANK_MATCH_WEIGHT is out of range" in caplog.text
    assert "LAPRANK_TRACK_MATURITY_LAPS is out of range" in caplog.text


def test_rating_config_is_frozen():
    config = RatingConfig()
    with pytest.raises(ValidationError):
        config.match_weight = 0.9
