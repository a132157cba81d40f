import pytest

from chainsig.config import (
    Config,
    PresignatureConfig,
    ProtocolConfig,
    SignatureConfig,
    TripleConfig,
    hours_to_ms,
    min_to_ms,
    secs_to_ms,
)

LOAD_CONFIG = {
    "protocol": {
        "message_timeout": 10000,
        "garbage_timeout": 20000,
        "max_concurrent_introduction": 10,
        "max_concurrent_generation": 10,
        "triple": {
            "min_triples": 10,
            "max_triples": 100,
            "generation_timeout": 10000,
        },
        "presignature": {
            "min_presignatures": 10,
            "max_presignatures": 100,
            "generation_timeout": 10000,
        },
        "signature": {
            "generation_timeout": 10000,
            "generation_timeout_total": 1000000,
            "garbage_timeout": 10000000,
        },
        "string": "value",
        "integer": 1000,
    },
    "string": "value2",
    "integer": 20,
}


def test_load_config():
    config = Config.from_dict(LOAD_CONFIG)
    assert config.protocol.message_timeout == 10000
    assert config.get("integer") == 20
    assert config.get("string") == "value2"


def test_load_config_keeps_protocol_extras():
    config = Config.from_dict(LOAD_CONFIG)
    assert config.protocol.other == {"string": "value", "integer": 1000}
    assert config.protocol.signature.garbage_timeout == 10000000
    assert config.protocol.triple.max_triples == 100


def test_get_protocol_and_missing():
    config = Config.from_dict(LOAD_CONFIG)
    assert config.get("protocol") == LOAD_CONFIG["protocol"]
    assert config.get("absent") is None


def test_dict_round_trip():
    config = Config.from_dict(LOAD_CONFIG)
    assert config.to_dict() == LOAD_CONFIG
    assert Config.from_dict(config.to_dict()) == config


def test_json_round_trip_of_default():
    config = Config()
    assert Config.from_json(config.to_json()) == config


def test_unit_helpers():
    assert secs_to_ms(45) == 45000
    assert min_to_ms(5) == 300000
    assert hours_to_ms(2) == 7200000


def test_protocol_defaults():
    protocol = ProtocolConfig()
    assert protocol.message_timeout == min_to_ms(5)
    assert protocol.garbage_timeout == hours_to_ms(2)
    assert protocol.max_concurrent_introduction == 2
    assert protocol.max_concurrent_generation == 2 * 32
    assert protocol.other == {}


def test_sub_config_defaults():
    assert TripleConfig().min_triples == 1024
    assert TripleConfig().max_triples == 1024 * 32 * 128
    assert TripleConfig().generation_timeout == min_to_ms(10)
    assert PresignatureConfig().min_presignatures == 512
    assert PresignatureConfig().max_presignatures == 512 * 32 * 128
    assert PresignatureConfig().generation_timeout == secs_to_ms(45)
    assert SignatureConfig().generation_timeout_total == secs_to_ms(200)
    assert SignatureConfig().garbage_timeout == hours_to_ms(24)


def test_missing_field_is_rejected():
    data = {"protocol": dict(LOAD_CONFIG["protocol"])}
    del data["protocol"]["message_timeout"]
    with pytest.raises(ValueError):
        Config.from_dict(data)


def test_missing_protocol_is_rejected():
    with pytest.raises(ValueError):
        Config.from_dict({"other": 1})


def test_wrong_type_is_rejected():
    data = Config().to_dict()
    data["protocol"]["triple"]["min_triples"] = "many"
    with pytest.raises(ValueError):
        Config.from_dict(data)


def test_u32_overflow_is_rejected():
    data = Config().to_dict()
    data["protocol"]["max_concurrent_generation"] = 2**32
    with pytest.raises(ValueError):
        Config.from_dict(data)


def test_invalid_json_is_rejected():
    with pytest.raises(ValueError):
        Config.from_json("{not json")


def test_get_returns_copy():
    config = Config(other={"nested": {"a": 1}})
    value = config.get("nested")
    value["a"] = 2
    assert config.get("nested") == {"a": 1}