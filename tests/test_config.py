import yaml
import argparse
import logging
import pytest
from pathlib import Path
from tracecache.config import SimConfig
from tracecache.errors import ConfigurationError
from tracecache.runtime.cache import CacheEngine
from tracecache.runtime.policies import ReplacementPolicy


def make_args(**kwargs):
    defaults = dict(config=None, trace_file=None, address_bits=None, block_size=None,
                    num_sets=None, ways=None, policy=None, seed=None, verbose=None)
    defaults.update(kwargs)
    return argparse.Namespace(**defaults)


def test_defaults():
    config = SimConfig().validate()
    assert (config.address_bits, config.block_size, config.num_sets, config.ways) == (16, 4, 4, 1)
    assert config.replacement_policy is ReplacementPolicy.LRU


def test_effective_sizes_are_rounded():
    config = SimConfig(block_size=6, num_sets=9)
    assert config.effective_block_size == 8
    assert config.effective_num_sets == 16


def test_config_yaml_loading(tmp_path: Path):
    """Tests that config is loaded correctly from a YAML file."""
    yaml_file = tmp_path / "test.yaml"
    with open(yaml_file, 'w') as f:
        yaml.dump({'address_bits': 32, 'ways': 4, 'policy': 'plru'}, f)

    config = SimConfig.from_args(make_args(config=str(yaml_file)))

    assert config.address_bits == 32
    assert config.ways == 4
    assert config.replacement_policy is ReplacementPolicy.PLRU
    assert config.config_file == str(yaml_file)


def test_config_cli_override(tmp_path: Path):
    """Tests that CLI arguments override YAML settings."""
    yaml_file = tmp_path / "test.yaml"
    with open(yaml_file, 'w') as f:
        yaml.dump({'address_bits': 32, 'ways': 4, 'policy': 'plru'}, f)

    config = SimConfig.from_args(make_args(config=str(yaml_file), ways=2, policy="fifo"))

    assert config.ways == 2
    assert config.policy == "fifo"
    assert config.address_bits == 32


def test_unknown_yaml_key_is_ignored(tmp_path: Path, caplog):
    yaml_file = tmp_path / "test.yaml"
    yaml_file.write_text("ways: 2\ncolour: blue\n")

    config = SimConfig()
    with caplog.at_level(logging.WARNING):
        config.update_from_yaml(str(yaml_file))

    assert config.ways == 2
    assert not hasattr(config, "colour")
    assert "colour" in caplog.text


def test_missing_yaml_file_warns(tmp_path: Path, caplog):
    with caplog.at_level(logging.WARNING):
        config = SimConfig.from_args(make_args(config=str(tmp_path / "nope.yaml")))
    assert config.ways == 1
    assert "not found" in caplog.text


@pytest.mark.parametrize("field, value", [
    ("address_bits", 0), ("address_bits", 65), ("block_size", 1025),
    ("num_sets", 0), ("ways", 33), ("ways", "two"), ("policy", "clock"),
])
def test_validate_rejects_out_of_range(field, value):
    config = SimConfig()
    setattr(config, field, value)
    with pytest.raises(ConfigurationError):
        config.validate()


def test_validate_rejects_too_few_address_bits():
    with pytest.raises(ConfigurationError):
        SimConfig(address_bits=4, block_size=8, num_sets=4).validate()


def test_config_and_engine_share_rounding():
    config = SimConfig(address_bits=16, block_size=5, num_sets=3, ways=2).validate()
    engine = CacheEngine.from_config(config)

    assert engine.geometry == config.geometry
    assert (engine.block_size, engine.num_sets) == (config.effective_block_size, config.effective_num_sets)
    assert (config.geometry.offset_bits, config.geometry.index_bits, config.geometry.tag_bits) == (3, 2, 11)


def test_yaml_cannot_set_derived_properties(tmp_path: Path, caplog):
    yaml_file = tmp_path / "test.yaml"
    yaml_file.write_text("effective_block_size: 64\nblock_size: 16\n")

    config = SimConfig()
    with caplog.at_level(logging.WARNING):
        config.update_from_yaml(str(yaml_file))

    assert config.effective_block_size == 16
    assert "effective_block_size" in caplog.text
