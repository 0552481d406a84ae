"""
Tests for s3cost/config.py.

Covers:
- RunConfig defaults, validation and coercion
- Environment variable substitution
- YAML file loading
- Priority: CLI > config file > environment
"""
import argparse
import os
import sys

import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from s3cost.config import (
    BOOL_KEYS,
    INT_KEYS,
    LIST_KEYS,
    ConfigError,
    RunConfig,
    _substitute_env_vars,
    generate_sample_config,
    load_config,
    load_config_file,
    load_env_config,
    merge_configs,
)


def _args(**kwargs):
    defaults = dict(
        profile=None, verbose=None, workers=None, default_region=None,
        buckets=None, output=None, config=None, log_level=None,
    )
    defaults.update(kwargs)
    return argparse.Namespace(**defaults)


@pytest.fixture
def isolated(tmp_path, monkeypatch):
    """Run without any default config file or S3COST_* variables."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv('HOME', str(tmp_path))
    for key in list(os.environ):
        if key.startswith('S3COST_'):
            monkeypatch.delenv(key)
    return tmp_path


def _write_config(path, content):
    path.write_text(content)
    os.chmod(path, 0o600)
    return str(path)


# =============================================================================
# RunConfig Tests
# =============================================================================

class TestRunConfig:
    """Tests for RunConfig."""

    def test_defaults(self):
        """Test defaults match the reference values."""
        config = RunConfig()
        assert config.profile == 'default'
        assert config.verbose is False
        assert config.default_region == 'ap-northeast-1'
        assert config.max_workers == 20
        assert config.output is None
        assert config.buckets == ()

    def test_frozen(self):
        """Test RunConfig cannot be mutated after construction."""
        config = RunConfig()
        with pytest.raises(AttributeError):
            config.max_workers = 5  # type: ignore[misc]

    def test_invalid_workers(self):
        """Test a non-positive worker count is rejected."""
        with pytest.raises(ConfigError):
            RunConfig(max_workers=0)

    def test_from_dict_coercion(self):
        """Test string values from env/YAML are coerced."""
        config = RunConfig.from_dict({
            'verbose': 'yes',
            'max_workers': '7',
            'buckets': 'a, b,,c',
            'unknown_key': 'ignored',
        })
        assert config.verbose is True
        assert config.max_workers == 7
        assert config.buckets == ('a', 'b', 'c')

    def test_from_dict_bucket_list(self):
        """Test YAML lists are accepted for buckets."""
        assert RunConfig.from_dict({'buckets': ['x', 'y']}).buckets == ('x', 'y')

    def test_from_dict_bad_workers(self):
        """Test a non-numeric worker count raises ConfigError."""
        with pytest.raises(ConfigError, match="max_workers must be an integer"):
            RunConfig.from_dict({'max_workers': 'many'})

    def test_coerced_keys_are_fields(self):
        """Test every coerced key names a RunConfig field."""
        fields = set(RunConfig.__dataclass_fields__)
        assert set(LIST_KEYS + BOOL_KEYS + INT_KEYS) <= fields

    def test_from_dict_bool_false_strings(self):
        """Test unrecognised strings for boolean keys read as False."""
        assert RunConfig.from_dict({"verbose": "off"}).verbose is False


# =============================================================================
# Helper Tests
# =============================================================================

class TestHelpers:
    """Tests for substitution and merging helpers."""

    def test_substitute_env_vars(self, monkeypatch):
        """Test ${VAR} and ${VAR:-default} substitution."""
        monkeypatch.setenv('ARCHIVE_BUCKET', 'cold-archive')
        monkeypatch.delenv('MISSING_VAR', raising=False)
        data = {'buckets': ['${ARCHIVE_BUCKET}', '${MISSING_VAR:-fallback}'], 'profile': 'x'}
        assert _substitute_env_vars(data) == {
            'buckets': ['cold-archive', 'fallback'],
            'profile': 'x',
        }

    def test_merge_later_wins(self):
        """Test later configs override earlier ones and None is skipped."""
        merged = merge_configs({'profile': 'a', 'verbose': True}, {'profile': 'b', 'verbose': None})
        assert merged == {'profile': 'b', 'verbose': True}

    def test_load_env_config(self, isolated, monkeypatch):
        """Test S3COST_* variables are read."""
        monkeypatch.setenv('S3COST_PROFILE', 'env-profile')
        monkeypatch.setenv('S3COST_MAX_WORKERS', '4')
        assert load_env_config() == {'profile': 'env-profile', 'max_workers': '4'}

    def test_sample_config_is_loadable(self, isolated):
        """Test the generated sample parses back to a valid RunConfig."""
        path = _write_config(isolated / 'sample.yaml', generate_sample_config())
        config = RunConfig.from_dict(load_config_file(path))
        assert config == RunConfig()


# =============================================================================
# File Loading Tests
# =============================================================================

class TestLoadConfigFile:
    """Tests for YAML file loading."""

    def test_missing_file(self, isolated):
        """Test a missing explicit config file raises."""
        with pytest.raises(FileNotFoundError):
            load_config_file(str(isolated / 'nope.yaml'))

    def test_invalid_yaml(self, isolated):
        """Test malformed YAML raises ConfigError."""
        path = _write_config(isolated / 'bad.yaml', "profile: [unclosed\n")
        with pytest.raises(ConfigError):
            load_config_file(path)

    def test_non_mapping(self, isolated):
        """Test a YAML list at top level is rejected."""
        path = _write_config(isolated / 'list.yaml', "- a\n- b\n")
        with pytest.raises(ConfigError):
            load_config_file(path)

    def test_loose_permissions_warn(self, isolated, caplog):
        """Test group/world readable config files log a warning."""
        path = isolated / 'loose.yaml'
        path.write_text("profile: x\n")
        os.chmod(path, 0o644)
        with caplog.at_level("WARNING"):
            load_config_file(str(path))
        assert "loose permissions" in caplog.text


# =============================================================================
# load_config Priority Tests
# =============================================================================

class TestLoadConfig:
    """Tests for merged configuration loading."""

    def test_no_sources(self, isolated):
        """Test defaults when nothing is configured."""
        assert load_config(_args()) == RunConfig()

    def test_cli_overrides_file_overrides_env(self, isolated, monkeypatch):
        """Test CLI > file > env priority."""
        monkeypatch.setenv('S3COST_PROFILE', 'env-profile')
        monkeypatch.setenv('S3COST_DEFAULT_REGION', 'eu-west-1')
        monkeypatch.setenv('S3COST_MAX_WORKERS', '3')
        path = _write_config(isolated / 'c.yaml', "profile: file-profile\nmax_workers: 8\n")

        config = load_config(_args(config=path, workers=12))

        assert config.profile == 'file-profile'
        assert config.default_region == 'eu-west-1'
        assert config.max_workers == 12

    def test_default_config_file_found(self, isolated):
        """Test ./s3cost-config.yaml is picked up without --config."""
        _write_config(isolated / 's3cost-config.yaml', "verbose: true\nbuckets: [one, two]\n")
        config = load_config(_args())
        assert config.verbose is True
        assert config.buckets == ('one', 'two')

    def test_unset_verbose_flag_keeps_file_value(self, isolated):
        """Test an absent -v does not reset verbose from the config file."""
        path = _write_config(isolated / 'c.yaml', "verbose: true\n")
        assert load_config(_args(config=path, verbose=None)).verbose is True

    def test_cli_buckets_string(self, isolated):
        """Test comma-separated --buckets becomes a tuple."""
        assert load_config(_args(buckets='a,b')).buckets == ('a', 'b')
