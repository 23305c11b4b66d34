import pytest

from ttlstate.config import StateConfig, config_from_env

ENV_VARS = [
    "RATE_LIMIT_WINDOW_MS", "RATE_LIMIT_PER_MINUTE", "TRANSLATION_RATE_LIMIT_PER_MINUTE",
    "DEDUP_TTL_S", "DEDUP_MAX_SIZE", "CACHE_TTL_S",
    "COUNTER_SWEEP_INTERVAL_S", "DEDUP_SWEEP_INTERVAL_S", "CACHE_SWEEP_INTERVAL_S",
]

@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    # keep any developer .env out of the picture
    monkeypatch.chdir(tmp_path)


def test_defaults_without_env(tmp_path):
    cfg = config_from_env(str(tmp_path / "missing.env"))
    assert cfg == StateConfig()
    assert cfg.dedup_ttl_s == 86_400
    assert cfg.cache_ttl_s == 3600
    assert cfg.translation_rate_limit == 10

def test_env_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("RATE_LIMIT_PER_MINUTE", "120")
    monkeypatch.setenv("CACHE_TTL_S", "90.5")
    cfg = config_from_env(str(tmp_path / "missing.env"))
    assert cfg.api_rate_limit == 120
    assert cfg.cache_ttl_s == 90.5

def test_dotenv_file_is_loaded(tmp_path):
    env = tmp_path / ".env"
    env.write_text("DEDUP_TTL_S=600\nDEDUP_MAX_SIZE=50\n", encoding="utf-8")
    cfg = config_from_env(str(env))
    assert cfg.dedup_ttl_s == 600.0
    assert cfg.dedup_max_size == 50

@pytest.mark.parametrize("name,value", [
    ("RATE_LIMIT_WINDOW_MS", "abc"),
    ("CACHE_TTL_S", "-1"),
    ("DEDUP_MAX_SIZE", "1.5"),
])
def test_invalid_values_raise(monkeypatch, tmp_path, name, value):
    monkeypatch.setenv(name, value)
    with pytest.raises(ValueError, match=name):
        config_from_env(str(tmp_path / "missing.env"))

@pytest.mark.parametrize("name", [
    "COUNTER_SWEEP_INTERVAL_S",
    "DEDUP_SWEEP_INTERVAL_S",
    "CACHE_SWEEP_INTERVAL_S",
    "RATE_LIMIT_WINDOW_MS",
    "RATE_LIMIT_PER_MINUTE",
    "TRANSLATION_RATE_LIMIT_PER_MINUTE",
    "DEDUP_TTL_S",
    "DEDUP_MAX_SIZE",
])
def test_zero_rejected_where_positive_required(monkeypatch, tmp_path, name):
    monkeypatch.setenv(name, "0")
    with pytest.raises(ValueError, match=name):
        config_from_env(str(tmp_path / "missing.env"))

def test_zero_cache_ttl_allowed(monkeypatch, tmp_path):
    monkeypatch.setenv("CACHE_TTL_S", "0")
    assert config_from_env(str(tmp_path / "missing.env")).cache_ttl_s == 0.0

@pytest.mark.parametrize("field", ["counter_sweep_interval_s", "dedup_max_size", "api_rate_limit"])
def test_direct_construction_names_field(field):
    with pytest.raises(ValueError, match=field):
        StateConfig(**{field: 0})
