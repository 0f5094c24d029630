"""Backend registry resolution: defaults, YAML file, env overrides."""
from __future__ import annotations

import logging

from backend.app.config import BackendConfig, load_backend_configs, load_backends_file


def test_defaults_cover_every_routed_backend(monkeypatch):
    for name in ("SCENE", "ADVENTURE", "VOICE", "IMAGE", "RPG_API"):
        monkeypatch.delenv(f"WORLDBUILDER_{name}_BASE_URL", raising=False)
        monkeypatch.delenv(f"{name}_BASE_URL", raising=False)
    configs = load_backend_configs(backends_file="")
    assert set(configs) == {"scene", "adventure", "voice", "image", "rpg_api"}
    assert configs["rpg_api"].kind == "rest"
    assert configs["rpg_api"].required is False
    assert configs["image"].timeout >= 60


def test_env_overrides_url_required_and_timeout(monkeypatch):
    monkeypatch.setenv("WORLDBUILDER_IMAGE_BASE_URL", "http://gpu-box:8300")
    monkeypatch.setenv("WORLDBUILDER_RPG_API_REQUIRED", "true")
    monkeypatch.setenv("VOICE_TIMEOUT", "12.5")
    configs = load_backend_configs(backends_file="")
    assert configs["image"].base_url == "http://gpu-box:8300"
    assert configs["rpg_api"].required is True
    assert configs["voice"].timeout == 12.5


def test_bad_timeout_keeps_default(monkeypatch):
    monkeypatch.setenv("WORLDBUILDER_SCENE_TIMEOUT", "-3")
    default = load_backend_configs(backends_file="")["adventure"].timeout
    assert load_backend_configs(backends_file="")["scene"].timeout == default


def test_yaml_file_overrides_and_adds_backends(tmp_path, monkeypatch):
    monkeypatch.delenv("WORLDBUILDER_SCENE_BASE_URL", raising=False)
    monkeypatch.delenv("SCENE_BASE_URL", raising=False)
    path = tmp_path / "backends.yaml"
    path.write_text(
        "backends:\n"
        "  scene:\n"
        "    base_url: http://scene-box:9000\n"
        "    health_path: status\n"
        "  music:\n"
        "    kind: rest\n"
        "    base_url: http://music.local/api\n"
        "    required: false\n"
        "  broken: just-a-string\n"
        "  nourl:\n"
        "    timeout: 5\n",
        encoding="utf-8",
    )
    configs = load_backend_configs(backends_file=path)
    assert configs["scene"].base_url == "http://scene-box:9000"
    assert configs["scene"].health_url == "http://scene-box:9000/status"
    assert configs["music"].kind == "rest"
    assert configs["music"].required is False
    assert "broken" not in configs
    assert "nourl" not in configs


def test_missing_yaml_file_is_ignored(tmp_path):
    assert load_backends_file(tmp_path / "absent.yaml") == {}


def test_unparsable_yaml_file_is_ignored(tmp_path, caplog):
    path = tmp_path / "backends.yaml"
    path.write_text("backends:\n  image: {base_url: http://x\n", encoding="utf-8")
    with caplog.at_level(logging.WARNING, logger="backend.app.config"):
        assert load_backends_file(path) == {}
    configs = load_backend_configs(backends_file=path)
    assert set(configs) == {"scene", "adventure", "voice", "image", "rpg_api"}
    assert "invalid YAML" in caplog.text


def test_url_helpers_join_cleanly():
    cfg = BackendConfig(name="rpg_api", kind="rest", base_url="http://rpg.test/api/")
    assert cfg.url_for("npc-generator") == "http://rpg.test/api/npc-generator"
    assert cfg.url_for("/map-generator") == "http://rpg.test/api/map-generator"
    assert cfg.health_url == "http://rpg.test/api/health"
