from pathlib import Path

import pytest

from hostprov.config import ServiceSpec, load_config, parse_config
from hostprov.errors import ConfigError

DATA = {
    "packages": ["git", "make", "git"],
    "services": ["docker", {"name": "sshd", "running": False}],
    "profiles": {
        "java": {"packages": ["jdk-openjdk"], "services": [{"name": "docker", "enabled": False}]},
    },
    "settings": {"manager": "pacman", "retries": 3, "backoff": 0.5},
}


def test_parse_dedupes_packages_and_reads_services():
    cfg = parse_config(DATA, env={})

    assert cfg.desired.package_names == ["git", "make"]
    assert cfg.desired.services == (
        ServiceSpec("docker"),
        ServiceSpec("sshd", enabled=True, running=False),
    )
    assert cfg.settings.manager == "pacman"
    assert cfg.settings.retries == 3
    assert cfg.settings.backoff == 0.5


def test_profile_overlays_base():
    cfg = parse_config(DATA, profile="java", env={})

    assert cfg.profile == "java"
    assert cfg.profiles == ("java",)
    assert cfg.desired.package_names == ["git", "make", "jdk-openjdk"]
    assert cfg.desired.services[0] == ServiceSpec("docker", enabled=False)
    assert len(cfg.desired.services) == 2


def test_profile_from_environment():
    cfg = parse_config(DATA, env={"HOSTPROV_PROFILE": "java"})
    assert "jdk-openjdk" in cfg.desired.package_names


def test_unknown_profile():
    with pytest.raises(ConfigError):
        parse_config(DATA, profile="nope", env={})


def test_environment_overrides():
    env = {
        "HOSTPROV_PACKAGES": "htop, tmux git",
        "HOSTPROV_SERVICES": "sshd",
        "HOSTPROV_MANAGER": "dnf",
        "HOSTPROV_RETRIES": "5",
        "HOSTPROV_BACKOFF": "0",
    }
    cfg = parse_config(DATA, env=env)

    assert cfg.desired.package_names == ["git", "make", "htop", "tmux"]
    assert cfg.desired.services[1] == ServiceSpec("sshd")
    assert cfg.settings.manager == "dnf"
    assert cfg.settings.retries == 5
    assert cfg.settings.backoff == 0.0


def test_empty_config_is_empty_state():
    cfg = parse_config(None, env={})
    assert cfg.desired.packages == ()
    assert cfg.desired.services == ()
    assert cfg.settings.retries == 2


@pytest.mark.parametrize("data", [
    {"packages": "git"},
    {"packages": ["git", 3]},
    {"services": [{"enabled": True}]},
    {"packages": ["vim; rm -rf /"]},
    {"settings": {"retries": "many"}},
    {"settings": {"retries": -1}},
    {"profiles": ["java"]},
    ["git"],
])
def test_invalid_config(data):
    with pytest.raises(ConfigError):
        parse_config(data, env={})


def test_load_config_from_file(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    path = tmp_path / "host.yaml"
    path.write_text("packages:\n  - jq\nservices:\n  - docker\n", encoding="utf-8")

    cfg = load_config(str(path))
    assert cfg.desired.package_names == ["jq"]
    assert cfg.desired.services == (ServiceSpec("docker"),)


def test_load_config_missing_file(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    with pytest.raises(ConfigError):
        load_config(str(tmp_path / "missing.yaml"))


def test_load_config_bad_yaml(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    path = tmp_path / "bad.yaml"
    path.write_text("packages: [git\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(str(path))


def test_load_config_reads_dotenv(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    # registers the variable so teardown removes what load_dotenv sets
    monkeypatch.setenv("HOSTPROV_PACKAGES", "")
    monkeypatch.delenv("HOSTPROV_PACKAGES")
    (tmp_path / "host.yaml").write_text("packages: [jq]\n", encoding="utf-8")
    (tmp_path / ".env").write_text("HOSTPROV_PACKAGES=htop\n", encoding="utf-8")

    cfg = load_config("host.yaml")
    assert cfg.desired.package_names == ["jq", "htop"]


def test_shipped_config_matches_desktop_recipe(tmp_path, monkeypatch):
    shipped = Path(__file__).resolve().parents[1] / "hostprov.yaml"
    monkeypatch.chdir(tmp_path)

    cfg = load_config(str(shipped))
    assert "docker" in cfg.desired.package_names
    assert cfg.desired.services == (ServiceSpec("docker"),)

    java = load_config(str(shipped), profile="java")
    assert java.desired.package_names[-1] == "jdk-openjdk"
