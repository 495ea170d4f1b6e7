from dshub.config import Config

CONFIG_YAML = """
script_root: projects
web_ui:
  port: 5055
  title: Ops
health:
  interval_seconds: 10
services:
  - {id: ums, name: User Management (UMS), base_url: "http://localhost:9001/ums/"}
  - {id: ums, name: Duplicate, base_url: "http://elsewhere"}
  - {id: ans, base_url: "http://localhost:5000"}
"""


def test_missing_file_uses_built_in_registry(tmp_path):
    config = Config.from_file(tmp_path / "absent.yaml")

    assert [s.id for s in config.services] == ["eureka", "ums", "oms", "cms", "tms", "sms", "sample", "ans"]
    assert config.web_port == 5000
    assert config.health_interval == 30
    assert config.log_buffer_size == 100
    assert config.follow_command == ["tail", "-n", "0", "-F"]


def test_yaml_file_is_loaded_relative_to_its_directory(tmp_path):
    path = tmp_path / "dshub.yaml"
    path.write_text(CONFIG_YAML)

    config = Config.from_file(path)

    assert config.script_root == tmp_path.resolve() / "projects"
    assert config.bin_dir == tmp_path.resolve() / "projects" / "backend" / "_bin"
    assert config.logs_dir == tmp_path.resolve() / "projects" / "backend" / "logs"
    assert config.web_port == 5055
    assert config.web_title == "Ops"
    assert config.health_interval == 10
    assert [(s.id, s.name, s.base_url) for s in config.services] == [
        ("ums", "User Management (UMS)", "http://localhost:9001/ums"),
        ("ans", "ans", "http://localhost:5000"),
    ]
    assert config.service_ids == {"ums", "ans"}


def test_environment_overrides(tmp_path, monkeypatch):
    path = tmp_path / "dshub.yaml"
    path.write_text(CONFIG_YAML)
    monkeypatch.setenv("DSHUB_UMS_BASE_URL", "http://ums.internal:9001/ums")
    monkeypatch.setenv("DSHUB_PORT", "6000")
    monkeypatch.setenv("DSHUB_SCRIPT_ROOT", "/srv/projects")

    config = Config.from_file(path)

    assert config.services[0].base_url == "http://ums.internal:9001/ums"
    assert config.web_port == 6000
    assert str(config.script_root) == "/srv/projects"


def test_config_path_from_environment(tmp_path, monkeypatch):
    path = tmp_path / "custom.yaml"
    path.write_text("web_ui:\n  title: From Env\n")
    monkeypatch.setenv("DSHUB_CONFIG", str(path))

    assert Config.from_file().web_title == "From Env"


def test_non_positive_heartbeat_falls_back_to_default(tmp_path):
    for value in (None, 0, -1):
        config = Config({"logs": {"heartbeat_seconds": value}}, base_dir=tmp_path)
        assert config.heartbeat_seconds == 15

    assert Config({"logs": {"heartbeat_seconds": 2.5}}, base_dir=tmp_path).heartbeat_seconds == 2.5
