from pathlib import Path

import pytest

from dshub.errors import BadRequest, ScriptExecutionError
from dshub.runner import ProcessRunner, validate_service_id

from .conftest import write_script


@pytest.fixture
def runner(script_root):
    return ProcessRunner(script_root, allowed_ids={"ans", "cms", "ums"})


def test_restart_returns_stripped_stdout(runner, script_root):
    write_script(script_root / "backend" / "_bin" / "restart_ans.sh", "echo restarted")

    result = runner.run_action("restart", "ans")

    assert result.to_dict() == {
        "success": True,
        "action": "restart",
        "serviceId": "ans",
        "output": "restarted",
    }


def test_script_runs_inside_bin_directory(runner, script_root):
    write_script(script_root / "backend" / "_bin" / "start_cms.sh", "pwd")

    result = runner.run_action("start", "cms")

    assert Path(result.output).resolve() == (script_root / "backend" / "_bin").resolve()


def test_missing_script_is_an_error(runner):
    with pytest.raises(ScriptExecutionError) as exc:
        runner.run_action("stop", "ums")
    assert "stop_ums.sh" in exc.value.message


def test_non_zero_exit_forwards_stderr(runner, script_root):
    write_script(script_root / "backend" / "_bin" / "stop_ans.sh", "echo 'port busy' >&2\nexit 3")

    with pytest.raises(ScriptExecutionError) as exc:
        runner.run_action("stop", "ans")
    assert "exit code 3" in exc.value.message
    assert "port busy" in exc.value.message
    assert exc.value.status_code == 500


def test_stderr_output_fails_even_on_success_exit(runner, script_root):
    write_script(script_root / "backend" / "_bin" / "start_ans.sh", "echo ok\necho 'warning: slow start' >&2")

    with pytest.raises(ScriptExecutionError) as exc:
        runner.run_action("start", "ans")
    assert exc.value.message == "warning: slow start\n"


def test_empty_service_id_is_rejected_before_running(runner):
    with pytest.raises(BadRequest) as exc:
        runner.run_action("start", "")
    assert exc.value.message == "serviceId required"
    assert exc.value.status_code == 400


@pytest.mark.parametrize("service_id", ["../etc", "ans; rm -rf /", "a b", "ans$"])
def test_unsafe_service_ids_are_rejected(service_id):
    with pytest.raises(BadRequest):
        validate_service_id(service_id)


def test_unregistered_service_is_rejected(runner, script_root):
    write_script(script_root / "backend" / "_bin" / "start_other.sh", "echo started")
    with pytest.raises(BadRequest):
        runner.run_action("start", "other")


def test_registry_check_can_be_disabled(script_root):
    write_script(script_root / "backend" / "_bin" / "start_other.sh", "echo started")
    runner = ProcessRunner(script_root)

    assert runner.run_action("start", "other").output == "started"


def test_unknown_action_is_rejected(runner):
    with pytest.raises(BadRequest):
        runner.run_action("reload", "ans")


def test_timeout_is_a_script_error(script_root):
    write_script(script_root / "backend" / "_bin" / "restart_ans.sh", "exec sleep 5")
    runner = ProcessRunner(script_root, timeout=0.2)

    with pytest.raises(ScriptExecutionError) as exc:
        runner.run_action("restart", "ans")
    assert "timed out" in exc.value.message
