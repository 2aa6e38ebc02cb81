"""Tests for Runner.execute."""

import pytest

from prlander.core.errors import CommandFailed
from prlander.core.runner import Runner


@pytest.fixture
def runner():
    return Runner()


def test_captures_stdout(runner):
    result = runner.execute("echo hello")
    assert result.exited == 0
    assert result.stdout.strip() == "hello"


def test_nonzero_exit_raises(runner):
    with pytest.raises(CommandFailed) as exc:
        runner.execute("sh -c 'echo broken >&2; exit 3'")

    assert exc.value.returncode == 3
    assert "broken" in exc.value.output
    assert "exit 3" in exc.value.command


def test_check_false_returns_result(runner):
    result = runner.execute("sh -c 'exit 2'", check=False)
    assert result.exited == 2


def test_runs_in_cwd(runner, tmp_path):
    (tmp_path / "marker.txt").write_text("x")
    result = runner.execute("ls", cwd=tmp_path)
    assert "marker.txt" in result.stdout


def test_sends_stdin(runner):
    result = runner.execute("cat", stdin="piped text\n")
    assert result.stdout == "piped text\n"


def test_writes_log_file(runner, tmp_path):
    log_file = tmp_path / "out" / "command.log"
    runner.execute("echo logged", log_file=log_file)
    assert log_file.read_text().strip() == "logged"


def test_locale_is_forced(runner):
    result = runner.execute("sh -c 'echo $LC_ALL'")
    assert result.stdout.strip() == "C"
