import io
import sys
from vbuild.RUNNERS.process_runner import ProcessRunner, COMMAND_NOT_FOUND


def test_stdout_goes_to_stream():
    stream = io.StringIO()
    runner = ProcessRunner("test", stdout=stream)
    exit_code = runner.run([sys.executable, "-c", "print('hello')"])
    assert exit_code == 0
    assert "[test] Running:" in stream.getvalue()
    assert "hello\n" in stream.getvalue()


def test_stdout_to_file(tmp_path):
    log = tmp_path / "build.log"
    with open(log, "w") as stream:
        exit_code = ProcessRunner("test", stdout=stream).run([sys.executable, "-c", "print('layer')"])
    assert exit_code == 0
    assert "layer" in log.read_text()


def test_exit_code_is_returned(tmp_path):
    runner = ProcessRunner("test", stdout=io.StringIO())
    assert runner.run([sys.executable, "-c", "import sys; sys.exit(3)"]) == 3


def test_working_dir(tmp_path):
    stream = io.StringIO()
    ProcessRunner("test", stdout=stream).run(
        [sys.executable, "-c", "import os; print(os.listdir('.'))"], working_dir=str(tmp_path)
    )
    assert "[]" in stream.getvalue()


def test_quiet_discards_output():
    stream = io.StringIO()
    exit_code = ProcessRunner("test", stdout=stream).run([sys.executable, "-c", "print('x')"], quiet=True)
    assert exit_code == 0
    assert stream.getvalue() == ""


def test_missing_executable():
    stream = io.StringIO()
    assert ProcessRunner("test", stdout=stream).run(["vbuild-no-such-backend"]) == COMMAND_NOT_FOUND
    assert ProcessRunner("test", stdout=stream).run(["vbuild-no-such-backend"], quiet=True) == COMMAND_NOT_FOUND
