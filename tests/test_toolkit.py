from subprocess import CalledProcessError

import luigi
import pytest

from toolkit import run_cmd, valid_path, touch_outputs, get_validate_path


def test_run_cmd_writes_command_and_output_to_log(tmp_path):
    log = str(tmp_path / 'logs' / 'cmd_log.txt')
    run_cmd("echo hello", log_file=log)
    run_cmd("echo again", log_file=log)
    lines = open(log).read().splitlines()
    assert lines == ["echo hello", "hello", "echo again", "again"]


def test_run_cmd_dry_run_only_prints(tmp_path):
    log = str(tmp_path / 'cmd_log.txt')
    ofile = tmp_path / 'never.txt'
    run_cmd(f"touch {ofile}", dry_run=True, log_file=log)
    assert not ofile.exists()
    assert open(log).read().strip() == f"touch {ofile}"


def test_run_cmd_failure_raises(tmp_path):
    with pytest.raises(CalledProcessError):
        run_cmd("exit 3", log_file=str(tmp_path / 'cmd_log.txt'))


def test_valid_path(tmp_path):
    empty = tmp_path / 'empty.txt'
    empty.write_text('')
    with pytest.raises(Exception):
        valid_path(str(empty), check_size=True)
    with pytest.raises(Exception):
        valid_path(str(tmp_path / 'missing.txt'), check_size=True)
    valid_path(str(tmp_path / 'a' / 'b'), check_odir=True)
    assert (tmp_path / 'a' / 'b').is_dir()
    valid_path([None, str(tmp_path / 'c' / 'file.txt')], check_ofile=True)
    assert (tmp_path / 'c').is_dir()


def test_touch_outputs(tmp_path):
    targets = dict(a=luigi.LocalTarget(str(tmp_path / 'x' / 'a.qza')),
                   b=luigi.LocalTarget(str(tmp_path / 'b.qza')))
    touch_outputs(targets)
    touch_outputs(luigi.LocalTarget(str(tmp_path / 'c.qza')))
    assert all(t.exists() for t in targets.values())
    assert (tmp_path / 'c.qza').exists()


def test_get_validate_path():
    assert get_validate_path('/tmp/x') == '/tmp/x'
    assert get_validate_path('x').startswith('/')
