import os
import shlex
from subprocess import CalledProcessError

import pytest

FEATURE_TABLE = ("# Constructed from biom file\n"
                 "#OTU ID\tT1_CO\tT2_CO\tBL_PCR_Jourand\n"
                 "asv1\t1500.0\t10.0\t0.0\n"
                 "asv2\t500.0\t2990.0\t3.0\n"
                 "asv3\t0.0\t0.0\t7.0\n")


def write_text(path, text):
    os.makedirs(os.path.dirname(str(path)), exist_ok=True)
    with open(str(path), 'w') as f1:
        f1.write(text)
    return str(path)


class FakeShell():
    """
    stands in for `run_cmd`: records the commands, fails the ones matching
    `fail_on` and runs `hooks` (substring -> callable(cmd)) on the others.
    """

    def __init__(self):
        self.cmds = []
        self.fail_on = []
        self.hooks = {}

    def __call__(self, cmd, dry_run=False, log_file=None, **kwargs):
        self.cmds.append(cmd)
        for pattern in list(self.fail_on):
            if pattern in cmd:
                raise CalledProcessError(1, cmd)
        for pattern, hook in self.hooks.items():
            if pattern in cmd:
                hook(cmd)

    def find(self, pattern):
        return [_ for _ in self.cmds if pattern in _]


def option_value(cmd, option):
    args = shlex.split(cmd)
    return args[args.index(option) + 1]


@pytest.fixture
def fake_shell(monkeypatch):
    shell = FakeShell()
    monkeypatch.setattr('tasks.basic_tasks.run_cmd', shell)
    return shell
