import os

import pytest

from xdg_terminal_exec.main import BaseDirs, LaunchFailed, Replaced


def write_list(config_dir, name, lines):
    "Writes list file with given lines into config_dir"
    os.makedirs(config_dir, exist_ok=True)
    path = os.path.join(config_dir, name)
    with open(path, "w", encoding="UTF-8") as list_file:
        list_file.write("\n".join(lines) + "\n")
    return path


def write_entry(data_dir, entry_id, **keys):
    "Writes terminal entry into xdg-terminals subdir of data_dir"
    entry_dir = os.path.join(data_dir, "xdg-terminals")
    path = os.path.join(entry_dir, entry_id)
    os.makedirs(os.path.dirname(path), exist_ok=True)
    keys.setdefault("Type", "Application")
    keys.setdefault("Name", entry_id.removesuffix(".desktop"))
    with open(path, "w", encoding="UTF-8") as entry_file:
        entry_file.write("[Desktop Entry]\n")
        for key, value in keys.items():
            entry_file.write(f"{key.replace('_', '-')}={value}\n")
    return path


class FakeLauncher:
    "Records command lines, replaces on the ones listed in 'works'"

    def __init__(self, works=None):
        self.works = set(works or [])
        self.cmdlines = []

    def __call__(self, cmdline):
        self.cmdlines.append(cmdline)
        if cmdline in self.works:
            return Replaced()
        return LaunchFailed(FileNotFoundError(cmdline))


@pytest.fixture
def base_dirs(tmp_path):
    "XDG hierarchy under tmp_path with one system config dir and two system data dirs"
    return BaseDirs(
        str(tmp_path / "home" / ".config"),
        [str(tmp_path / "etc" / "xdg")],
        str(tmp_path / "home" / ".local" / "share"),
        [str(tmp_path / "usr" / "local" / "share"), str(tmp_path / "usr" / "share")],
    )


@pytest.fixture
def which_any():
    "which replacement that finds every executable except ones starting with 'missing'"

    def which_func(name):
        return None if name.startswith("missing") else f"/usr/bin/{name}"

    return which_func
