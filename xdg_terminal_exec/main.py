"""
# XDG Terminal Exec

Launches preferred terminal emulator, optionally with a command to run in it.

Terminal entries are looked up in "xdg-terminals" subdirectory of XDG data
hierarchy. Preferred entry IDs are read from "${desktop}-xdg-terminals.list"
and "xdg-terminals.list" files in XDG config hierarchy, then all present
entries are considered. The first entry applicable to XDG_CURRENT_DESKTOP
that successfully execs replaces this process.
"""

import os
import sys
import shlex
from typing import Callable, Iterable, Iterator, List

from xdg import BaseDirectory
from xdg.util import which
from xdg.DesktopEntry import DesktopEntry

from xdg_terminal_exec.params import *
from xdg_terminal_exec.misc import *


def absolute_or_default(path: str, *default: str) -> str:
    "Returns path if absolute, otherwise default joined to home dir"
    if path and os.path.isabs(path):
        return path
    home = os.path.expanduser("~")
    if not os.path.isabs(home):
        raise DirectoryConventionError(
            f"Could not determine home dir to replace relative XDG path \"{path}\""
        )
    print_debug(f"ignoring relative XDG path \"{path}\"")
    return os.path.join(home, *default)


class BaseDirs:
    "Snapshot of XDG base directory hierarchy: config and data homes and system dirs"

    def __init__(
        self,
        config_home: str,
        config_dirs: List[str],
        data_home: str,
        data_dirs: List[str],
    ):
        for name, home in (("config", config_home), ("data", data_home)):
            if not home or not os.path.isabs(home):
                raise DirectoryConventionError(
                    f'XDG {name} home should be an absolute path, got "{home}"'
                )
        self.config_home = config_home
        self.config_dirs = list(config_dirs)
        self.data_home = data_home
        self.data_dirs = list(data_dirs)

    def __str__(self):
        "String representation for debug purposes"
        return (
            f"{self.__class__.__name__}("
            f"config={[self.config_home] + self.config_dirs}, "
            f"data={[self.data_home] + self.data_dirs})"
        )

    @classmethod
    def from_xdg(cls):
        """
        Takes hierarchy from pyxdg BaseDirectory.
        Relative homes fall back to defaults under $HOME, relative system dirs are dropped.
        """
        config_dirs = list(BaseDirectory.xdg_config_dirs)
        data_dirs = list(BaseDirectory.xdg_data_dirs)
        # pyxdg puts homes at the head of dir lists
        if config_dirs and config_dirs[0] == BaseDirectory.xdg_config_home:
            config_dirs = config_dirs[1:]
        if data_dirs and data_dirs[0] == BaseDirectory.xdg_data_home:
            data_dirs = data_dirs[1:]
        return cls(
            absolute_or_default(BaseDirectory.xdg_config_home, ".config"),
            [d for d in config_dirs if os.path.isabs(d)],
            absolute_or_default(BaseDirectory.xdg_data_home, ".local", "share"),
            [d for d in data_dirs if os.path.isabs(d)],
        )

    def config_roots(self) -> List[str]:
        "User config dir first, then system config dirs"
        return [self.config_home] + self.config_dirs

    def data_roots(self, subdir: str = DATA_SUBDIR) -> List[str]:
        "User data dir first, then system data dirs, joined with subdir"
        return [os.path.join(d, subdir) for d in [self.data_home] + self.data_dirs]


class Replaced:
    "Launch outcome: process image was replaced"

    def __str__(self):
        return "replaced"


class LaunchFailed:
    "Launch outcome: exec attempt failed to start"

    def __init__(self, reason):
        self.reason = reason

    def __str__(self):
        return f"failed: {self.reason}"


def get_desktop_ids(xdg_current_desktop: str = None) -> List[str]:
    "Splits XDG_CURRENT_DESKTOP (or given value) into list of desktop IDs, dropping empty ones"
    if xdg_current_desktop is None:
        xdg_current_desktop = os.getenv("XDG_CURRENT_DESKTOP")
    if xdg_current_desktop is None:
        raise MissingDesktopContext("XDG_CURRENT_DESKTOP is not set!")
    return [desktop for desktop in sane_split(xdg_current_desktop, ":") if desktop]


def config_file_names(desktop_ids: List[str]) -> List[str]:
    "Returns list names: per-desktop in given order, then generic"
    return [f"{desktop}-{LIST_NAME}" for desktop in desktop_ids] + [LIST_NAME]


def config_paths(file_names: List[str], base_dirs: BaseDirs) -> List[str]:
    "Returns existing list files, iterating config roots, then file names"
    paths = []
    for config_dir in base_dirs.config_roots():
        for file_name in file_names:
            path = os.path.join(config_dir, file_name)
            # os.path.exists is False on permission errors as well
            if os.path.exists(path):
                paths.append(path)
    return paths


def data_paths(base_dirs: BaseDirs) -> List[str]:
    "Returns existing terminal entry dirs in data hierarchy"
    return [path for path in base_dirs.data_roots() if os.path.exists(path)]


def parse_list(text: str) -> List[str]:
    "Takes list file contents, returns entry IDs, skipping blank lines and comments"
    entry_ids = []
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        entry_ids.append(line)
    return entry_ids


def read_list(path: str) -> List[str]:
    "Reads entry IDs from list file, raises IoFailure on read errors"
    print_debug(f"reading {path}")
    try:
        with open(path, "r", encoding="UTF-8") as list_file:
            text = list_file.read()
    except (OSError, UnicodeDecodeError) as caught_exception:
        raise IoFailure(f'Could not read "{path}": {caught_exception}') from caught_exception
    return parse_list(text)


def configured_entries(desktop_ids: List[str], base_dirs: BaseDirs) -> List[str]:
    "Returns entry IDs from all existing list files in config hierarchy order"
    entry_ids = []
    for path in config_paths(config_file_names(desktop_ids), base_dirs):
        entry_ids.extend(read_list(path))
    print_debug("configured entries", entry_ids)
    return entry_ids


def present_entries(base_dirs: BaseDirs) -> List[str]:
    "Returns names found in existing terminal entry dirs, sorted per dir, in data hierarchy order"
    entry_ids = []
    for data_dir in data_paths(base_dirs):
        try:
            names = os.listdir(data_dir)
        except OSError as caught_exception:
            raise IoFailure(
                f'Could not list "{data_dir}": {caught_exception}'
            ) from caught_exception
        entry_ids.extend(sorted(names))
    print_debug("present entries", entry_ids)
    return entry_ids


def candidate_ids(desktop_ids: List[str], base_dirs: BaseDirs) -> Iterator[str]:
    """
    Yields configured entry IDs, then present entry IDs.
    Data dirs are only listed after configured IDs are exhausted.
    """
    yield from configured_entries(desktop_ids, base_dirs)
    yield from present_entries(base_dirs)


def unique_ids(entry_ids: Iterable[str], seen: set) -> Iterator[str]:
    "Yields IDs not yet in seen set, adding them to it"
    for entry_id in entry_ids:
        if entry_id in seen:
            print_debug(f"already seen {entry_id}")
            continue
        seen.add(entry_id)
        yield entry_id


def find_entry_file(entry_id: str, base_dirs: BaseDirs):
    "Returns path of entry file for entry_id in data hierarchy, or None"
    if not entry_id or os.path.isabs(entry_id):
        return None
    normalized = os.path.normpath(entry_id)
    if normalized == ".." or normalized.startswith("../"):
        return None
    for data_dir in base_dirs.data_roots():
        entry_path = os.path.join(data_dir, normalized)
        if os.path.isfile(entry_path):
            return entry_path
    return None


def read_descriptor(entry_path: str) -> dict:
    "Parses entry file, returns dict of raw values from main group"
    entry = DesktopEntry(entry_path)
    return dict(entry.content.get(ENTRY_GROUP, {}))


def list_value(value: str) -> List[str]:
    "Splits ';'-delimited value, dropping empty items"
    return [item for item in value.split(";") if item]


def check_descriptor(
    descriptor: dict, desktop_ids: List[str], which_func: Callable = None
) -> None:
    "Takes descriptor, checks visibility and TryExec, raises RuntimeError on failure"
    if which_func is None:
        which_func = which
    if descriptor.get("Hidden") == "true":
        raise RuntimeError("Entry is hidden")
    if "NotShowIn" in descriptor:
        if any(item in desktop_ids for item in list_value(descriptor["NotShowIn"])):
            raise RuntimeError("Entry is discarded by NotShowIn")
    if "OnlyShowIn" in descriptor:
        if not any(
            item in desktop_ids for item in list_value(descriptor["OnlyShowIn"])
        ):
            raise RuntimeError("Entry is discarded by OnlyShowIn")
    if "TryExec" in descriptor and not which_func(descriptor["TryExec"]):
        raise RuntimeError(f"Entry is discarded by TryExec {descriptor['TryExec']}")


def find_terminals(
    entry_ids: Iterable[str],
    desktop_ids: List[str],
    base_dirs: BaseDirs,
    parser: Callable = None,
    which_func: Callable = None,
) -> Iterator[tuple]:
    """
    Takes candidate entry IDs, yields (entry_id, entry_path, descriptor) tuples
    for entries that are found, parsed and pass checks, in given order.
    """
    if parser is None:
        parser = read_descriptor
    for entry_id in entry_ids:
        entry_path = find_entry_file(entry_id, base_dirs)
        if entry_path is None:
            print_debug(f"entry {entry_id} not found")
            continue
        try:
            descriptor = parser(entry_path)
        except Exception as caught_exception:
            print_debug(f"failed parsing {entry_path}: {caught_exception}")
            continue
        try:
            check_descriptor(descriptor, desktop_ids, which_func)
        except RuntimeError as caught_exception:
            print_debug(f"{entry_id}: {caught_exception}")
            continue
        print_debug(f"considering {entry_id} {entry_path}")
        yield (entry_id, entry_path, descriptor)


def get_exec_arg(descriptor: dict) -> str:
    "Returns exec arg: X-ExecArg, ExecArg, or default"
    if "X-ExecArg" in descriptor:
        return descriptor["X-ExecArg"]
    if "ExecArg" in descriptor:
        return descriptor["ExecArg"]
    return DEFAULT_EXEC_ARG


def gen_cmdline(descriptor: dict, args: List[str]) -> str:
    """
    Takes descriptor and extra args, returns shell command string.
    Without args it is Exec as is, otherwise Exec, exec arg (if not empty)
    and args joined by spaces.
    """
    entry_exec = descriptor.get("Exec")
    if not entry_exec:
        raise MalformedDescriptor("Entry does not have Exec")
    if not args:
        return entry_exec
    exec_arg = get_exec_arg(descriptor)
    return " ".join([entry_exec] + ([exec_arg] if exec_arg else []) + list(args))


def check_exec(descriptor: dict, which_func: Callable = None) -> None:
    "Checks that executable of Exec is reachable, raises FileNotFoundError otherwise"
    if which_func is None:
        which_func = which
    try:
        entry_argv = shlex.split(descriptor["Exec"])
    except ValueError as caught_exception:
        raise MalformedDescriptor(
            f"Entry has unparsable Exec: {caught_exception}"
        ) from caught_exception
    if not entry_argv:
        raise MalformedDescriptor("Entry has empty Exec")
    if not which_func(entry_argv[0]):
        raise FileNotFoundError(f'Entry points to missing executable "{entry_argv[0]}"')


def exec_shell(cmdline: str):
    "Replaces process with shell running cmdline, returns LaunchFailed if exec did not happen"
    argv = [SHELL, "-c", cmdline]
    print_debug("exec", argv)
    try:
        os.execvp(argv[0], argv)
    except OSError as caught_exception:
        return LaunchFailed(caught_exception)
    return Replaced()


def launch(
    descriptor: dict,
    args: List[str],
    launcher: Callable = None,
    which_func: Callable = None,
):
    """
    Takes descriptor and extra args, attempts launch via launcher.
    Returns launcher outcome, or LaunchFailed if command could not be built
    or its executable is missing.
    """
    if launcher is None:
        launcher = exec_shell
    try:
        cmdline = gen_cmdline(descriptor, args)
        check_exec(descriptor, which_func)
    except (MalformedDescriptor, FileNotFoundError) as caught_exception:
        return LaunchFailed(caught_exception)
    return launcher(cmdline)


def run(
    args: List[str],
    desktop_ids: List[str] = None,
    base_dirs: BaseDirs = None,
    parser: Callable = None,
    which_func: Callable = None,
    launcher: Callable = None,
) -> bool:
    """
    Walks candidate terminals in order, launching each until one replaces the process.
    Returns True if launch happened (only reachable with non-exec launcher),
    False if candidates are exhausted.
    Raises on fatal errors: MissingDesktopContext, DirectoryConventionError, IoFailure.
    """
    if desktop_ids is None:
        desktop_ids = get_desktop_ids()
    if base_dirs is None:
        base_dirs = BaseDirs.from_xdg()
    print_debug("desktop ids", desktop_ids, "base dirs", base_dirs)

    # dedup set is owned by this run only
    seen = set()
    for entry_id, entry_path, descriptor in find_terminals(
        unique_ids(candidate_ids(desktop_ids, base_dirs), seen),
        desktop_ids,
        base_dirs,
        parser=parser,
        which_func=which_func,
    ):
        outcome = launch(descriptor, args, launcher=launcher, which_func=which_func)
        if isinstance(outcome, Replaced):
            return True
        print_debug(f"launch of {entry_id} from {entry_path} {outcome}")
    return False


def main(argv: List[str] = None):
    "xdg-terminal-exec entrypoint"

    for warning in (
        DebugFlag.warning,
        LogFlag.log_warning,
        LogFlag.prefix_warning,
    ):
        if warning:
            print_warning(warning)

    args = sys.argv[1:] if argv is None else list(argv)
    print_debug("args", args)

    try:
        launched = run(args)
    except Exception as caught_exception:
        print_error(caught_exception, notify=True)
        sys.exit(1)

    if not launched:
        print_debug("no terminal was launched")
    sys.exit(0)
