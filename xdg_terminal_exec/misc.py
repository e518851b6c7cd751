import os
import sys
import syslog
from io import StringIO
from typing import List


def str2bool_plus(string: str, numeric: bool = False):
    "Takes boolean'ish or numeric string, converts to bool or int"
    if string.isnumeric():
        number = int(string)
        if numeric:
            return number
        return number > 0
    elif not string or string.lower().capitalize() in (
        "No",
        "False",
        "N",
    ):
        if numeric:
            return 0
        return False
    elif string.lower().capitalize() in ("Yes", "True", "Y"):
        if numeric:
            return 1
        return True
    else:
        raise ValueError(f'Expected boolean or numeric or empty value, got "{string}"')


def env_flag(varname: str):
    "Reads boolean'ish env var, returns tuple of (bool, warning string or None)"
    raw = os.getenv(varname, "0")
    try:
        return (str2bool_plus(raw), None)
    except ValueError:
        return (
            False,
            f'Expected boolean or numeric or empty value for {varname}, got "{raw}", assuming False',
        )


class DebugFlag:
    "Checks for DEBUG env value and holds 'debug' boolean, 'warning' string"

    debug, warning = env_flag("DEBUG")


class LogFlag:
    "Holds global state of syslog logging and loglevel prefix switches"

    # log using syslog module
    log, log_warning = env_flag("XTE_LOG")
    # prefix lines with <N> codes for stdin/stderr journal parsing
    prefix, prefix_warning = env_flag("XTE_LOGPREFIX")


class Styles:
    "Terminal control characters for color and style"

    reset = "\033[0m"
    red = "\033[31m"
    yellow = "\033[33m"
    grey = "\033[90m"


class MissingDesktopContext(RuntimeError):
    "XDG_CURRENT_DESKTOP is not set"


class DirectoryConventionError(RuntimeError):
    "XDG base directories could not be determined"


class IoFailure(OSError):
    "Reading an existing config file or data dir failed"


class MalformedDescriptor(ValueError):
    "Terminal entry lacks a required key"


def sane_split(string: str, delimiter: str) -> List[str]:
    "Splits string by delimiter, but returns empty list on empty string"
    if not isinstance(string, str):
        raise TypeError(f'"string" should be a string, got: {type(string)}')
    if not isinstance(delimiter, str):
        raise TypeError(f'"delimiter" should be a string, got: {type(delimiter)}')
    if not delimiter:
        raise ValueError('"delimiter" should not be empty')
    return string.split(delimiter) if string else []


class Levels:
    "Message levels: (syslog priority, tty color, notification summary, icon, urgency)"

    error = (syslog.LOG_ERR, Styles.red, "Error", "dialog-error", 2)
    warning = (syslog.LOG_WARNING, Styles.yellow, "Warning", "dialog-warning", 1)
    debug = (syslog.LOG_DEBUG, Styles.grey, "Debug", "utilities-terminal", 0)


def print_fancy(
    *what, level=Levels.warning, file=None, notify=False, log=None, logprefix=None, **how
):
    """
    Prints message of 'level' to 'file' (sys.stderr) with flush.
    Colored if 'file' is a tty, otherwise lines are prefixed with <N> priority
    for journal if 'logprefix' (LogFlag.prefix).
    Mirrored to syslog if 'log' (LogFlag.log).
    If 'notify' and 'file' is not a tty, also sent as desktop notification.
    """
    priority, color, summary, icon, urgency = level
    file = sys.stderr if file is None else file
    log = LogFlag.log if log is None else log
    logprefix = LogFlag.prefix if logprefix is None else logprefix

    # render once, then decorate for the target
    text = StringIO()
    print(*what, **how, file=text)
    text = text.getvalue()
    tty = file.isatty()

    if tty:
        file.write(f"{color}{text}{Styles.reset}")
    elif logprefix:
        file.write("".join(f"<{priority}>{line}\n" for line in text.splitlines()))
    else:
        file.write(text)
    file.flush()

    if log:
        syslog.syslog(priority | syslog.LOG_USER, text.strip())

    if notify and not tty:
        try:
            # imported here to keep dbus off the common path
            from xdg_terminal_exec.dbus import DbusInteractions

            DbusInteractions("session").notify(summary, text.strip(), icon, urgency)
        except Exception as caught_exception:
            print_warning(caught_exception)


def print_warning(*what, **how):
    "Prints warning to stderr"
    print_fancy(*what, level=Levels.warning, **how)


def print_error(*what, **how):
    "Prints error to stderr, 'notify' sends it to desktop too if stderr is not a tty"
    print_fancy(*what, level=Levels.error, **how)


if DebugFlag.debug:
    from inspect import stack

    def print_debug(*what, **how):
        "Prints to stderr with DEBUG and END_DEBUG marks"
        dsep = "\n" if "sep" not in how or "\n" not in how["sep"] else ""
        caller = stack()[1]
        print_fancy(
            f"DEBUG {caller.filename}:{caller.lineno} {caller.function}{dsep}",
            *what,
            f"{dsep}END_DEBUG",
            level=Levels.debug,
            **how,
        )

else:

    def print_debug(*what, **how):
        "Does nothing"
        pass
