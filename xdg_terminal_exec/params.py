"Static parameters"

BIN_NAME = "xdg-terminal-exec"

# subdirectory of data hierarchy holding terminal entries
DATA_SUBDIR = "xdg-terminals"

# preference list name in config hierarchy, also suffix for per-desktop lists
LIST_NAME = "xdg-terminals.list"

ENTRY_GROUP = "Desktop Entry"

DEFAULT_EXEC_ARG = "-e"

SHELL = "sh"
