from xdg_terminal_exec.main import main

main()
