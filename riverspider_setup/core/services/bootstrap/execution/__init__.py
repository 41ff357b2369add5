"""L4 Execution — everything that starts a process or writes a file."""
