"""Runtime plumbing shared by every command: context, logging, processes, errors."""
