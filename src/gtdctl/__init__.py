"""gtdctl: tasks, projects and areas kept as plain markdown files."""

__version__ = "0.1.0"
