"""An interactive Unix-style shell with pipelines, output redirection and background jobs."""

__version__ = "0.1.0"
__all__ = ["builtins", "jobs", "parsing", "shell"]