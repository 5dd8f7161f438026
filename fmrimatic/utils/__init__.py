"""Shared helpers: paths, naming, prompts, console display and logging."""
