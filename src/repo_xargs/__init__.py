"""Run a command across many repositories and open a pull request for each."""

__version__ = "0.1.0"
