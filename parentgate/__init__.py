"""Parent gate: PIN-gated parent mode, time locks and session redirection."""

__version__ = "0.1.0"
