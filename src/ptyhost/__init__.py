"""ptyhost — background pseudo-terminal sessions behind a small tool API."""

__version__ = "0.1.0"
