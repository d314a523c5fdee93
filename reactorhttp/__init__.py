"""Reactor-style TCP server, HTTP routing and an echo server with timing-wheel idle release."""

__version__ = "0.1.0"