"""Typing domain services: snippets, sessions, timed windows and progress.

Everything in this package is transport-agnostic. HTTP routes and socket
handlers import from here; nothing here imports Flask request state.
"""
