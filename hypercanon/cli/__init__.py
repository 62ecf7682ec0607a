"""Hypercanon command-line interface."""
