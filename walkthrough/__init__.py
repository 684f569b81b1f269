"""Alpaca trading API walkthrough driven by environment-sourced credentials."""

__version__ = "0.1.0"
