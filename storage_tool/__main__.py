#!/usr/bin/env python3
"""
Entry point for the storage tool CLI.

Run with: python -m storage_tool
"""

from .cli import cli

if __name__ == '__main__':
    cli()
