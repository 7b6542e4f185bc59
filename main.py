#!/usr/bin/env python3
"""Entry point for Portfolio Risk Attribution."""

from risk_attribution.cli import main

if __name__ == "__main__":
    main()
