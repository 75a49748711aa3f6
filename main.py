#!/usr/bin/env python3
"""
Main entry point for chanbot
"""

from chanbot.main import run

if __name__ == "__main__":
    run()
