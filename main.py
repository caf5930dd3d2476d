#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
PunchClock
==========

Command-line time tracker storing entries as monthly CSV files.

Features
--------
- Start/Stop/Cancel a single running timer (survives restarts)
- Categories with colors and a default category
- Daily, weekly and monthly category breakdowns
- Edit/delete entries by id
- CSV export
- Plain-text storage in the user data folder

Dependencies
------------
- Python 3.9+

Usage
-----
python main.py start --category Work --memo "code review"
python main.py stop
python main.py week

License: MIT
"""
import sys

from punchclock.cli import main

if __name__ == "__main__":
    sys.exit(main())
