"""
Package entry point.

Allows running the converter via:

    python -m timetable_ics

This simply forwards execution to timetable_ics.cli.main().
"""

from timetable_ics.cli import main

if __name__ == "__main__":
    main()
