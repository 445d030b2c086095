"""
Entry point for running Notes Tutor as a module.

Run with:
    python -m notes_tutor
"""

from notes_tutor.interfaces.cli import main

if __name__ == "__main__":
    main()
