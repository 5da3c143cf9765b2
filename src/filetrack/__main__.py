"""Allow ``python -m filetrack``."""

from filetrack.cli import main

if __name__ == "__main__":
    main()
