"""Main entry point for the readstreak package."""

from readstreak.cli import main


if __name__ == "__main__":
    main()
