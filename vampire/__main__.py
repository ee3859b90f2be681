"""
Module entry point for: python -m vampire

Allows running the scanner directly as a module:
    python -m vampire <n1> <n2> [options]
"""

from .cli import cli


def main():
    cli(prog_name="vampire-scan")


if __name__ == "__main__":
    main()
