"""
Module entry point::

    python -m modelgen -u sqlite:///app.db -o ./models
"""

from __future__ import annotations


def main() -> None:
    """Delegate to the CLI main function."""
    from modelgen.cli import cli_main
    cli_main()


if __name__ == "__main__":
    main()
