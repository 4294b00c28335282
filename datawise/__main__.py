"""Allow `python -m datawise <environment>`."""

from datawise.cli import main

main()
