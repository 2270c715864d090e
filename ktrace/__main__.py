"""Allow `python -m ktrace`."""

from .cli.main import main

main()
