"""Entrypoint module, in case you use `python -m badgerclips`."""

from badgerclips.cli import main

if __name__ == "__main__":
    main()
