"""Module entrypoint for ``python -m smartsearch``.

Behaves exactly like the ``smartsearch`` console script.
"""

from .cli import main


if __name__ == "__main__":
    main()
