"""Entry point wrapper for ``python -m chord_lattice``.

Execution is forwarded to :func:`chord_lattice.main` so ``python -m`` and the
installed ``chord-lattice`` console script behave identically.
"""

from . import main

if __name__ == "__main__":
    main()
