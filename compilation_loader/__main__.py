"""Package entry point for ``python -m compilation_loader``.

HOW: Checks sys.argv for the ``--serve`` flag. If present, starts the
HTTP service. Otherwise, delegates to the CLI's main() function.
"""

import sys

if __name__ == "__main__":
    if "--serve" in sys.argv:
        from compilation_loader.server.app import run_api
        run_api()
    else:
        from compilation_loader.cli import main
        main()
