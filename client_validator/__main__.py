import sys

from client_validator.cli import main

raise SystemExit(main(sys.argv[1:]))
