"""Allow ``python -m ccvm``."""

from ccvm.cli.cli import main

if __name__ == "__main__":
    main()
