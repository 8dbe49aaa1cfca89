"""Allow ``python -m trscrape``."""

from __future__ import annotations

from trscrape.cli.main import main

if __name__ == "__main__":
    main()
