"""Allow ``python -m pseudoconst``."""

from pseudoconst.main import main

if __name__ == "__main__":
    raise SystemExit(main())
