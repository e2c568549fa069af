"""Allow ``python -m smevaluator``."""

from smevaluator.cli.main import main

if __name__ == "__main__":
    main()
