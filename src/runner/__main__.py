"""Entry point for running the reminder evaluator as a module.

Allows running with: python -m src.runner
"""

import sys

from src.runner.main import main

if __name__ == "__main__":
    sys.exit(main())
