"""Run the secret volume service: ``python -m secret_volume``."""
import sys

from secret_volume.cli import main

if __name__ == "__main__":
    sys.exit(main())
