"""Allow running as ``python -m stagerunner``."""

from stagerunner.cli import main

if __name__ == "__main__":
    main()
