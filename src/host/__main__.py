"""Allow ``python -m src.host`` to launch the host process."""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[2]))

from src.host.server import main

main()
