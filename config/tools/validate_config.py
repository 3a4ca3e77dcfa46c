# config/tools/validate_config.py

import sys           # for exit codes
from dataclasses import asdict
from pprint import pprint  # for structured printing

# make src discoverable if running as a script
from pathlib import Path
# __file__ is .../config/tools/validate_config.py
# parents[2] is the project root; append ROOT/src
PROJECT_ROOT = Path(__file__).resolve().parents[2]
sys.path.append(str(PROJECT_ROOT / "src"))

from env.loader import load_config  # import our loader
from runtime.bot_main import load_trust_lists


def main() -> None:
    """Load and print the resolved config and trust lists, failing fast on errors."""
    path = Path(sys.argv[1]) if len(sys.argv) > 1 else None
    try:
        config = load_config(path)
        trust = load_trust_lists(config)
    except (OSError, ValueError, TypeError) as e:
        print("Config validation FAILED:", file=sys.stderr)
        print(repr(e), file=sys.stderr)
        sys.exit(1)                          # non-zero exit: CI will mark as failed

    print("Config validation OK.")
    print("\nGuard tunables:")
    pprint(asdict(config.guard))
    print("\nSupervisor:")
    pprint(asdict(config.supervisor))
    print("\nBosses:", ", ".join(sorted(trust.bosses)) or "(none)")
    print("Initial targets:", ", ".join(trust.targets) or "(none)")


if __name__ == "__main__":
    main()  # run main() only when script is executed directly
