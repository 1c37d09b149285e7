"""CI gate: the Alembic migration graph must be a single linear chain.

A second root (down_revision = None) or a second head means someone
started a migration without chaining it off the current head.

Usage:
  python .github/scripts/ci_alembic_heads_check.py
"""
from __future__ import annotations

import sys
from pathlib import Path

api_root = Path(__file__).resolve().parents[2] / "apps" / "api"
sys.path.insert(0, str(api_root))

from alembic.config import Config
from alembic.script import ScriptDirectory

EXPECTED_HEADS = {"001"}


def main() -> int:
    cfg = Config(str(api_root / "alembic.ini"))
    cfg.set_main_option("script_location", str(api_root / "alembic"))

    script = ScriptDirectory.from_config(cfg)
    heads = set(script.get_heads())
    revisions = list(script.walk_revisions())
    roots = [r.revision for r in revisions if r.down_revision is None]

    if heads != EXPECTED_HEADS:
        print("MIGRATION HEAD CHECK FAILED")
        print(f"  Expected heads: {sorted(EXPECTED_HEADS)}")
        print(f"  Actual heads:   {sorted(heads)}")
        print("  Fix: chain the new migration off the current head, then update EXPECTED_HEADS.")
        return 1

    if len(roots) != 1:
        print("MIGRATION ROOT CHECK FAILED")
        print(f"  Expected exactly one root, found: {sorted(roots)}")
        return 1

    print(f"Migration integrity check: OK ({len(revisions)} revisions)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
