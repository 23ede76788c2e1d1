#!/usr/bin/env python3
"""Check the account deletion manifest against the ORM schema.

Fails when a table stores user ids but is neither cascaded nor preserved,
when a user reference column has no strategy, or when the manifest names
tables, columns or lookup indexes that do not exist.

Usage:
    DELETION_MANIFEST_PATH=manifest.json python scripts/verify_cascade_coverage.py
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from src.core.manifest_coverage import find_manifest_violations  # noqa: E402
from src.core.strategy_resolver import get_strategy_resolver  # noqa: E402
from src.models import Base  # noqa: E402


def main() -> int:
    manifest = get_strategy_resolver().manifest
    violations = find_manifest_violations(manifest, Base.metadata)

    print(
        f"Checked {len(manifest.cascade)} cascade tables and "
        f"{len(manifest.preserve)} preserved tables"
    )
    if not violations:
        print("  [PASS] deletion manifest covers every user-linked table")
        return 0

    for violation in violations:
        print(f"  [FAIL] {violation}")
    print(f"\n{len(violations)} coverage problem(s) found")
    return 1


if __name__ == "__main__":
    sys.exit(main())
