"""Static coverage check of a deletion manifest against the ORM schema.

Run from ``scripts/verify_cascade_coverage.py`` before deploying and from
the test suite, so a new user-linked table cannot ship without a
deletion strategy.
"""

from sqlalchemy import MetaData, Table

from src.core.deletion_manifest import DeletionManifest
from src.models.base import LOOKUP_NAME, USER_REFERENCE

# The account table itself is removed by the account deletion flow,
# not by the cascade.
ACCOUNT_TABLE = "users"


def user_reference_columns(table: Table) -> list[str]:
    """Names of the columns of ``table`` flagged as holding a user id."""
    return [column.name for column in table.columns if column.info.get(USER_REFERENCE)]


def find_lookup_index_columns(table: Table, index_name: str) -> list[str] | None:
    """Columns covered by the lookup ``index_name`` on ``table``.

    An index matches when its ``info`` lookup name or its physical name
    equals ``index_name``. Returns None when nothing matches.
    """
    for index in table.indexes:
        if index.info.get(LOOKUP_NAME) == index_name or index.name == index_name:
            return [column.name for column in index.columns]
    return None


def find_manifest_violations(
    manifest: DeletionManifest, metadata: MetaData
) -> list[str]:
    """Return a human-readable line per coverage problem (empty when clean)."""
    violations: list[str] = []
    tables = metadata.tables

    for name, table in tables.items():
        if name == ACCOUNT_TABLE:
            continue
        references = user_reference_columns(table)
        if not references:
            continue
        cascaded = name in manifest.cascade
        preserved = name in manifest.preserve
        if not cascaded and not preserved:
            violations.append(
                f"{name}: has user references ({', '.join(references)}) but is "
                "neither cascaded nor preserved"
            )
        if cascaded:
            configured = manifest.cascade[name].fields
            for column in references:
                if column not in configured:
                    violations.append(f"{name}.{column}: no deletion strategy")

    for name, config in manifest.cascade.items():
        table = tables.get(name)
        if table is None:
            violations.append(f"{name}: cascaded table does not exist")
            continue
        for field in config.fields:
            if field not in table.columns:
                violations.append(f"{name}.{field}: strategy for unknown column")
        if find_lookup_index_columns(table, config.index_name) is None:
            violations.append(f"{name}: lookup index '{config.index_name}' not found")

    for name in sorted(manifest.preserve):
        if name not in tables:
            violations.append(f"{name}: preserved table does not exist")

    for name, fields in manifest.storage_fields.items():
        table = tables.get(name)
        if table is None:
            violations.append(f"{name}: storage fields declared for unknown table")
            continue
        for field in fields:
            if field not in table.columns:
                violations.append(f"{name}.{field}: unknown storage field")

    return violations
