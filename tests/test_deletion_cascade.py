"""Tests for the account deletion cascade executor."""

from unittest.mock import AsyncMock

import pytest

from src.config import settings
from src.core.deletion_manifest import (
    DeletionManifest,
    DeletionStrategy,
    TableDeletionConfig,
)
from src.core.strategy_resolver import StrategyResolver
from src.services.deletion_cascade import (
    CascadeExecutor,
    DeletionOptions,
    DeletionResult,
    delete_stored_files,
    storage_keys,
)

USER = "user-1"
OTHER = "user-2"
PLACEHOLDER = settings.anonymized_placeholder


def config(batch_size: int = 200, **fields: DeletionStrategy) -> TableDeletionConfig:
    return TableDeletionConfig(fields=fields, batch_size=batch_size)


def make_executor(
    manifest: DeletionManifest,
    store,
    storage,
    policy=None,
) -> CascadeExecutor:
    return CascadeExecutor(
        StrategyResolver(manifest), store, storage, reassignment_policy=policy
    )


@pytest.fixture
def orders_and_comments() -> DeletionManifest:
    return DeletionManifest(
        cascade={
            "orders": config(buyer_id=DeletionStrategy.delete),
            "comments": config(author_id=DeletionStrategy.anonymize),
        },
        preserve=frozenset({"audit"}),
        storage_fields={"orders": ("receipt_key",)},
    )


@pytest.fixture
def seeded_store(store_factory):
    return store_factory(
        {
            "orders": [
                {"id": "o1", "buyer_id": USER, "receipt_key": "receipts/o1.pdf"},
                {"id": "o2", "buyer_id": USER, "receipt_key": None},
                {"id": "o3", "buyer_id": USER, "receipt_key": "receipts/o3.pdf"},
                {"id": "o4", "buyer_id": OTHER, "receipt_key": "receipts/o4.pdf"},
            ],
            "comments": [
                {"id": "c1", "author_id": USER, "body": "first"},
                {"id": "c2", "author_id": USER, "body": "second"},
                {"id": "c3", "author_id": OTHER, "body": "third"},
            ],
            "audit": [{"id": "a1", "actor": USER}],
        },
    )


class TestCascadeCounts:
    async def test_deletes_and_anonymizes(self, orders_and_comments, seeded_store, blob_storage):
        executor = make_executor(orders_and_comments, seeded_store, blob_storage)

        result = await executor.execute(USER, DeletionOptions())

        assert result.success is True
        assert result.error_message is None
        assert result.tables_processed == ["orders", "comments"]
        assert result.records_deleted == 3
        assert result.records_anonymized == 2
        assert result.files_deleted == ["receipts/o1.pdf", "receipts/o3.pdf"]
        assert result.table_counts["orders"].deleted == 3
        assert result.table_counts["comments"].anonymized == 2

        for document_id in ("o1", "o2", "o3"):
            assert seeded_store.row("orders", document_id) is None
        assert seeded_store.row("orders", "o4") is not None
        assert seeded_store.row("comments", "c1")["author_id"] == PLACEHOLDER
        assert seeded_store.row("comments", "c2")["author_id"] == PLACEHOLDER
        assert seeded_store.row("comments", "c3")["author_id"] == OTHER

    async def test_second_run_is_a_no_op(self, orders_and_comments, seeded_store, blob_storage):
        executor = make_executor(orders_and_comments, seeded_store, blob_storage)
        await executor.execute(USER)

        again = await executor.execute(USER)

        assert again.success is True
        assert again.records_deleted == 0
        assert again.records_anonymized == 0
        assert again.files_deleted == []
        assert again.tables_processed == ["orders", "comments"]

    async def test_no_configured_field_references_user_after_success(
        self, orders_and_comments, seeded_store, blob_storage
    ):
        executor = make_executor(orders_and_comments, seeded_store, blob_storage)
        await executor.execute(USER)

        assert all(row["buyer_id"] != USER for row in seeded_store.tables["orders"])
        assert all(row["author_id"] != USER for row in seeded_store.tables["comments"])

    async def test_duration_is_recorded(self, orders_and_comments, seeded_store, blob_storage):
        result = await make_executor(
            orders_and_comments, seeded_store, blob_storage
        ).execute(USER)
        assert result.duration_ms >= 0


class TestPreservedTables:
    async def test_preserved_table_is_never_visited(
        self, orders_and_comments, seeded_store, blob_storage
    ):
        await make_executor(orders_and_comments, seeded_store, blob_storage).execute(USER)

        assert seeded_store.row("audit", "a1") == {"id": "a1", "actor": USER}
        assert all(call[1] != "audit" for call in seeded_store.calls if len(call) > 1)


class TestDocumentDominance:
    async def test_delete_wins_over_other_strategies(
        self, call_log, store_factory, blob_storage
    ):
        manifest = DeletionManifest(
            cascade={
                "tickets": config(
                    reporter=DeletionStrategy.anonymize,
                    owner=DeletionStrategy.delete,
                    watcher=DeletionStrategy.reassign,
                )
            }
        )
        store = store_factory(
            {"tickets": [{"id": 1, "reporter": USER, "owner": USER, "watcher": USER}]},
        )
        policy = AsyncMock()
        policy.resolve_target.return_value = OTHER

        result = await make_executor(manifest, store, blob_storage, policy).execute(USER)

        assert store.row("tickets", 1) is None
        assert result.records_deleted == 1
        assert result.records_anonymized == 0
        assert not [call for call in call_log if call[0] == "update"]
        policy.resolve_target.assert_not_awaited()

    async def test_only_fields_referencing_user_are_acted_on(
        self, call_log, store_factory, blob_storage
    ):
        manifest = DeletionManifest(
            cascade={
                "tickets": config(
                    reporter=DeletionStrategy.anonymize,
                    owner=DeletionStrategy.delete,
                )
            }
        )
        store = store_factory(
            {"tickets": [{"id": 1, "reporter": USER, "owner": OTHER}]},
        )

        result = await make_executor(manifest, store, blob_storage).execute(USER)

        assert store.row("tickets", 1) == {"id": 1, "reporter": PLACEHOLDER, "owner": OTHER}
        assert result.records_deleted == 0
        assert result.records_anonymized == 1

    async def test_unconfigured_field_is_preserved(
        self, call_log, store_factory, blob_storage
    ):
        manifest = DeletionManifest(
            cascade={"tickets": config(reporter=DeletionStrategy.anonymize)}
        )
        store = store_factory(
            {
                "tickets": [
                    {"id": 1, "reporter": USER, "mentioned": USER},
                    {"id": 2, "reporter": OTHER, "mentioned": USER},
                ]
            },
        )

        result = await make_executor(manifest, store, blob_storage).execute(USER)

        assert store.row("tickets", 1) == {"id": 1, "reporter": PLACEHOLDER, "mentioned": USER}
        assert store.row("tickets", 2) == {"id": 2, "reporter": OTHER, "mentioned": USER}
        assert result.records_anonymized == 1
        assert store.mutations() == [("update", "tickets", 1, {"reporter": PLACEHOLDER})]

    async def test_explicit_preserve_leaves_row_untouched(
        self, call_log, store_factory, blob_storage
    ):
        manifest = DeletionManifest(
            cascade={"tickets": config(reporter=DeletionStrategy.preserve)}
        )
        store = store_factory({"tickets": [{"id": 1, "reporter": USER}]})

        result = await make_executor(manifest, store, blob_storage).execute(USER)

        assert result.success is True
        assert store.mutations() == []


class TestReassign:
    async def test_without_policy_leaves_field_unchanged(
        self, call_log, store_factory, blob_storage
    ):
        manifest = DeletionManifest(
            cascade={"projects": config(batch_size=1, assigned_to=DeletionStrategy.reassign)}
        )
        store = store_factory(
            {"projects": [{"id": n, "assigned_to": USER} for n in (1, 2, 3)]},
        )

        result = await make_executor(manifest, store, blob_storage).execute(USER)

        assert result.success is True
        assert result.records_anonymized == 0
        assert store.mutations() == []
        assert all(row["assigned_to"] == USER for row in store.tables["projects"])
        # Keyset pagination moves past untouched rows instead of refetching them
        assert result.batches_processed == 3
        assert [call[2] for call in call_log if call[0] == "fetch"] == [None, 1, 2, 3]

    async def test_policy_target_is_written(
        self, call_log, store_factory, blob_storage
    ):
        manifest = DeletionManifest(
            cascade={
                "projects": config(
                    created_by=DeletionStrategy.anonymize,
                    assigned_to=DeletionStrategy.reassign,
                )
            }
        )
        document = {"id": 1, "created_by": USER, "assigned_to": USER}
        store = store_factory({"projects": [document]})
        policy = AsyncMock()
        policy.resolve_target.return_value = OTHER

        result = await make_executor(manifest, store, blob_storage, policy).execute(USER)

        policy.resolve_target.assert_awaited_once_with("projects", "assigned_to", document, USER)
        assert store.row("projects", 1) == {
            "id": 1,
            "created_by": PLACEHOLDER,
            "assigned_to": OTHER,
        }
        assert result.records_anonymized == 1
        assert len(store.mutations()) == 1

    @pytest.mark.parametrize("target", [None, USER])
    async def test_policy_without_usable_target_is_ignored(
        self, call_log, store_factory, blob_storage, target
    ):
        manifest = DeletionManifest(
            cascade={"projects": config(assigned_to=DeletionStrategy.reassign)}
        )
        store = store_factory({"projects": [{"id": 1, "assigned_to": USER}]})
        policy = AsyncMock()
        policy.resolve_target.return_value = target

        result = await make_executor(manifest, store, blob_storage, policy).execute(USER)

        assert result.records_anonymized == 0
        assert store.row("projects", 1)["assigned_to"] == USER


class TestStorageFiles:
    async def test_files_deleted_before_document(
        self, orders_and_comments, seeded_store, call_log, storage_factory
    ):
        storage = storage_factory()

        await make_executor(orders_and_comments, seeded_store, storage).execute(USER)

        for document_id, key in (("o1", "receipts/o1.pdf"), ("o3", "receipts/o3.pdf")):
            file_call = call_log.index(("delete_file", key))
            delete_call = call_log.index(("delete", "orders", document_id))
            assert file_call < delete_call

    async def test_storage_error_does_not_block_deletion(
        self, orders_and_comments, seeded_store, storage_factory
    ):
        storage = storage_factory(failing={"receipts/o1.pdf"})

        result = await make_executor(orders_and_comments, seeded_store, storage).execute(USER)

        assert result.success is True
        assert seeded_store.row("orders", "o1") is None
        assert result.files_deleted == ["receipts/o3.pdf"]

    async def test_file_deletion_can_be_disabled(
        self, orders_and_comments, seeded_store, blob_storage
    ):
        result = await make_executor(
            orders_and_comments, seeded_store, blob_storage
        ).execute(USER, DeletionOptions(delete_storage_files=False))

        assert result.records_deleted == 3
        assert result.files_deleted == []
        assert blob_storage.deleted == []
        assert ("delete_file", "receipts/o1.pdf") not in blob_storage.calls

    async def test_list_valued_storage_field(
        self, call_log, store_factory, blob_storage
    ):
        manifest = DeletionManifest(
            cascade={"email_messages": config(created_by=DeletionStrategy.delete)},
            storage_fields={"email_messages": ("attachment_keys",)},
        )
        store = store_factory(
            {
                "email_messages": [
                    {"id": 1, "created_by": USER, "attachment_keys": ["a/1", "a/2"]}
                ]
            },
        )

        result = await make_executor(manifest, store, blob_storage).execute(USER)

        assert result.files_deleted == ["a/1", "a/2"]
        assert blob_storage.deleted == ["a/1", "a/2"]


class TestBatching:
    async def test_rows_processed_in_batches(
        self, call_log, store_factory, blob_storage
    ):
        manifest = DeletionManifest(
            cascade={"orders": config(batch_size=2, buyer_id=DeletionStrategy.delete)}
        )
        store = store_factory(
            {"orders": [{"id": n, "buyer_id": USER} for n in range(1, 6)]},
        )

        result = await make_executor(manifest, store, blob_storage).execute(USER)

        assert result.records_deleted == 5
        assert result.batches_processed == 3
        assert store.tables["orders"] == []


class TestHaltOnError:
    @pytest.fixture
    def four_tables(self) -> DeletionManifest:
        return DeletionManifest(
            cascade={
                name: config(owner=DeletionStrategy.delete)
                for name in ("first", "second", "third", "fourth")
            }
        )

    @pytest.fixture
    def four_table_store(self, store_factory):
        return store_factory(
            {
                name: [{"id": n, "owner": USER} for n in (1, 2)]
                for name in ("first", "second", "third", "fourth")
            },
        )

    async def test_failure_stops_at_failing_table(
        self, four_tables, four_table_store, blob_storage
    ):
        four_table_store.fail("delete", "second", RuntimeError("write rejected"))

        result = await make_executor(four_tables, four_table_store, blob_storage).execute(USER)

        assert result.success is False
        assert result.tables_processed == ["first"]
        assert "second" in result.error_message
        assert "write rejected" in result.error_message
        assert four_table_store.tables["first"] == []
        assert len(four_table_store.tables["third"]) == 2
        assert not [call for call in four_table_store.calls if call[1] in ("third", "fourth")]

    async def test_retry_completes_remaining_tables(
        self, four_tables, four_table_store, blob_storage
    ):
        four_table_store.fail("delete", "second")
        executor = make_executor(four_tables, four_table_store, blob_storage)
        await executor.execute(USER)

        four_table_store.fail_on.clear()
        result = await executor.execute(USER)

        assert result.success is True
        assert result.tables_processed == ["first", "second", "third", "fourth"]
        assert result.records_deleted == 6
        assert all(rows == [] for rows in four_table_store.tables.values())

    async def test_fetch_failure_is_captured(self, four_tables, four_table_store, blob_storage):
        four_table_store.fail("fetch", "first", RuntimeError("index missing"))

        result = await make_executor(four_tables, four_table_store, blob_storage).execute(USER)

        assert result.success is False
        assert result.tables_processed == []
        assert "index missing" in result.error_message


class TestHelpers:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (None, []),
            ("", []),
            ("avatars/u.png", ["avatars/u.png"]),
            (["a", "", None, "b"], ["a", "b"]),
        ],
    )
    def test_storage_keys(self, value, expected):
        assert storage_keys(value) == expected

    def test_counts_for_creates_zero_entry(self):
        result = DeletionResult()
        counts = result.counts_for("orders")
        assert (counts.deleted, counts.anonymized) == (0, 0)
        assert result.counts_for("orders") is counts

    async def test_delete_stored_files_records_only_successes(self, storage_factory):
        storage = storage_factory(failing={"logos/b.svg"})
        result = DeletionResult()

        await delete_stored_files(
            storage,
            "users",
            {"avatar_key": "avatars/a.png", "brand_logo_key": "logos/b.svg", "cover": None},
            result,
        )

        assert storage.calls == [
            ("delete_file", "avatars/a.png"),
            ("delete_file", "logos/b.svg"),
        ]
        assert result.files_deleted == ["avatars/a.png"]
