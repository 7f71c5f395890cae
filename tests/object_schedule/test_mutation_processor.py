"""Tests for scheduled mutations and their processor."""

from datetime import datetime, timedelta, timezone

import pytest
import pydantic
import sqlalchemy as sa
from sqlalchemy.pool import StaticPool

from src.object_schedule import (
    ApplyStatus,
    FailureReason,
    LoadFailurePolicy,
    MutationProcessor,
    ScheduledMutation,
)
from src.record_store import (
    SCHEDULE_TYPE,
    InMemoryRecordStore,
    PersistError,
    Record,
    SqlRecordStore,
    metadata,
)


class RejectingTargetStore(InMemoryRecordStore):
    """Store that refuses partial updates of one object type."""

    def __init__(self, rejected_type):
        super().__init__()
        self.rejected_type = rejected_type

    def save(self, record, fields=None):
        if record.obj_type == self.rejected_type and fields is not None:
            return False
        return super().save(record, fields)


class CallbackRecorder:
    """Records callback invocations in order."""

    def __init__(self):
        self.calls = []

    def __getattr__(self, name):
        if name.startswith("on_") or name == "callback":
            return lambda mutation: self.calls.append((name, mutation))
        raise AttributeError(name)

    def kwargs(self):
        return {
            "callback": self.callback,
            "on_success": self.on_success,
            "on_failure": self.on_failure,
        }


@pytest.fixture
def article(store):
    record = Record(obj_type="article", data={"title": "Draft", "active": False})
    store.save(record)
    return record


@pytest.fixture
def processor(store, now):
    return MutationProcessor(store, now_provider=lambda: now)


@pytest.fixture
def recorder():
    return CallbackRecorder()


class TestScheduledMutationModel:
    """Tests for ScheduledMutation construction."""

    def test_defaults(self):
        mutation = ScheduledMutation()
        assert mutation.processed is False
        assert mutation.processed_date is None
        assert mutation.data_diff == {}

    def test_json_diff_is_decoded(self):
        assert ScheduledMutation(data_diff='{"active": true}').data_diff == {"active": True}
        assert ScheduledMutation(data_diff="nope").data_diff == {}
        assert ScheduledMutation(data_diff=None).data_diff == {}

    @pytest.mark.parametrize("overrides", [
        {"target_type": 3},
        {"scheduled_date": "soon"},
        {"processed_date": "yesterday-ish"},
        {"data_diff": 5},
    ])
    def test_invalid_fields_rejected(self, overrides):
        with pytest.raises(pydantic.ValidationError):
            ScheduledMutation(**overrides)

    def test_naive_dates_are_utc(self):
        mutation = ScheduledMutation(scheduled_date="2030-01-01T00:00:00")
        assert mutation.scheduled_date == datetime(2030, 1, 1, tzinfo=timezone.utc)

    def test_is_due(self, now):
        assert ScheduledMutation().is_due(now)
        assert ScheduledMutation(scheduled_date=now - timedelta(days=400)).is_due(now)
        assert ScheduledMutation(scheduled_date=now).is_due(now)
        assert not ScheduledMutation(scheduled_date=now + timedelta(seconds=1)).is_due(now)

    def test_mark_processed_returns_new_value(self, now):
        mutation = ScheduledMutation(target_type="article", target_id=1, data_diff={"a": 1})
        processed = mutation.mark_processed(now)
        assert processed.processed is True
        assert processed.processed_date == now
        assert mutation.processed is False


class TestSchedule:
    """Tests for MutationProcessor.schedule."""

    def test_schedule_persists_pending(self, processor, store, now):
        mutation = processor.schedule(ScheduledMutation(
            target_type="article",
            target_id=1,
            data_diff={"active": True},
            processed=True,
            processed_date=now,
        ))

        assert mutation.id is not None
        assert mutation.processed is False
        assert mutation.processed_date is None

        stored = store.load(SCHEDULE_TYPE, mutation.id)
        assert stored.data["processed"] is False
        assert stored.data["data_diff"] == '{"active": true}'

    def test_schedule_failure_raises(self, now):
        class FailingStore(InMemoryRecordStore):
            def save(self, record, fields=None):
                return False

        processor = MutationProcessor(FailingStore(), now_provider=lambda: now)
        with pytest.raises(PersistError):
            processor.schedule(ScheduledMutation(target_type="article", target_id=1))


class TestApply:
    """Tests for MutationProcessor.apply."""

    def test_applies_diff_and_marks_processed(self, processor, store, article, recorder, now):
        mutation = processor.schedule(ScheduledMutation(
            target_type="article", target_id=article.id, data_diff={"active": True}
        ))

        result = processor.apply(mutation, **recorder.kwargs())

        assert result.status == ApplyStatus.APPLIED
        assert result.applied
        assert result.mutation.processed is True
        assert result.mutation.processed_date == now
        assert store.load("article", article.id).data == {"title": "Draft", "active": True}

        stored = processor.get(mutation.id)
        assert stored.processed is True
        assert stored.processed_date == now

        assert [name for name, _ in recorder.calls] == ["on_success", "callback"]
        assert all(m.processed for _, m in recorder.calls)

    def test_only_diff_fields_are_written(self, processor, store, article):
        mutation = ScheduledMutation(
            target_type="article", target_id=article.id, data_diff={"active": True}
        )
        # Fields outside the diff keep their stored values
        edited = store.load("article", article.id)
        edited.data["title"] = "Edited"
        store.save(edited)

        processor.apply(mutation)

        assert store.load("article", article.id).data == {"title": "Edited", "active": True}

    def test_second_apply_is_skipped_without_writes(self, processor, store, article, recorder):
        mutation = processor.schedule(ScheduledMutation(
            target_type="article", target_id=article.id, data_diff={"active": True}
        ))
        first = processor.apply(mutation)
        writes = store.writes

        second = processor.apply(first.mutation, **recorder.kwargs())

        assert second.status == ApplyStatus.SKIPPED
        assert store.writes == writes
        assert recorder.calls == []

    def test_stale_copy_of_processed_mutation_is_skipped(self, processor, store, article):
        mutation = processor.schedule(ScheduledMutation(
            target_type="article", target_id=article.id, data_diff={"active": True}
        ))
        processor.apply(mutation)
        writes = store.writes

        # The original, unprocessed value is still in the caller's hands
        result = processor.apply(mutation)

        assert result.skipped
        assert store.writes == writes

    @pytest.mark.parametrize("fields,missing", [
        ({"target_id": 1, "data_diff": {"a": 1}}, "no object type"),
        ({"target_type": "article", "data_diff": {"a": 1}}, 'no object "article" ID'),
        ({"target_type": "article", "target_id": 1}, "no changes"),
        ({"target_type": "article", "target_id": 1, "data_diff": {}}, "no changes"),
    ])
    def test_validation_failures(self, processor, store, recorder, fields, missing, caplog):
        mutation = processor.schedule(ScheduledMutation(**fields))
        writes = store.writes

        result = processor.apply(mutation, **recorder.kwargs())

        assert result.status == ApplyStatus.FAILED
        assert result.reason == FailureReason.VALIDATION
        assert missing in result.message
        assert result.mutation.processed is False
        assert processor.get(mutation.id).processed is False
        assert store.writes == writes
        assert recorder.calls == []
        assert "Can not process object schedule" in caplog.text

    def test_validation_log_locates_mutation(self, processor, caplog):
        mutation = processor.schedule(ScheduledMutation(target_type="article", target_id=5))

        processor.apply(mutation)

        assert f'object schedule {mutation.id} (target "article" 5)' in caplog.text
        assert "no changes (diff) defined." in caplog.text

    def test_missing_target_aborts_by_default(self, processor, store, recorder):
        store.create_table("article")
        mutation = processor.schedule(ScheduledMutation(
            target_type="article", target_id=404, data_diff={"active": True}
        ))

        result = processor.apply(mutation, **recorder.kwargs())

        assert result.failed
        assert result.reason == FailureReason.NOT_FOUND
        assert store.load("article", 404) is None
        assert processor.get(mutation.id).processed is False
        assert [name for name, _ in recorder.calls] == ["on_failure", "callback"]

    def test_missing_target_continue_policy(self, store, now):
        store.create_table("article")
        processor = MutationProcessor(
            store, load_failure_policy=LoadFailurePolicy.CONTINUE, now_provider=lambda: now
        )
        mutation = ScheduledMutation(target_type="article", target_id=404, data_diff={"a": 1})

        result = processor.apply(mutation)

        # The partial update has no row to write to, so the store rejects it
        assert result.reason == FailureReason.PERSIST

    def test_continue_policy_with_upserting_store(self, now):
        class UpsertingStore(InMemoryRecordStore):
            def save(self, record, fields=None):
                if record.obj_type == "article":
                    fields = None
                return super().save(record, fields)

        store = UpsertingStore()
        processor = MutationProcessor(
            store, load_failure_policy="continue", now_provider=lambda: now
        )
        mutation = ScheduledMutation(target_type="article", target_id=7, data_diff={"a": 1})

        result = processor.apply(mutation)

        assert result.applied
        assert store.load("article", 7).data == {"a": 1}

    def test_persist_failure_keeps_pending(self, now, recorder):
        store = RejectingTargetStore("article")
        store.save(Record(obj_type="article", data={"active": False}))
        processor = MutationProcessor(store, now_provider=lambda: now)
        mutation = processor.schedule(ScheduledMutation(
            target_type="article", target_id=1, data_diff={"active": True}
        ))

        result = processor.apply(mutation, **recorder.kwargs())

        assert result.status == ApplyStatus.FAILED
        assert result.reason == FailureReason.PERSIST
        assert result.mutation.processed is False
        assert processor.get(mutation.id).processed is False
        assert [name for name, _ in recorder.calls] == ["on_failure", "callback"]

    def test_unsaved_mutation_is_inserted_when_processed(self, processor, store, article):
        mutation = ScheduledMutation(
            target_type="article", target_id=article.id, data_diff={"active": True}
        )

        result = processor.apply(mutation)

        assert result.mutation.id is not None
        assert processor.get(result.mutation.id).processed is True


class TestProcessDue:
    """Tests for the scheduler pass."""

    def test_only_due_mutations_are_applied(self, processor, store, now):
        for title in ["a", "b", "c"]:
            store.save(Record(obj_type="article", data={"title": title}))

        past = processor.schedule(ScheduledMutation(
            target_type="article", target_id=1, data_diff={"title": "A"},
            scheduled_date=now - timedelta(hours=1),
        ))
        immediate = processor.schedule(ScheduledMutation(
            target_type="article", target_id=2, data_diff={"title": "B"},
        ))
        future = processor.schedule(ScheduledMutation(
            target_type="article", target_id=3, data_diff={"title": "C"},
            scheduled_date=now + timedelta(hours=1),
        ))

        results = processor.process_due()

        assert sorted(r.mutation.id for r in results) == sorted([past.id, immediate.id])
        assert all(r.applied for r in results)
        assert [m.id for m in processor.pending()] == [future.id]
        assert store.load("article", 3).data["title"] == "c"

        later = processor.process_due(now + timedelta(hours=2))
        assert [r.mutation.id for r in later] == [future.id]
        assert store.load("article", 3).data["title"] == "C"

    def test_failed_mutations_stay_pending(self, processor, store):
        store.create_table("article")
        mutation = processor.schedule(ScheduledMutation(
            target_type="article", target_id=1, data_diff={"title": "A"}
        ))

        assert processor.process_due()[0].failed
        assert [m.id for m in processor.due()] == [mutation.id]

    def test_empty_pass(self, processor):
        assert processor.process_due() == []


class TestSqlBackedProcessing:
    """The processor over SQLite, including unreadable target tables."""

    @pytest.fixture
    def engine(self):
        engine = sa.create_engine(
            "sqlite://", poolclass=StaticPool, connect_args={"check_same_thread": False}
        )
        yield engine
        engine.dispose()

    @pytest.fixture
    def sql_store(self, engine):
        metadata.create_all(engine)

        # Articles are declared with a column the live table does not have
        live_articles = sa.Table(
            "articles", sa.MetaData(), sa.Column("id", sa.Integer, primary_key=True)
        )
        pages = sa.Table(
            "pages",
            sa.MetaData(),
            sa.Column("id", sa.Integer, primary_key=True),
            sa.Column("title", sa.String(255)),
        )
        live_articles.create(engine)
        pages.create(engine)
        with engine.begin() as conn:
            conn.execute(live_articles.insert().values(id=1))
            conn.execute(pages.insert().values(id=1, title="Draft"))

        declared_articles = sa.Table(
            "articles",
            sa.MetaData(),
            sa.Column("id", sa.Integer, primary_key=True),
            sa.Column("title", sa.String(255)),
        )
        return (
            SqlRecordStore(engine)
            .register("article", declared_articles)
            .register("page", pages)
        )

    @pytest.fixture
    def sql_processor(self, sql_store, now):
        return MutationProcessor(sql_store, now_provider=lambda: now)

    def test_unreadable_target_is_not_found(self, sql_processor, recorder):
        mutation = sql_processor.schedule(ScheduledMutation(
            target_type="article", target_id=1, data_diff={"title": "x"}
        ))

        result = sql_processor.apply(mutation, **recorder.kwargs())

        assert result.status == ApplyStatus.FAILED
        assert result.reason == FailureReason.NOT_FOUND
        assert sql_processor.get(mutation.id).processed is False
        assert [name for name, _ in recorder.calls] == ["on_failure", "callback"]

    def test_pass_continues_after_unreadable_target(self, sql_processor, sql_store):
        broken = sql_processor.schedule(ScheduledMutation(
            target_type="article", target_id=1, data_diff={"title": "x"}
        ))
        healthy = sql_processor.schedule(ScheduledMutation(
            target_type="page", target_id=1, data_diff={"title": "Live"}
        ))

        results = sql_processor.process_due()

        assert [(r.mutation.id, r.status) for r in results] == [
            (broken.id, ApplyStatus.FAILED),
            (healthy.id, ApplyStatus.APPLIED),
        ]
        assert sql_store.load("page", 1).data == {"title": "Live"}
        assert [m.id for m in sql_processor.pending()] == [broken.id]

    def test_target_id_round_trips(self, sql_processor):
        mutation = sql_processor.schedule(ScheduledMutation(
            target_type="page", target_id=1, data_diff={"title": "Live"}
        ))

        stored = sql_processor.get(mutation.id)

        assert stored.target_id == 1
        assert stored.data_diff == {"title": "Live"}
        assert stored.processed is False
