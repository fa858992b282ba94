"""
Tests for first-run seeding.
"""

from ledgerlight.models.audit import AuditEventType
from ledgerlight.models.ledger import DEFAULT_TAGS, Ledger, Tag
from ledgerlight.services.seeding import seed_default_data


class TestSeedDefaultData:
    """Tests for default ledger and preset tags."""

    def test_empty_store_is_seeded(self, store, audit_logger):
        report = seed_default_data(store, audit_logger)

        assert report.ledger_created is True
        assert report.tags_created == len(DEFAULT_TAGS)
        assert report.persisted is True

        ledgers = store.query(Ledger)
        assert len(ledgers) == 1
        assert ledgers[0].name == "Daily"
        assert ledgers[0].is_default is True
        assert all(tag.is_default for tag in store.query(Tag))
        assert store.has_unsaved_changes is False
        assert audit_logger.recent_events(1)[0].event_type == AuditEventType.DEFAULTS_SEEDED

    def test_seeding_twice_changes_nothing(self, store):
        seed_default_data(store)
        report = seed_default_data(store)

        assert report.changed is False
        assert store.count(Ledger) == 1
        assert store.count(Tag) == len(DEFAULT_TAGS)

    def test_existing_tags_are_kept(self, store):
        store.insert(Tag(name="Coffee"))
        report = seed_default_data(store, default_ledger_name="Household")

        assert report.ledger_created is True
        assert report.tags_created == 0
        assert [tag.name for tag in store.query(Tag)] == ["Coffee"]
        assert store.query(Ledger)[0].name == "Household"

    def test_save_failure_is_reported(self, failing_store, audit_logger):
        report = seed_default_data(failing_store, audit_logger)

        assert report.persisted is False
        assert "network unreachable" in report.error_message
        assert failing_store.count(Ledger) == 1
        assert audit_logger.recent_events(1)[0].event_type == AuditEventType.SAVE_FAILED
