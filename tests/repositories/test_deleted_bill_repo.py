from billbook.codec import fields_from_record
from billbook.repositories.sqlalchemy import SQLAlchemyBillRepository, SQLAlchemyDeletedBillRepository


def _archive(bill_repo, deleted_bill_repo, fields, owner="admin"):
    bill_repo.create(owner, fields)
    bill = bill_repo.get_by_estimate_no(owner, fields.estimate_no)
    return bill, deleted_bill_repo.create(bill, fields_from_record(bill))


class TestSQLAlchemyDeletedBillRepository:
    def test_create_copies_bill(
        self,
        bill_repo: SQLAlchemyBillRepository,
        deleted_bill_repo: SQLAlchemyDeletedBillRepository,
        sample_fields,
    ):
        bill, deleted_id = _archive(bill_repo, deleted_bill_repo, sample_fields())

        deleted = deleted_bill_repo.get_by_id("admin", deleted_id)
        assert deleted is not None
        assert deleted.original_bill_id == bill.id
        assert deleted.owner_id == "admin"
        assert deleted.estimate_no == "EST-1"
        assert deleted.items == bill.items
        assert deleted.grand_total == bill.grand_total
        assert deleted.created_at == bill.created_at
        assert deleted.deleted_at is not None

    def test_get_by_id_is_scoped_to_owner(
        self,
        bill_repo: SQLAlchemyBillRepository,
        deleted_bill_repo: SQLAlchemyDeletedBillRepository,
        sample_fields,
    ):
        _, deleted_id = _archive(bill_repo, deleted_bill_repo, sample_fields())
        assert deleted_bill_repo.get_by_id("intruder", deleted_id) is None
        assert deleted_bill_repo.get_by_id("admin", deleted_id + 100) is None

    def test_list_for_owner_newest_first(
        self,
        bill_repo: SQLAlchemyBillRepository,
        deleted_bill_repo: SQLAlchemyDeletedBillRepository,
        sample_fields,
    ):
        _archive(bill_repo, deleted_bill_repo, sample_fields(estimate_no="A"))
        _archive(bill_repo, deleted_bill_repo, sample_fields(estimate_no="B"))
        _archive(bill_repo, deleted_bill_repo, sample_fields(estimate_no="C"), owner="other")

        listed = deleted_bill_repo.list_for_owner("admin")
        assert [d.estimate_no for d in listed] == ["B", "A"]
        assert [d.estimate_no for d in deleted_bill_repo.list_for_owner("admin", limit=1, offset=1)] == ["A"]

    def test_delete(
        self,
        bill_repo: SQLAlchemyBillRepository,
        deleted_bill_repo: SQLAlchemyDeletedBillRepository,
        sample_fields,
    ):
        _, deleted_id = _archive(bill_repo, deleted_bill_repo, sample_fields())
        deleted_bill_repo.delete(deleted_id)
        assert deleted_bill_repo.get_by_id("admin", deleted_id) is None

    def test_delete_for_owner(
        self,
        bill_repo: SQLAlchemyBillRepository,
        deleted_bill_repo: SQLAlchemyDeletedBillRepository,
        sample_fields,
    ):
        _, deleted_id = _archive(bill_repo, deleted_bill_repo, sample_fields())
        assert deleted_bill_repo.delete_for_owner("intruder", deleted_id) is False
        assert deleted_bill_repo.get_by_id("admin", deleted_id) is not None
        assert deleted_bill_repo.delete_for_owner("admin", deleted_id) is True
        assert deleted_bill_repo.delete_for_owner("admin", deleted_id) is False
