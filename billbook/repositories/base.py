from abc import ABC, abstractmethod

from billbook.models.bill import Bill, BillFields, DeletedBill


class BillRepository(ABC):
    @abstractmethod
    def create(self, owner_id: str, fields: BillFields) -> int: ...

    @abstractmethod
    def get_by_estimate_no(self, owner_id: str, estimate_no: str) -> Bill | None: ...

    @abstractmethod
    def list_for_owner(self, owner_id: str, limit: int | None = None, offset: int = 0) -> list[Bill]: ...

    @abstractmethod
    def update(self, bill_id: int, fields: BillFields) -> None: ...

    @abstractmethod
    def delete(self, bill_id: int) -> None: ...


class DeletedBillRepository(ABC):
    @abstractmethod
    def create(self, bill: Bill, fields: BillFields) -> int: ...

    @abstractmethod
    def get_by_id(self, owner_id: str, deleted_bill_id: int) -> DeletedBill | None: ...

    @abstractmethod
    def list_for_owner(self, owner_id: str, limit: int | None = None, offset: int = 0) -> list[DeletedBill]: ...

    @abstractmethod
    def delete(self, deleted_bill_id: int) -> None: ...

    @abstractmethod
    def delete_for_owner(self, owner_id: str, deleted_bill_id: int) -> bool: ...
