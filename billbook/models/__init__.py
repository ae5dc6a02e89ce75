from billbook.models.bill import Bill, BillFields, BillPayload, BillUpdate, DeletedBill, SaveResult

__all__ = ["Bill", "BillFields", "BillPayload", "BillUpdate", "DeletedBill", "SaveResult"]
