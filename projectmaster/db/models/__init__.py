from projectmaster.db.models.record import SyncRecord

__all__ = ["SyncRecord"]
