"""
Observable application state.

AppState keeps the in-memory repair and SMS collections. Every mutation goes
to the repository first, then both collections are re-read from the database
and observers are notified; the cache is never patched in place.
"""
import logging
from typing import Callable, List

from .models import RepairJob, SmsLog
from .repositories import RepairRepository, SmsLogRepository

logger = logging.getLogger(__name__)

Observer = Callable[["AppState"], None]


class AppState:
    def __init__(self, repairs_repo: RepairRepository, sms_repo: SmsLogRepository, load=True):
        self.repairs_repo = repairs_repo
        self.sms_repo = sms_repo
        self.repairs: List[RepairJob] = []
        self.sms_logs: List[SmsLog] = []
        self._observers: List[Observer] = []
        if load:
            self.reload()

    def subscribe(self, callback: Observer) -> Callable[[], None]:
        """Register callback(state); returns a function that unregisters it."""
        self._observers.append(callback)

        def unsubscribe():
            if callback in self._observers:
                self._observers.remove(callback)
        return unsubscribe

    def notify(self):
        for callback in list(self._observers):
            callback(self)

    def reload(self):
        self.repairs = self.repairs_repo.list_all()
        self.sms_logs = self.sms_repo.list_all()
        logger.debug("Reloaded %d repairs, %d sms logs", len(self.repairs), len(self.sms_logs))
        self.notify()

    def add_repair(self, job: RepairJob) -> int:
        new_id = self.repairs_repo.insert(job)
        self.reload()
        return new_id

    def update_repair(self, job: RepairJob) -> int:
        affected = self.repairs_repo.update(job)
        self.reload()
        return affected

    def delete_repair(self, repair_id: int) -> int:
        affected = self.repairs_repo.delete_by_id(repair_id)
        self.reload()
        return affected

    def add_sms_log(self, log: SmsLog) -> int:
        new_id = self.sms_repo.insert(log)
        self.reload()
        return new_id
