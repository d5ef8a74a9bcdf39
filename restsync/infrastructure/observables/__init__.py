from .notifying import NotifyingMapping, NotifyingObservables, NotifyingValue

__all__ = ["NotifyingMapping", "NotifyingObservables", "NotifyingValue"]
