"""Error taxonomy shared by the clients, stores and reconciliation engine."""


class OutageTrackerError(Exception):
    pass


class ConfigurationError(OutageTrackerError):
    """Missing credentials or an unusable service-area setup. Fatal at startup."""


class FetchError(OutageTrackerError):
    """An external API could not be reached or answered with an error status."""


class MalformedResponseError(OutageTrackerError):
    """An external API answered with a body we could not parse."""


class StorageError(OutageTrackerError):
    """A database write or read failed."""


class CycleAbortedError(OutageTrackerError):
    """A reconciliation cycle stopped before completing.

    ``kind`` is one of ``auth``, ``fetch`` or ``storage``.
    """

    def __init__(self, kind: str, detail: str):
        super().__init__(f"{kind}: {detail}")
        self.kind = kind
        self.detail = detail

    def to_dict(self) -> dict:
        return {"kind": self.kind, "detail": self.detail}
