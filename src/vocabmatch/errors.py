class VocabMatchError(Exception):
    """Base class for errors raised by the game core."""


class UnknownVocabularyList(VocabMatchError):
    def __init__(self, list_id: str):
        super().__init__(f"Unknown vocabulary list: {list_id!r}")
        self.list_id = list_id


class InsufficientEntries(VocabMatchError):
    """The chosen list holds fewer entries than the difficulty asks for."""

    def __init__(self, list_id: str, available: int, requested: int):
        super().__init__(
            f"List {list_id!r} has {available} entries, {requested} requested"
        )
        self.list_id = list_id
        self.available = available
        self.requested = requested


class HintFetchFailure(VocabMatchError):
    pass


class ResultDispatchFailure(VocabMatchError):
    pass
