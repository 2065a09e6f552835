# domain/errors.py


class StreetMapError(Exception):
    """Base class for street map query and load failures.

    `entity` names the kind of record involved ("road", "node", "railway", ...)
    and `index` its position in the store, so a loader can flag or drop it.
    """

    def __init__(self, message: str, *, entity: str | None = None, index: int | None = None):
        super().__init__(message)
        self.entity = entity
        self.index = index

    def __str__(self) -> str:
        msg = super().__str__()
        if self.entity is None:
            return msg
        where = self.entity if self.index is None else f"{self.entity}[{self.index}]"
        return f"{where}: {msg}"


class InvalidGraphState(StreetMapError):
    """The graph data breaks an invariant the query relies on."""


class OutOfRange(StreetMapError, IndexError):
    """An id, point index, connection index or position lies outside its valid range."""


class MalformedEntityError(StreetMapError):
    """Raised by the builder when a malformed entity is rejected outright."""

    def __init__(self, message: str, *, entity: str, index: int, code: str):
        super().__init__(message, entity=entity, index=index)
        self.code = code
