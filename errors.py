# errors.py


class ExplorerError(Exception):
    """Base class for every error raised by the explorer core."""


class MalformedDatasetError(ExplorerError):
    """The startup payload cannot be turned into a graph. Nothing is displayed."""


class InvalidFilterSelectionError(ExplorerError):
    """A filter value has no entry in the attribute index."""

    def __init__(self, attribute: str, value, parent=None):
        self.attribute = attribute
        self.value = value
        self.parent = parent
        where = f" under {parent!r}" if parent is not None else ""
        super().__init__(f"No {attribute} {value!r}{where} in the attribute index.")


class ConfigurationError(ExplorerError, ValueError):
    """Bad force parameter, colour table or settings file."""


class UnknownNodeError(ExplorerError):
    """A command named a node id that is not in the loaded graph."""

    def __init__(self, node_id):
        self.node_id = node_id
        super().__init__(f"No node with id {node_id!r}.")
