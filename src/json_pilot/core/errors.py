class JsonPilotError(Exception):
    """Base class for operation-level failures raised by the engine."""


class DecodeFailure(JsonPilotError):
    """A marker identifier or token could not be decoded."""


class ParseFailure(JsonPilotError):
    """The document does not contain a JSON value at all."""


class InvalidEmbeddedJSON(JsonPilotError):
    """An expand was attempted on a string that does not hold an object or array."""


class QueryFailure(JsonPilotError):
    """A query could not be parsed or evaluated."""


class ActionUnavailable(JsonPilotError):
    """The rendering surface does not provide the requested action."""
