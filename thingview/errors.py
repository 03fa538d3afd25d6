class ThingViewError(Exception):
    pass

class TransportError(ThingViewError):
    """A read, write or push channel operation failed."""

class ProtocolError(ThingViewError):
    """An inbound frame or response body could not be understood."""

class PreconditionError(ThingViewError):
    """The caller asked for something the thing does not have."""

class DecodingError(ThingViewError):
    """A property value could not be decoded for display."""
