class ValidationError(ValueError):
    """A required field is missing from the inbound request."""


class UpstreamTransportError(Exception):
    """The upstream could not be reached or did not answer with JSON."""
