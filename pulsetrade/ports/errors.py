class VenueError(Exception):
    """Raised by venue adapters when a request fails or a response cannot be parsed."""
