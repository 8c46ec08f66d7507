class ImageUnavailable(Exception):
    """
    Base for every reason an image request ends on the placeholder.

    Subclasses only differ in how they are logged; the HTTP answer is the
    same redirect for all of them so callers cannot tell them apart.
    """

    log_level = "INFO"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class EntityNotFound(ImageUnavailable):
    """Entity, image row or file does not exist."""


class OwnershipMismatch(ImageUnavailable):
    """Claimed ids do not chain together (possible probing)."""

    log_level = "WARNING"
