"""Exceptions raised by the content store and rendering pipeline."""


class PressroomError(Exception):
    """Base exception for all Pressroom errors."""


class PostError(PressroomError):
    """Base exception for expected, caller-recoverable post errors."""


class PostValidationError(PostError):
    """Raised when caller input for a post is missing or unusable."""

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        super().__init__(f"Invalid {field}: {message}")


class PostNotFoundError(PostError):
    """Raised when no file exists for the requested post."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Post {key!r} not found")


class PostAlreadyExistsError(PostError):
    """Raised when a post file with the same id and slug already exists."""

    def __init__(self, filename: str) -> None:
        self.filename = filename
        super().__init__(f"Post file {filename!r} already exists")


class AlreadyPublishedError(PostError):
    """Raised when publishing a post that is already published."""

    def __init__(self, post_id: str) -> None:
        self.post_id = post_id
        super().__init__(f"Post {post_id!r} is already published")


class MalformedPostFileError(PostError):
    """Raised when a post file's frontmatter block cannot be parsed."""

    def __init__(self, reason: str, path: str = "") -> None:
        self.reason = reason
        self.path = path
        where = f" in {path}" if path else ""
        super().__init__(f"Malformed frontmatter{where}: {reason}")


class StorageError(PressroomError):
    """Raised when reading or writing the content directory fails."""

    def __init__(self, action: str, path: str) -> None:
        self.action = action
        self.path = path
        super().__init__(f"Failed to {action} {path}")
