"""Table-of-contents data models."""

from pydantic import BaseModel


class OutlineNode(BaseModel):
    """One entry of a post outline. Level 0 is the post title itself."""

    level: int
    text: str
    id: str
    children: list["OutlineNode"] = []
