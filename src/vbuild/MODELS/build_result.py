"""
Models for the outcome of a single backend build.
"""
from pydantic import BaseModel


class BuildResult(BaseModel):
    """
    Result of building one image, as reported by the container backend.
    """
    image: str
    tag: str = "latest"
    exit_code: int = 0

    @property
    def reference(self) -> str:
        return f"{self.image}:{self.tag}"

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0
