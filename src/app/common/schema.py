from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from core.config import configs


class CamelModel(BaseModel):
    """Accepts and emits camelCase JSON while keeping snake_case attributes."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def validate_photo_path(path: str, max_length: int = configs.MAX_PATH_LENGTH) -> str:
    if not path.strip():
        raise ValueError("Photo path cannot be empty")
    if len(path) > max_length:
        raise ValueError(f"Photo path is too long (max {max_length} characters)")
    if "\0" in path:
        raise ValueError("Photo path contains invalid characters")
    return path.strip()
