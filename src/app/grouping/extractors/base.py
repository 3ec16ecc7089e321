from abc import ABC, abstractmethod

import numpy as np


class EmbeddingExtractor(ABC):
    """Abstract base class for turning one image into a fixed-length vector."""

    dim: int = 512

    @abstractmethod
    def extract(self, image_path: str) -> np.ndarray:
        """
        Extracts an embedding for a single image.

        Args:
            image_path: Path to a readable image file.

        Returns:
            A 1-D float32 numpy array of length ``dim``.

        Raises:
            Any exception if the image cannot be read or decoded.
        """
        raise NotImplementedError
