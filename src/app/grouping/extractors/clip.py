from __future__ import annotations

import logging
from typing import Optional

import numpy as np
import torch
from PIL import Image, ImageFile

from app.config import EmbeddingConfig
from app.grouping.extractors.base import EmbeddingExtractor

logger = logging.getLogger(__name__)

# Allow loading truncated images
ImageFile.LOAD_TRUNCATED_IMAGES = True


class ClipExtractor(EmbeddingExtractor):
    """
    CLIP image encoder (open_clip). Loading downloads and initializes the
    weights, which takes seconds; build it through the EmbeddingCache.
    """

    def __init__(self, config: Optional[EmbeddingConfig] = None) -> None:
        self.config = config or EmbeddingConfig()
        self.device = torch.device(self.config.device)

        import open_clip  # Lazy import
        self.model, _, preprocess = open_clip.create_model_and_transforms(
            self.config.model_name, pretrained=self.config.pretrained
        )
        self.model.to(self.device)
        self.model.eval()
        self.preprocess = preprocess
        self.dim = int(self.model.visual.output_dim)
        logger.info(
            f"[CLIP] model={self.config.model_name}, pretrained={self.config.pretrained}, "
            f"device={self.device}, dim={self.dim}"
        )

    @torch.no_grad()
    def extract(self, image_path: str) -> np.ndarray:
        with Image.open(image_path) as img:
            img = img.convert("RGB")

        image_input = self.preprocess(img).unsqueeze(0).to(self.device)
        features = self.model.encode_image(image_input)
        return features.cpu().numpy().flatten().astype(np.float32)
