"""
Image labeling through a Gemini vision model.

A labeler hands out one LabelingContext at a time. The context holds the
conversation state of the model and is reset before every image, so one
image can never leak into the label of the next.
"""

import logging
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from PIL import Image, UnidentifiedImageError

from .client import genai, get_model
from .models import DEFAULT_MODEL, get_model_config
from .prompts import IMAGE_LABEL_PROMPT

logger = logging.getLogger(__name__)

ERROR_FILE_NOT_FOUND = "error_file_not_found"
ERROR_IMAGE_LOAD = "error_image_load"
ERROR_INFERENCE_FAILED = "error_inference_failed"
UNKNOWN_EMPTY_LABEL = "unknown_empty_label"


class LabelingContext:
    """Stateful inference context shared by every image of one batch."""

    def __init__(self, model, model_name: str = DEFAULT_MODEL):
        self._model = model
        self._config = get_model_config(model_name)
        self._chat = None

    def reset(self) -> None:
        """Drop all conversation state held for the previous image."""
        self._chat = None

    def label(self, image_path: Path | str) -> str:
        """
        Label one image.

        Returns:
            A short label, or an error_* / unknown_* marker. Load and
            inference failures, including a reply without usable text, are
            reported as markers rather than raised.
        """
        image_path = Path(image_path)
        if not image_path.is_file():
            logger.warning("Image file not found: %s", image_path)
            return ERROR_FILE_NOT_FOUND

        if self._chat is None:
            self._chat = self._model.start_chat(history=[])

        generation_config = genai.types.GenerationConfig(
            max_output_tokens=self._config["label_max_tokens"],
            temperature=self._config["label_temperature"],
        )

        try:
            with Image.open(image_path) as img:
                img.load()
                response = self._chat.send_message(
                    [IMAGE_LABEL_PROMPT, img],
                    generation_config=generation_config,
                )
            text = (response.text or "").strip()
        except (UnidentifiedImageError, OSError) as e:
            logger.error("Could not load image '%s': %s", image_path, e)
            return ERROR_IMAGE_LOAD
        except Exception as e:
            logger.error("Inference failed for image %s: %s", image_path, e)
            return ERROR_INFERENCE_FAILED

        label = text.splitlines()[0].strip() if text else ""
        logger.info("Label for %s: '%s'", image_path.name, label)
        return label or UNKNOWN_EMPTY_LABEL


class GeminiImageLabeler:
    """
    Vision collaborator for the dispatcher.

    Use session() to borrow the labeling context for one batch. Only one
    batch may hold the context at a time.
    """

    def __init__(self, model_name: str = DEFAULT_MODEL):
        self.model_name = model_name
        self._lock = threading.Lock()
        self._context: LabelingContext | None = None

    def _get_context(self) -> LabelingContext:
        if self._context is None:
            self._context = LabelingContext(get_model(self.model_name), self.model_name)
        return self._context

    @contextmanager
    def session(self) -> Iterator[LabelingContext]:
        if not self._lock.acquire(blocking=False):
            raise RuntimeError("Image labeling context is already in use")
        try:
            context = self._get_context()
            context.reset()
            yield context
        finally:
            if self._context is not None:
                self._context.reset()
            self._lock.release()
