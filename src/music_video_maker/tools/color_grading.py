"""Per-frame color grading for rendered clips."""

import numpy as np

from ..models.clip import ColorGrade


BRIGHTNESS_SCALE = 0.3
TEMPERATURE_SCALE = 0.1
LUMA_WEIGHTS = np.array([0.299, 0.587, 0.114])


def apply_color_grade(frame: np.ndarray, grade: ColorGrade) -> np.ndarray:
    """Apply a normalized color grade to an RGB uint8 frame.

    Args:
        frame: H x W x 3 array
        grade: Brightness, contrast, saturation and temperature in [-1, 1]

    Returns:
        Graded frame with the same shape and dtype
    """
    if grade is None or grade.is_neutral:
        return frame

    rgb = frame[..., :3].astype(np.float32) / 255.0

    rgb = rgb + BRIGHTNESS_SCALE * grade.brightness
    rgb = (rgb - 0.5) * (1.0 + grade.contrast) + 0.5

    luma = (rgb @ LUMA_WEIGHTS.astype(np.float32))[..., np.newaxis]
    rgb = luma + (rgb - luma) * (1.0 + grade.saturation)

    # Warm pushes red up and blue down, cool does the opposite
    rgb[..., 0] += TEMPERATURE_SCALE * grade.temperature
    rgb[..., 2] -= TEMPERATURE_SCALE * grade.temperature

    graded = (np.clip(rgb, 0.0, 1.0) * 255.0 + 0.5).astype(np.uint8)
    if frame.shape[-1] > 3:
        graded = np.concatenate([graded, frame[..., 3:]], axis=-1)
    return graded


def make_frame_filter(grade: ColorGrade):
    """Frame function suitable for ``clip.image_transform``."""
    def grade_frame(frame: np.ndarray) -> np.ndarray:
        return apply_color_grade(frame, grade)
    return grade_frame
