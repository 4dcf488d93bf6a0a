"""
Pytest configuration and shared fixtures.
"""

import os
import sys

import numpy as np
import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))


@pytest.fixture
def temp_config_dir(tmp_path):
    """Create a temporary config directory with default.yaml."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()

    default_yaml = config_dir / "default.yaml"
    default_yaml.write_text("""
camera:
  backend: "opencv"
  device_id: 0
  resolution: [640, 480]
  fps: 30

classifier:
  backend: "yolo"
  model: "yolov8n.pt"
  allow_list:
    classes: ["book", "cell phone"]
    min_score: 0.55

scan:
  seconds: 2.0
  fps: 4

log_path: "logs/test.log"
log_level: "INFO"
""")

    return config_dir


@pytest.fixture
def valid_config():
    """Return a valid configuration dictionary."""
    return {
        "camera": {
            "backend": "opencv",
            "device_id": 0,
            "resolution": [640, 480],
            "fps": 30,
        },
        "classifier": {
            "backend": "yolo",
            "model": "yolov8n.pt",
            "allow_list": {
                "classes": ["book", "cell phone", "laptop", "remote", "tv"],
                "min_score": 0.55,
            },
        },
        "heuristic": {
            "size": 224,
            "roi_offset": 0.45,
            "brightness_cutoff": 225,
            "mid_band": [0.2, 0.75],
        },
        "scan": {"seconds": 2.0, "fps": 4},
        "notify": {"backend": "log"},
        "log_path": "logs/test.log",
        "log_level": "INFO",
    }


@pytest.fixture
def black_frame():
    return np.zeros((480, 640, 3), dtype=np.uint8)


@pytest.fixture
def white_frame():
    return np.full((480, 640, 3), 255, dtype=np.uint8)
