"""
Slip scanner: camera scan for unauthorized exam material at entry.

Runs a short multi-frame scan (object classifier + bright-paper heuristic)
and reports a YES/NO verdict with photographic evidence.

Usage:
    python src/main.py --config config/config.yaml
    python src/main.py --config config/config.yaml --scan-once --name "Asha" --roll 21CS042

Arguments:
    --config: Path to configuration file
    --scan-once: Run a single scan from the command line instead of serving the web UI
    --notify: Send an alert if the scan is positive
    --name / --roll: Subject identity for --scan-once
    --evidence-out: Where to write the evidence PNG for --scan-once
"""

import argparse
import asyncio
import logging
import os
import sys
from typing import Any, Dict, Optional, Tuple

import yaml

from models.config import WebConfig
from models.errors import ScanError
from ops.logging import setup_logging
from runtime.context import ScanContext, create_context_from_config


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge override into base and return base."""
    for k, v in (override or {}).items():
        if isinstance(v, dict) and isinstance(base.get(k), dict):
            _deep_merge(base[k], v)
        else:
            base[k] = v
    return base


def load_config(config_path: str) -> Dict[str, Any]:
    """
    Load configuration with layering:
    - `config/default.yaml` (checked in)
    - `config/config.yaml` (local overrides)
    - plus any explicitly provided `--config` path (treated as overrides)
    """
    try:
        base_path = os.path.join(os.path.dirname(config_path), "default.yaml")
        base_cfg: Dict[str, Any] = {}
        if os.path.exists(base_path):
            with open(base_path, "r") as f:
                base_cfg = yaml.safe_load(f) or {}

        local_overrides_path = os.path.join(os.path.dirname(config_path), "config.yaml")
        local_cfg: Dict[str, Any] = {}
        if os.path.exists(local_overrides_path):
            with open(local_overrides_path, "r") as f:
                local_cfg = yaml.safe_load(f) or {}

        merged = _deep_merge(base_cfg, local_cfg)

        if os.path.exists(config_path) and os.path.abspath(config_path) != os.path.abspath(local_overrides_path):
            with open(config_path, "r") as f:
                explicit_cfg = yaml.safe_load(f) or {}
            merged = _deep_merge(merged, explicit_cfg)

        return merged
    except Exception as e:
        logging.error(f"Failed to load configuration: {e}")
        sys.exit(1)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_config(config: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Validate configuration file structure and values.

    Args:
        config: Configuration dictionary

    Returns:
        Tuple of (is_valid, error_message)
    """
    required_sections = ['camera', 'classifier', 'scan', 'log_path', 'log_level']
    for section in required_sections:
        if section not in config:
            return False, f"Missing required configuration section: {section}"

    # Camera
    camera = config.get('camera', {}) or {}
    backend = camera.get('backend', 'opencv')
    if backend not in ('opencv', 'image'):
        return False, "camera.backend must be one of: opencv, image"
    if backend == 'image':
        if not isinstance(camera.get('image_path'), str) or not camera.get('image_path'):
            return False, "camera.image_path is required when camera.backend is 'image'"
    else:
        if 'device_id' not in camera:
            return False, "Missing camera.device_id"
        if not isinstance(camera['device_id'], (int, str)) or isinstance(camera['device_id'], bool):
            return False, "camera.device_id must be an integer (index) or string (URL/file)"
        if isinstance(camera['device_id'], int) and camera['device_id'] < 0:
            return False, "camera.device_id integer must be non-negative"
    if 'resolution' in camera:
        res = camera['resolution']
        if not isinstance(res, list) or len(res) != 2 or not all(isinstance(x, int) and x > 0 for x in res):
            return False, "camera.resolution must be a list of two positive integers"

    # Classifier
    classifier = config.get('classifier', {}) or {}
    if classifier.get('backend', 'yolo') != 'yolo':
        return False, "classifier.backend must be: yolo"
    if not isinstance(classifier.get('model'), str) or not classifier.get('model'):
        return False, "classifier.model is required"
    allow_list = classifier.get('allow_list', {}) or {}
    if 'classes' in allow_list:
        classes = allow_list['classes']
        if not isinstance(classes, list) or not all(isinstance(c, str) and c for c in classes):
            return False, "classifier.allow_list.classes must be a list of class names"
    if 'min_score' in allow_list:
        score = allow_list['min_score']
        if not _is_number(score) or not (0 <= score <= 1):
            return False, "classifier.allow_list.min_score must be between 0 and 1"

    # Scan window
    scan = config.get('scan', {}) or {}
    for key in ('seconds', 'fps'):
        if key in scan and (not _is_number(scan[key]) or scan[key] <= 0):
            return False, f"scan.{key} must be a positive number"

    # Heuristic
    heuristic = config.get('heuristic', {}) or {}
    if 'size' in heuristic and (not isinstance(heuristic['size'], int) or heuristic['size'] <= 0):
        return False, "heuristic.size must be a positive integer"
    for key in ('roi_offset', 'bright_ratio_cutoff', 'row_fill_cutoff', 'consistency_cutoff'):
        if key in heuristic and (not _is_number(heuristic[key]) or not (0 <= heuristic[key] < 1)):
            return False, f"heuristic.{key} must be in [0, 1)"
    if 'brightness_cutoff' in heuristic:
        cutoff = heuristic['brightness_cutoff']
        if not _is_number(cutoff) or not (0 <= cutoff <= 255):
            return False, "heuristic.brightness_cutoff must be between 0 and 255"
    if 'mid_band' in heuristic:
        band = heuristic['mid_band']
        if (not isinstance(band, list) or len(band) != 2 or not all(_is_number(b) for b in band)
                or not (0 <= band[0] < band[1] <= 1)):
            return False, "heuristic.mid_band must be [start, end] with 0 <= start < end <= 1"

    # Notifications
    notify = config.get('notify', {}) or {}
    notify_backend = notify.get('backend', 'log')
    if notify_backend not in ('log', 'email'):
        return False, "notify.backend must be one of: log, email"
    if notify_backend == 'email' and not notify.get('recipients'):
        return False, "notify.recipients is required when notify.backend is 'email'"

    valid_log_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
    if config['log_level'] not in valid_log_levels:
        return False, f"log_level must be one of: {', '.join(valid_log_levels)}"

    return True, None


async def scan_once(ctx: ScanContext, notify: bool, evidence_out: Optional[str]) -> int:
    """Open, load, scan, report. Returns the process exit code."""
    await asyncio.to_thread(ctx.source.open)
    await asyncio.to_thread(ctx.classifier.load)

    verdict = await ctx.scan(notify=notify)
    answer = "YES" if verdict.has_unauthorized_material else "NO"
    print(f"Result: PAPERS/SLIPS - {answer}")

    if verdict.evidence_image is not None and evidence_out:
        out_dir = os.path.dirname(evidence_out)
        if out_dir:
            os.makedirs(out_dir, exist_ok=True)
        with open(evidence_out, "wb") as f:
            f.write(verdict.evidence_image)
        logging.info(f"Evidence saved: {evidence_out}")
    return 0


def main():
    """Main application function."""
    parser = argparse.ArgumentParser(description='Slip Scanner - entry check for exam material')
    parser.add_argument('--config', type=str, default='config/config.yaml',
                        help='Path to configuration file')
    parser.add_argument('--scan-once', action='store_true',
                        help='Run one scan and exit instead of serving the web UI')
    parser.add_argument('--notify', action='store_true',
                        help='Send an alert if the scan is positive')
    parser.add_argument('--name', type=str, default=None, help='Subject name')
    parser.add_argument('--roll', type=str, default=None, help='Subject roll number')
    parser.add_argument('--evidence-out', type=str, default='output/evidence.png',
                        help='Evidence PNG path for --scan-once')
    args = parser.parse_args()

    config = load_config(args.config)

    is_valid, error_msg = validate_config(config)
    if not is_valid:
        logging.error(f"Configuration validation failed: {error_msg}")
        sys.exit(1)

    setup_logging(config['log_path'], config['log_level'])
    logging.info("Starting Slip Scanner")

    ctx = create_context_from_config(config)
    ctx.set_subject(args.name, args.roll)

    if args.scan_once:
        try:
            code = asyncio.run(scan_once(ctx, args.notify, args.evidence_out))
        except ScanError as e:
            logging.error(f"Scan failed: {e}")
            code = 2
        except Exception as e:
            logging.error(f"Startup failed: {e}")
            code = 1
        finally:
            ctx.close()
        sys.exit(code)

    import uvicorn
    from web.app import create_app

    web = WebConfig.from_dict(config.get('web', {}) or {})
    logging.info(f"Web interface starting on {web.host}:{web.port}")
    uvicorn.run(create_app(ctx), host=web.host, port=web.port, log_level="info")
    logging.info("Slip Scanner stopped")


if __name__ == "__main__":
    main()
