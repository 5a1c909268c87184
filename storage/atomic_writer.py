"""
Atomic file writer - ensures no partial writes or corrupted files.
Implements temp-write → fsync → rename pattern for durability.
"""

import os
import json
import time
import logging
import tempfile
from pathlib import Path
from typing import Dict, Any


logger = logging.getLogger(__name__)


def write_text_atomic(content: str, output_path: Path) -> Dict[str, Any]:
    """
    Write text content atomically to prevent partial files.

    Uses temp-write → fsync → rename pattern for atomicity.

    Args:
        content: Text to write
        output_path: Final path for the file

    Returns:
        Dictionary with write results
    """
    start_time = time.time()
    temp_path = None

    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)

        # Temp file in the same directory so the rename stays on one filesystem
        temp_fd, temp_path_str = tempfile.mkstemp(
            suffix='.tmp',
            prefix=f'{output_path.stem}_',
            dir=output_path.parent
        )
        temp_path = Path(temp_path_str)

        with os.fdopen(temp_fd, 'w', encoding='utf-8', newline='') as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())

        os.replace(temp_path, output_path)
        temp_path = None

        return {
            'status': 'completed',
            'output_path': str(output_path),
            'bytes_written': len(content.encode('utf-8')),
            'duration_seconds': time.time() - start_time
        }

    except OSError as e:
        logger.error(f"Atomic write to {output_path} failed: {e}")
        return {
            'status': 'failed',
            'error': str(e),
            'output_path': str(output_path),
            'bytes_written': 0,
            'duration_seconds': time.time() - start_time
        }

    finally:
        if temp_path is not None and temp_path.exists():
            try:
                temp_path.unlink()
            except OSError as e:
                logger.warning(f"Could not remove temp file {temp_path}: {e}")


def write_json_atomic(payload: Any, output_path: Path) -> Dict[str, Any]:
    """
    Serialize payload to JSON and write it atomically.

    Serialization errors are reported before any file is touched.
    """
    try:
        json_content = json.dumps(payload, indent=2, default=str)
    except (TypeError, ValueError) as e:
        return {
            'status': 'failed',
            'error': f'JSON serialization failed: {e}',
            'output_path': str(output_path),
            'bytes_written': 0
        }

    return write_text_atomic(json_content, output_path)
